from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from ._ast import SEARCH_ORDER, CronParts, Direction, Position
from ._error import CronError
from ._fields import FieldEvaluator, FieldFactory

logger = logging.getLogger(__name__)

TimeInput = datetime | str | None
ZoneInput = tzinfo | str | None

# =============================================================================
# Iteration Safety Limit
# =============================================================================
# DEFAULT_MAX_ITERATIONS (1000): every field step and every skipped match
# consumes one iteration. A schedule that cannot match (e.g. "0 0 30 2 *")
# exhausts the budget and raises CronError("impossible") instead of looping.
#
# Valid schedules match within a few dozen steps: minutes and hours jump
# straight to the next admitted value, days/months/years step one at a time.
# =============================================================================

DEFAULT_MAX_ITERATIONS = 1000

# =============================================================================
# DST (Daylight Saving Time) Handling
# =============================================================================
# The working instant is stepped in wall-clock time within the resolved zone.
# A match is normalized through UTC before it is returned:
#
# 1. DST Gap (Spring Forward): a wall time that does not exist (e.g. 02:30)
#    is pushed forward past the gap.
# 2. DST Fold (Fall Back): an ambiguous wall time resolves to its first
#    occurrence (fold=0).
# =============================================================================


# --- Timezone resolution ---


def resolve_tz(moment: datetime | None, time_zone: ZoneInput) -> tzinfo:
    """Explicit zone, else the zone of an aware reference, else UTC."""
    if time_zone is not None:
        return ZoneInfo(time_zone) if isinstance(time_zone, str) else time_zone
    if moment is not None and moment.tzinfo is not None:
        return moment.tzinfo
    return ZoneInfo("UTC")


def _coerce_time(current_time: TimeInput) -> datetime | None:
    """Turn the caller's reference into a datetime; `None` stands for now."""
    if current_time is None:
        return None
    if isinstance(current_time, str):
        if current_time.strip().lower() == "now":
            return None
        return datetime.fromisoformat(current_time)
    if isinstance(current_time, datetime):
        return current_time
    raise TypeError(
        f"expected a datetime, an ISO-8601 string or 'now', got {type(current_time).__name__}"
    )


def _normalize(dt: datetime) -> datetime:
    return datetime.fromtimestamp(dt.timestamp(), tz=dt.tzinfo)


def _reference(moment: datetime | None, tz: tzinfo) -> datetime:
    """The reference instant in `tz`, truncated to the minute."""
    if moment is None:
        dt = datetime.now(tz)
    elif moment.tzinfo is None:
        dt = moment.replace(tzinfo=tz)
    else:
        dt = moment.astimezone(tz)
    return _normalize(dt.replace(second=0, microsecond=0))


# --- Matching ---


def _first_unsatisfied(
    dt: datetime, constrained: list[tuple[str, FieldEvaluator]]
) -> tuple[str, FieldEvaluator] | None:
    for value, field in constrained:
        if not any(field.is_satisfied_by(dt, alt.strip()) for alt in value.split(",")):
            return value, field
    return None


# =============================================================================
# Run-date search
# =============================================================================


def find_run_date(
    parts: CronParts,
    current_time: TimeInput = None,
    nth: int = 0,
    direction: Direction = Direction.FORWARD,
    allow_current_date: bool = False,
    time_zone: ZoneInput = None,
    factory: FieldFactory | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> datetime:
    """Find the `nth` (0-based) run date of `parts` from `current_time`.

    Args:
        parts: Validated expression parts.
        current_time: Reference instant: a datetime, an ISO-8601 string, or
            None/"now". Naive values are read as wall time in the resolved zone.
        nth: Number of matches to skip before returning one.
        direction: Search forward (next run) or backward (previous run).
        allow_current_date: Whether the reference instant itself may match.
        time_zone: Zone to search in; overrides the reference's own zone.
        factory: Field evaluators to use; the standard dialect by default.
        max_iterations: Step budget before giving up.

    Returns:
        The matching instant, timezone-aware in the resolved zone.

    Raises:
        CronError: kind "impossible" when no match is found within the budget.
    """
    factory = factory or FieldFactory()
    nth = max(nth, 0)
    moment = _coerce_time(current_time)
    tz = resolve_tz(moment, time_zone)
    current = _reference(moment, tz)

    if parts.is_constrained(Position.DAY) and parts.is_constrained(Position.WEEKDAY):
        return _find_either_day(
            parts, current, nth, direction, allow_current_date, tz, factory, max_iterations
        )

    # Wildcard and absent fields impose nothing, so they are never checked.
    constrained = [
        (parts.values[position], factory.get_field(position))
        for position in SEARCH_ORDER
        if parts.is_constrained(position)
    ]
    minute_field = factory.get_field(Position.MINUTE)
    minute = parts.get(Position.MINUTE) if parts.is_constrained(Position.MINUTE) else None

    run = current
    try:
        for _ in range(max_iterations):
            unsatisfied = _first_unsatisfied(run, constrained)
            if unsatisfied is not None:
                value, field = unsatisfied
                run = field.increment(run, direction, value)
                continue

            if not allow_current_date and run == current:
                run = minute_field.increment(run, direction, minute)
                continue

            if nth > 0:
                nth -= 1
                run = minute_field.increment(run, direction, minute)
                continue

            return _normalize(run)
    except OverflowError as e:
        logger.debug("stepped %r past the datetime range from %s", str(parts), run.isoformat())
        raise CronError.impossible(
            f"impossible cron expression {str(parts)!r}: no match before the end of the datetime range"
        ) from e

    logger.debug(
        "no %s match for %r from %s within %d iterations",
        direction,
        str(parts),
        current.isoformat(),
        max_iterations,
    )
    raise CronError.impossible(
        f"impossible cron expression {str(parts)!r}: no match within {max_iterations} iterations"
    )


def _find_either_day(
    parts: CronParts,
    current: datetime,
    nth: int,
    direction: Direction,
    allow_current_date: bool,
    tz: tzinfo,
    factory: FieldFactory,
    max_iterations: int,
) -> datetime:
    """Day of month and day of week are both set: a day matching either one runs."""
    by_day = parts.replace(Position.WEEKDAY, "*")
    by_weekday = parts.replace(Position.DAY, "*")
    logger.debug("splitting %r into %r or %r", str(parts), str(by_day), str(by_weekday))

    combined = [
        *get_multiple_run_dates(
            by_day, nth + 1, current, direction, allow_current_date, tz, factory, max_iterations
        ),
        *get_multiple_run_dates(
            by_weekday, nth + 1, current, direction, allow_current_date, tz, factory, max_iterations
        ),
    ]
    # Nearest first; a day matching both sides appears twice.
    combined.sort(key=lambda dt: dt.timestamp(), reverse=direction.inverted)

    if len(combined) <= nth:
        raise CronError.impossible(
            f"impossible cron expression {str(parts)!r}: "
            f"found {len(combined)} of {nth + 1} run dates"
        )
    return combined[nth]


# =============================================================================
# Due check / enumeration
# =============================================================================


def is_due(
    parts: CronParts,
    current_time: TimeInput = None,
    time_zone: ZoneInput = None,
    factory: FieldFactory | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> bool:
    """Whether the expression fires in the minute containing `current_time`."""
    moment = _coerce_time(current_time)
    tz = resolve_tz(moment, time_zone)
    current = _reference(moment, tz)
    try:
        run = find_run_date(
            parts, current, 0, Direction.FORWARD, True, tz, factory, max_iterations
        )
    except CronError:
        return False
    return run == current


def get_multiple_run_dates(
    parts: CronParts,
    total: int,
    current_time: TimeInput = None,
    direction: Direction = Direction.FORWARD,
    allow_current_date: bool = False,
    time_zone: ZoneInput = None,
    factory: FieldFactory | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[datetime]:
    """Up to `total` run dates in search order; stops at the first failed search."""
    # "now" is read once so every match shares the same reference.
    moment = _coerce_time(current_time)
    tz = resolve_tz(moment, time_zone)
    current = _reference(moment, tz)

    matches: list[datetime] = []
    for i in range(max(0, total)):
        try:
            matches.append(
                find_run_date(
                    parts, current, i, direction, allow_current_date, tz, factory, max_iterations
                )
            )
        except CronError as e:
            logger.debug("stopping after %d of %d run dates: %s", len(matches), total, e)
            break
    return matches
