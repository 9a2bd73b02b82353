from __future__ import annotations

from datetime import datetime

from ._ast import SHORTCUTS, CronParts, Direction, MonthName, Position, Weekday
from ._error import CronError, CronErrorKind, Span
from ._eval import DEFAULT_MAX_ITERATIONS, TimeInput, ZoneInput
from ._eval import find_run_date as _find_run_date
from ._eval import get_multiple_run_dates as _get_multiple_run_dates
from ._eval import is_due as _is_due
from ._fields import (
    DayOfMonthField,
    DayOfWeekField,
    FieldEvaluator,
    FieldFactory,
    HoursField,
    MinutesField,
    MonthField,
    YearField,
)
from ._parser import parse, replace_part, to_text


class CronExpression:
    """A validated cron expression and the run-date queries over it.

    Instances are immutable: `with_part` and `with_max_iteration_count` return
    new expressions.
    """

    _parts: CronParts
    _factory: FieldFactory
    _max_iteration_count: int

    def __init__(
        self,
        expression: str,
        field_factory: FieldFactory | None = None,
        max_iteration_count: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self._factory = field_factory or FieldFactory()
        self._parts = parse(expression, self._factory)
        self._max_iteration_count = max_iteration_count

    @classmethod
    def _from_parts(
        cls, parts: CronParts, factory: FieldFactory, max_iteration_count: int
    ) -> CronExpression:
        expr = cls.__new__(cls)
        expr._parts = parts
        expr._factory = factory
        expr._max_iteration_count = max_iteration_count
        return expr

    @classmethod
    def from_expression(
        cls, expression: str, field_factory: FieldFactory | None = None
    ) -> CronExpression:
        """Parse an expression or one of the `@yearly`, `@daily`, ... shortcuts."""
        return cls(expression, field_factory)

    @classmethod
    def from_parts(
        cls,
        minute: str,
        hour: str,
        day: str,
        month: str,
        weekday: str,
        year: str | None = None,
        field_factory: FieldFactory | None = None,
    ) -> CronExpression:
        fields = [minute, hour, day, month, weekday]
        if year is not None:
            fields.append(year)
        # Each part must be a single token so positions cannot shift.
        for position, value in zip(Position, fields):
            if not value or len(value.split()) != 1:
                raise CronError.malformed(
                    f"invalid {position.label} field value {value!r} at position {int(position)}",
                    position=position,
                    value=value,
                )
        return cls(" ".join(fields), field_factory)

    @classmethod
    def is_valid_expression(cls, expression: str) -> bool:
        try:
            cls(expression)
            return True
        except CronError:
            return False

    # --- Inspection ---

    @property
    def parts(self) -> tuple[str, ...]:
        return self._parts.values

    @property
    def max_iteration_count(self) -> int:
        return self._max_iteration_count

    def get_part(self, position: Position | int) -> str | None:
        try:
            return self._parts.get(Position(position))
        except ValueError:
            return None

    def to_text(self) -> str:
        return to_text(self._parts)

    # --- Copies ---

    def with_part(self, position: Position | int, value: str) -> CronExpression:
        parts = replace_part(self._parts, position, value, self._factory)
        return self._from_parts(parts, self._factory, self._max_iteration_count)

    def with_max_iteration_count(self, max_iteration_count: int) -> CronExpression:
        return self._from_parts(self._parts, self._factory, max_iteration_count)

    # --- Run dates ---

    def get_next_run_date(
        self,
        current_time: TimeInput = "now",
        nth: int = 0,
        allow_current_date: bool = False,
        time_zone: ZoneInput = None,
    ) -> datetime:
        """The next run date after `current_time`, skipping `nth` matches.

        With `nth=0` and `allow_current_date=True`, `current_time` itself is
        returned when it matches.

        Raises:
            CronError: kind "impossible" when the iteration budget runs out.
        """
        return _find_run_date(
            self._parts,
            current_time,
            nth,
            Direction.FORWARD,
            allow_current_date,
            time_zone,
            self._factory,
            self._max_iteration_count,
        )

    def get_previous_run_date(
        self,
        current_time: TimeInput = "now",
        nth: int = 0,
        allow_current_date: bool = False,
        time_zone: ZoneInput = None,
    ) -> datetime:
        """The previous run date before `current_time`; see `get_next_run_date`."""
        return _find_run_date(
            self._parts,
            current_time,
            nth,
            Direction.BACKWARD,
            allow_current_date,
            time_zone,
            self._factory,
            self._max_iteration_count,
        )

    def get_multiple_run_dates(
        self,
        total: int,
        current_time: TimeInput = "now",
        direction: Direction = Direction.FORWARD,
        allow_current_date: bool = False,
        time_zone: ZoneInput = None,
    ) -> list[datetime]:
        """Up to `total` run dates, nearest first.

        The list is cut short instead of raising when the expression runs out of
        matches within the iteration budget.
        """
        return _get_multiple_run_dates(
            self._parts,
            total,
            current_time,
            direction,
            allow_current_date,
            time_zone,
            self._factory,
            self._max_iteration_count,
        )

    def is_due(self, current_time: TimeInput = "now", time_zone: ZoneInput = None) -> bool:
        """Whether the expression fires in the minute of `current_time`.

        Seconds are ignored; call once per minute.
        """
        return _is_due(
            self._parts, current_time, time_zone, self._factory, self._max_iteration_count
        )

    # --- Dunder ---

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"CronExpression({self.to_text()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CronExpression):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)


__all__ = [
    "CronExpression",
    "CronError",
    "CronErrorKind",
    "Span",
    "CronParts",
    "Position",
    "Direction",
    "Weekday",
    "MonthName",
    "SHORTCUTS",
    "DEFAULT_MAX_ITERATIONS",
    "FieldEvaluator",
    "FieldFactory",
    "MinutesField",
    "HoursField",
    "DayOfMonthField",
    "MonthField",
    "DayOfWeekField",
    "YearField",
]
