from __future__ import annotations

import calendar
import re
from collections.abc import Mapping
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Protocol

from ._ast import WILDCARDS, Direction, MonthName, Position, Weekday
from ._error import CronError

_DIGITS = re.compile(r"[0-9]+")


class FieldEvaluator(Protocol):
    """Validation, matching and stepping for one cron field."""

    def validate(self, value: str) -> bool: ...

    def is_satisfied_by(self, dt: datetime, value: str) -> bool: ...

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime: ...


# =============================================================================
# Shared range/step/list syntax
# =============================================================================


class _RangeField:
    """Base for fields whose values are integers in `[range_start, range_end]`.

    Accepts `*`, `n`, `a-b`, `*/s`, `a-b/s`, `a/s` and comma lists of those.
    """

    range_start: int
    range_end: int

    def validate(self, value: str) -> bool:
        parts = value.split(",")
        try:
            for part in parts:
                self._validate_part(part.strip())
        except ValueError:
            return False
        return True

    def is_satisfied_by(self, dt: datetime, value: str) -> bool:
        if value in WILDCARDS:
            return True
        return self._unit(dt) in self._expand(value)

    def values(self, value: str | None) -> list[int]:
        """All values admitted by a (possibly comma-separated) token, sorted."""
        if value is None:
            return list(range(self.range_start, self.range_end + 1))
        result: set[int] = set()
        for part in value.split(","):
            result.update(self._expand(part.strip()))
        return sorted(result)

    def _unit(self, dt: datetime) -> int:
        raise NotImplementedError

    def _validate_part(self, part: str) -> None:
        self._expand(part)

    def _expand(self, part: str) -> list[int]:
        if part in WILDCARDS:
            return list(range(self.range_start, self.range_end + 1))

        if "/" in part:
            range_part, step_str = part.split("/", 1)
            step = self._parse_int(step_str)
            if step == 0:
                raise ValueError("step cannot be 0")
            if range_part in WILDCARDS:
                start, end = self.range_start, self.range_end
            elif "-" in range_part:
                start, end = self._parse_range(range_part)
            else:
                start, end = self._parse_value(range_part), self.range_end
            return list(range(start, end + 1, step))

        if "-" in part:
            start, end = self._parse_range(part)
            return list(range(start, end + 1))

        return [self._parse_value(part)]

    def _parse_range(self, part: str) -> tuple[int, int]:
        start_str, end_str = part.split("-", 1)
        start = self._parse_value(start_str)
        end = self._parse_value(end_str)
        if start > end:
            raise ValueError(f"range start must be <= end: {part}")
        return start, end

    def _parse_value(self, s: str) -> int:
        n = self._parse_int(s)
        if n < self.range_start or n > self.range_end:
            raise ValueError(f"must be {self.range_start}-{self.range_end}, got {n}")
        return n

    @staticmethod
    def _parse_int(s: str) -> int:
        if not _DIGITS.fullmatch(s):
            raise ValueError(f"not a number: {s!r}")
        return int(s)


def _next_day(dt: datetime, direction: Direction) -> datetime:
    if direction is Direction.FORWARD:
        return (dt + timedelta(days=1)).replace(hour=0, minute=0)
    return (dt - timedelta(days=1)).replace(hour=23, minute=59)


def _last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


# =============================================================================
# Time of day
# =============================================================================


class MinutesField(_RangeField):
    range_start = 0
    range_end = 59

    def _unit(self, dt: datetime) -> int:
        return dt.minute

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        minutes = self.values(value)
        if direction is Direction.FORWARD:
            later = [m for m in minutes if m > dt.minute]
            if later:
                return dt.replace(minute=later[0])
            return dt.replace(minute=0) + timedelta(hours=1)
        earlier = [m for m in minutes if m < dt.minute]
        if earlier:
            return dt.replace(minute=earlier[-1])
        return dt.replace(minute=59) - timedelta(hours=1)


class HoursField(_RangeField):
    range_start = 0
    range_end = 23

    def _unit(self, dt: datetime) -> int:
        return dt.hour

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        hours = self.values(value)
        if direction is Direction.FORWARD:
            later = [h for h in hours if h > dt.hour]
            if later:
                return dt.replace(hour=later[0], minute=0)
            return _next_day(dt, direction)
        earlier = [h for h in hours if h < dt.hour]
        if earlier:
            return dt.replace(hour=earlier[-1], minute=59)
        return _next_day(dt, direction)


# =============================================================================
# Calendar
# =============================================================================


class DayOfMonthField(_RangeField):
    """Day of month, 1-31.

    Extensions:
    - `L`: last day of the month
    - `nW`: the weekday (Mon-Fri) nearest to day `n`, never leaving the month
    """

    range_start = 1
    range_end = 31

    def _unit(self, dt: datetime) -> int:
        return dt.day

    def _validate_part(self, part: str) -> None:
        if part == "L":
            return
        if part.endswith("W"):
            self._parse_value(part[:-1])
            return
        self._expand(part)

    def is_satisfied_by(self, dt: datetime, value: str) -> bool:
        if value in WILDCARDS:
            return True
        if value == "L":
            return dt.day == _last_day_of_month(dt.year, dt.month)
        if value.endswith("W"):
            target = _nearest_weekday(dt.year, dt.month, int(value[:-1]))
            return target is not None and target == dt.date()
        return dt.day in self._expand(value)

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        return _next_day(dt, direction)


def _nearest_weekday(year: int, month: int, target_day: int) -> date | None:
    """Nearest Mon-Fri to `target_day`, staying within the month."""
    last_day = _last_day_of_month(year, month)
    if target_day > last_day:
        return None

    d = date(year, month, target_day)
    if d.isoweekday() <= 5:
        return d

    for offset in (-1, 1, -2, 2):
        day = target_day + offset
        if 1 <= day <= last_day:
            candidate = date(year, month, day)
            if candidate.isoweekday() <= 5:
                return candidate
    return None  # pragma: no cover


class MonthField(_RangeField):
    range_start = 1
    range_end = 12

    def _unit(self, dt: datetime) -> int:
        return dt.month

    def _parse_value(self, s: str) -> int:
        month = MonthName.try_parse(s)
        if month is not None:
            return month.number
        return super()._parse_value(s)

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        first = dt.replace(day=1)
        if direction is Direction.FORWARD:
            return (first + timedelta(days=32)).replace(day=1, hour=0, minute=0)
        return first.replace(hour=23, minute=59) - timedelta(days=1)


class DayOfWeekField(_RangeField):
    """Day of week, 0-7 where both 0 and 7 are Sunday; names SUN-SAT.

    Extensions:
    - `nL`: the last weekday `n` of the month (e.g. `5L`, last Friday)
    - `n#k`: the k-th weekday `n` of the month (e.g. `1#2`, second Monday)
    """

    range_start = 0
    range_end = 7

    def _unit(self, dt: datetime) -> int:
        return dt.isoweekday() % 7

    def _parse_value(self, s: str) -> int:
        weekday = Weekday.try_parse(s)
        if weekday is not None:
            return weekday.cron_dow
        return super()._parse_value(s)

    def _parse_range(self, part: str) -> tuple[int, int]:
        start_str, end_str = part.split("-", 1)
        start = self._parse_value(start_str)
        end = self._parse_value(end_str)
        # FRI-SUN reads as 5-7, SUN-... as 0-...
        if start == 7:
            start = 0
        if end == 0:
            end = 7
        if start > end:
            raise ValueError(f"range start must be <= end: {part}")
        return start, end

    def _validate_part(self, part: str) -> None:
        if "#" in part:
            weekday_str, nth_str = part.split("#", 1)
            self._parse_value(weekday_str)
            nth = self._parse_int(nth_str)
            if nth < 1 or nth > 5:
                raise ValueError(f"nth must be 1-5, got {nth}")
            return
        if part.endswith("L") and len(part) > 1:
            self._parse_value(part[:-1])
            return
        self._expand(part)

    def is_satisfied_by(self, dt: datetime, value: str) -> bool:
        if value in WILDCARDS:
            return True
        dow = self._unit(dt)

        if "#" in value:
            weekday_str, nth_str = value.split("#", 1)
            if self._parse_value(weekday_str) % 7 != dow:
                return False
            return (dt.day - 1) // 7 + 1 == int(nth_str)

        if value.endswith("L") and len(value) > 1:
            if self._parse_value(value[:-1]) % 7 != dow:
                return False
            return dt.day + 7 > _last_day_of_month(dt.year, dt.month)

        return dow in {v % 7 for v in self._expand(value)}

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        return _next_day(dt, direction)


class YearField(_RangeField):
    range_start = 1970
    range_end = 2099

    def _unit(self, dt: datetime) -> int:
        return dt.year

    def increment(self, dt: datetime, direction: Direction, value: str | None = None) -> datetime:
        year = dt.year + 1 if direction is Direction.FORWARD else dt.year - 1
        if not MINYEAR <= year <= MAXYEAR:
            raise OverflowError("date value out of range")
        if direction is Direction.FORWARD:
            return dt.replace(year=year, month=1, day=1, hour=0, minute=0)
        return dt.replace(year=year, month=12, day=31, hour=23, minute=59)


# =============================================================================
# Factory
# =============================================================================


class FieldFactory:
    """Resolves a `Position` to its `FieldEvaluator`.

    Pass `fields` to swap in evaluators for an alternate field dialect; positions
    not listed keep the standard evaluators. Evaluators are built once and only
    read afterwards, so one factory can serve concurrent searches.
    """

    def __init__(self, fields: Mapping[Position, FieldEvaluator] | None = None) -> None:
        self._fields: dict[Position, FieldEvaluator] = {
            Position.MINUTE: MinutesField(),
            Position.HOUR: HoursField(),
            Position.DAY: DayOfMonthField(),
            Position.MONTH: MonthField(),
            Position.WEEKDAY: DayOfWeekField(),
            Position.YEAR: YearField(),
        }
        if fields:
            self._fields.update(fields)

    def get_field(self, position: int) -> FieldEvaluator:
        try:
            return self._fields[Position(position)]
        except (ValueError, KeyError):
            raise CronError.malformed(f"{position} is not a valid position") from None
