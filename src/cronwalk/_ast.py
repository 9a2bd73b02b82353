from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class Position(IntEnum):
    MINUTE = 0
    HOUR = 1
    DAY = 2
    MONTH = 3
    WEEKDAY = 4
    YEAR = 5

    @property
    def label(self) -> str:
        return _POSITION_LABELS[self]

    def __str__(self) -> str:
        return self.label


_POSITION_LABELS = {
    Position.MINUTE: "minute",
    Position.HOUR: "hour",
    Position.DAY: "day of month",
    Position.MONTH: "month",
    Position.WEEKDAY: "day of week",
    Position.YEAR: "year",
}

# Most significant unit first; a step in a higher unit resets every lower one.
SEARCH_ORDER: tuple[Position, ...] = (
    Position.YEAR,
    Position.MONTH,
    Position.DAY,
    Position.WEEKDAY,
    Position.HOUR,
    Position.MINUTE,
)


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def inverted(self) -> bool:
        return self is Direction.BACKWARD

    def __str__(self) -> str:
        return self.value


class Weekday(Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def cron_dow(self) -> int:
        """Cron DOW number: Sunday=0, Monday=1, ..., Saturday=6."""
        return _CRON_DOW[self]

    @classmethod
    def try_parse(cls, s: str) -> Weekday | None:
        return _WEEKDAY_PARSE.get(s.lower())

    def __str__(self) -> str:
        return self.value


_CRON_DOW = {
    Weekday.SUNDAY: 0,
    Weekday.MONDAY: 1,
    Weekday.TUESDAY: 2,
    Weekday.WEDNESDAY: 3,
    Weekday.THURSDAY: 4,
    Weekday.FRIDAY: 5,
    Weekday.SATURDAY: 6,
}

_WEEKDAY_PARSE: dict[str, Weekday] = {
    "monday": Weekday.MONDAY,
    "mon": Weekday.MONDAY,
    "tuesday": Weekday.TUESDAY,
    "tue": Weekday.TUESDAY,
    "wednesday": Weekday.WEDNESDAY,
    "wed": Weekday.WEDNESDAY,
    "thursday": Weekday.THURSDAY,
    "thu": Weekday.THURSDAY,
    "friday": Weekday.FRIDAY,
    "fri": Weekday.FRIDAY,
    "saturday": Weekday.SATURDAY,
    "sat": Weekday.SATURDAY,
    "sunday": Weekday.SUNDAY,
    "sun": Weekday.SUNDAY,
}


class MonthName(Enum):
    JAN = "jan"
    FEB = "feb"
    MAR = "mar"
    APR = "apr"
    MAY = "may"
    JUN = "jun"
    JUL = "jul"
    AUG = "aug"
    SEP = "sep"
    OCT = "oct"
    NOV = "nov"
    DEC = "dec"

    @property
    def number(self) -> int:
        return _MONTH_NUMBERS[self]

    @classmethod
    def try_parse(cls, s: str) -> MonthName | None:
        return _MONTH_PARSE.get(s.lower())

    def __str__(self) -> str:
        return self.value


_MONTH_NUMBERS = {
    MonthName.JAN: 1,
    MonthName.FEB: 2,
    MonthName.MAR: 3,
    MonthName.APR: 4,
    MonthName.MAY: 5,
    MonthName.JUN: 6,
    MonthName.JUL: 7,
    MonthName.AUG: 8,
    MonthName.SEP: 9,
    MonthName.OCT: 10,
    MonthName.NOV: 11,
    MonthName.DEC: 12,
}

_MONTH_PARSE: dict[str, MonthName] = {
    "january": MonthName.JAN,
    "jan": MonthName.JAN,
    "february": MonthName.FEB,
    "feb": MonthName.FEB,
    "march": MonthName.MAR,
    "mar": MonthName.MAR,
    "april": MonthName.APR,
    "apr": MonthName.APR,
    "may": MonthName.MAY,
    "june": MonthName.JUN,
    "jun": MonthName.JUN,
    "july": MonthName.JUL,
    "jul": MonthName.JUL,
    "august": MonthName.AUG,
    "aug": MonthName.AUG,
    "september": MonthName.SEP,
    "sep": MonthName.SEP,
    "october": MonthName.OCT,
    "oct": MonthName.OCT,
    "november": MonthName.NOV,
    "nov": MonthName.NOV,
    "december": MonthName.DEC,
    "dec": MonthName.DEC,
}


# --- Expression parts ---

WILDCARDS = frozenset({"*", "?"})

SHORTCUTS: dict[str, str] = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


@dataclass(frozen=True, slots=True)
class CronParts:
    """The validated tokens of a cron expression, indexed by `Position`."""

    values: tuple[str, ...]

    def get(self, position: Position) -> str | None:
        if 0 <= position < len(self.values):
            return self.values[position]
        return None

    def is_constrained(self, position: Position) -> bool:
        value = self.get(position)
        return value is not None and value not in WILDCARDS

    def replace(self, position: Position, value: str) -> CronParts:
        values = list(self.values)
        if position < len(values):
            values[position] = value
        else:
            values.append(value)
        return CronParts(tuple(values))

    def __str__(self) -> str:
        return " ".join(self.values)
