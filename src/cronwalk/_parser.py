from __future__ import annotations

import re

from ._ast import SHORTCUTS, CronParts, Position
from ._error import CronError, Span
from ._fields import FieldFactory

_TOKEN = re.compile(r"\S+")


def expand_shortcut(text: str) -> str:
    """Replace `@daily`, `@hourly`, ... with their 5-field equivalent.

    Unknown `@` names are returned unchanged and fail later as malformed.
    """
    return SHORTCUTS.get(text.strip().lower(), text)


def parse(text: str, factory: FieldFactory) -> CronParts:
    if not isinstance(text, str):
        raise CronError.malformed(f"expected a cron expression string, got {type(text).__name__}")
    expanded = expand_shortcut(text)
    matches = list(_TOKEN.finditer(expanded))

    if len(matches) < 5 or len(matches) > 6:
        raise CronError.malformed(
            f"{text!r} is not a valid cron expression: expected 5 or 6 fields, got {len(matches)}",
            input_text=expanded,
        )

    for position, m in zip(Position, matches):
        value = m.group()
        if not factory.get_field(position).validate(value):
            raise CronError.malformed(
                f"invalid {position.label} field value {value!r} at position {int(position)}",
                position=position,
                value=value,
                span=Span(m.start(), m.end()),
                input_text=expanded,
            )

    return CronParts(tuple(m.group() for m in matches))


def replace_part(parts: CronParts, position: Position, value: str, factory: FieldFactory) -> CronParts:
    field = factory.get_field(position)
    position = Position(position)
    # One bare token per position, or the text form stops parsing back.
    if (
        not isinstance(value, str)
        or len(value.split()) != 1
        or value != value.strip()
        or not field.validate(value)
    ):
        raise CronError.malformed(
            f"invalid {position.label} field value {value!r} at position {int(position)}",
            position=position,
            value=value,
            span=Span(0, len(value)) if isinstance(value, str) else None,
            input_text=value if isinstance(value, str) else None,
        )
    return parts.replace(position, value)


def to_text(parts: CronParts) -> str:
    return str(parts)
