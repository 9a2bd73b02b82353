from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from ._ast import Position


@dataclass(frozen=True, slots=True)
class Span:
    start: int
    end: int


CronErrorKind = Literal["malformed", "impossible"]


class CronError(Exception):
    kind: CronErrorKind
    position: Position | None
    value: str | None
    span: Span | None
    input_text: str | None

    def __init__(
        self,
        kind: CronErrorKind,
        message: str,
        position: Position | None = None,
        value: str | None = None,
        span: Span | None = None,
        input_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.position = position
        self.value = value
        self.span = span
        self.input_text = input_text

    @classmethod
    def malformed(
        cls,
        message: str,
        position: Position | None = None,
        value: str | None = None,
        span: Span | None = None,
        input_text: str | None = None,
    ) -> CronError:
        return cls("malformed", message, position, value, span, input_text)

    @classmethod
    def impossible(cls, message: str) -> CronError:
        return cls("impossible", message)

    def display_rich(self) -> str:
        if self.kind == "malformed" and self.span and self.input_text:
            out = f"error: {self}\n"
            out += f"  {self.input_text}\n"
            padding = " " * (self.span.start + 2)
            underline = "^" * max(self.span.end - self.span.start, 1)
            out += padding + underline
            if self.position is not None:
                out += f" {self.position.label} field"
            return out
        return f"error: {self}"
