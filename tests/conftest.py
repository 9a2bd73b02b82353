from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

CASES_PATH = Path(__file__).parent / "cases.json"


def parse_zoned(s: str) -> datetime:
    """Parse '2026-02-06T12:00:00+00:00[UTC]' into a timezone-aware datetime."""
    m = re.match(r"^(.+)\[(.+)\]$", s)
    if not m:
        raise ValueError(f"expected format 'ISO[TZ]', got: {s}")
    iso_part, tz_name = m.group(1), m.group(2)
    return datetime.fromisoformat(iso_part).astimezone(ZoneInfo(tz_name))


def format_zoned(dt: datetime) -> str:
    """Format a timezone-aware datetime as '2026-02-06T12:00:00+00:00[TZ]'."""
    tz = dt.tzinfo
    if tz is None:
        raise ValueError("datetime must be timezone-aware")
    tz_name = tz.key if hasattr(tz, "key") else str(tz)
    return f"{dt.isoformat()}[{tz_name}]"


def load_cases() -> dict:  # type: ignore[type-arg]
    with open(CASES_PATH) as f:
        return json.load(f)


@pytest.fixture(scope="session")
def cases() -> dict:  # type: ignore[type-arg]
    return load_cases()


@pytest.fixture(scope="session")
def default_now(cases: dict) -> datetime:  # type: ignore[type-arg]
    return parse_zoned(cases["now"])


@pytest.fixture
def utc() -> ZoneInfo:
    return ZoneInfo("UTC")
