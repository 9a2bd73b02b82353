"""Public surface of CronExpression: construction, inspection, errors, configuration."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from cronwalk import (
    CronError,
    CronExpression,
    Direction,
    FieldFactory,
    MinutesField,
    Position,
    Span,
)

UTC = ZoneInfo("UTC")


# ===========================================================================
# Construction
# ===========================================================================


class TestConstruction:
    def test_from_expression(self) -> None:
        cron = CronExpression.from_expression("5 4 * * *")
        assert cron.parts == ("5", "4", "*", "*", "*")

    def test_extra_whitespace(self) -> None:
        cron = CronExpression("  5   4\t* *  *  ")
        assert cron.to_text() == "5 4 * * *"

    def test_from_parts(self) -> None:
        cron = CronExpression.from_parts("0", "12", "*", "*", "MON")
        assert str(cron) == "0 12 * * MON"

    def test_from_parts_with_year(self) -> None:
        cron = CronExpression.from_parts("0", "12", "*", "*", "*", "2030")
        assert cron.get_part(Position.YEAR) == "2030"

    def test_from_parts_rejects_split_tokens(self) -> None:
        with pytest.raises(CronError) as excinfo:
            CronExpression.from_parts("0 1", "12", "*", "*", "*")
        assert excinfo.value.kind == "malformed"
        assert excinfo.value.position == Position.MINUTE

    @pytest.mark.parametrize(
        "shortcut,expanded",
        [
            ("@yearly", "0 0 1 1 *"),
            ("@annually", "0 0 1 1 *"),
            ("@monthly", "0 0 1 * *"),
            ("@weekly", "0 0 * * 0"),
            ("@daily", "0 0 * * *"),
            ("@midnight", "0 0 * * *"),
            ("@hourly", "0 * * * *"),
            ("@HOURLY", "0 * * * *"),
        ],
    )
    def test_shortcuts(self, shortcut: str, expanded: str) -> None:
        assert CronExpression(shortcut).to_text() == expanded

    def test_is_valid_expression(self) -> None:
        assert CronExpression.is_valid_expression("*/5 * * * *") is True
        assert CronExpression.is_valid_expression("@weekly") is True
        assert CronExpression.is_valid_expression("* * *") is False
        assert CronExpression.is_valid_expression("not a cron") is False
        assert CronExpression.is_valid_expression(None) is False  # type: ignore[arg-type]


# ===========================================================================
# Inspection and copies
# ===========================================================================


class TestParts:
    def test_get_part(self) -> None:
        cron = CronExpression("1 2 3 4 5")
        assert cron.get_part(Position.MINUTE) == "1"
        assert cron.get_part(Position.WEEKDAY) == "5"
        assert cron.get_part(Position.YEAR) is None
        assert cron.get_part(9) is None

    def test_with_part_returns_copy(self) -> None:
        cron = CronExpression("0 0 * * *")
        changed = cron.with_part(Position.HOUR, "12")
        assert changed.to_text() == "0 12 * * *"
        assert cron.to_text() == "0 0 * * *"

    def test_with_part_appends_year(self) -> None:
        cron = CronExpression("0 0 * * *").with_part(Position.YEAR, "2030")
        assert cron.to_text() == "0 0 * * * 2030"

    def test_with_part_invalid(self) -> None:
        cron = CronExpression("0 0 * * *")
        with pytest.raises(CronError) as excinfo:
            cron.with_part(Position.HOUR, "25")
        assert excinfo.value.kind == "malformed"
        assert excinfo.value.position == Position.HOUR
        assert excinfo.value.value == "25"
        assert cron.to_text() == "0 0 * * *"

    @pytest.mark.parametrize("value", ["1, 2", " 5", "5 ", "1 2", ""])
    def test_with_part_rejects_whitespace(self, value: str) -> None:
        cron = CronExpression("* * * * *")
        with pytest.raises(CronError) as excinfo:
            cron.with_part(Position.MINUTE, value)
        assert excinfo.value.kind == "malformed"
        assert excinfo.value.position == Position.MINUTE
        assert cron.to_text() == "* * * * *"

    def test_with_part_text_parses_back(self) -> None:
        cron = CronExpression("* * * * *").with_part(Position.MINUTE, "1,2")
        assert cron.to_text() == "1,2 * * * *"
        assert CronExpression.is_valid_expression(cron.to_text()) is True

    def test_with_part_unknown_position(self) -> None:
        with pytest.raises(CronError):
            CronExpression("0 0 * * *").with_part(6, "1")

    def test_equality(self) -> None:
        assert CronExpression("@daily") == CronExpression("0 0 * * *")
        assert CronExpression("@daily") != CronExpression("@hourly")
        assert len({CronExpression("@daily"), CronExpression("0 0 * * *")}) == 1

    def test_repr(self) -> None:
        assert repr(CronExpression("@hourly")) == "CronExpression('0 * * * *')"


# ===========================================================================
# Errors
# ===========================================================================


class TestErrors:
    def test_malformed_points_at_token(self) -> None:
        with pytest.raises(CronError) as excinfo:
            CronExpression("0 0 32 * *")
        err = excinfo.value
        assert err.kind == "malformed"
        assert err.position == Position.DAY
        assert err.value == "32"
        assert err.span == Span(4, 6)
        assert err.display_rich() == (
            f"error: {err}\n"
            "  0 0 32 * *\n"
            "      ^^ day of month field"
        )

    def test_token_count(self) -> None:
        with pytest.raises(CronError) as excinfo:
            CronExpression("* * * *")
        assert excinfo.value.kind == "malformed"
        assert excinfo.value.position is None
        assert excinfo.value.display_rich() == f"error: {excinfo.value}"

    def test_impossible(self) -> None:
        cron = CronExpression("0 0 30 2 *")
        with pytest.raises(CronError) as excinfo:
            cron.get_next_run_date(datetime(2026, 2, 6, tzinfo=UTC))
        assert excinfo.value.kind == "impossible"

    def test_impossible_backward(self) -> None:
        cron = CronExpression("0 0 31 4 *")
        with pytest.raises(CronError) as excinfo:
            cron.get_previous_run_date(datetime(2026, 2, 6, tzinfo=UTC))
        assert excinfo.value.kind == "impossible"

    def test_end_of_datetime_range(self) -> None:
        cron = CronExpression("0 0 * * *")
        reference = datetime(9999, 12, 30, 12, 0, tzinfo=UTC)
        assert cron.get_multiple_run_dates(3, reference) == [datetime(9999, 12, 31, tzinfo=UTC)]
        with pytest.raises(CronError) as excinfo:
            cron.get_next_run_date(reference, nth=1)
        assert excinfo.value.kind == "impossible"
        assert cron.is_due(datetime(9999, 12, 31, 12, 0, tzinfo=UTC)) is False

    def test_year_step_past_datetime_range(self) -> None:
        cron = CronExpression("0 0 1 1 * 2030")
        with pytest.raises(CronError) as excinfo:
            cron.get_next_run_date(datetime(9999, 6, 1, tzinfo=UTC))
        assert excinfo.value.kind == "impossible"
        assert cron.get_multiple_run_dates(2, datetime(9999, 6, 1, tzinfo=UTC)) == []

    def test_day_or_weekday_at_end_of_range(self) -> None:
        # 9999-12-31 is a Friday; both halves run out of dates after it
        cron = CronExpression("0 0 31 * 5")
        reference = datetime(9999, 12, 30, 12, 0, tzinfo=UTC)
        assert cron.get_multiple_run_dates(3, reference) == [
            datetime(9999, 12, 31, tzinfo=UTC),
            datetime(9999, 12, 31, tzinfo=UTC),
        ]

    def test_bad_reference_type(self) -> None:
        with pytest.raises(TypeError):
            CronExpression("* * * * *").get_next_run_date(42)  # type: ignore[arg-type]


# ===========================================================================
# Reference instants and timezones
# ===========================================================================


class TestReference:
    def test_seconds_are_dropped(self) -> None:
        cron = CronExpression("* * * * *")
        result = cron.get_next_run_date(datetime(2026, 2, 6, 12, 0, 59, 999, tzinfo=UTC))
        assert result == datetime(2026, 2, 6, 12, 1, tzinfo=UTC)

    def test_iso_string(self) -> None:
        cron = CronExpression("0 0 * * *")
        result = cron.get_next_run_date("2026-02-06T12:00:00+00:00")
        assert result == datetime(2026, 2, 7, tzinfo=UTC)

    def test_naive_is_wall_time_in_zone(self) -> None:
        cron = CronExpression("0 9 * * *")
        result = cron.get_next_run_date(datetime(2026, 2, 6, 8, 0), time_zone="Europe/Paris")
        assert result.tzinfo == ZoneInfo("Europe/Paris")
        assert (result.hour, result.day) == (9, 6)

    def test_naive_defaults_to_utc(self) -> None:
        result = CronExpression("0 9 * * *").get_next_run_date(datetime(2026, 2, 6, 8, 0))
        assert result == datetime(2026, 2, 6, 9, 0, tzinfo=UTC)

    def test_zone_override_converts_reference(self) -> None:
        # 12:00 UTC is 21:00 in Tokyo, so the next 09:00 there is the next morning
        cron = CronExpression("0 9 * * *")
        result = cron.get_next_run_date(
            datetime(2026, 2, 6, 12, 0, tzinfo=UTC), time_zone="Asia/Tokyo"
        )
        assert result.isoformat() == "2026-02-07T09:00:00+09:00"

    def test_fixed_offset_zone(self) -> None:
        cron = CronExpression("30 * * * *")
        result = cron.get_next_run_date(datetime(2026, 2, 6, 12, 0, tzinfo=timezone.utc))
        assert result.tzinfo is timezone.utc
        assert result.minute == 30

    def test_spring_forward_gap(self) -> None:
        # 02:30 does not exist in New York on 2026-03-08
        cron = CronExpression("30 2 * * *")
        ny = ZoneInfo("America/New_York")
        result = cron.get_next_run_date(datetime(2026, 3, 8, 0, 0, tzinfo=ny))
        assert result.isoformat() == "2026-03-08T03:30:00-04:00"

    def test_now(self) -> None:
        cron = CronExpression("* * * * *")
        before = datetime.now(UTC).replace(second=0, microsecond=0)
        result = cron.get_next_run_date("now")
        assert result > before
        assert result.second == 0
        assert cron.is_due() is True


# ===========================================================================
# Configuration
# ===========================================================================


class TestConfiguration:
    def test_default_budget(self) -> None:
        assert CronExpression("* * * * *").max_iteration_count == 1000

    def test_with_max_iteration_count(self) -> None:
        cron = CronExpression("0 0 1 1 *")
        limited = cron.with_max_iteration_count(5)
        assert limited.max_iteration_count == 5
        assert cron.max_iteration_count == 1000
        with pytest.raises(CronError) as excinfo:
            limited.get_next_run_date(datetime(2026, 2, 6, tzinfo=UTC))
        assert excinfo.value.kind == "impossible"
        assert cron.get_next_run_date(datetime(2026, 2, 6, tzinfo=UTC)) == datetime(
            2027, 1, 1, tzinfo=UTC
        )

    def test_budget_applies_to_enumeration(self) -> None:
        cron = CronExpression("0 0 1 1 *", max_iteration_count=5)
        assert cron.get_multiple_run_dates(3, datetime(2026, 2, 6, tzinfo=UTC)) == []

    def test_custom_field_factory(self) -> None:
        class EvenMinutes(MinutesField):
            def validate(self, value: str) -> bool:
                return value == "even" or super().validate(value)

            def is_satisfied_by(self, dt: datetime, value: str) -> bool:
                if value == "even":
                    return dt.minute % 2 == 0
                return super().is_satisfied_by(dt, value)

            def values(self, value: str | None) -> list[int]:
                if value == "even":
                    return list(range(0, 60, 2))
                return super().values(value)

        factory = FieldFactory({Position.MINUTE: EvenMinutes()})
        assert CronExpression.is_valid_expression("even * * * *") is False

        cron = CronExpression("even * * * *", field_factory=factory)
        start = datetime(2026, 2, 6, 12, 0, tzinfo=UTC)
        assert cron.get_multiple_run_dates(3, start, Direction.FORWARD) == [
            datetime(2026, 2, 6, 12, 2, tzinfo=UTC),
            datetime(2026, 2, 6, 12, 4, tzinfo=UTC),
            datetime(2026, 2, 6, 12, 6, tzinfo=UTC),
        ]
        # Copies keep the dialect.
        assert cron.with_part(Position.HOUR, "13").get_part(Position.MINUTE) == "even"
