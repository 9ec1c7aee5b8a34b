"""Payload parsing and model validation."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from livetrack.exceptions import PayloadError
from livetrack.ingestion.payloads import parse_compass, parse_fix, parse_remote_insert
from livetrack.models.route import RouteResult, RouteStep, parse_duration_text, strip_html
from livetrack.models.sensor import SensorErrorCode


class TestParseFix:
    def test_flat_payload(self) -> None:
        fix = parse_fix({"latitude": 13.75, "longitude": 100.5, "speed": 3.2, "heading": 90, "timestamp": 1_700_000_000})
        assert fix.latitude == 13.75
        assert fix.speed == 3.2
        assert fix.heading == 90.0
        assert fix.timestamp == 1_700_000_000.0

    def test_browser_style_coords_and_millisecond_timestamp(self) -> None:
        fix = parse_fix(
            {
                "coords": {"latitude": "13.75", "longitude": "100.5", "heading": None, "speed": None, "accuracy": 8},
                "timestamp": 1_700_000_000_123,
            }
        )
        assert fix.longitude == 100.5
        assert fix.heading is None
        assert fix.accuracy == 8.0
        assert fix.timestamp == pytest.approx(1_700_000_000.123)
        assert fix.has_course is False

    def test_negative_speed_means_unknown(self) -> None:
        fix = parse_fix({"lat": 1.0, "lng": 2.0, "speed": -1})
        assert fix.speed is None

    def test_missing_timestamp_is_filled(self) -> None:
        fix = parse_fix({"lat": 1.0, "lng": 2.0})
        assert fix.timestamp > 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"longitude": 100.5},
            {"latitude": "--", "longitude": 100.5},
            {"latitude": 91.0, "longitude": 0.0},
            {"latitude": "north", "longitude": 1.0},
        ],
    )
    def test_malformed_raises_payload_error(self, payload: dict) -> None:
        with pytest.raises(PayloadError):
            parse_fix(payload)

    def test_non_mapping_raises_payload_error(self) -> None:
        with pytest.raises(PayloadError):
            parse_fix(["13.7", "100.5"])  # type: ignore[arg-type]


class TestParseCompass:
    def test_webkit_heading_used_directly(self) -> None:
        assert parse_compass({"webkitCompassHeading": 45.0}) == 45.0

    def test_alpha_is_converted(self) -> None:
        assert parse_compass({"alpha": 90.0}) == 270.0

    def test_bare_number(self) -> None:
        assert parse_compass(370) == 10.0

    def test_empty_reading_raises(self) -> None:
        with pytest.raises(PayloadError):
            parse_compass({"alpha": None})


class TestParseRemoteInsert:
    def test_record_envelope(self) -> None:
        row = parse_remote_insert(
            {
                "type": "INSERT",
                "record": {"latitude": 13.7, "longitude": 100.5, "created_at": "2026-01-01T10:00:00Z", "user_id": "phone-1"},
            }
        )
        assert row.latitude == 13.7
        assert row.created_at == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)
        assert row.user_id == "phone-1"

    def test_new_envelope(self) -> None:
        row = parse_remote_insert({"eventType": "INSERT", "new": {"latitude": "13.7", "longitude": "100.5"}})
        assert row.longitude == 100.5
        assert row.created_at is None

    def test_flat_row(self) -> None:
        row = parse_remote_insert({"latitude": 1, "longitude": 2})
        assert row.position.as_query() == "1.0,2.0"

    def test_non_insert_rejected(self) -> None:
        with pytest.raises(PayloadError):
            parse_remote_insert({"type": "DELETE", "old": {"id": 1}})

    def test_partial_row_rejected(self) -> None:
        with pytest.raises(PayloadError):
            parse_remote_insert({"record": {"latitude": 13.7}})

    def test_epoch_created_at(self) -> None:
        row = parse_remote_insert({"latitude": 13.7, "longitude": 100.5, "created_at": 1_767_261_600_000})
        assert row.created_at == datetime(2026, 1, 1, 10, 0, tzinfo=UTC)

    @pytest.mark.parametrize("created_at", [1e20, -1e20, 1e300])
    def test_out_of_range_epoch_is_dropped(self, created_at: float) -> None:
        row = parse_remote_insert({"latitude": 13.7, "longitude": 100.5, "created_at": created_at})
        assert row.created_at is None
        assert row.latitude == 13.7


class TestRouteModels:
    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("5 mins", 300.0),
            ("1 hour 5 mins", 3900.0),
            ("2 hours", 7200.0),
            ("1 day 2 hours", 93600.0),
            ("12", 720.0),
            ("...", None),
            (None, None),
        ],
    )
    def test_parse_duration_text(self, text: str | None, seconds: float | None) -> None:
        assert parse_duration_text(text) == seconds

    def test_strip_html(self) -> None:
        assert strip_html("Turn <b>left</b> onto <div style='x'>Main St</div>") == "Turn left onto Main St"

    def test_step_instruction_is_cleaned(self) -> None:
        step = RouteStep(instruction="Head <b>north</b>", distance_text="200 m", distance_m="200")
        assert step.instruction == "Head north"
        assert step.distance_m == 200.0

    def test_result_travel_seconds_prefers_value(self) -> None:
        assert RouteResult(duration_text="1 hour", duration_s=600).travel_seconds == 600.0
        assert RouteResult(duration_text="1 hour").travel_seconds == 3600.0

    def test_result_placeholder_texts(self) -> None:
        result = RouteResult(distance_text=None, duration_text="")
        assert result.distance_text == "..."
        assert result.duration_text == "..."


class TestSensorErrorCode:
    def test_unknown_value_falls_back(self) -> None:
        assert SensorErrorCode(99) == SensorErrorCode.UNKNOWN

    def test_known_codes(self) -> None:
        assert SensorErrorCode(1) == SensorErrorCode.PERMISSION_DENIED
        assert SensorErrorCode(3).message.startswith("The request")
