from __future__ import annotations

from civicview.adapters.schema import (
    CompositeReportPayload,
    ErrorPayload,
    ReporterProfilePayload,
    SyncSummaryPayload,
)
from civicview.domain.sync import SyncSummary
from tests.helpers.records import BASE_TIME, join_source, make_reporter, scenario_data


def _scenario_payload() -> dict[str, object]:
    view = next(view for view in join_source(scenario_data()) if view.title == "Pothole")
    return CompositeReportPayload.from_domain(view).to_json_dict()


def test_composite_payload_uses_client_field_names() -> None:
    payload = _scenario_payload()

    assert set(payload) == {
        "id",
        "userId",
        "title",
        "description",
        "location",
        "coordinates",
        "status",
        "imageUrl",
        "originalImageUrl",
        "submittedBy",
        "submitterContact",
        "redFlags",
        "greenFlags",
        "createdAt",
        "updatedAt",
        "flags",
        "annotatedImageUrl",
        "detections",
        "detectedAt",
    }
    assert payload["submittedBy"] == "A. Singh"
    assert payload["coordinates"] == {"latitude": 12.97, "longitude": 77.59}


def test_flag_entries_carry_voter_identity_and_type() -> None:
    flags = _scenario_payload()["flags"]

    assert isinstance(flags, list)
    assert [flag["type"] for flag in flags] == ["positive", "negative"]
    assert flags[1]["reason"] == "duplicate"
    assert {"userId", "userName", "userEmail", "createdAt"} <= set(flags[0])


def test_composite_payload_parses_stored_json() -> None:
    view = next(view for view in join_source(scenario_data()) if view.title == "Pothole")
    stored = CompositeReportPayload.from_domain(view).to_json_dict()

    assert CompositeReportPayload.model_validate(stored).to_domain() == view


def test_summary_payload_is_camel_cased() -> None:
    summary = SyncSummary(
        total_reporters=3,
        total_reports=2,
        total_flags=2,
        total_detections=1,
        written=2,
        timestamp=BASE_TIME,
    )

    assert SyncSummaryPayload.from_domain(summary).to_json_dict() == {
        "totalReporters": 3,
        "totalReports": 2,
        "totalFlags": 2,
        "totalDetections": 1,
        "written": 2,
        "timestamp": "2025-03-01T12:00:00Z",
    }


def test_profile_payload_has_no_one_time_code_fields() -> None:
    payload = ReporterProfilePayload.from_domain(make_reporter("A. Singh")).to_json_dict()

    assert "otp" not in payload
    assert "otpExpiry" not in payload
    assert payload["name"] == "A. Singh"
    assert payload["points"] == 10000


def test_error_payload_shape() -> None:
    payload = ErrorPayload(error="Store unreachable", code="store-unreachable").to_json_dict()

    assert payload == {"error": "Store unreachable", "code": "store-unreachable"}
