from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.database import engine
from app.main import app
from app.models.drum import Drum, DrumUsage

client = TestClient(app)


def _seed_drum(pulls, capacity=2000.0, method="smart_segments", override=None, status="active"):
    start = datetime(2026, 2, 1, 7, 30, tzinfo=timezone.utc)
    with Session(engine) as session:
        drum = Drum(
            drum_number=f"D-{uuid4().hex[:8]}",
            item_name="2 pair drop wire",
            initial_quantity=capacity,
            current_quantity=capacity,
            calculation_method=method,
            manual_wastage_override=override,
            status=status,
        )
        session.add(drum)
        session.commit()
        session.refresh(drum)
        for day, (start_point, end_point) in enumerate(pulls):
            session.add(
                DrumUsage(
                    drum_id=drum.id,
                    start_point=start_point,
                    end_point=end_point,
                    usage_date=start + timedelta(days=day),
                    quantity_used=abs(end_point - start_point) if None not in (start_point, end_point) else None,
                    line_reference=f"011-555-{day:04d}",
                )
            )
        session.commit()
        return drum.id


def _reload(drum_id):
    with Session(engine) as session:
        return session.get(Drum, drum_id)


@pytest.fixture
def scenario_drum():
    return _seed_drum([(0, 300), (500, 800)])


def test_create_drum_defaults_to_smart_segments():
    number = f"D-{uuid4().hex[:8]}"
    resp = client.post("/api/drums/", json={"drum_number": number, "initial_quantity": 1000})

    assert resp.status_code == 201
    body = resp.json()
    assert body["drum_number"] == number
    assert body["calculation_method"] == "smart_segments"
    assert body["current_quantity"] == 1000
    assert body["manual_wastage_override"] is None
    assert body["created_at"] is not None


def test_create_drum_rejects_duplicate_number():
    number = f"D-{uuid4().hex[:8]}"
    assert client.post("/api/drums/", json={"drum_number": number, "initial_quantity": 500}).status_code == 201
    resp = client.post("/api/drums/", json={"drum_number": number, "initial_quantity": 500})
    assert resp.status_code == 409


def test_create_drum_rejects_legacy_method():
    resp = client.post(
        "/api/drums/",
        json={"drum_number": f"D-{uuid4().hex[:8]}", "initial_quantity": 500, "calculation_method": "legacy_gaps"},
    )
    assert resp.status_code == 400


def test_create_drum_validates_capacity():
    resp = client.post("/api/drums/", json={"drum_number": "D-zero", "initial_quantity": 0})
    assert resp.status_code == 422


def test_unknown_drum_is_404():
    assert client.get("/api/drums/does-not-exist").status_code == 404
    assert client.get("/api/drums/does-not-exist/usage").status_code == 404


def test_list_drums_contains_created_drum(scenario_drum):
    resp = client.get("/api/drums/")
    assert resp.status_code == 200
    assert scenario_drum in [d["id"] for d in resp.json()]


def test_usage_report_contains_records_and_calculation(scenario_drum):
    resp = client.get(f"/api/drums/{scenario_drum}/usage")

    assert resp.status_code == 200
    body = resp.json()
    assert body["drum"]["id"] == scenario_drum
    assert len(body["usage_records"]) == 2
    calculation = body["calculation"]
    assert calculation["calculationMethod"] == "smart_segments"
    assert calculation["totalUsed"] == 600
    assert calculation["totalWastage"] == 1400
    assert calculation["calculatedCurrentQuantity"] == 0
    assert [(s["start"], s["end"]) for s in calculation["wastedSegments"]] == [(300, 500), (800, 2000)]


def test_usage_report_tolerates_malformed_record():
    drum_id = _seed_drum([(0, 100), (None, 50)])
    resp = client.get(f"/api/drums/{drum_id}/usage")

    assert resp.status_code == 200
    assert resp.json()["calculation"]["totalUsed"] == 100


def test_usage_report_surfaces_overrun():
    drum_id = _seed_drum([(0, 1200)], capacity=1000)
    calculation = client.get(f"/api/drums/{drum_id}/usage").json()["calculation"]

    assert calculation["calculatedCurrentQuantity"] == -200
    assert calculation["issues"]


def test_preview_other_method_does_not_persist(scenario_drum):
    resp = client.get(f"/api/drums/{scenario_drum}/wastage", params={"method": "legacy_gaps"})

    assert resp.status_code == 200
    assert resp.json()["calculationMethod"] == "legacy_gaps"
    assert resp.json()["totalWastage"] == 200
    assert _reload(scenario_drum).calculation_method == "smart_segments"


def test_preview_with_invalid_override_is_422(scenario_drum):
    resp = client.get(
        f"/api/drums/{scenario_drum}/wastage",
        params={"method": "manual_override", "manual_wastage_override": 5000},
    )
    assert resp.status_code == 422


def test_live_validation_feedback(scenario_drum):
    ok = client.post(f"/api/drums/{scenario_drum}/wastage-settings/validate", json={"manualWastageOverride": 100})
    too_much = client.post(f"/api/drums/{scenario_drum}/wastage-settings/validate", json={"manualWastageOverride": 1500})
    negative = client.post(f"/api/drums/{scenario_drum}/wastage-settings/validate", json={"manual_wastage_override": -1})

    assert ok.status_code == 200
    assert ok.json()["isValid"] is True
    assert too_much.json()["isValid"] is False
    assert too_much.json()["error"] == "Wastage cannot exceed 1400m (remaining capacity after usage)"
    assert too_much.json()["adjustedValue"] == 1400
    assert negative.json()["error"] == "Wastage cannot be negative"


def test_invalid_override_is_never_persisted(scenario_drum):
    resp = client.patch(
        f"/api/drums/{scenario_drum}/wastage-settings",
        json={"calculationMethod": "manual_override", "manualWastageOverride": 1500},
    )

    assert resp.status_code == 422
    assert "1400m" in resp.json()["detail"]
    drum = _reload(scenario_drum)
    assert drum.calculation_method == "smart_segments"
    assert drum.manual_wastage_override is None


def test_manual_override_requires_a_value(scenario_drum):
    resp = client.patch(f"/api/drums/{scenario_drum}/wastage-settings", json={"calculationMethod": "manual_override"})

    assert resp.status_code == 422
    assert _reload(scenario_drum).calculation_method == "smart_segments"


def test_valid_override_is_stored_and_applied(scenario_drum):
    resp = client.patch(
        f"/api/drums/{scenario_drum}/wastage-settings",
        json={"calculationMethod": "manual_override", "manualWastageOverride": 120.5},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["calculationMethod"] == "manual_override"
    assert body["totalUsed"] == 600
    assert body["totalWastage"] == 120.5
    assert body["calculatedCurrentQuantity"] == 1279.5
    assert body["wastedSegments"] == []

    drum = _reload(scenario_drum)
    assert drum.calculation_method == "manual_override"
    assert drum.manual_wastage_override == 120.5
    assert drum.updated_at is not None


def test_switching_away_from_override_clears_it(scenario_drum):
    client.patch(
        f"/api/drums/{scenario_drum}/wastage-settings",
        json={"calculationMethod": "manual_override", "manualWastageOverride": 100},
    )
    resp = client.patch(
        f"/api/drums/{scenario_drum}/wastage-settings",
        json={"calculationMethod": "legacy_gaps", "manualWastageOverride": 100},
    )

    assert resp.status_code == 200
    assert resp.json()["calculationMethod"] == "legacy_gaps"
    drum = _reload(scenario_drum)
    assert drum.calculation_method == "legacy_gaps"
    assert drum.manual_wastage_override is None


def test_switching_method_keeps_usage_records(scenario_drum):
    before = client.get(f"/api/drums/{scenario_drum}/usage").json()["usage_records"]
    client.patch(f"/api/drums/{scenario_drum}/wastage-settings", json={"calculationMethod": "legacy_gaps"})
    client.patch(f"/api/drums/{scenario_drum}/wastage-settings", json={"calculationMethod": "smart_segments"})
    after = client.get(f"/api/drums/{scenario_drum}/usage").json()["usage_records"]

    assert before == after


def test_unknown_method_in_body_is_rejected(scenario_drum):
    resp = client.patch(f"/api/drums/{scenario_drum}/wastage-settings", json={"calculationMethod": "average"})
    assert resp.status_code == 422


def test_corrupt_stored_method_is_400():
    drum_id = _seed_drum([(0, 10)], method="average")
    assert client.get(f"/api/drums/{drum_id}/usage").status_code == 400


def test_preview_override_without_method_implies_manual_override(scenario_drum):
    resp = client.get(f"/api/drums/{scenario_drum}/wastage", params={"manual_wastage_override": 100})

    assert resp.status_code == 200
    assert resp.json()["calculationMethod"] == "manual_override"
    assert resp.json()["totalWastage"] == 100
    assert _reload(scenario_drum).manual_wastage_override is None


def test_preview_override_with_other_method_is_400(scenario_drum):
    resp = client.get(
        f"/api/drums/{scenario_drum}/wastage",
        params={"method": "legacy_gaps", "manual_wastage_override": 100},
    )
    assert resp.status_code == 400


def test_inactive_legacy_drum_report_writes_off_tail():
    drum_id = _seed_drum([(0, 300)], capacity=1000, method="legacy_gaps", status="inactive")
    calculation = client.get(f"/api/drums/{drum_id}/usage").json()["calculation"]

    assert calculation["totalWastage"] == 700
    assert calculation["calculatedCurrentQuantity"] == 0


def test_settings_update_stamps_updated_at(scenario_drum):
    client.patch(f"/api/drums/{scenario_drum}/wastage-settings", json={"calculationMethod": "legacy_gaps"})
    assert _reload(scenario_drum).updated_at is not None
