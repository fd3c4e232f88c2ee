from app.services.wastage import CalculationMethod, UsageRecord, calculate_legacy_wastage, calculate_smart_wastage
from tests.helpers import pull


def _spans(segments):
    return [(s.start, s.end) for s in segments]


def test_consecutive_pulls_without_gaps_have_no_wastage():
    result = calculate_legacy_wastage([pull(0, 100), pull(100, 250, day=1)], 1000)

    assert result.total_used == 250
    assert result.total_wastage == 0
    assert result.calculated_current_quantity == 750
    assert result.calculation_method is CalculationMethod.LEGACY_GAPS


def test_gap_between_consecutive_pulls_is_wastage():
    result = calculate_legacy_wastage([pull(0, 100), pull(150, 300, day=1)], 1000)

    assert result.total_wastage == 50
    assert _spans(result.wasted_segments) == [(100, 150)]
    assert result.calculated_current_quantity == 1000 - 250 - 50


def test_pulls_are_processed_by_date_not_input_order():
    records = [pull(150, 300, day=3), pull(0, 100, day=1)]
    result = calculate_legacy_wastage(records, 1000)

    assert [s.usage_id for s in result.usage_segments] == ["u-0-100-1", "u-150-300-3"]
    assert result.total_wastage == 50


def test_same_date_keeps_insertion_order():
    a = pull(0, 100, usage_id="a")
    b = pull(300, 400, usage_id="b")

    assert calculate_legacy_wastage([a, b], 1000).total_wastage == 200
    assert calculate_legacy_wastage([b, a], 1000).total_wastage == 400


def test_undated_pulls_come_first():
    undated = UsageRecord(id="undated", start_point=0, end_point=50)
    result = calculate_legacy_wastage([pull(50, 120, day=2), undated], 1000)

    assert [s.usage_id for s in result.usage_segments] == ["undated", "u-50-120-2"]
    assert result.total_wastage == 0


def test_overlapping_pulls_are_not_merged():
    result = calculate_legacy_wastage([pull(0, 500), pull(300, 700, day=1)], 2000)

    assert result.total_used == 900
    assert _spans(result.usage_segments) == [(0, 500), (300, 700)]
    # the jump back from 500 to 300 is booked as waste
    assert result.total_wastage == 200


def test_malformed_pull_stays_in_the_gap_chain_at_zero():
    broken = {"id": "broken", "start_point": "n/a", "end_point": 80, "usage_date": "2026-03-02T09:00:00"}
    result = calculate_legacy_wastage([pull(0, 100), broken, pull(100, 200, day=1)], 1000)

    assert result.total_used == 200
    assert [s.usage_id for s in result.usage_segments] == ["u-0-100-0", "broken", "u-100-200-1"]
    assert (result.usage_segments[1].start, result.usage_segments[1].length) == (0, 0)
    # 100 -> 0 before the broken pull, 0 -> 100 after it
    assert _spans(result.wasted_segments) == [(0, 100), (0, 100)]
    assert result.total_wastage == 200
    assert result.calculated_current_quantity == 600


def test_no_pulls_keeps_full_stock():
    result = calculate_legacy_wastage([], 500)

    assert result.total_used == 0
    assert result.total_wastage == 0
    assert result.calculated_current_quantity == 500
    assert result.remaining_cable == 500


def test_bidirectional_pulls_diverge_from_smart_segments():
    # backward pull recorded first, then the same stretch forwards
    records = [pull(200, 10, day=0), pull(10, 200, day=1)]

    legacy = calculate_legacy_wastage(records, 200)
    smart = calculate_smart_wastage(records, 200)

    assert smart.total_used == 190
    assert smart.total_wastage == 10
    assert legacy.total_used == 380
    assert legacy.total_wastage == 190
    assert legacy.total_wastage > smart.total_wastage


def test_bidirectional_forward_first_still_differs_from_smart():
    records = [pull(10, 200, day=0), pull(200, 10, day=1)]

    legacy = calculate_legacy_wastage(records, 2000)
    smart = calculate_smart_wastage(records, 2000)

    assert legacy.total_wastage != smart.total_wastage
    assert legacy.total_used != smart.total_used


def test_overrun_is_reported_not_clamped():
    records = [pull(200, 10, day=0), pull(10, 200, day=1)]
    result = calculate_legacy_wastage(records, 200)

    assert result.calculated_current_quantity == 200 - 380 - 190
    assert not result.is_consistent
    assert result.issues


def test_inactive_drum_writes_off_cable_beyond_highest_mark():
    result = calculate_legacy_wastage([pull(0, 300)], 1000, drum_status="inactive")

    assert _spans(result.wasted_segments) == [(300, 1000)]
    assert result.total_wastage == 700
    assert result.calculated_current_quantity == 0
    assert result.remaining_cable == 700


def test_inactive_drum_keeps_gap_wastage():
    result = calculate_legacy_wastage([pull(0, 100), pull(150, 300, day=1)], 1000, drum_status="Inactive")

    assert _spans(result.wasted_segments) == [(100, 150), (300, 1000)]
    assert result.total_wastage == 750


def test_inactive_drum_without_pulls_is_written_off():
    result = calculate_legacy_wastage([], 500, drum_status="inactive")

    assert result.total_wastage == 500
    assert _spans(result.wasted_segments) == [(0, 500)]
    assert result.calculated_current_quantity == 0


def test_inactive_drum_marked_past_capacity_adds_nothing():
    result = calculate_legacy_wastage([pull(0, 1200)], 1000, drum_status="inactive")

    assert result.total_wastage == 0
    assert result.calculated_current_quantity == -200


def test_active_and_empty_drums_keep_their_tail():
    for status in ("active", "empty", None):
        assert calculate_legacy_wastage([pull(0, 300)], 1000, drum_status=status).total_wastage == 0
