from __future__ import annotations

from datetime import datetime, timezone

from dutyroster.tracker import compute_state

RUN_AT = datetime(2025, 2, 20, 9, 30, tzinfo=timezone.utc)


def test_never_run_is_dirty():
    state = compute_state(
        2025,
        3,
        last_run_at=None,
        last_run_revision=None,
        revision=0,
        submitted_count=0,
        expected_count=10,
    )
    assert state.is_dirty
    assert state.missing_count == 10
    assert state.to_dict() == {
        "year": 2025,
        "month": 3,
        "lastRunAt": None,
        "isDirty": True,
        "submittedCount": 0,
        "missingCount": 10,
    }


def test_clean_until_inputs_change():
    common = dict(last_run_at=RUN_AT, last_run_revision=4, submitted_count=3, expected_count=10)
    assert not compute_state(2025, 3, revision=4, **common).is_dirty
    assert compute_state(2025, 3, revision=5, **common).is_dirty
    assert compute_state(2025, 3, revision=4, **common).to_dict()["lastRunAt"] == RUN_AT.isoformat()


def test_missing_count_never_negative():
    state = compute_state(
        2025,
        3,
        last_run_at=None,
        last_run_revision=None,
        revision=0,
        submitted_count=12,
        expected_count=10,
    )
    assert state.missing_count == 0
