from __future__ import annotations

from dutyroster.reporting.frames import (
    EMPLOYEE_COLUMNS,
    VIOLATION_COLUMNS,
    assignments_frame,
    employee_totals,
    unfilled_frame,
    violations_frame,
)


def test_assignments_frame(planned):
    snap, res = planned
    df = assignments_frame(res, snap)
    assert list(df["slot_id"]) == ["2025-03-03-gyn", "2025-03-05-gyn", "2025-03-08-gyn"]
    assert list(df["name"]) == ["Anna", "Anna", "Ben"]
    assert set(df["source"]) == {"solver"}


def test_violations_frame(planned):
    _, res = planned
    df = violations_frame(res)
    assert list(df.columns) == VIOLATION_COLUMNS
    assert list(df["code"]) == ["ONLY_FALLBACK_CANDIDATES"]
    assert df.iloc[0]["employee_id"] == 2


def test_unfilled_frame_is_empty_with_columns(planned):
    _, res = planned
    df = unfilled_frame(res)
    assert df.empty
    assert "candidates_blocked_by" in df.columns


def test_employee_totals(planned):
    snap, res = planned
    df = employee_totals(res, snap)
    assert list(df.columns) == EMPLOYEE_COLUMNS
    rows = df.set_index("employee_id")
    assert rows.loc[1, "slots"] == 2
    assert rows.loc[2, "slots"] == 1
    assert rows.loc[2, "weekend_slots"] == 1
    assert rows.loc[2, "soft_violations"] == 1
    assert rows.loc[1, "hard_violations"] == 0
