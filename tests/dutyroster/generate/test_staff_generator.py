from __future__ import annotations

import json

import numpy as np
import pytest

from dutyroster.generate.staff import (
    StaffGenConfig,
    _deterministic_counts,
    create_absences,
    create_employees,
    employee_from_mapping,
    employees_from_json,
    employees_summary,
    employees_to_dataframe,
)
from dutyroster.input_data import Period


def test_deterministic_counts_respects_total_and_rounding():
    probs = np.array([0.2, 0.3, 0.5])
    counts = _deterministic_counts(5, probs)
    assert counts.sum() == 5
    # each count should deviate by at most 1 from expectation
    assert np.all(np.abs(counts - probs * 5) <= 1.0)


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"group_probs": (0.3, 0.3, 0.3, 0.2)}, "group_probs must sum to 1.0"),
        ({"n": 0}, "n must be > 0"),
        ({"groups": ("OA", "XX"), "group_probs": (0.5, 0.5)}, "groups must be drawn from"),
        ({"absence_pct": 1.5}, r"absence_pct must be in \[0,1\]"),
        ({"absence_days": (5, 2)}, "absence_days"),
    ],
)
def test_config_validation(kwargs, match):
    with pytest.raises(ValueError, match=match):
        StaffGenConfig(**kwargs).validate()


def test_group_sizes_follow_probabilities():
    employees = create_employees(StaffGenConfig(n=20, seed=3))
    groups = [e.group for e in employees]
    assert [groups.count(g) for g in ("OA", "ASS", "TA", "PRIM")] == [8, 7, 4, 1]
    assert [e.id for e in employees] == list(range(1, 21))


def test_generation_is_seeded(march):
    cfg = StaffGenConfig(n=12, seed=11, prefer_rate=0.2)
    assert create_employees(cfg, march) == create_employees(cfg, march)
    first = create_employees(cfg, march)
    assert create_absences(first, march, cfg) == create_absences(first, march, cfg)


def test_wishes_lie_in_period_and_do_not_overlap(march):
    cfg = StaffGenConfig(n=10, seed=5, prefer_rate=0.3, avoid_rate=0.3)
    for emp in create_employees(cfg, march):
        assert all(march.contains(d) for d in emp.prefer_dates | emp.avoid_dates)
        assert not emp.prefer_dates & emp.avoid_dates


def test_no_wishes_without_period():
    employees = create_employees(StaffGenConfig(n=5, prefer_rate=1.0, avoid_rate=1.0))
    assert all(not e.prefer_dates and not e.avoid_dates for e in employees)


def test_absences_start_inside_period(march):
    cfg = StaffGenConfig(n=30, absence_pct=1.0, absence_days=(10, 20), seed=2)
    employees = create_employees(cfg, march)
    absences = create_absences(employees, march, cfg)
    assert len(absences) == 30
    for a in absences:
        assert march.contains(a.start)
        assert a.long_term == ((a.end - a.start).days + 1 >= 14)


def test_summary_and_dataframe():
    employees = create_employees(StaffGenConfig(n=8, no_duty_pct=0.0, seed=1))
    summary = employees_summary(employees)
    assert summary["N"] == 8
    assert summary["duty_pct"] == 1.0
    assert sum(summary["groups"].values()) == 8

    df = employees_to_dataframe(employees)
    assert list(df.columns) == [
        "id",
        "name",
        "group",
        "takes_shifts",
        "fixed_only",
        "max_slots",
        "can_role_ids",
        "ban_weekdays",
        "prefer_dates",
        "avoid_dates",
    ]
    assert len(df) == 8


def test_employees_from_json_example_file(project_root):
    employees = employees_from_json(project_root / "src" / "example_employees.json")
    assert len(employees) == 18
    assert employees[0].primary_areas == frozenset({"gynaecology"})


def test_employees_from_json_accepts_plain_list(tmp_path):
    path = tmp_path / "staff.json"
    path.write_text(json.dumps([{"id": "4", "name": "D", "group": "TA", "max_slots": ""}]))
    [emp] = employees_from_json(path)
    assert emp.id == 4
    assert emp.max_slots is None


def test_employees_from_json_rejects_bad_input(tmp_path):
    with pytest.raises(ValueError, match=".json"):
        employees_from_json(tmp_path / "staff.csv")
    with pytest.raises(FileNotFoundError):
        employees_from_json(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        employees_from_json(broken)
    keyless = tmp_path / "keyless.json"
    keyless.write_text(json.dumps({"people": []}))
    with pytest.raises(ValueError, match="'employees'/'staff'"):
        employees_from_json(keyless)


def test_employee_from_mapping_errors():
    with pytest.raises(TypeError):
        employee_from_mapping(["id", 1])
    with pytest.raises(ValueError, match="missing 'id'"):
        employee_from_mapping({"name": "X"})
    with pytest.raises(ValueError, match="Invalid date"):
        employee_from_mapping({"id": 1, "ban_dates": ["not-a-date"]})


def test_employee_from_mapping_normalizes_fields():
    emp = employee_from_mapping(
        {
            "id": 9,
            "group": "ASS",
            "skills": "ultrasound",
            "ban_weekdays": ["5"],
            "prefer_dates": ["2025-03-03"],
        }
    )
    assert emp.skills == frozenset({"ultrasound"})
    assert emp.ban_weekdays == frozenset({5})
    assert Period(2025, 3).contains(next(iter(emp.prefer_dates)))
