from __future__ import annotations

from datetime import date

import pytest

from dutyroster.config import Config
from dutyroster.evaluator import RuleEvaluator
from dutyroster.input_data import build_input
from dutyroster.ranker import CandidateRanker, preference_score
from dutyroster.staff import DutySlot, Employee
from dutyroster.state import RunningState


def _ranker(snapshot, make_context, cfg=None):
    cfg = cfg or Config()
    return CandidateRanker(RuleEvaluator(make_context(snapshot, cfg)), cfg)


def test_tie_goes_to_lower_id(march, make_slot, make_context):
    slot = make_slot(3)
    employees = [Employee(5, "E", "OA"), Employee(3, "C", "OA")]
    snap = build_input(march, employees, [slot])
    ranker = _ranker(snap, make_context)
    for _ in range(3):
        assert [e.id for e in ranker.rank(slot, snap.employees, RunningState())] == [3, 5]


def test_wishes_break_ties(march, make_slot, make_context):
    slot = make_slot(3)
    employees = [
        Employee(1, "A", "OA", avoid_dates=frozenset({date(2025, 3, 3)})),
        Employee(2, "B", "OA"),
        Employee(3, "C", "OA", prefer_dates=frozenset({date(2025, 3, 3)})),
    ]
    snap = build_input(march, employees, [slot])
    ranked = _ranker(snap, make_context).rank(slot, snap.employees, RunningState())
    assert [e.id for e in ranked] == [3, 2, 1]


def test_soft_count_dominates_wishes(march, make_slot, make_context):
    slot = make_slot(3)
    employees = [
        Employee(
            1,
            "A",
            "OA",
            primary_areas=frozenset({"ward"}),
            prefer_dates=frozenset({date(2025, 3, 3)}),
        ),
        Employee(2, "B", "OA"),
    ]
    snap = build_input(march, employees, [slot])
    report = _ranker(snap, make_context).rank_with_report(
        slot, snap.employees, RunningState()
    )
    assert [c.employee.id for c in report.candidates] == [2, 1]
    assert report.candidates[1].soft_codes == ("ONLY_FALLBACK_CANDIDATES",)
    # weight 3.0 minus one preferred date (100 * 0.01)
    assert report.candidates[1].penalty == pytest.approx(2.0)


def test_load_balances_equal_candidates(march, make_slot, make_context):
    slot = make_slot(20)
    employees = [Employee(1, "A", "OA"), Employee(2, "B", "OA")]
    snap = build_input(march, employees, [slot])
    state = RunningState()
    state.record(1, make_slot(3))
    state.record(1, make_slot(11))
    ranker = _ranker(snap, make_context)
    assert ranker.penalty(employees[0], slot, state, []) == pytest.approx(0.01)
    assert [e.id for e in ranker.rank(slot, snap.employees, state)] == [2, 1]


def test_report_lists_blocking_codes(march, make_slot, make_context):
    slot = make_slot(3)
    employees = [
        Employee(1, "A", "OA", active=False),
        Employee(2, "B", "TA"),
    ]
    snap = build_input(march, employees, [slot])
    report = _ranker(snap, make_context).rank_with_report(
        slot, snap.employees, RunningState()
    )
    assert report.best is None
    assert report.blocked_by == ["ROLE_NOT_ALLOWED", "EMPLOYEE_INACTIVE"]


def test_preference_score():
    cfg = Config()
    slot_day = date(2025, 3, 3)
    emp = Employee(
        1,
        "A",
        "OA",
        prefer_dates=frozenset({slot_day}),
        avoid_service_types=frozenset({"gyn"}),
    )
    slot = DutySlot("s", slot_day, "gyn")
    assert preference_score(cfg, emp, slot) == 100.0 - 30.0
