from __future__ import annotations

import threading
from collections import Counter
from datetime import date, timedelta

import pytest

from dutyroster.config import Config
from dutyroster.errors import PreviewCancelled
from dutyroster.generate.staff import StaffGenConfig, create_absences, create_employees
from dutyroster.input_data import build_input
from dutyroster.main import run_solver
from dutyroster.solver import GreedySolver, Phase, order_slots
from dutyroster.staff import Employee, Lock


@pytest.fixture
def week(make_slot):
    """Mandatory gyn slots Monday 3rd to Friday 7th March."""
    return [make_slot(d, blocks_publish=True) for d in range(3, 8)]


@pytest.fixture
def generated(march):
    gen = StaffGenConfig(n=24, seed=7)
    employees = create_employees(gen, march)
    return build_input(march, employees, absences=create_absences(employees, march, gen))


def test_fills_a_simple_week(march, seniors, week):
    res = run_solver(build_input(march, seniors, week), config=Config())
    assert res.assignment_map() == {
        "2025-03-03-gyn": 1,
        "2025-03-04-gyn": 2,
        "2025-03-05-gyn": 3,
        "2025-03-06-gyn": 1,
        "2025-03-07-gyn": 2,
    }
    assert res.unfilled_slots == ()
    assert res.violations == ()
    assert res.publish_allowed
    assert res.summary.score == 100.0
    assert res.engine == "local-greedy"
    assert all(a.source == "solver" for a in res.assignments)


def test_lock_wins_over_ranking(march, seniors, week):
    target = "2025-03-05-gyn"
    snap = build_input(march, seniors, week, locks=[Lock(2025, 3, target, 3)])
    res = run_solver(snap, config=Config())
    locked = [a for a in res.assignments if a.slot_id == target]
    assert len(locked) == 1
    assert locked[0].employee_id == 3
    assert locked[0].locked
    assert res.publish_allowed


def test_lock_to_nobody_leaves_slot_empty(march, seniors, week):
    target = "2025-03-04-gyn"
    snap = build_input(march, seniors, week, locks=[Lock(2025, 3, target, None)])
    res = run_solver(snap, config=Config())
    assert target not in res.assignment_map()
    (unfilled,) = res.unfilled_slots
    assert unfilled.slot_id == target
    assert unfilled.reason_codes == ("LOCKED_EMPTY",)
    assert not res.publish_allowed


def test_lock_to_unknown_employee(march, seniors, week):
    target = "2025-03-04-gyn"
    snap = build_input(march, seniors, week, locks=[Lock(2025, 3, target, 99)])
    res = run_solver(snap, config=Config())
    assert target not in res.assignment_map()
    assert res.unfilled_slots[0].reason_codes == ("LOCKED_INVALID_EMPLOYEE",)
    (violation,) = res.hard_violations
    assert violation.code == "LOCKED_INVALID_EMPLOYEE"
    assert violation.employee_id == 99


def test_mandatory_slots_go_first_within_a_day(march, make_slot):
    optional = make_slot(3, "gyn", mandatory=False, priority=5)
    mandatory = make_slot(3, "kreiszimmer")
    snap = build_input(march, [Employee(1, "A", "OA")], [optional, mandatory])
    assert [s.id for s in order_slots(Config(), snap.slots)] == [mandatory.id, optional.id]

    res = run_solver(snap, config=Config())
    assert res.assignment_map() == {mandatory.id: 1}
    assert res.unfilled_slots[0].candidates_blocked_by == ("ALREADY_ASSIGNED_SAME_TIME",)
    assert res.publish_allowed


def test_empty_skeleton_reports_missing_plan(march, seniors):
    res = run_solver(build_input(march, seniors, slots=[]), config=Config())
    assert [v.code for v in res.violations] == ["NO_DUTY_PLAN_IN_PERIOD"]
    assert res.summary.coverage.required == 0
    assert res.summary.score == pytest.approx(66.6667)
    assert not res.publish_allowed


def test_fixed_preference_places_fixed_only_employee(march, make_slot):
    slot = make_slot(4)
    employees = [
        Employee(1, "A", "OA"),
        Employee(2, "B", "OA", fixed_only=True, prefer_dates=frozenset({date(2025, 3, 4)})),
    ]
    snap = build_input(march, employees, [slot])

    without = run_solver(snap, config=Config())
    assert without.assignment_map() == {slot.id: 1}

    res = run_solver(snap, config=Config(FIXED_PREFERRED_EMPLOYEES=(2,)))
    assert res.assignment_map() == {slot.id: 2}
    assert res.assignments[0].source == "fixed"


@pytest.mark.parametrize(
    "prefer, expected",
    [
        (frozenset(), "kreiszimmer"),
        (frozenset({"gyn"}), "gyn"),
        (frozenset({"gyn", "kreiszimmer"}), "kreiszimmer"),
        # OA cannot cover turnus: fall back to every role they can do
        (frozenset({"turnus"}), "kreiszimmer"),
    ],
)
def test_fixed_preference_honours_a_single_preferred_service_type(
    march, make_slot, prefer, expected
):
    day = date(2025, 3, 4)
    slots = [make_slot(4, "gyn"), make_slot(4, "kreiszimmer")]
    employees = [
        Employee(1, "A", "OA"),
        Employee(
            2, "B", "OA", prefer_dates=frozenset({day}), prefer_service_types=prefer
        ),
    ]
    snap = build_input(march, employees, slots, fixed_preferred_employees=[2])
    res = run_solver(snap, config=Config())

    (fixed,) = [a for a in res.assignments if a.source == "fixed"]
    assert fixed.employee_id == 2
    assert fixed.slot_id == f"2025-03-04-{expected}"


def test_fixed_preference_conflict_is_reported(march, make_slot):
    slot = make_slot(4)
    day = date(2025, 3, 4)
    employees = [
        Employee(1, "A", "OA"),
        Employee(
            2,
            "B",
            "OA",
            prefer_dates=frozenset({day}),
            ban_dates=frozenset({day}),
        ),
    ]
    snap = build_input(march, employees, [slot], fixed_preferred_employees=[2])
    res = run_solver(snap, config=Config())

    (conflict,) = res.hard_violations
    assert conflict.code == "FIX_PREFERRED_CONFLICT"
    assert conflict.slot_id == slot.id
    assert conflict.employee_id == 2
    assert "BAN_DATE" in conflict.message
    # the slot itself still goes through normal ranking
    assert res.assignment_map() == {slot.id: 1}


def test_disabling_a_rule_per_period(march, make_slot):
    slots = [make_slot(3), make_slot(4)]
    only = [Employee(1, "A", "OA")]
    strict = run_solver(build_input(march, only, slots), config=Config())
    assert strict.assignment_map() == {slots[0].id: 1}
    assert strict.unfilled_slots[0].candidates_blocked_by == ("CONSECUTIVE_DAY",)

    relaxed = run_solver(
        build_input(march, only, slots, enabled_rules={"consecutive_days": False}),
        config=Config(),
    )
    assert relaxed.assignment_map() == {slots[0].id: 1, slots[1].id: 1}


def test_cancel_event_aborts(march, seniors, week):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(PreviewCancelled):
        run_solver(build_input(march, seniors, week), config=Config(), cancel_event=cancel)


def test_solver_ends_in_finalize(march, seniors, week):
    solver = GreedySolver(Config())
    outcome = solver.solve(build_input(march, seniors, week))
    assert solver.phase is Phase.FINALIZE
    assert outcome.stats == {"slots": 5.0, "assigned": 5.0, "unfilled": 0.0}


def test_previews_are_byte_identical(generated):
    first = run_solver(generated, config=Config())
    second = run_solver(generated, config=Config())
    assert first.to_json() == second.to_json()


def test_every_slot_is_assigned_or_unfilled_once(generated):
    res = run_solver(generated, config=Config())
    assigned = [a.slot_id for a in res.assignments]
    unfilled = [u.slot_id for u in res.unfilled_slots]
    assert len(set(assigned)) == len(assigned)
    assert set(assigned).isdisjoint(unfilled)
    assert sorted(assigned + unfilled) == sorted(s.id for s in generated.slots)

    cov = res.summary.coverage
    assert cov.filled <= cov.required
    assert cov.filled + res.summary.unfilled_mandatory == cov.required


def test_generated_roster_respects_hard_rules(generated):
    cfg = Config()
    res = run_solver(generated, config=cfg)
    per_emp = Counter(a.employee_id for a in res.assignments)
    assert max(per_emp.values()) <= cfg.MAX_SLOTS_PER_PERIOD

    days = {(a.employee_id, a.date) for a in res.assignments}
    for emp_id, day in days:
        assert (emp_id, day + timedelta(days=1)) not in days

    absent = generated.absence_index()
    for a in res.assignments:
        assert a.date not in absent.get(a.employee_id, {})
    assert not [v for v in res.hard_violations if v.employee_id is not None]
