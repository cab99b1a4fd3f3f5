from __future__ import annotations

from datetime import time

from dutyroster.config import Config
from dutyroster.input_data import build_input
from dutyroster.rules.rest import OverlapRule, RestRule
from dutyroster.staff import Employee
from dutyroster.state import RunningState


def _night(make_slot, day):
    return make_slot(
        day,
        "overduty",
        mandatory=False,
        start_time=time(18, 0),
        end_time=time(7, 0),
    )


def test_rest_after_overnight_duty(march, make_slot, make_context):
    snap = build_input(march, [], [make_slot(3)])
    rule = RestRule(make_context(snap))
    emp = Employee(1, "P", "PRIM")
    state = RunningState()
    state.record(1, _night(make_slot, 3))

    assert list(rule.check(emp, make_slot(4, "overduty"), state)) == [
        "AFTER_DUTY_BLOCKED"
    ]
    assert list(rule.check(emp, make_slot(5, "overduty"), state)) == []


def test_overnight_before_existing_duty_is_blocked(march, make_slot, make_context):
    snap = build_input(march, [], [make_slot(3)])
    rule = RestRule(make_context(snap))
    state = RunningState()
    state.record(1, make_slot(6))
    emp = Employee(1, "A", "OA")

    assert list(rule.check(emp, _night(make_slot, 5), state)) == ["AFTER_DUTY_BLOCKED"]
    # a day duty the day before is fine for this rule
    assert list(rule.check(emp, make_slot(5), state)) == []


def test_rest_disabled_by_config(march, make_slot, make_context):
    snap = build_input(march, [], [make_slot(3)])
    rule = RestRule(make_context(snap, Config(AFTER_DUTY_REST=False)))
    state = RunningState()
    state.record(1, _night(make_slot, 3))
    assert list(rule.check(Employee(1, "A", "OA"), make_slot(4), state)) == []


def test_overlapping_intervals(march, make_slot, make_context):
    snap = build_input(march, [], [make_slot(3)])
    rule = OverlapRule(make_context(snap))
    emp = Employee(1, "A", "OA")
    state = RunningState()
    state.record(1, make_slot(3, "gyn"))

    assert list(rule.check(emp, make_slot(3, "kreiszimmer"), state)) == [
        "ALREADY_ASSIGNED_SAME_TIME"
    ]
    # 18:00 start does not overlap a 07:30-15:30 day duty
    assert list(rule.check(emp, _night(make_slot, 3), state)) == []
