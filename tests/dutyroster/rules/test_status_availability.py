from __future__ import annotations

from datetime import date

from dutyroster.input_data import build_input
from dutyroster.rules.availability import AvailabilityRule
from dutyroster.rules.status import StatusRule
from dutyroster.staff import Absence, Employee
from dutyroster.state import RunningState


def test_status_codes(march, make_slot, make_context):
    slot = make_slot(3)
    snap = build_input(march, [], [slot])
    rule = StatusRule(make_context(snap))
    state = RunningState()

    assert list(rule.check(Employee(1, "A", "OA"), slot, state)) == []
    assert list(rule.check(Employee(2, "B", "OA", active=False), slot, state)) == [
        "EMPLOYEE_INACTIVE"
    ]
    assert list(rule.check(Employee(3, "C", "OA", takes_shifts=False), slot, state)) == [
        "NO_DUTY_EMPLOYEE"
    ]
    assert list(rule.check(Employee(4, "D", "OA", fixed_only=True), slot, state)) == [
        "FIXED_ONLY"
    ]


def test_absences_and_bans(march, make_slot, make_context):
    emp = Employee(
        1,
        "A",
        "OA",
        ban_dates=frozenset({date(2025, 3, 5)}),
        ban_weekdays=frozenset({3}),  # Thursday
    )
    other = Employee(2, "B", "OA")
    slots = [make_slot(d) for d in (3, 4, 5, 6, 10)]
    absences = [
        Absence(1, date(2025, 3, 3), date(2025, 3, 3)),
        Absence(2, date(2025, 3, 1), date(2025, 3, 31), long_term=True),
    ]
    snap = build_input(march, [emp, other], slots, absences=absences)
    rule = AvailabilityRule(make_context(snap))
    state = RunningState()

    def codes(e, day):
        return list(rule.check(e, make_slot(day), state))

    assert codes(emp, 3) == ["ABSENCE_BLOCKED"]
    assert codes(emp, 4) == []
    assert codes(emp, 5) == ["BAN_DATE"]
    assert codes(emp, 6) == ["BAN_WEEKDAY"]
    assert codes(other, 10) == ["LONG_TERM_ABSENCE_BLOCKED"]
