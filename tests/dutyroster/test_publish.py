from __future__ import annotations

from datetime import date

import pytest

from dutyroster.publish import blocking_reasons, publish_allowed
from dutyroster.result_types import Assignment, UnfilledSlot, Violation
from dutyroster.staff import DutySlot

DAY = date(2025, 3, 3)
REQUIRED = DutySlot("req", DAY, "kreiszimmer", blocks_publish=True)
MANDATORY = DutySlot("man", DAY, "gyn")
OPTIONAL = DutySlot("opt", DAY, "turnus", mandatory=False)
SLOTS = [REQUIRED, MANDATORY, OPTIONAL]


def _assign(slot, emp):
    return Assignment(slot.id, emp, slot.date, slot.service_type)


def _unfilled(slot):
    return UnfilledSlot(
        slot.id, slot.date, slot.service_type, slot.mandatory, ("NO_ELIGIBLE_CANDIDATE",), slot.blocks_publish
    )


def _hard(code, slot=None, emp=None):
    return Violation(code, "hard", code, slot_id=slot.id if slot else None, employee_id=emp)


FULL = [_assign(REQUIRED, 1), _assign(MANDATORY, 2), _assign(OPTIONAL, 3)]


def test_full_roster_is_publishable():
    assert publish_allowed(SLOTS, FULL, [], [])
    assert blocking_reasons(SLOTS, FULL, [], []) == []


def test_soft_violations_never_block():
    soft = [Violation("CONTINUITY_CONFLICT", "soft", "x", slot_id="req", employee_id=1)]
    assert publish_allowed(SLOTS, FULL, soft, [])


def test_unfilled_required_slot_blocks():
    assignments = FULL[1:]
    reasons = blocking_reasons(SLOTS, assignments, [], [_unfilled(REQUIRED)])
    assert reasons == ["req: required slot is unfilled"]


def test_unfilled_optional_slot_does_not_block():
    assignments = FULL[:2]
    violations = [_hard("NO_ELIGIBLE_CANDIDATE", OPTIONAL)]
    assert publish_allowed(SLOTS, assignments, violations, [_unfilled(OPTIONAL)])


def test_unfilled_mandatory_slot_with_hard_violation_blocks():
    assignments = [FULL[0], FULL[2]]
    violations = [_hard("NO_ELIGIBLE_CANDIDATE", MANDATORY)]
    assert not publish_allowed(SLOTS, assignments, violations, [_unfilled(MANDATORY)])


def test_hard_violation_on_mandatory_assignment_blocks():
    violations = [_hard("LOCKED_INVALID_EMPLOYEE", MANDATORY, 2)]
    assert blocking_reasons(SLOTS, FULL, violations, []) == [
        "man: assignment carries LOCKED_INVALID_EMPLOYEE"
    ]


def test_period_level_violation_blocks():
    assert not publish_allowed([], [], [_hard("NO_DUTY_PLAN_IN_PERIOD")], [])


@pytest.mark.parametrize(
    "extra",
    [
        _hard("LOCKED_INVALID_EMPLOYEE", REQUIRED, 1),
        _hard("LOCKED_INVALID_EMPLOYEE", MANDATORY, 2),
        _hard("FIX_PREFERRED_CONFLICT", OPTIONAL, 3),
        _hard("NO_DUTY_PLAN_IN_PERIOD"),
    ],
)
@pytest.mark.parametrize(
    "assignments, violations, unfilled",
    [
        (FULL, [], []),
        (FULL[1:], [], [_unfilled(REQUIRED)]),
        (FULL, [_hard("LOCKED_INVALID_EMPLOYEE", REQUIRED, 1)], []),
        ([FULL[0], FULL[2]], [_hard("NO_ELIGIBLE_CANDIDATE", MANDATORY)], [_unfilled(MANDATORY)]),
    ],
)
def test_extra_hard_violation_never_unblocks(extra, assignments, violations, unfilled):
    before = publish_allowed(SLOTS, assignments, violations, unfilled)
    after = publish_allowed(SLOTS, assignments, [*violations, extra], unfilled)
    assert after <= before
