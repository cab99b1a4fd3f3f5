from __future__ import annotations

from typing import Sequence

from dutyroster.result_types import Assignment, UnfilledSlot, Violation
from dutyroster.staff import DutySlot

PERIOD_LEVEL_CODES: frozenset[str] = frozenset({"NO_DUTY_PLAN_IN_PERIOD"})


def blocking_reasons(
    slots: Sequence[DutySlot],
    assignments: Sequence[Assignment],
    violations: Sequence[Violation],
    unfilled: Sequence[UnfilledSlot],
) -> list[str]:
    """Human-readable reasons the roster may not be published (empty = publishable).

    Soft violations never block.
    """
    mandatory = {s.id for s in slots if s.mandatory}
    hard = [v for v in violations if v.is_hard]
    hard_slots = {v.slot_id for v in hard if v.slot_id is not None}
    carried = {(a.slot_id, a.employee_id) for a in assignments if a.slot_id in mandatory}

    reasons: list[str] = []
    for u in unfilled:
        if u.blocks_publish:
            reasons.append(f"{u.slot_id}: required slot is unfilled")
        elif u.mandatory and u.slot_id in hard_slots:
            reasons.append(f"{u.slot_id}: mandatory slot unfilled with a hard violation")
    for v in hard:
        if v.code in PERIOD_LEVEL_CODES:
            reasons.append(f"period: {v.code}")
        elif v.slot_id is not None and (v.slot_id, v.employee_id) in carried:
            reasons.append(f"{v.slot_id}: assignment carries {v.code}")
    return reasons


def publish_allowed(
    slots: Sequence[DutySlot],
    assignments: Sequence[Assignment],
    violations: Sequence[Violation],
    unfilled: Sequence[UnfilledSlot],
) -> bool:
    return not blocking_reasons(slots, assignments, violations, unfilled)
