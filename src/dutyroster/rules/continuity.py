from __future__ import annotations

from dutyroster.rules.base import Rule


class ContinuityRule(Rule):
    """Continuity slots prefer the last holder of the same area (lookback included)."""

    order = 120
    name = "continuity"
    codes = ("CONTINUITY_CONFLICT",)

    def check(self, employee, slot, state):
        if not slot.continuity or slot.area is None:
            return
        holder = state.last_holder(slot.area)
        if holder is not None and holder != employee.id:
            yield "CONTINUITY_CONFLICT"
