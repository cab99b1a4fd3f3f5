from __future__ import annotations

from dutyroster.rules.base import Rule


class WorkplaceRule(Rule):
    """Slot-level blockers: closed workplace, slot locked as empty."""

    order = 30
    name = "workplace"
    codes = ("ROOM_CLOSED", "LOCKED_EMPTY")

    def check(self, employee, slot, state):
        if slot.area is not None and slot.area in self.ctx.closures.get(
            slot.date, frozenset()
        ):
            yield "ROOM_CLOSED"
        if slot.id in self.ctx.locked_empty:
            yield "LOCKED_EMPTY"
