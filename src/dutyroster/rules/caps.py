from __future__ import annotations

from typing import Optional

from dutyroster.rules.base import Rule


def _cap(own: Optional[int], default: Optional[int]) -> Optional[int]:
    return own if own is not None else default


class WorkloadCapRule(Rule):
    """
    Hard caps on slots per period, per ISO week and on weekends.

    Config used (when the employee has no own cap):
      MAX_SLOTS_PER_PERIOD, MAX_SLOTS_PER_WEEK, MAX_WEEKEND_SLOTS (int or None)
    """

    order = 60
    name = "workload_caps"
    codes = ("MAX_SLOTS", "MAX_WEEK_SLOTS", "MAX_WEEKEND_SLOTS")

    def check(self, employee, slot, state):
        C = self.ctx.cfg
        period_cap = _cap(employee.max_slots, C.MAX_SLOTS_PER_PERIOD)
        if period_cap is not None and state.assigned_count(employee.id) >= period_cap:
            yield "MAX_SLOTS"
        week_cap = _cap(employee.max_slots_per_week, C.MAX_SLOTS_PER_WEEK)
        if (
            week_cap is not None
            and state.week_count(employee.id, slot.iso_week) >= week_cap
        ):
            yield "MAX_WEEK_SLOTS"
        weekend_cap = _cap(employee.max_weekend_slots, C.MAX_WEEKEND_SLOTS)
        if (
            slot.is_weekend
            and weekend_cap is not None
            and state.weekend_count(employee.id) >= weekend_cap
        ):
            yield "MAX_WEEKEND_SLOTS"
