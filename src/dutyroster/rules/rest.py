from __future__ import annotations

from datetime import timedelta

from dutyroster.rules.base import Rule

ONE_DAY = timedelta(days=1)


class RestRule(Rule):
    """
    Rest after an overnight duty: nothing on the following day, and no overnight
    duty the day before an existing assignment.

    Config used:
      AFTER_DUTY_REST (bool)
    """

    order = 50
    name = "after_duty_rest"
    codes = ("AFTER_DUTY_BLOCKED",)

    def __init__(self, ctx, **settings):
        super().__init__(ctx, **settings)
        self.enabled = bool(ctx.cfg.AFTER_DUTY_REST)

    def check(self, employee, slot, state):
        if not self.enabled:
            return
        if state.had_overnight_on(employee.id, slot.date - ONE_DAY):
            yield "AFTER_DUTY_BLOCKED"
        elif slot.is_overnight and state.has_duty_on(employee.id, slot.date + ONE_DAY):
            yield "AFTER_DUTY_BLOCKED"


class OverlapRule(Rule):
    """One person, one place: no overlapping slot intervals."""

    order = 55
    name = "overlap"
    codes = ("ALREADY_ASSIGNED_SAME_TIME",)

    def check(self, employee, slot, state):
        if state.overlaps(employee.id, slot.interval()):
            yield "ALREADY_ASSIGNED_SAME_TIME"
