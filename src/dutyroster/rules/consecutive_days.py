from __future__ import annotations

from datetime import timedelta

from dutyroster.rules.base import Rule

ONE_DAY = timedelta(days=1)


class ConsecutiveDaysRule(Rule):
    """
    No duties on consecutive days (either neighbour, lookback included).

    Config used:
      NO_CONSECUTIVE_DAYS (bool)
    """

    order = 40
    name = "consecutive_days"
    codes = ("CONSECUTIVE_DAY",)

    def __init__(self, ctx, **settings):
        super().__init__(ctx, **settings)
        self.enabled = bool(ctx.cfg.NO_CONSECUTIVE_DAYS)

    def check(self, employee, slot, state):
        if not self.enabled:
            return
        if state.has_duty_on(employee.id, slot.date - ONE_DAY) or state.has_duty_on(
            employee.id, slot.date + ONE_DAY
        ):
            yield "CONSECUTIVE_DAY"
