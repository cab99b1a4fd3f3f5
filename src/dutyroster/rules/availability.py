from __future__ import annotations

from dutyroster.rules.base import Rule


class AvailabilityRule(Rule):
    """Absences, long-term absences and the employee's banned dates/weekdays."""

    order = 10
    name = "availability"
    codes = ("ABSENCE_BLOCKED", "LONG_TERM_ABSENCE_BLOCKED", "BAN_DATE", "BAN_WEEKDAY")

    def check(self, employee, slot, state):
        absent = self.ctx.absences.get(employee.id, {})
        if slot.date in absent:
            yield "LONG_TERM_ABSENCE_BLOCKED" if absent[slot.date] else "ABSENCE_BLOCKED"
        if slot.date in employee.ban_dates:
            yield "BAN_DATE"
        if slot.date.weekday() in employee.ban_weekdays:
            yield "BAN_WEEKDAY"
