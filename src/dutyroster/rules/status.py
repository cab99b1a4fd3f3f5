from __future__ import annotations

from dutyroster.rules.base import Rule


class StatusRule(Rule):
    """Employment status for the period.

    FIXED_ONLY employees are only placed by the fixed-preference phase, which
    evaluates with that code ignored.
    """

    order = 0
    name = "status"
    codes = ("EMPLOYEE_INACTIVE", "NO_DUTY_EMPLOYEE", "FIXED_ONLY")

    def check(self, employee, slot, state):
        if not employee.active:
            yield "EMPLOYEE_INACTIVE"
        if not employee.takes_shifts:
            yield "NO_DUTY_EMPLOYEE"
        if employee.fixed_only:
            yield "FIXED_ONLY"
