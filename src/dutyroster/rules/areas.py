from __future__ import annotations

from dutyroster.rules.base import Rule


class AreaPreferenceRule(Rule):
    """
    Soft area fit.

    An employee with primary areas who is placed outside them is a fallback
    candidate; areas the employee ranks low are penalized separately.
    """

    order = 100
    name = "area_preference"
    codes = ("ONLY_FALLBACK_CANDIDATES", "LOW_PRIORITY_AREA_MATCH")

    def check(self, employee, slot, state):
        if slot.area is None:
            return
        if employee.primary_areas and slot.area not in employee.primary_areas:
            yield "ONLY_FALLBACK_CANDIDATES"
        if slot.area in employee.low_priority_areas:
            yield "LOW_PRIORITY_AREA_MATCH"
