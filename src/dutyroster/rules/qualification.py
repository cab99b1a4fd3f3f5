from __future__ import annotations

from dutyroster.rules.base import Rule


class QualificationRule(Rule):
    """Service type, role group, required skills and forbidden areas."""

    order = 20
    name = "qualification"
    codes = (
        "ROLE_NOT_ALLOWED",
        "MISSING_REQUIRED_ROLE",
        "MISSING_REQUIRED_SKILL",
        "FORBIDDEN_AREA",
    )

    def check(self, employee, slot, state):
        if slot.service_type not in employee.can_role_ids:
            yield "ROLE_NOT_ALLOWED"
        if slot.required_groups and employee.group not in slot.required_groups:
            yield "MISSING_REQUIRED_ROLE"
        if not slot.required_skills <= employee.skills:
            yield "MISSING_REQUIRED_SKILL"
        if slot.area is not None and slot.area in employee.forbidden_areas:
            yield "FORBIDDEN_AREA"


class OptionalSkillRule(Rule):
    order = 110
    name = "optional_skills"
    codes = ("OPTIONAL_QUALIFICATION_MISSING",)

    def check(self, employee, slot, state):
        if not slot.optional_skills <= employee.skills:
            yield "OPTIONAL_QUALIFICATION_MISSING"
