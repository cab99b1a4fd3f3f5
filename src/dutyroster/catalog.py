"""
Closed catalog of rule codes.

Every violation, unfilled-slot reason and blocked-by code the engine emits is
looked up here. The catalog is built once (``DEFAULT_CATALOG``) and passed by
reference to the evaluator, ranker and scorer.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Literal, Mapping

from dutyroster.errors import SolverInternalError

Severity = Literal["hard", "soft"]

__all__ = [
    "Severity",
    "RuleDefinition",
    "RuleCatalog",
    "DEFAULT_CATALOG",
    "fallback_label",
]


@dataclass(frozen=True, slots=True)
class RuleDefinition:
    code: str
    severity: Severity
    label: str
    description: str
    action_hint: str = ""

    def __post_init__(self) -> None:
        if self.severity not in ("hard", "soft"):
            raise ValueError(f"Unknown severity {self.severity!r} for {self.code}")
        if not self.code or self.code.upper() != self.code:
            raise ValueError(f"Rule codes must be UPPER_SNAKE_CASE, got {self.code!r}")

    @property
    def is_hard(self) -> bool:
        return self.severity == "hard"


def fallback_label(code: str) -> str:
    """Derive a readable label from the code text ("LOCKED_EMPTY" -> "Locked Empty")."""
    return " ".join(part.capitalize() for part in code.split("_") if part)


class RuleCatalog:
    """Immutable, versioned registry ``code -> RuleDefinition``.

    Iteration and ``order_of`` follow declaration order, which is also the order
    codes are reported in.
    """

    __slots__ = ("_version", "_defs", "_order")

    def __init__(self, definitions: Iterable[RuleDefinition], version: str) -> None:
        defs: dict[str, RuleDefinition] = {}
        for rd in definitions:
            if rd.code in defs:
                raise ValueError(f"Duplicate rule code in catalog: {rd.code}")
            defs[rd.code] = rd
        self._version = version
        self._defs: Mapping[str, RuleDefinition] = MappingProxyType(defs)
        self._order: Mapping[str, int] = MappingProxyType(
            {code: i for i, code in enumerate(defs)}
        )

    @property
    def version(self) -> str:
        return self._version

    def __contains__(self, code: object) -> bool:
        return code in self._defs

    def __iter__(self) -> Iterator[RuleDefinition]:
        return iter(self._defs.values())

    def __len__(self) -> int:
        return len(self._defs)

    def get(self, code: str) -> RuleDefinition:
        """Engine-side lookup. An unknown code is an internal error."""
        try:
            return self._defs[code]
        except KeyError:
            raise SolverInternalError(
                f"Rule code {code!r} is not in catalog {self._version}"
            ) from None

    def severity(self, code: str) -> Severity:
        return self.get(code).severity

    def is_hard(self, code: str) -> bool:
        return self.get(code).is_hard

    def describe(self, code: str) -> RuleDefinition:
        """Presentation-side lookup; unknown codes get a mechanically derived label."""
        known = self._defs.get(code)
        if known is not None:
            return known
        return RuleDefinition(
            code=code, severity="hard", label=fallback_label(code), description=code
        )

    def order_of(self, code: str) -> int:
        return self._order.get(code, len(self._order))

    def sort_codes(self, codes: Iterable[str]) -> list[str]:
        """Unique codes, in catalog order."""
        return sorted(set(codes), key=lambda c: (self.order_of(c), c))

    def codes(self, severity: Severity | None = None) -> list[str]:
        return [
            rd.code for rd in self._defs.values() if severity in (None, rd.severity)
        ]

    def hard_codes(self) -> list[str]:
        return self.codes("hard")

    def soft_codes(self) -> list[str]:
        return self.codes("soft")


_DEFINITIONS: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        "NO_CANDIDATE",
        "hard",
        "No suitable candidate",
        "No suitable available employee was found.",
        "Check a manual assignment or relax the rules.",
    ),
    RuleDefinition(
        "BAN_DATE", "hard", "Banned date", "Employee is blocked for this date."
    ),
    RuleDefinition(
        "BAN_WEEKDAY",
        "hard",
        "Banned weekday",
        "Employee cannot be scheduled on this weekday.",
    ),
    RuleDefinition(
        "CONSECUTIVE_DAY",
        "hard",
        "Consecutive days",
        "No duties on consecutive days.",
    ),
    RuleDefinition(
        "MAX_SLOTS",
        "hard",
        "Monthly limit reached",
        "Maximum number of slots in the period reached.",
    ),
    RuleDefinition(
        "MAX_WEEK_SLOTS",
        "hard",
        "Weekly limit reached",
        "Maximum number of slots in the ISO week reached.",
    ),
    RuleDefinition(
        "MAX_WEEKEND_SLOTS",
        "hard",
        "Weekend limit reached",
        "Maximum number of weekend slots reached.",
    ),
    RuleDefinition(
        "NO_DUTY_EMPLOYEE",
        "hard",
        "No duties",
        "Employee is marked as not taking duties.",
    ),
    RuleDefinition(
        "FIXED_ONLY",
        "hard",
        "Fixed wishes only",
        "Employee is only available for fixed-wish assignments.",
    ),
    RuleDefinition(
        "ROLE_NOT_ALLOWED",
        "hard",
        "Service type not allowed",
        "Employee may not be scheduled for this service type.",
    ),
    RuleDefinition(
        "LOCKED_INVALID_EMPLOYEE",
        "hard",
        "Invalid lock",
        "Lock references an employee who is missing, inactive or ineligible.",
        "Update or remove the lock.",
    ),
    RuleDefinition(
        "FIX_PREFERRED_CONFLICT",
        "hard",
        "Fixed wish conflict",
        "A fixed preference conflicts with a hard rule.",
    ),
    RuleDefinition(
        "NO_DUTY_PLAN_IN_PERIOD",
        "hard",
        "No roster for period",
        "No roster skeleton exists for the selected period.",
        "Generate the roster skeleton for the period first.",
    ),
    RuleDefinition(
        "ROOM_CLOSED",
        "hard",
        "Workplace closed",
        "The workplace is closed on this day.",
        "Check the closure or use another workplace.",
    ),
    RuleDefinition(
        "LOCKED_EMPTY",
        "hard",
        "Locked empty",
        "Slot was explicitly locked as empty.",
        "Remove the lock if the slot should be filled.",
    ),
    RuleDefinition(
        "ABSENCE_BLOCKED", "hard", "Absence", "Employee is absent on this day."
    ),
    RuleDefinition(
        "LONG_TERM_ABSENCE_BLOCKED",
        "hard",
        "Long-term absence",
        "A long-term absence blocks the assignment.",
    ),
    RuleDefinition(
        "AFTER_DUTY_BLOCKED",
        "hard",
        "After-duty rest",
        "No assignment on the day after an overnight duty.",
    ),
    RuleDefinition(
        "FORBIDDEN_AREA",
        "hard",
        "Area forbidden",
        "This area is forbidden for the employee.",
    ),
    RuleDefinition(
        "MISSING_REQUIRED_ROLE",
        "hard",
        "Required role missing",
        "The slot requires a role group the employee does not belong to.",
    ),
    RuleDefinition(
        "MISSING_REQUIRED_SKILL",
        "hard",
        "Required qualification missing",
        "The slot requires a qualification the employee lacks.",
    ),
    RuleDefinition(
        "EMPLOYEE_INACTIVE",
        "hard",
        "Inactive",
        "Employee is not active in this period.",
    ),
    RuleDefinition(
        "ALREADY_ASSIGNED_SAME_TIME",
        "hard",
        "Time conflict",
        "Employee is already assigned at an overlapping time.",
        "Only enter deliberate double bookings manually.",
    ),
    RuleDefinition(
        "NO_ELIGIBLE_CANDIDATE",
        "hard",
        "No eligible candidate",
        "No suitable available employee was found.",
        "Check a manual assignment or relax the rules.",
    ),
    RuleDefinition(
        "ONLY_FALLBACK_CANDIDATES",
        "soft",
        "Fallback only",
        "Only candidates outside the area's primary staff remain.",
    ),
    RuleDefinition(
        "CONTINUITY_CONFLICT",
        "soft",
        "Continuity missed",
        "A different employee than the previous holder covers this area.",
    ),
    RuleDefinition(
        "LOW_PRIORITY_AREA_MATCH",
        "soft",
        "Low priority",
        "Assignment to an area the employee ranks low.",
    ),
    RuleDefinition(
        "OPTIONAL_QUALIFICATION_MISSING",
        "soft",
        "Optional qualification missing",
        "An optional qualification for the slot is missing.",
    ),
)

DEFAULT_CATALOG = RuleCatalog(_DEFINITIONS, version="v1")
