# dutyroster/result_types.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, Optional

AssignmentSource = Literal["lock", "fixed", "solver"]
PlanningKind = Literal["preview", "commit"]

RESULT_VERSION = "v1"


@dataclass(frozen=True, slots=True)
class Assignment:
    slot_id: str
    employee_id: int
    date: date
    service_type: str
    source: AssignmentSource = "solver"

    @property
    def locked(self) -> bool:
        return self.source == "lock"

    def to_dict(self) -> dict[str, Any]:
        return {
            "slotId": self.slot_id,
            "employeeId": self.employee_id,
            "date": self.date.isoformat(),
            "serviceType": self.service_type,
            "locked": self.locked,
            "source": self.source,
        }


@dataclass(frozen=True, slots=True)
class Violation:
    code: str
    severity: str
    message: str
    slot_id: Optional[str] = None
    employee_id: Optional[int] = None

    @property
    def is_hard(self) -> bool:
        return self.severity == "hard"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
        }
        if self.slot_id is not None:
            out["slotId"] = self.slot_id
        if self.employee_id is not None:
            out["employeeId"] = self.employee_id
        return out


@dataclass(frozen=True, slots=True)
class UnfilledSlot:
    slot_id: str
    date: date
    service_type: str
    mandatory: bool
    reason_codes: tuple[str, ...]
    blocks_publish: bool
    candidates_blocked_by: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "slotId": self.slot_id,
            "date": self.date.isoformat(),
            "serviceType": self.service_type,
            "mandatory": self.mandatory,
            "reasonCodes": list(self.reason_codes),
            "blocksPublish": self.blocks_publish,
            "candidatesBlockedBy": list(self.candidates_blocked_by),
        }


@dataclass(frozen=True, slots=True)
class Coverage:
    filled: int
    required: int

    def __post_init__(self) -> None:
        if not 0 <= self.filled <= self.required:
            raise ValueError(
                f"Coverage out of bounds: filled={self.filled}, required={self.required}"
            )


@dataclass(frozen=True, slots=True)
class Summary:
    score: float
    coverage: Coverage
    hard_violations: int = 0
    soft_violations: int = 0
    unfilled_mandatory: int = 0
    unfilled_optional: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "coverage": {
                "filled": self.coverage.filled,
                "required": self.coverage.required,
            },
            "counts": {
                "hardViolations": self.hard_violations,
                "softViolations": self.soft_violations,
                "unfilledMandatory": self.unfilled_mandatory,
                "unfilledOptional": self.unfilled_optional,
            },
        }


@dataclass(frozen=True)
class RunResult:
    """Structured output of one planning run (preview or commit)."""

    assignments: tuple[Assignment, ...]
    violations: tuple[Violation, ...]
    unfilled_slots: tuple[UnfilledSlot, ...]
    summary: Summary
    publish_allowed: bool
    engine: str
    planning_kind: PlanningKind
    input_hash: str
    catalog_version: str
    meta_extra: dict[str, Any] = field(default_factory=dict)

    @property
    def hard_violations(self) -> list[Violation]:
        return [v for v in self.violations if v.is_hard]

    @property
    def soft_violations(self) -> list[Violation]:
        return [v for v in self.violations if not v.is_hard]

    def assignment_map(self) -> dict[str, int]:
        return {a.slot_id: a.employee_id for a in self.assignments}

    def to_dict(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "version": RESULT_VERSION,
            "engine": self.engine,
            "planningKind": self.planning_kind,
            "inputHash": self.input_hash,
            "catalogVersion": self.catalog_version,
        }
        meta.update(self.meta_extra)
        return {
            "assignments": [a.to_dict() for a in self.assignments],
            "violations": [v.to_dict() for v in self.violations],
            "unfilledSlots": [u.to_dict() for u in self.unfilled_slots],
            "summary": self.summary.to_dict(),
            "publishAllowed": self.publish_allowed,
            "meta": meta,
        }

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=indent)
