from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class PlanningState:
    """Publication status of one planning period."""

    year: int
    month: int
    last_run_at: Optional[datetime]
    is_dirty: bool
    submitted_count: int
    missing_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
            "isDirty": self.is_dirty,
            "submittedCount": self.submitted_count,
            "missingCount": self.missing_count,
        }


def compute_state(
    year: int,
    month: int,
    *,
    last_run_at: Optional[datetime],
    last_run_revision: Optional[int],
    revision: int,
    submitted_count: int,
    expected_count: int,
) -> PlanningState:
    """
    ``revision`` counts input changes (locks, absences, submissions) for the
    period; a committed run remembers the revision it was computed from. The
    period is dirty before the first commit and whenever inputs moved on since.
    """
    is_dirty = last_run_revision is None or revision > last_run_revision
    return PlanningState(
        year=year,
        month=month,
        last_run_at=last_run_at,
        is_dirty=is_dirty,
        submitted_count=submitted_count,
        missing_count=max(0, expected_count - submitted_count),
    )
