from __future__ import annotations

from typing import Iterable, Sequence

from dutyroster.config import Config
from dutyroster.result_types import Assignment, Coverage, Summary, UnfilledSlot, Violation
from dutyroster.staff import DutySlot


def compute_coverage(
    slots: Sequence[DutySlot], assignments: Iterable[Assignment]
) -> Coverage:
    """required = mandatory slots; filled = mandatory slots with an assignment."""
    assigned = {a.slot_id for a in assignments}
    mandatory = [s for s in slots if s.mandatory]
    return Coverage(
        filled=sum(1 for s in mandatory if s.id in assigned), required=len(mandatory)
    )


def compute_score(
    C: Config,
    unfilled_mandatory: int,
    unfilled_optional: int,
    hard: int,
    soft: int,
) -> float:
    """
    100 / (1 + weighted penalty), not rounded.

    Strictly decreasing in every count as long as the weights are positive,
    which ``Config.validate`` enforces.
    """
    penalty = (
        C.SCORE_UNFILLED_MANDATORY_WEIGHT * unfilled_mandatory
        + C.SCORE_UNFILLED_OPTIONAL_WEIGHT * unfilled_optional
        + C.SCORE_HARD_WEIGHT * hard
        + C.SCORE_SOFT_WEIGHT * soft
    )
    return 100.0 / (1.0 + penalty)


def build_summary(
    C: Config,
    slots: Sequence[DutySlot],
    assignments: Sequence[Assignment],
    violations: Sequence[Violation],
    unfilled: Sequence[UnfilledSlot],
) -> Summary:
    unfilled_mandatory = sum(1 for u in unfilled if u.mandatory)
    unfilled_optional = len(unfilled) - unfilled_mandatory
    hard = sum(1 for v in violations if v.is_hard)
    soft = len(violations) - hard
    return Summary(
        score=compute_score(C, unfilled_mandatory, unfilled_optional, hard, soft),
        coverage=compute_coverage(slots, assignments),
        hard_violations=hard,
        soft_violations=soft,
        unfilled_mandatory=unfilled_mandatory,
        unfilled_optional=unfilled_optional,
    )
