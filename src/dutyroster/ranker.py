from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from dutyroster.config import Config
from dutyroster.evaluator import EvaluatorProto
from dutyroster.rules.base import StateProto
from dutyroster.staff import DutySlot, Employee


@dataclass(frozen=True, slots=True)
class Candidate:
    employee: Employee
    soft_codes: tuple[str, ...]
    penalty: float

    @property
    def key(self) -> tuple[int, float, int]:
        return (len(self.soft_codes), self.penalty, self.employee.id)


@dataclass(slots=True)
class RankReport:
    """Eligible candidates best-first, plus every hard code that excluded someone."""

    candidates: list[Candidate] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)

    @property
    def best(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


def preference_score(cfg: Config, employee: Employee, slot: DutySlot) -> float:
    """Positive = the employee wants this slot."""
    score = 0.0
    if slot.date in employee.prefer_dates:
        score += cfg.PREFER_DATE_SCORE
    if slot.date in employee.avoid_dates:
        score -= cfg.AVOID_DATE_SCORE
    if slot.service_type in employee.prefer_service_types:
        score += cfg.PREFER_SERVICE_SCORE
    if slot.service_type in employee.avoid_service_types:
        score -= cfg.AVOID_SERVICE_SCORE
    return score


class CandidateRanker:
    """
    Filters employees to those with zero hard codes and orders them by
    (soft count, weighted soft penalty, employee id).

    The weighted penalty folds in the employee's preferences and current load,
    so with equal soft counts the ranking leans towards wishes and balance.
    """

    def __init__(self, evaluator: EvaluatorProto, cfg: Config) -> None:
        self.evaluator = evaluator
        self.cfg = cfg

    def penalty(
        self,
        employee: Employee,
        slot: DutySlot,
        state: StateProto,
        soft_codes: Iterable[str],
    ) -> float:
        C = self.cfg
        weighted = sum(C.soft_weight(c) for c in soft_codes)
        pref = preference_score(C, employee, slot)
        load = state.assigned_count(employee.id)
        return weighted - C.PREFERENCE_SCALE * pref + C.LOAD_WEIGHT * load

    def rank_with_report(
        self,
        slot: DutySlot,
        employees: Sequence[Employee],
        state: StateProto,
        ignore: Iterable[str] = (),
    ) -> RankReport:
        catalog = self.evaluator.catalog
        skip = tuple(ignore)
        blocked: set[str] = set()
        candidates: list[Candidate] = []
        for emp in employees:
            codes = self.evaluator.evaluate(emp, slot, state, ignore=skip)
            hard = [c for c in codes if catalog.is_hard(c)]
            if hard:
                blocked.update(hard)
                continue
            candidates.append(
                Candidate(
                    employee=emp,
                    soft_codes=tuple(codes),
                    penalty=self.penalty(emp, slot, state, codes),
                )
            )
        candidates.sort(key=lambda c: c.key)
        return RankReport(candidates=candidates, blocked_by=catalog.sort_codes(blocked))

    def rank(
        self,
        slot: DutySlot,
        employees: Sequence[Employee],
        state: StateProto,
    ) -> list[Employee]:
        return [
            c.employee for c in self.rank_with_report(slot, employees, state).candidates
        ]
