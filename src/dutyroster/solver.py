# dutyroster/solver.py
"""
Greedy assignment solver.

One deterministic pass over the period's slots:

  INIT -> LOAD_LOCKS -> FIXED_PREFERENCES -> ASSIGN_LOOP -> FINALIZE

Locks are applied first and never revisited. Fixed-preference employees then get
their preferred dates, and every remaining slot goes to the best-ranked
candidate. There is no backtracking.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence, Type

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.config import Config, cfg as default_cfg
from dutyroster.errors import PreviewCancelled
from dutyroster.evaluator import RuleEvaluator
from dutyroster.input_data import InputSnapshot
from dutyroster.ranker import CandidateRanker
from dutyroster.result_types import Assignment, AssignmentSource, UnfilledSlot, Violation
from dutyroster.rules.base import EvaluationContext, Rule, RuleSpec
from dutyroster.staff import DutySlot, Employee
from dutyroster.state import RunningState

logger = logging.getLogger(__name__)

GREEDY_ENGINE = "local-greedy"


class Phase(str, Enum):
    INIT = "INIT"
    LOAD_LOCKS = "LOAD_LOCKS"
    FIXED_PREFERENCES = "FIXED_PREFERENCES"
    ASSIGN_LOOP = "ASSIGN_LOOP"
    FINALIZE = "FINALIZE"


@dataclass
class SolveOutcome:
    """Raw solver output, before scoring and the publish decision."""

    engine: str
    assignments: list[Assignment] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    unfilled_slots: list[UnfilledSlot] = field(default_factory=list)
    stats: dict[str, float] = field(default_factory=dict)


class SolverBackend(Protocol):
    name: str

    def solve(
        self,
        snapshot: InputSnapshot,
        cancel_event: Optional[threading.Event] = None,
    ) -> SolveOutcome: ...


def slot_order_key(C: Config, slot: DutySlot) -> tuple:
    """Date, mandatory first, role priority, slot priority (high first), id."""
    return (
        slot.date,
        0 if slot.mandatory else 1,
        C.role_priority(slot.service_type),
        -slot.priority,
        slot.id,
    )


def order_slots(C: Config, slots: Iterable[DutySlot]) -> list[DutySlot]:
    return sorted(slots, key=lambda s: slot_order_key(C, s))


class _Run:
    """Mutable bookkeeping for a single pass."""

    def __init__(self, snapshot: InputSnapshot) -> None:
        self.state = RunningState(
            prior_duty_dates=snapshot.prior_duty_dates,
            prior_overnight_dates=snapshot.prior_overnight_dates,
            prior_area_holders=snapshot.prior_area_holders,
        )
        self.assigned: dict[str, Assignment] = {}
        self.placed: list[tuple[int, DutySlot]] = []
        self.violations: list[Violation] = []
        self.unfilled: dict[str, UnfilledSlot] = {}

    def place(self, employee_id: int, slot: DutySlot, source: AssignmentSource) -> None:
        self.state.record(employee_id, slot)
        self.placed.append((employee_id, slot))
        self.assigned[slot.id] = Assignment(
            slot_id=slot.id,
            employee_id=employee_id,
            date=slot.date,
            service_type=slot.service_type,
            source=source,
        )


class GreedySolver:
    """
    Default engine: deterministic greedy pass over the slots.

    Parameters
    ----------
    cfg:
        Planning configuration; defaults to ``dutyroster.config.cfg``.
    catalog:
        Rule catalog codes are validated against.
    rules:
        Optional rule specs (same shape as the rule registry); ``None`` uses
        the default rule set.
    """

    name = GREEDY_ENGINE

    def __init__(
        self,
        cfg: Config | None = None,
        catalog: RuleCatalog = DEFAULT_CATALOG,
        rules: Sequence[RuleSpec | Type[Rule]] | None = None,
    ) -> None:
        self.cfg = cfg or default_cfg
        self.catalog = catalog
        self._rule_specs = rules
        self.phase = Phase.INIT

    # ---------- helpers ----------

    def _violation(
        self,
        code: str,
        message: str | None = None,
        slot_id: str | None = None,
        employee_id: int | None = None,
    ) -> Violation:
        rd = self.catalog.get(code)
        return Violation(
            code=code,
            severity=rd.severity,
            message=message or rd.description,
            slot_id=slot_id,
            employee_id=employee_id,
        )

    def _soft_violations(
        self, codes: Iterable[str], slot: DutySlot, employee_id: int
    ) -> list[Violation]:
        return [
            self._violation(c, slot_id=slot.id, employee_id=employee_id)
            for c in codes
            if not self.catalog.is_hard(c)
        ]

    @staticmethod
    def _check_cancel(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise PreviewCancelled("Planning run cancelled by caller.")

    # ---------- phases ----------

    def _load_locks(
        self,
        snapshot: InputSnapshot,
        slots: list[DutySlot],
        evaluator: RuleEvaluator,
        run: _Run,
    ) -> None:
        self.phase = Phase.LOAD_LOCKS
        for slot in slots:
            lock = snapshot.locks.get(slot.id)
            if lock is None:
                continue
            if lock.is_empty:
                run.unfilled[slot.id] = UnfilledSlot(
                    slot_id=slot.id,
                    date=slot.date,
                    service_type=slot.service_type,
                    mandatory=slot.mandatory,
                    reason_codes=("LOCKED_EMPTY",),
                    blocks_publish=slot.blocks_publish,
                    candidates_blocked_by=("LOCKED_EMPTY",),
                )
                continue

            emp_id = int(lock.employee_id)  # type: ignore[arg-type]
            employee = snapshot.employee(emp_id)
            if employee is None:
                run.violations.append(
                    self._violation(
                        "LOCKED_INVALID_EMPLOYEE",
                        f"Lock references missing employee {emp_id}",
                        slot_id=slot.id,
                        employee_id=emp_id,
                    )
                )
                run.unfilled[slot.id] = UnfilledSlot(
                    slot_id=slot.id,
                    date=slot.date,
                    service_type=slot.service_type,
                    mandatory=slot.mandatory,
                    reason_codes=("LOCKED_INVALID_EMPLOYEE",),
                    blocks_publish=slot.blocks_publish,
                    candidates_blocked_by=("LOCKED_INVALID_EMPLOYEE",),
                )
                continue

            codes = evaluator.evaluate(employee, slot, run.state)
            hard = evaluator.hard_codes(codes)
            if hard:
                logger.warning(
                    "lock on %s names ineligible employee %s (%s)",
                    slot.id,
                    emp_id,
                    ", ".join(hard),
                )
                run.violations.append(
                    self._violation(
                        "LOCKED_INVALID_EMPLOYEE",
                        f"Locked employee {emp_id} violates: {', '.join(hard)}",
                        slot_id=slot.id,
                        employee_id=emp_id,
                    )
                )
            run.violations.extend(self._soft_violations(codes, slot, emp_id))
            run.place(emp_id, slot, "lock")

    def _fixed_preferences(
        self,
        snapshot: InputSnapshot,
        slots: list[DutySlot],
        evaluator: RuleEvaluator,
        run: _Run,
        cancel_event: Optional[threading.Event],
    ) -> None:
        self.phase = Phase.FIXED_PREFERENCES
        fixed_ids: list[int] = []
        for emp_id in (*self.cfg.FIXED_PREFERRED_EMPLOYEES, *snapshot.fixed_preferred_employees):
            if emp_id not in fixed_ids:
                fixed_ids.append(emp_id)

        for emp_id in fixed_ids:
            employee = snapshot.employee(emp_id)
            if employee is None:
                logger.warning("fixed-preference employee %s not in snapshot", emp_id)
                continue
            roles = employee.can_role_ids
            # a single preferred service type the employee can cover narrows the choice
            prefer = employee.prefer_service_types
            if len(prefer) == 1 and prefer <= roles:
                roles = prefer
            for day in sorted(employee.prefer_dates):
                self._check_cancel(cancel_event)
                options = [
                    s
                    for s in slots
                    if s.date == day
                    and s.id not in run.assigned
                    and s.id not in run.unfilled
                    and s.service_type in roles
                ]
                if not options:
                    continue
                self._place_fixed(employee, options, evaluator, run)

    def _place_fixed(
        self,
        employee: Employee,
        options: list[DutySlot],
        evaluator: RuleEvaluator,
        run: _Run,
    ) -> None:
        failures: list[str] = []
        for slot in options:
            codes = evaluator.evaluate(employee, slot, run.state, ignore=("FIXED_ONLY",))
            hard = evaluator.hard_codes(codes)
            if hard:
                failures.extend(hard)
                continue
            run.violations.extend(self._soft_violations(codes, slot, employee.id))
            run.place(employee.id, slot, "fixed")
            return

        attempted = options[0]
        reasons = self.catalog.sort_codes(failures)
        run.violations.append(
            self._violation(
                "FIX_PREFERRED_CONFLICT",
                f"Fixed preference of employee {employee.id} on "
                f"{attempted.date.isoformat()} blocked by: {', '.join(reasons)}",
                slot_id=attempted.id,
                employee_id=employee.id,
            )
        )

    def _assign_loop(
        self,
        snapshot: InputSnapshot,
        slots: list[DutySlot],
        ranker: CandidateRanker,
        run: _Run,
        cancel_event: Optional[threading.Event],
    ) -> None:
        self.phase = Phase.ASSIGN_LOOP
        for slot in slots:
            if slot.id in run.assigned or slot.id in run.unfilled:
                continue
            self._check_cancel(cancel_event)
            report = ranker.rank_with_report(slot, snapshot.employees, run.state)
            best = report.best
            if best is None:
                blocked = tuple(report.blocked_by) or ("NO_ELIGIBLE_CANDIDATE",)
                run.unfilled[slot.id] = UnfilledSlot(
                    slot_id=slot.id,
                    date=slot.date,
                    service_type=slot.service_type,
                    mandatory=slot.mandatory,
                    reason_codes=("NO_ELIGIBLE_CANDIDATE",),
                    blocks_publish=slot.blocks_publish,
                    candidates_blocked_by=blocked,
                )
                run.violations.append(
                    self._violation("NO_ELIGIBLE_CANDIDATE", slot_id=slot.id)
                )
                continue
            run.violations.extend(
                self._soft_violations(best.soft_codes, slot, best.employee.id)
            )
            run.place(best.employee.id, slot, "solver")

    # ---------- entry point ----------

    def solve(
        self,
        snapshot: InputSnapshot,
        cancel_event: Optional[threading.Event] = None,
    ) -> SolveOutcome:
        self.phase = Phase.INIT
        C = self.cfg
        outcome = SolveOutcome(engine=self.name)
        if not snapshot.slots:
            outcome.violations.append(
                self._violation(
                    "NO_DUTY_PLAN_IN_PERIOD",
                    f"No roster skeleton for {snapshot.period}",
                )
            )
            self.phase = Phase.FINALIZE
            return outcome

        ctx = EvaluationContext.from_snapshot(snapshot, C, self.catalog)
        evaluator = RuleEvaluator(ctx, self._rule_specs, snapshot.enabled_rules)
        ranker = CandidateRanker(evaluator, C)
        slots = order_slots(C, snapshot.slots)
        run = _Run(snapshot)

        self._load_locks(snapshot, slots, evaluator, run)
        self._fixed_preferences(snapshot, slots, evaluator, run, cancel_event)
        self._assign_loop(snapshot, slots, ranker, run, cancel_event)

        self.phase = Phase.FINALIZE
        run.state.verify_against(run.placed)
        order = {s.id: i for i, s in enumerate(slots)}
        outcome.assignments = sorted(run.assigned.values(), key=lambda a: order[a.slot_id])
        outcome.unfilled_slots = sorted(
            run.unfilled.values(), key=lambda u: order[u.slot_id]
        )
        outcome.violations = run.violations
        outcome.stats = {
            "slots": float(len(slots)),
            "assigned": float(len(outcome.assignments)),
            "unfilled": float(len(outcome.unfilled_slots)),
        }
        logger.info(
            "greedy pass for %s: %d assigned, %d unfilled, %d violations",
            snapshot.period,
            len(outcome.assignments),
            len(outcome.unfilled_slots),
            len(outcome.violations),
        )
        return outcome
