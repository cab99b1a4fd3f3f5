# dutyroster/cpsat.py
"""
CP-SAT engine (``Config.ENGINE = "cp-sat"``).

Locks and fixed preferences are applied exactly as in the greedy pass. The
remaining slots become one boolean per eligible (employee, slot) pair, with the
stateful hard rules (caps, consecutive days, after-duty rest, overlaps) as
constraints, and the model maximises weighted coverage minus soft penalties.
The chosen assignment is then replayed through the evaluator in slot order so
that violations, unfilled reasons and running counters follow the same
contract as the greedy engine.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import timedelta
from typing import Optional, Sequence, Type

from ortools.sat.python import cp_model

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.config import Config
from dutyroster.errors import SolverInternalError
from dutyroster.evaluator import RuleEvaluator
from dutyroster.input_data import InputSnapshot
from dutyroster.ranker import CandidateRanker
from dutyroster.result_types import UnfilledSlot
from dutyroster.rules.base import EvaluationContext, Rule, RuleSpec
from dutyroster.solver import GreedySolver, Phase, SolveOutcome, _Run, order_slots
from dutyroster.staff import DutySlot

logger = logging.getLogger(__name__)

CPSAT_ENGINE = "cp-sat"

MANDATORY_WEIGHT = 10_000
BLOCKING_BONUS = 5_000
OPTIONAL_WEIGHT = 1_000
PENALTY_SCALE = 10  # soft penalty units -> objective integers
MAX_PENALTY = 900  # keeps any fill worth more than its penalty


def setup_solver(C: Config) -> cp_model.CpSolver:
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = C.TIME_LIMIT_SEC
    solver.parameters.num_search_workers = C.NUM_PARALLEL_WORKERS
    solver.parameters.log_search_progress = False
    if C.SEED is not None:
        solver.parameters.random_seed = int(C.SEED)
    return solver


def _neighbour_pairs(slots: Sequence[DutySlot], rest: bool, consecutive: bool):
    """Pairs of slots one employee may not hold together."""
    by_day: dict = defaultdict(list)
    for s in slots:
        by_day[s.date].append(s)
    for i, a in enumerate(slots):
        for b in slots[i + 1 :]:
            a0, a1 = a.interval()
            b0, b1 = b.interval()
            if a0 < b1 and b0 < a1:
                yield a, b
    for day, todays in by_day.items():
        for a in todays:
            for b in by_day.get(day + timedelta(days=1), ()):
                if consecutive or (rest and a.is_overnight):
                    yield a, b


class CpSatSolver(GreedySolver):
    """OR-Tools engine with the same inputs and result contract as GreedySolver."""

    name = CPSAT_ENGINE

    def __init__(
        self,
        cfg: Config | None = None,
        catalog: RuleCatalog = DEFAULT_CATALOG,
        rules: Sequence[RuleSpec | Type[Rule]] | None = None,
        progress_cb: cp_model.CpSolverSolutionCallback | None = None,
    ) -> None:
        super().__init__(cfg, catalog, rules)
        self.progress_cb = progress_cb
        self.status_name: str = "UNKNOWN"

    def solve(
        self,
        snapshot: InputSnapshot,
        cancel_event: Optional[threading.Event] = None,
    ) -> SolveOutcome:
        if not snapshot.slots:
            outcome = super().solve(snapshot, cancel_event)
            outcome.engine = self.name
            return outcome

        self.phase = Phase.INIT
        C = self.cfg
        ctx = EvaluationContext.from_snapshot(snapshot, C, self.catalog)
        evaluator = RuleEvaluator(ctx, self._rule_specs, snapshot.enabled_rules)
        ranker = CandidateRanker(evaluator, C)
        slots = order_slots(C, snapshot.slots)
        run = _Run(snapshot)

        self._load_locks(snapshot, slots, evaluator, run)
        self._fixed_preferences(snapshot, slots, evaluator, run, cancel_event)
        self._check_cancel(cancel_event)

        self.phase = Phase.ASSIGN_LOOP
        free = [s for s in slots if s.id not in run.assigned and s.id not in run.unfilled]
        chosen = self._optimise(snapshot, free, evaluator, ranker, run)
        self._check_cancel(cancel_event)

        # replay in slot order so counters and soft codes match a sequential pass
        for slot in free:
            emp_id = chosen.get(slot.id)
            if emp_id is None:
                report = ranker.rank_with_report(slot, snapshot.employees, run.state)
                run.unfilled[slot.id] = UnfilledSlot(
                    slot_id=slot.id,
                    date=slot.date,
                    service_type=slot.service_type,
                    mandatory=slot.mandatory,
                    reason_codes=("NO_ELIGIBLE_CANDIDATE",),
                    blocks_publish=slot.blocks_publish,
                    candidates_blocked_by=tuple(report.blocked_by)
                    or ("NO_ELIGIBLE_CANDIDATE",),
                )
                run.violations.append(
                    self._violation("NO_ELIGIBLE_CANDIDATE", slot_id=slot.id)
                )
                continue
            employee = snapshot.employee(emp_id)
            assert employee is not None
            codes = evaluator.evaluate(employee, slot, run.state)
            hard = evaluator.hard_codes(codes)
            if hard:
                raise SolverInternalError(
                    f"CP-SAT placed employee {emp_id} on {slot.id} despite {hard}"
                )
            run.violations.extend(self._soft_violations(codes, slot, emp_id))
            run.place(emp_id, slot, "solver")

        self.phase = Phase.FINALIZE
        run.state.verify_against(run.placed)
        order = {s.id: i for i, s in enumerate(slots)}
        outcome = SolveOutcome(engine=self.name)
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
            "cp-sat pass for %s (%s): %d assigned, %d unfilled",
            snapshot.period,
            self.status_name,
            len(outcome.assignments),
            len(outcome.unfilled_slots),
        )
        return outcome

    def _optimise(
        self,
        snapshot: InputSnapshot,
        free: list[DutySlot],
        evaluator: RuleEvaluator,
        ranker: CandidateRanker,
        run: _Run,
    ) -> dict[str, int]:
        C = self.cfg
        m = cp_model.CpModel()
        state = run.state
        active = {r.name for r in evaluator.rules}

        x: dict[tuple[int, str], cp_model.IntVar] = {}
        objective: list = []
        for slot in free:
            base = MANDATORY_WEIGHT if slot.mandatory else OPTIONAL_WEIGHT
            if slot.blocks_publish:
                base += BLOCKING_BONUS
            for emp in snapshot.employees:
                codes = evaluator.evaluate(emp, slot, state)
                if evaluator.hard_codes(codes):
                    continue
                var = m.NewBoolVar(f"x[e={emp.id},s={slot.id}]")
                x[(emp.id, slot.id)] = var
                pen = ranker.penalty(emp, slot, state, codes)
                pen_int = max(-MAX_PENALTY, min(MAX_PENALTY, int(round(pen * PENALTY_SCALE))))
                objective.append((base - pen_int) * var)

        by_slot: dict[str, list] = defaultdict(list)
        by_emp: dict[int, list[tuple[DutySlot, cp_model.IntVar]]] = defaultdict(list)
        slot_by_id = {s.id: s for s in free}
        for (emp_id, slot_id), var in x.items():
            by_slot[slot_id].append(var)
            by_emp[emp_id].append((slot_by_id[slot_id], var))

        for vars_ in by_slot.values():
            m.Add(cp_model.LinearExpr.Sum(vars_) <= 1)

        pairs = list(
            _neighbour_pairs(
                free,
                rest=C.AFTER_DUTY_REST and "after_duty_rest" in active,
                consecutive=C.NO_CONSECUTIVE_DAYS and "consecutive_days" in active,
            )
        )
        for emp in snapshot.employees:
            held = dict((s.id, v) for s, v in by_emp.get(emp.id, []))
            if not held:
                continue
            for a, b in pairs:
                if a.id in held and b.id in held:
                    m.Add(held[a.id] + held[b.id] <= 1)
            if "workload_caps" in active:
                self._add_caps(m, emp, by_emp[emp.id], state)

        if objective:
            m.Maximize(cp_model.LinearExpr.Sum(objective))

        solver = setup_solver(C)
        status = (
            solver.Solve(m, self.progress_cb)
            if self.progress_cb is not None
            else solver.Solve(m)
        )
        self.status_name = solver.StatusName(status)
        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.warning("cp-sat returned %s; leaving free slots open", self.status_name)
            return {}

        chosen: dict[str, int] = {}
        for (emp_id, slot_id), var in sorted(x.items(), key=lambda kv: (kv[0][1], kv[0][0])):
            if solver.Value(var) == 1:
                chosen[slot_id] = emp_id
        return chosen

    def _add_caps(self, m: cp_model.CpModel, emp, held, state) -> None:
        C = self.cfg
        period_cap = emp.max_slots if emp.max_slots is not None else C.MAX_SLOTS_PER_PERIOD
        if period_cap is not None:
            left = max(0, period_cap - state.assigned_count(emp.id))
            m.Add(cp_model.LinearExpr.Sum([v for _, v in held]) <= left)

        week_cap = (
            emp.max_slots_per_week
            if emp.max_slots_per_week is not None
            else C.MAX_SLOTS_PER_WEEK
        )
        if week_cap is not None:
            weeks: dict[tuple[int, int], list] = defaultdict(list)
            for s, v in held:
                weeks[s.iso_week].append(v)
            for wk, vars_ in weeks.items():
                left = max(0, week_cap - state.week_count(emp.id, wk))
                m.Add(cp_model.LinearExpr.Sum(vars_) <= left)

        weekend_cap = (
            emp.max_weekend_slots
            if emp.max_weekend_slots is not None
            else C.MAX_WEEKEND_SLOTS
        )
        if weekend_cap is not None:
            vars_ = [v for s, v in held if s.is_weekend]
            if vars_:
                left = max(0, weekend_cap - state.weekend_count(emp.id))
                m.Add(cp_model.LinearExpr.Sum(vars_) <= left)
