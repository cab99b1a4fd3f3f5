from __future__ import annotations

import threading
from typing import Sequence, Type

from ortools.sat.python import cp_model

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.config import Config, cfg
from dutyroster.cpsat import CPSAT_ENGINE, CpSatSolver
from dutyroster.input_data import InputSnapshot, Period, build_input
from dutyroster.progress import MinimalProgress
from dutyroster.publish import publish_allowed
from dutyroster.reporting import Reporter
from dutyroster.result_types import PlanningKind, RunResult
from dutyroster.rules.base import Rule, RuleSpec
from dutyroster.scoring import build_summary
from dutyroster.solver import GreedySolver, SolverBackend


def select_backend(
    config: Config,
    catalog: RuleCatalog = DEFAULT_CATALOG,
    rules: Sequence[RuleSpec | Type[Rule]] | None = None,
    progress_cb: cp_model.CpSolverSolutionCallback | None = None,
) -> SolverBackend:
    """Engine named by ``config.ENGINE``."""
    if config.ENGINE == CPSAT_ENGINE:
        return CpSatSolver(config, catalog, rules, progress_cb=progress_cb)
    return GreedySolver(config, catalog, rules)


def run_solver(
    snapshot: InputSnapshot,
    config: Config | None = None,
    backend: SolverBackend | None = None,
    catalog: RuleCatalog = DEFAULT_CATALOG,
    planning_kind: PlanningKind = "preview",
    cancel_event: threading.Event | None = None,
    reporter: Reporter | None = None,
    validate_config: bool = True,
    rules: Sequence[RuleSpec | Type[Rule]] | None = None,
) -> RunResult:
    """
    Solve, score and gate one planning period.

    Parameters
    ----------
    snapshot:
        The period's normalized input (see `dutyroster.input_data.build_input`).
    config:
        Planning configuration. Defaults to `dutyroster.config.cfg`.
    backend:
        Engine to use. When omitted, `select_backend(config)` picks one from
        `config.ENGINE`.
    planning_kind:
        "preview" or "commit"; recorded in the result meta only, persistence is
        the caller's business.
    cancel_event:
        Set it from another thread to abort with `PreviewCancelled`.
    reporter:
        Optional reporter; receives pre/post solve hooks.
    rules:
        Optional rule specs; `None` falls back to the default rule set.

    Returns
    -------
    RunResult
        Assignments, violations, unfilled slots, summary and publish decision.
    """
    cfg_obj = config or cfg
    if validate_config:
        cfg_obj.validate()

    engine = backend or select_backend(cfg_obj, catalog, rules)
    if reporter is not None:
        reporter.pre_solve(snapshot)

    outcome = engine.solve(snapshot, cancel_event=cancel_event)

    slots = list(snapshot.slots)
    summary = build_summary(
        cfg_obj, slots, outcome.assignments, outcome.violations, outcome.unfilled_slots
    )
    result = RunResult(
        assignments=tuple(outcome.assignments),
        violations=tuple(outcome.violations),
        unfilled_slots=tuple(outcome.unfilled_slots),
        summary=summary,
        publish_allowed=publish_allowed(
            slots, outcome.assignments, outcome.violations, outcome.unfilled_slots
        ),
        engine=outcome.engine,
        planning_kind=planning_kind,
        input_hash=snapshot.input_hash(),
        catalog_version=catalog.version,
    )

    if reporter is not None:
        reporter.post_solve(result, snapshot)
    return result


def main() -> RunResult:
    """Plan a synthetic month and print the report."""
    from dutyroster.generate.staff import (
        StaffGenConfig,
        create_absences,
        create_employees,
    )

    period = Period(2025, 3)
    gen = StaffGenConfig(seed=cfg.SEED if cfg.SEED is not None else 7)
    employees = create_employees(gen, period)
    snapshot = build_input(
        period, employees, absences=create_absences(employees, period, gen)
    )
    progress = MinimalProgress(cfg.TIME_LIMIT_SEC, cfg.LOG_SOLUTIONS_FREQUENCY_SECONDS)
    return run_solver(
        snapshot,
        config=cfg,
        backend=select_backend(cfg, progress_cb=progress),
        reporter=Reporter(cfg),
    )


if __name__ == "__main__":
    main()
