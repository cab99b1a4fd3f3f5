"""
Boundary operations of the planner.

``PlanningService`` is what the HTTP layer (and scripts) call: input summary,
planning state, lock management, wish submission, preview and commit.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Sequence, Type

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.config import Config, cfg as default_cfg
from dutyroster.errors import ConcurrencyError, ValidationError
from dutyroster.input_data import InputSnapshot, Period
from dutyroster.main import run_solver, select_backend
from dutyroster.policy import load_enabled_rules
from dutyroster.result_types import RunResult
from dutyroster.rules.base import Rule, RuleSpec
from dutyroster.rules.registry import active_rule_codes
from dutyroster.store import PlanningStore, StoredRun
from dutyroster.tracker import PlanningState, compute_state
from dutyroster.staff import Lock

logger = logging.getLogger(__name__)


class PlanningService:
    def __init__(
        self,
        store: PlanningStore,
        cfg: Config | None = None,
        catalog: RuleCatalog = DEFAULT_CATALOG,
        rules: Sequence[RuleSpec | Type[Rule]] | None = None,
    ) -> None:
        self.store = store
        self.cfg = cfg or default_cfg
        self.cfg.validate()
        self.catalog = catalog
        self._rules = rules

    @staticmethod
    def period(year: int, month: int) -> Period:
        return Period(int(year), int(month))

    # ---------- input ----------

    def input_snapshot(self, year: int, month: int) -> InputSnapshot:
        snap, _, _ = self.store.snapshot(self.period(year, month))
        return snap

    def input_payload(self, year: int, month: int) -> dict[str, Any]:
        return self.input_snapshot(year, month).to_payload(self.catalog)

    def input_summary(self, year: int, month: int) -> dict[str, Any]:
        snap = self.input_snapshot(year, month)
        hard, soft = active_rule_codes(self.catalog, snap.enabled_rules)
        return {
            "year": year,
            "month": month,
            "employees": len(snap.employees),
            "shiftEmployees": sum(
                1 for e in snap.employees if e.active and e.takes_shifts
            ),
            "slots": len(snap.slots),
            "mandatorySlots": sum(1 for s in snap.slots if s.mandatory),
            "roles": len({s.service_type for s in snap.slots}),
            "locks": len(snap.locks),
            "absences": len(snap.absence_index()),
            "hardRules": len(hard),
            "softRules": len(soft),
            "inputHash": snap.input_hash(),
            "catalogVersion": self.catalog.version,
        }

    def load_policy(
        self, year: int, month: int, path: str | Path | None
    ) -> dict[str, bool]:
        """Apply a YAML rule policy to the period; ``None`` switches every rule back on."""
        period = self.period(year, month)
        enabled = load_enabled_rules(path)
        self.store.set_enabled_rules(period, enabled)
        disabled = sorted(name for name, on in enabled.items() if not on)
        logger.info("%s: rule policy applied, disabled=%s", period, disabled or "none")
        return enabled

    # ---------- state ----------

    def get_state(self, year: int, month: int) -> PlanningState:
        period = self.period(year, month)
        with self.store.period_lock(period):
            latest = self.store.latest_run(period)
            expected = sum(
                1 for e in self.store.employees() if e.active and e.takes_shifts
            )
            return compute_state(
                year,
                month,
                last_run_at=latest.created_at if latest else None,
                last_run_revision=latest.revision if latest else None,
                revision=self.store.revision(period),
                submitted_count=len(self.store.submitted(period)),
                expected_count=expected,
            )

    def latest_run(self, year: int, month: int) -> Optional[StoredRun]:
        return self.store.latest_run(self.period(year, month))

    # ---------- locks ----------

    def list_locks(self, year: int, month: int) -> list[Lock]:
        return self.store.locks(self.period(year, month))

    def get_lock(self, year: int, month: int, slot_id: str) -> Optional[Lock]:
        return self.store.get_lock(self.period(year, month), slot_id)

    def upsert_lock(
        self,
        year: int,
        month: int,
        slot_id: str,
        employee_id: Optional[int],
        updated_by: Optional[int] = None,
    ) -> Lock:
        """Pin a slot to an employee, or to nobody with ``employee_id=None``.

        Unknown slots are rejected; the employee is only checked by the solver,
        which reports an invalid lock target as LOCKED_INVALID_EMPLOYEE.
        """
        period = self.period(year, month)
        if not any(s.id == slot_id for s in self.store.slots(period)):
            raise ValidationError(f"Unknown slot {slot_id!r} for {period}.")
        lock = self.store.upsert_lock(period, slot_id, employee_id, updated_by)
        logger.info("lock %s/%s set to %s", period, slot_id, employee_id)
        return lock

    def delete_lock(self, year: int, month: int, slot_id: str) -> bool:
        return self.store.delete_lock(self.period(year, month), slot_id)

    def submit_wishes(self, year: int, month: int, employee_id: int) -> PlanningState:
        period = self.period(year, month)
        known = {e.id for e in self.store.employees()}
        if employee_id not in known:
            raise ValidationError(f"Unknown employee {employee_id}.")
        self.store.submit_wishes(period, employee_id)
        return self.get_state(year, month)

    # ---------- planning ----------

    def preview(
        self, year: int, month: int, cancel_event: threading.Event | None = None
    ) -> RunResult:
        """Plan without persisting anything."""
        snap = self.input_snapshot(year, month)
        return self._solve(snap, "preview", cancel_event)

    def run(self, year: int, month: int, retries: int | None = None) -> RunResult:
        """
        Plan and persist. The lock version is captured with the snapshot and
        compared on commit; a changed lock set triggers a fresh attempt, up to
        ``retries`` extra times, then ``ConcurrencyError`` propagates.
        """
        period = self.period(year, month)
        attempts = 1 + (self.cfg.COMMIT_RETRIES if retries is None else retries)
        last_error: ConcurrencyError | None = None
        for attempt in range(attempts):
            snap, lock_version, revision = self.store.snapshot(period)
            result = self._solve(snap, "commit", None)
            try:
                self.store.commit_run(period, result, lock_version, revision)
            except ConcurrencyError as exc:
                logger.warning(
                    "commit for %s lost a race (attempt %d/%d): %s",
                    period,
                    attempt + 1,
                    attempts,
                    exc,
                )
                last_error = exc
                continue
            return result
        assert last_error is not None
        raise last_error

    def _solve(
        self,
        snap: InputSnapshot,
        kind: str,
        cancel_event: threading.Event | None,
    ) -> RunResult:
        backend = select_backend(self.cfg, self.catalog, self._rules)
        result = run_solver(
            snap,
            config=self.cfg,
            backend=backend,
            catalog=self.catalog,
            planning_kind=kind,  # type: ignore[arg-type]
            cancel_event=cancel_event,
            validate_config=False,
        )
        logger.info(
            "%s for %s: score=%.4f publish=%s engine=%s",
            kind,
            snap.period,
            result.summary.score,
            result.publish_allowed,
            result.engine,
        )
        return result
