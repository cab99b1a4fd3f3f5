"""
In-memory planning store.

Holds the per-period inputs the planner reads (employees, skeleton, absences,
closures, locks, wish submissions) and the committed runs. Every period is
guarded by a re-entrant lock; lock mutations bump ``lock_version`` which a
commit compares before persisting.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Sequence

from dutyroster.errors import ConcurrencyError, ValidationError
from dutyroster.input_data import InputSnapshot, Period, build_input
from dutyroster.result_types import RunResult
from dutyroster.skeleton import build_skeleton
from dutyroster.staff import Absence, DutySlot, Employee, Lock

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StoredRun:
    run_id: int
    year: int
    month: int
    created_at: datetime
    lock_version: int
    revision: int
    result: RunResult

    @property
    def input_hash(self) -> str:
        return self.result.input_hash


@dataclass
class _PeriodData:
    slots: Optional[list[DutySlot]] = None
    locks: dict[str, Lock] = field(default_factory=dict)
    closures: dict[date, frozenset[str]] = field(default_factory=dict)
    enabled_rules: dict[str, bool] = field(default_factory=dict)
    submissions: set[int] = field(default_factory=set)
    lock_version: int = 0
    revision: int = 0
    runs: list[StoredRun] = field(default_factory=list)
    assignments: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )


class PlanningStore:
    def __init__(
        self,
        employees: Iterable[Employee] = (),
        absences: Iterable[Absence] = (),
        clock: Clock | None = None,
    ) -> None:
        self._clock = clock or _utcnow
        self._guard = threading.RLock()
        self._period_locks: dict[Period, threading.RLock] = defaultdict(threading.RLock)
        self._periods: dict[Period, _PeriodData] = defaultdict(_PeriodData)
        self._employees: dict[int, Employee] = {e.id: e for e in employees}
        self._absences: list[Absence] = list(absences)
        self._run_seq = 0

    def period_lock(self, period: Period) -> threading.RLock:
        with self._guard:
            return self._period_locks[period]

    def _data(self, period: Period) -> _PeriodData:
        with self._guard:
            return self._periods[period]

    def _touch_all(self) -> None:
        with self._guard:
            for data in self._periods.values():
                data.revision += 1

    # ---------- master data ----------

    def employees(self) -> list[Employee]:
        with self._guard:
            return sorted(self._employees.values(), key=lambda e: e.id)

    def upsert_employee(self, employee: Employee) -> None:
        with self._guard:
            self._employees[employee.id] = employee
            self._touch_all()

    def absences(self) -> list[Absence]:
        with self._guard:
            return list(self._absences)

    def add_absence(self, absence: Absence) -> None:
        with self._guard:
            self._absences.append(absence)
            self._touch_all()

    def set_slots(self, period: Period, slots: Optional[Sequence[DutySlot]]) -> None:
        """Replace the period's skeleton; ``None`` falls back to the generated one."""
        with self.period_lock(period):
            data = self._data(period)
            data.slots = list(slots) if slots is not None else None
            data.revision += 1

    def slots(self, period: Period) -> list[DutySlot]:
        with self.period_lock(period):
            data = self._data(period)
            if data.slots is None:
                return build_skeleton(period)
            return list(data.slots)

    def set_closures(self, period: Period, closures: Mapping[date, Iterable[str]]) -> None:
        with self.period_lock(period):
            data = self._data(period)
            data.closures = {d: frozenset(a) for d, a in closures.items()}
            data.revision += 1

    def set_enabled_rules(self, period: Period, enabled: Mapping[str, bool]) -> None:
        with self.period_lock(period):
            data = self._data(period)
            data.enabled_rules = dict(enabled)
            data.revision += 1

    # ---------- locks ----------

    def locks(self, period: Period) -> list[Lock]:
        with self.period_lock(period):
            data = self._data(period)
            return [data.locks[k] for k in sorted(data.locks)]

    def get_lock(self, period: Period, slot_id: str) -> Optional[Lock]:
        with self.period_lock(period):
            return self._data(period).locks.get(slot_id)

    def upsert_lock(
        self,
        period: Period,
        slot_id: str,
        employee_id: Optional[int],
        updated_by: Optional[int] = None,
    ) -> Lock:
        with self.period_lock(period):
            lock = Lock(
                year=period.year,
                month=period.month,
                slot_id=slot_id,
                employee_id=employee_id,
                updated_at=self._clock(),
                updated_by=updated_by,
            )
            data = self._data(period)
            data.locks[slot_id] = lock
            data.lock_version += 1
            data.revision += 1
            logger.debug("lock %s/%s -> %s (v%d)", period, slot_id, employee_id, data.lock_version)
            return lock

    def delete_lock(self, period: Period, slot_id: str) -> bool:
        with self.period_lock(period):
            data = self._data(period)
            if data.locks.pop(slot_id, None) is None:
                return False
            data.lock_version += 1
            data.revision += 1
            return True

    def lock_version(self, period: Period) -> int:
        with self.period_lock(period):
            return self._data(period).lock_version

    def revision(self, period: Period) -> int:
        with self.period_lock(period):
            return self._data(period).revision

    # ---------- wishes ----------

    def submit_wishes(self, period: Period, employee_id: int) -> None:
        with self.period_lock(period):
            data = self._data(period)
            data.submissions.add(int(employee_id))
            data.revision += 1

    def submitted(self, period: Period) -> frozenset[int]:
        with self.period_lock(period):
            return frozenset(self._data(period).submissions)

    # ---------- snapshot ----------

    def snapshot(self, period: Period) -> tuple[InputSnapshot, int, int]:
        """Consistent snapshot plus the (lock_version, revision) it was read at."""
        with self.period_lock(period):
            data = self._data(period)
            prior = self._lookback(period)
            slots = self.slots(period)
            known = {s.id for s in slots}
            locks = []
            for slot_id, lock in sorted(data.locks.items()):
                if slot_id in known:
                    locks.append(lock)
                else:
                    logger.warning(
                        "%s: ignoring lock on %s, slot is not in the skeleton",
                        period,
                        slot_id,
                    )
            snap = build_input(
                period,
                self.employees(),
                slots,
                absences=self.absences(),
                locks=locks,
                closures=data.closures,
                enabled_rules=data.enabled_rules,
                **prior,
            )
            return snap, data.lock_version, data.revision

    def _lookback(self, period: Period) -> dict:
        """Duties on the last day of the previous committed period, and its area holders."""
        prev = (
            Period(period.year - 1, 12)
            if period.month == 1
            else Period(period.year, period.month - 1)
        )
        with self._guard:
            data = self._periods.get(prev)
        if data is None or not data.runs:
            return {}
        result = data.runs[-1].result
        last_day = prev.end
        duty: dict[int, set[date]] = defaultdict(set)
        overnight: dict[int, set[date]] = defaultdict(set)
        holders: dict[str, int] = {}
        slots = {s.id: s for s in self.slots(prev)}
        for a in result.assignments:
            slot = slots.get(a.slot_id)
            if slot is None:
                continue
            if slot.date == last_day:
                duty[a.employee_id].add(slot.date)
                if slot.is_overnight:
                    overnight[a.employee_id].add(slot.date)
            if slot.area is not None:
                holders[slot.area] = a.employee_id
        return {
            "prior_duty_dates": dict(duty),
            "prior_overnight_dates": dict(overnight),
            "prior_area_holders": holders,
        }

    # ---------- runs ----------

    def commit_run(
        self,
        period: Period,
        result: RunResult,
        expected_lock_version: int,
        revision: int,
    ) -> StoredRun:
        """Persist ``result`` atomically; refuse when locks moved since the snapshot."""
        if result.planning_kind != "commit":
            raise ValidationError("Only commit runs can be persisted.")
        with self.period_lock(period):
            data = self._data(period)
            if data.lock_version != expected_lock_version:
                raise ConcurrencyError(
                    period.year, period.month, expected_lock_version, data.lock_version
                )
            with self._guard:
                self._run_seq += 1
                run_id = self._run_seq
            stored = StoredRun(
                run_id=run_id,
                year=period.year,
                month=period.month,
                created_at=self._clock(),
                lock_version=expected_lock_version,
                revision=revision,
                result=result,
            )
            data.runs.append(stored)
            data.assignments = MappingProxyType(result.assignment_map())
            logger.info(
                "committed run %d for %s (%d assignments)",
                run_id,
                period,
                len(data.assignments),
            )
            return stored

    def latest_run(self, period: Period) -> Optional[StoredRun]:
        with self.period_lock(period):
            runs = self._data(period).runs
            return runs[-1] if runs else None

    def runs(self, period: Period) -> list[StoredRun]:
        with self.period_lock(period):
            return list(self._data(period).runs)

    def assignments(self, period: Period) -> Mapping[str, int]:
        with self.period_lock(period):
            return self._data(period).assignments
