"""
Solver-owned running state.

The accumulator is the only thing that changes during a solver pass. Rules read
it through the query methods and never write to it; the solver calls
``record()`` once per assignment.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from dutyroster.errors import SolverInternalError
from dutyroster.staff import DutySlot


@dataclass(slots=True)
class EmployeeLedger:
    count: int = 0
    per_week: Counter = field(default_factory=Counter)
    weekend: int = 0
    dates: set[date] = field(default_factory=set)
    overnight_dates: set[date] = field(default_factory=set)
    intervals: list[tuple[datetime, datetime]] = field(default_factory=list)
    last_date: Optional[date] = None
    last_area: Optional[str] = None

    def counters(self) -> tuple:
        return (
            self.count,
            tuple(sorted(self.per_week.items())),
            self.weekend,
            tuple(sorted(self.dates)),
            self.last_date,
            self.last_area,
        )


class RunningState:
    """Per-employee counters for one solver pass, plus bounded lookback.

    ``prior_duty_dates`` / ``prior_overnight_dates`` carry duties from before the
    period (e.g. "assigned yesterday"); they feed the sequence rules but never the
    period caps. ``prior_area_holders`` seeds continuity.
    """

    __slots__ = ("_ledgers", "_area_holders", "_prior_dates", "_prior_overnight")

    def __init__(
        self,
        prior_duty_dates: Mapping[int, Iterable[date]] | None = None,
        prior_overnight_dates: Mapping[int, Iterable[date]] | None = None,
        prior_area_holders: Mapping[str, int] | None = None,
    ) -> None:
        self._ledgers: dict[int, EmployeeLedger] = {}
        self._area_holders: dict[str, int] = dict(prior_area_holders or {})
        self._prior_dates: dict[int, frozenset[date]] = {
            e: frozenset(ds) for e, ds in (prior_duty_dates or {}).items()
        }
        self._prior_overnight: dict[int, frozenset[date]] = {
            e: frozenset(ds) for e, ds in (prior_overnight_dates or {}).items()
        }

    # ---------- mutation (solver only) ----------

    def record(self, employee_id: int, slot: DutySlot) -> None:
        led = self._ledgers.setdefault(employee_id, EmployeeLedger())
        led.count += 1
        led.per_week[slot.iso_week] += 1
        if slot.is_weekend:
            led.weekend += 1
        led.dates.add(slot.date)
        if slot.is_overnight:
            led.overnight_dates.add(slot.date)
        led.intervals.append(slot.interval())
        if led.last_date is None or slot.date >= led.last_date:
            led.last_date = slot.date
            led.last_area = slot.area
        if slot.area is not None:
            self._area_holders[slot.area] = employee_id

    # ---------- queries ----------

    def _ledger(self, employee_id: int) -> EmployeeLedger:
        return self._ledgers.get(employee_id) or EmployeeLedger()

    def assigned_count(self, employee_id: int) -> int:
        return self._ledger(employee_id).count

    def week_count(self, employee_id: int, iso_week: tuple[int, int]) -> int:
        return self._ledger(employee_id).per_week.get(iso_week, 0)

    def weekend_count(self, employee_id: int) -> int:
        return self._ledger(employee_id).weekend

    def has_duty_on(self, employee_id: int, day: date) -> bool:
        return day in self._ledger(employee_id).dates or day in self._prior_dates.get(
            employee_id, frozenset()
        )

    def had_overnight_on(self, employee_id: int, day: date) -> bool:
        return day in self._ledger(
            employee_id
        ).overnight_dates or day in self._prior_overnight.get(employee_id, frozenset())

    def overlaps(self, employee_id: int, interval: tuple[datetime, datetime]) -> bool:
        start, end = interval
        return any(s < end and start < e for s, e in self._ledger(employee_id).intervals)

    def last_holder(self, area: str) -> Optional[int]:
        return self._area_holders.get(area)

    def last_assigned_date(self, employee_id: int) -> Optional[date]:
        return self._ledger(employee_id).last_date

    def last_assigned_area(self, employee_id: int) -> Optional[str]:
        return self._ledger(employee_id).last_area

    # ---------- consistency ----------

    def counters(self) -> dict[int, tuple]:
        return {
            e: led.counters() for e, led in sorted(self._ledgers.items()) if led.count
        }

    @classmethod
    def from_assignments(
        cls, assignments: Iterable[tuple[int, DutySlot]]
    ) -> "RunningState":
        """Rebuild counters from a final assignment list (in processing order)."""
        state = cls()
        for employee_id, slot in assignments:
            state.record(employee_id, slot)
        return state

    def verify_against(self, assignments: Iterable[tuple[int, DutySlot]]) -> None:
        """Raise if the running counters drifted from the final assignment set."""
        expected = RunningState.from_assignments(assignments).counters()
        actual = self.counters()
        if expected != actual:
            drifted = sorted(
                e for e in set(expected) | set(actual) if expected.get(e) != actual.get(e)
            )
            raise SolverInternalError(
                f"Running counters drifted from assignments for employees {drifted}"
            )
