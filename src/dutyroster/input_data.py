from __future__ import annotations

import calendar
import hashlib
import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.errors import ValidationError
from dutyroster.rules.registry import active_rule_codes
from dutyroster.staff import Absence, DutySlot, Employee, Lock, to_date


@dataclass(frozen=True, slots=True)
class Period:
    """One planning month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not isinstance(self.year, int) or not isinstance(self.month, int):
            raise ValidationError("Year and month must be integers.")
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month {self.month}; expected 1..12.")
        if not 1900 <= self.year <= 9999:
            raise ValidationError(f"Invalid year {self.year}.")

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def days(self) -> list[date]:
        n = (self.end - self.start).days + 1
        return [self.start + timedelta(days=i) for i in range(n)]

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}"


@dataclass(frozen=True, slots=True)
class InputSnapshot:
    """
    Normalized, read-only view of everything one solver pass consumes.

    employees:   sorted by id (the stable tie-break key)
    slots:       roster skeleton for the period (may be empty)
    locks:       slot_id -> Lock
    closures:    date -> areas closed that day
    enabled_rules: rule name -> enabled; missing names are enabled
    prior_*:     bounded lookback from the previous period
    """

    period: Period
    employees: tuple[Employee, ...]
    slots: tuple[DutySlot, ...]
    absences: tuple[Absence, ...] = ()
    locks: Mapping[str, Lock] = field(default_factory=dict)
    closures: Mapping[date, frozenset[str]] = field(default_factory=dict)
    enabled_rules: Mapping[str, bool] = field(default_factory=dict)
    prior_duty_dates: Mapping[int, frozenset[date]] = field(default_factory=dict)
    prior_overnight_dates: Mapping[int, frozenset[date]] = field(default_factory=dict)
    prior_area_holders: Mapping[str, int] = field(default_factory=dict)
    fixed_preferred_employees: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "employees", tuple(sorted(self.employees, key=lambda e: e.id))
        )
        object.__setattr__(self, "slots", tuple(self.slots))
        object.__setattr__(self, "absences", tuple(self.absences))
        object.__setattr__(self, "locks", MappingProxyType(dict(self.locks)))
        object.__setattr__(
            self,
            "closures",
            MappingProxyType(
                {to_date(d): frozenset(a) for d, a in self.closures.items()}
            ),
        )
        object.__setattr__(
            self, "enabled_rules", MappingProxyType(dict(self.enabled_rules))
        )
        object.__setattr__(
            self,
            "prior_duty_dates",
            MappingProxyType(
                {int(e): frozenset(map(to_date, ds)) for e, ds in self.prior_duty_dates.items()}
            ),
        )
        object.__setattr__(
            self,
            "prior_overnight_dates",
            MappingProxyType(
                {
                    int(e): frozenset(map(to_date, ds))
                    for e, ds in self.prior_overnight_dates.items()
                }
            ),
        )
        object.__setattr__(
            self, "prior_area_holders", MappingProxyType(dict(self.prior_area_holders))
        )
        object.__setattr__(
            self,
            "fixed_preferred_employees",
            tuple(int(e) for e in self.fixed_preferred_employees),
        )

    # ---------- lookups ----------

    def employee(self, employee_id: int) -> Optional[Employee]:
        for e in self.employees:
            if e.id == employee_id:
                return e
        return None

    def slot(self, slot_id: str) -> Optional[DutySlot]:
        for s in self.slots:
            if s.id == slot_id:
                return s
        return None

    def absence_index(self) -> dict[int, dict[date, bool]]:
        """employee_id -> {date: is_long_term}; long-term wins on overlap."""
        out: dict[int, dict[date, bool]] = {}
        for ab in self.absences:
            per_emp = out.setdefault(ab.employee_id, {})
            for d in ab.dates():
                if self.period.contains(d):
                    per_emp[d] = per_emp.get(d, False) or ab.long_term
        return out

    def locked_empty_slots(self) -> frozenset[str]:
        return frozenset(sid for sid, lk in self.locks.items() if lk.is_empty)

    # ---------- validation ----------

    def validate(self) -> None:
        seen: set[str] = set()
        for s in self.slots:
            if s.id in seen:
                raise ValidationError(f"Duplicate slot id {s.id!r}.")
            seen.add(s.id)
            if not self.period.contains(s.date):
                raise ValidationError(
                    f"Slot {s.id!r} ({s.date.isoformat()}) lies outside {self.period}."
                )
        emp_ids = [e.id for e in self.employees]
        if len(set(emp_ids)) != len(emp_ids):
            raise ValidationError("Duplicate employee ids in snapshot.")
        for slot_id, lock in self.locks.items():
            if slot_id != lock.slot_id:
                raise ValidationError(f"Lock key {slot_id!r} != lock.slot_id.")
            if slot_id not in seen:
                raise ValidationError(f"Lock references unknown slot {slot_id!r}.")

    # ---------- serialization ----------

    def to_payload(self, catalog: RuleCatalog = DEFAULT_CATALOG) -> dict[str, Any]:
        """Deterministic JSON-able view (used for the input hash and the input endpoint)."""
        hard, soft = active_rule_codes(catalog, self.enabled_rules)
        return {
            "version": "v1",
            "period": {
                "year": self.period.year,
                "month": self.period.month,
                "startDate": self.period.start.isoformat(),
                "endDate": self.period.end.isoformat(),
            },
            "roles": sorted({s.service_type for s in self.slots}),
            "slots": [_slot_payload(s) for s in self.slots],
            "employees": [_employee_payload(e) for e in self.employees],
            "absences": [
                {
                    "employeeId": a.employee_id,
                    "startDate": a.start.isoformat(),
                    "endDate": a.end.isoformat(),
                    "longTerm": a.long_term,
                }
                for a in self.absences
            ],
            "locks": [
                {"slotId": sid, "employeeId": self.locks[sid].employee_id}
                for sid in sorted(self.locks)
            ],
            "closures": {
                d.isoformat(): sorted(a) for d, a in sorted(self.closures.items())
            },
            "enabledRules": dict(sorted(self.enabled_rules.items())),
            "rules": {"hardRules": hard, "softRules": soft},
            "lookback": {
                "dutyDates": {
                    str(e): sorted(d.isoformat() for d in ds)
                    for e, ds in sorted(self.prior_duty_dates.items())
                },
                "overnightDates": {
                    str(e): sorted(d.isoformat() for d in ds)
                    for e, ds in sorted(self.prior_overnight_dates.items())
                },
                "areaHolders": dict(sorted(self.prior_area_holders.items())),
            },
            "fixedPreferredEmployees": list(self.fixed_preferred_employees),
        }

    def input_hash(self) -> str:
        raw = json.dumps(self.to_payload(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _sorted_str(values: Iterable[Any]) -> list[str]:
    return sorted(str(v) for v in values)


def _slot_payload(s: DutySlot) -> dict[str, Any]:
    return {
        "id": s.id,
        "date": s.date.isoformat(),
        "serviceType": s.service_type,
        "mandatory": s.mandatory,
        "area": s.area,
        "blocksPublish": s.blocks_publish,
        "startTime": s.start_time.strftime("%H:%M"),
        "endTime": s.end_time.strftime("%H:%M"),
        "isWeekend": s.is_weekend,
        "isoWeek": s.iso_week[1],
        "requiredGroups": _sorted_str(s.required_groups),
        "requiredSkills": _sorted_str(s.required_skills),
        "optionalSkills": _sorted_str(s.optional_skills),
        "priority": s.priority,
        "continuity": s.continuity,
    }


def _employee_payload(e: Employee) -> dict[str, Any]:
    return {
        "id": e.id,
        "name": e.name,
        "group": e.group,
        "active": e.active,
        "takesShifts": e.takes_shifts,
        "fixedOnly": e.fixed_only,
        "limits": {
            "maxSlotsInPeriod": e.max_slots,
            "maxSlotsPerIsoWeek": e.max_slots_per_week,
            "maxWeekendSlotsInPeriod": e.max_weekend_slots,
        },
        "canRoleIds": _sorted_str(e.can_role_ids),
        "skills": _sorted_str(e.skills),
        "areas": {
            "forbidden": _sorted_str(e.forbidden_areas),
            "primary": _sorted_str(e.primary_areas),
            "lowPriority": _sorted_str(e.low_priority_areas),
        },
        "hard": {
            "banDates": sorted(d.isoformat() for d in e.ban_dates),
            "banWeekdays": sorted(e.ban_weekdays),
        },
        "soft": {
            "preferDates": sorted(d.isoformat() for d in e.prefer_dates),
            "avoidDates": sorted(d.isoformat() for d in e.avoid_dates),
            "preferServiceTypes": _sorted_str(e.prefer_service_types),
            "avoidServiceTypes": _sorted_str(e.avoid_service_types),
        },
    }


def build_input(
    period: Period,
    employees: Sequence[Employee],
    slots: Sequence[DutySlot] | None = None,
    *,
    absences: Sequence[Absence] = (),
    locks: Iterable[Lock] = (),
    closures: Mapping[date, Iterable[str]] | None = None,
    enabled_rules: Mapping[str, bool] | None = None,
    prior_duty_dates: Mapping[int, Iterable[date]] | None = None,
    prior_overnight_dates: Mapping[int, Iterable[date]] | None = None,
    prior_area_holders: Mapping[str, int] | None = None,
    fixed_preferred_employees: Iterable[int] = (),
) -> InputSnapshot:
    """
    Build and validate an InputSnapshot.

    When ``slots`` is None the default roster skeleton for the period is
    generated; pass an empty sequence for "no skeleton".
    """
    if slots is None:
        from dutyroster.skeleton import build_skeleton

        slots = build_skeleton(period)

    snap = InputSnapshot(
        period=period,
        employees=tuple(employees),
        slots=tuple(slots),
        absences=tuple(absences),
        locks={lk.slot_id: lk for lk in locks},
        closures={d: frozenset(a) for d, a in (closures or {}).items()},
        enabled_rules=dict(enabled_rules or {}),
        prior_duty_dates={
            e: frozenset(ds) for e, ds in (prior_duty_dates or {}).items()
        },
        prior_overnight_dates={
            e: frozenset(ds) for e, ds in (prior_overnight_dates or {}).items()
        },
        prior_area_holders=dict(prior_area_holders or {}),
        fixed_preferred_employees=tuple(fixed_preferred_employees),
    )
    snap.validate()
    return snap
