from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

ROLE_GROUPS: tuple[str, ...] = ("OA", "ASS", "TA", "PRIM", "OTHER")

# service types each role group may cover by default
GROUP_ROLE_MAP: dict[str, tuple[str, ...]] = {
    "PRIM": ("overduty",),
    "OA": ("gyn", "kreiszimmer", "overduty"),
    "ASS": ("turnus", "kreiszimmer", "overduty"),
    "TA": ("turnus", "overduty"),
    "OTHER": ("overduty",),
}


def to_date(val: Any) -> date:
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, str):
        return date.fromisoformat(val)
    raise TypeError(
        "Date entries must be datetime.date, datetime.datetime or ISO strings."
    )


def _normalize_date_set(values: Iterable[Any]) -> frozenset[date]:
    return frozenset(to_date(v) for v in values)


def _to_time(val: Any) -> time:
    if isinstance(val, time):
        return val
    if isinstance(val, str):
        return time.fromisoformat(val)
    raise TypeError("Slot times must be datetime.time or 'HH:MM' strings.")


@dataclass(frozen=True, slots=True)
class Employee:
    """
    An employee as seen by the planner for one period.

    Caps left as None fall back to the Config defaults. An empty
    ``can_role_ids`` is derived from the role group.
    """

    id: int
    name: str
    group: str = "OTHER"
    active: bool = True
    takes_shifts: bool = True
    fixed_only: bool = False
    max_slots: Optional[int] = None
    max_slots_per_week: Optional[int] = None
    max_weekend_slots: Optional[int] = None
    can_role_ids: frozenset[str] = frozenset()
    forbidden_areas: frozenset[str] = frozenset()
    primary_areas: frozenset[str] = frozenset()
    low_priority_areas: frozenset[str] = frozenset()
    skills: frozenset[str] = frozenset()
    ban_dates: frozenset[date] = frozenset()
    ban_weekdays: frozenset[int] = frozenset()  # 0 = Monday
    prefer_dates: frozenset[date] = frozenset()
    avoid_dates: frozenset[date] = frozenset()
    prefer_service_types: frozenset[str] = frozenset()
    avoid_service_types: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.group not in ROLE_GROUPS:
            raise ValueError(
                f"Employee {self.id}: group must be one of {ROLE_GROUPS}, got {self.group!r}"
            )
        for attr in ("max_slots", "max_slots_per_week", "max_weekend_slots"):
            val = getattr(self, attr)
            if val is not None and val < 0:
                raise ValueError(f"Employee {self.id}: {attr} must be >= 0")
        roles = frozenset(self.can_role_ids) or frozenset(GROUP_ROLE_MAP[self.group])
        object.__setattr__(self, "can_role_ids", roles)
        for attr in (
            "forbidden_areas",
            "primary_areas",
            "low_priority_areas",
            "skills",
            "prefer_service_types",
            "avoid_service_types",
        ):
            object.__setattr__(self, attr, frozenset(getattr(self, attr)))
        for attr in ("ban_dates", "prefer_dates", "avoid_dates"):
            object.__setattr__(self, attr, _normalize_date_set(getattr(self, attr)))
        weekdays = frozenset(int(w) for w in self.ban_weekdays)
        if any(not 0 <= w <= 6 for w in weekdays):
            raise ValueError(f"Employee {self.id}: ban_weekdays must be within [0, 6]")
        object.__setattr__(self, "ban_weekdays", weekdays)


@dataclass(frozen=True, slots=True)
class DutySlot:
    """One duty/role requirement for a single date."""

    id: str
    date: date
    service_type: str
    mandatory: bool = True
    area: Optional[str] = None
    blocks_publish: bool = False
    start_time: time = time(7, 30)
    end_time: time = time(15, 30)
    required_groups: frozenset[str] = frozenset()
    required_skills: frozenset[str] = frozenset()
    optional_skills: frozenset[str] = frozenset()
    priority: int = 0
    continuity: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "start_time", _to_time(self.start_time))
        object.__setattr__(self, "end_time", _to_time(self.end_time))
        for attr in ("required_groups", "required_skills", "optional_skills"):
            object.__setattr__(self, attr, frozenset(getattr(self, attr)))
        if self.blocks_publish and not self.mandatory:
            raise ValueError(f"Slot {self.id}: blocks_publish requires a mandatory slot")

    @property
    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5

    @property
    def iso_week(self) -> tuple[int, int]:
        iso = self.date.isocalendar()
        return (iso[0], iso[1])

    @property
    def is_overnight(self) -> bool:
        return self.end_time <= self.start_time

    def interval(self) -> tuple[datetime, datetime]:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        if end <= start:
            end += timedelta(days=1)
        return start, end


@dataclass(frozen=True, slots=True)
class Lock:
    """Admin override: pin ``slot_id`` to an employee, or to nobody (None)."""

    year: int
    month: int
    slot_id: str
    employee_id: Optional[int]
    updated_at: datetime = field(default_factory=lambda: datetime(1970, 1, 1))
    updated_by: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.employee_id is None


@dataclass(frozen=True, slots=True)
class Absence:
    """Absence of ``employee_id`` for the inclusive range ``start``..``end``."""

    employee_id: int
    start: date
    end: date
    long_term: bool = False
    reason: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", to_date(self.start))
        object.__setattr__(self, "end", to_date(self.end))
        if self.end < self.start:
            raise ValueError(
                f"Absence of employee {self.employee_id} ends before it starts"
            )

    def covers(self, day: date) -> bool:
        return self.start <= day <= self.end

    def dates(self) -> list[date]:
        n = (self.end - self.start).days
        return [self.start + timedelta(days=i) for i in range(n + 1)]
