# dutyroster/generate/staff.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from dutyroster.input_data import Period
from dutyroster.staff import ROLE_GROUPS, Absence, Employee, to_date

FIRST_NAMES: tuple[str, ...] = (
    "Anna", "Ben", "Clara", "David", "Elena", "Felix", "Greta", "Hannes",
    "Ines", "Jakob", "Katharina", "Lukas", "Maria", "Niklas", "Olivia", "Paul",
    "Quirin", "Rosa", "Stefan", "Theresa", "Ulrich", "Valentina", "Wolfgang",
    "Xenia", "Yusuf", "Zoe", "Amelie", "Bernhard", "Carina", "Dominik",
    "Eva", "Florian", "Gabriele", "Heinz", "Isabella", "Johannes", "Kerstin",
    "Leon", "Magdalena", "Noah",
)  # fmt: skip


# ----------------------------
# Configuration container
# ----------------------------
@dataclass(slots=True)
class StaffGenConfig:
    """
    Configuration for generation of synthetic employees.
    """

    n: int = 24

    # Role group distribution (must sum to 1.0)
    groups: Tuple[str, ...] = ("OA", "ASS", "TA", "PRIM")
    group_probs: Tuple[float, ...] = (0.40, 0.35, 0.20, 0.05)

    # Share of employees who do not take duties / only take fixed wishes
    no_duty_pct: float = 0.05
    fixed_only_pct: float = 0.0

    # Per-person, per-weekday probability of a banned weekday
    ban_weekday_rate: float = 0.05
    # Per-person, per-day probabilities for wishes
    prefer_rate: float = 0.05
    avoid_rate: float = 0.05

    # Per-person probability of one absence block and its length range (days)
    absence_pct: float = 0.30
    absence_days: Tuple[int, int] = (3, 10)

    seed: Optional[int] = 7

    def validate(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be > 0.")
        if len(self.groups) != len(self.group_probs):
            raise ValueError("groups and group_probs must be same length.")
        if not set(self.groups) <= set(ROLE_GROUPS):
            raise ValueError(f"groups must be drawn from {ROLE_GROUPS}.")
        if not np.isclose(sum(self.group_probs), 1.0, atol=1e-9):
            raise ValueError("group_probs must sum to 1.0")
        for name in (
            "no_duty_pct",
            "fixed_only_pct",
            "ban_weekday_rate",
            "prefer_rate",
            "avoid_rate",
            "absence_pct",
        ):
            x = getattr(self, name)
            if not (0.0 <= x <= 1.0):
                raise ValueError(f"{name} must be in [0,1].")
        lo, hi = self.absence_days
        if lo <= 0 or hi < lo:
            raise ValueError("absence_days must be a positive (min, max) range.")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError("seed must be an int or None.")


# ----------------------------
# Generation helpers
# ----------------------------
def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed) if seed is not None else np.random.default_rng()


def _deterministic_counts(n: int, probs: np.ndarray) -> np.ndarray:
    """
    Turn probabilities into integer counts that sum to n with minimal rounding error.
    """
    expected = probs * n
    floors = np.floor(expected).astype(int)
    shortfall = n - floors.sum()
    if shortfall > 0:
        remainders = expected - floors
        bump_idx = np.argsort(remainders)[::-1][:shortfall]
        floors[bump_idx] += 1
    return floors


def _name(i: int) -> str:
    base = FIRST_NAMES[i % len(FIRST_NAMES)]
    return base if i < len(FIRST_NAMES) else f"{base} {i // len(FIRST_NAMES) + 1}"


# ----------------------------
# Core API
# ----------------------------
def create_employees(cfg: StaffGenConfig, period: Period | None = None) -> list[Employee]:
    """
    Draw ``cfg.n`` employees. Group sizes follow ``group_probs`` exactly (up to
    rounding); wishes are drawn for ``period`` when given.
    """
    cfg.validate()
    g = _rng(cfg.seed)

    probs = np.array(cfg.group_probs, dtype=float)
    counts = _deterministic_counts(cfg.n, probs)
    group_values = np.concatenate(
        [np.full(count, i, dtype=int) for i, count in enumerate(counts)]
    )
    g.shuffle(group_values)

    no_duty = g.random(cfg.n) < cfg.no_duty_pct
    fixed_only = g.random(cfg.n) < cfg.fixed_only_pct
    days = period.days() if period is not None else []

    employees: list[Employee] = []
    for i in range(cfg.n):
        banned = {int(w) for w in np.where(g.random(7) < cfg.ban_weekday_rate)[0]}
        prefer: set[date] = set()
        avoid: set[date] = set()
        if days:
            prefer = {days[int(d)] for d in np.where(g.random(len(days)) < cfg.prefer_rate)[0]}
            avoid = {
                days[int(d)] for d in np.where(g.random(len(days)) < cfg.avoid_rate)[0]
            } - prefer
        employees.append(
            Employee(
                id=i + 1,
                name=_name(i),
                group=cfg.groups[int(group_values[i])],
                takes_shifts=not bool(no_duty[i]),
                fixed_only=bool(fixed_only[i]),
                ban_weekdays=frozenset(banned),
                prefer_dates=frozenset(prefer),
                avoid_dates=frozenset(avoid),
            )
        )
    return employees


def create_absences(
    employees: Sequence[Employee],
    period: Period,
    cfg: StaffGenConfig,
) -> list[Absence]:
    """At most one absence block per employee, placed uniformly inside the period."""
    cfg.validate()
    g = _rng(None if cfg.seed is None else cfg.seed + 1)
    lo, hi = cfg.absence_days
    n_days = len(period.days())
    out: list[Absence] = []
    for emp in employees:
        if g.random() >= cfg.absence_pct:
            continue
        length = int(g.integers(lo, hi + 1))
        start = period.start + timedelta(days=int(g.integers(0, n_days)))
        out.append(
            Absence(
                employee_id=emp.id,
                start=start,
                end=start + timedelta(days=length - 1),
                long_term=length >= 14,
                reason="synthetic",
            )
        )
    return out


# ----------------------------
# Convenience utilities
# ----------------------------
def employees_summary(employees: Sequence[Employee]) -> dict:
    from collections import Counter

    n = len(employees)
    return {
        "N": n,
        "groups": Counter(e.group for e in employees),
        "duty_pct": sum(e.takes_shifts for e in employees) / n if n else 0.0,
        "fixed_only_pct": sum(e.fixed_only for e in employees) / n if n else 0.0,
        "with_wishes_pct": (
            sum(bool(e.prefer_dates or e.avoid_dates) for e in employees) / n
            if n
            else 0.0
        ),
    }


def employees_to_dataframe(employees: Sequence[Employee]) -> pd.DataFrame:
    rows = []
    for e in employees:
        rows.append(
            {
                "id": e.id,
                "name": e.name,
                "group": e.group,
                "takes_shifts": e.takes_shifts,
                "fixed_only": e.fixed_only,
                "max_slots": e.max_slots if e.max_slots is not None else np.nan,
                "can_role_ids": sorted(e.can_role_ids),
                "ban_weekdays": sorted(e.ban_weekdays),
                "prefer_dates": sorted(d.isoformat() for d in e.prefer_dates),
                "avoid_dates": sorted(d.isoformat() for d in e.avoid_dates),
            }
        )
    return pd.DataFrame(rows)


def employees_from_json(path: str | Path) -> list[Employee]:
    """
    Load employees from a JSON file.

    The file may contain either a list of employee objects or an object with a
    top-level ``employees``/``staff`` array. Keys use the Employee field names.
    """
    file_path = Path(path).expanduser()
    if file_path.suffix.lower() != ".json":
        raise ValueError("employees_from_json expects a path to a .json file.")
    if not file_path.exists():
        raise FileNotFoundError(f"Employee JSON file not found: {file_path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {file_path}") from exc

    if isinstance(data, Mapping):
        entries = data.get("employees") or data.get("staff")
        if entries is None:
            raise ValueError(
                "JSON file must contain a list or an 'employees'/'staff' key."
            )
    elif isinstance(data, list):
        entries = data
    else:
        raise TypeError("JSON file must contain a list of employee objects.")

    return [employee_from_mapping(raw) for raw in entries]


def employee_from_mapping(raw: Any) -> Employee:
    if not isinstance(raw, Mapping):
        raise TypeError("Each employee entry must be an object/dict.")

    def _strs(value: Any) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset({value})
        return frozenset(str(v) for v in value)

    def _dates(value: Any) -> frozenset[date]:
        try:
            return frozenset(to_date(v) for v in (value or ()))
        except ValueError as exc:
            raise ValueError(f"Invalid date in employee {raw.get('id')!r}") from exc

    def _opt_int(key: str) -> Optional[int]:
        value = raw.get(key)
        return None if value in (None, "", "null") else _to_int(value, key)

    return Employee(
        id=_to_int(raw.get("id"), "id"),
        name=str(raw.get("name", "")),
        group=str(raw.get("group", "OTHER")),
        active=bool(raw.get("active", True)),
        takes_shifts=bool(raw.get("takes_shifts", True)),
        fixed_only=bool(raw.get("fixed_only", False)),
        max_slots=_opt_int("max_slots"),
        max_slots_per_week=_opt_int("max_slots_per_week"),
        max_weekend_slots=_opt_int("max_weekend_slots"),
        can_role_ids=_strs(raw.get("can_role_ids")),
        forbidden_areas=_strs(raw.get("forbidden_areas")),
        primary_areas=_strs(raw.get("primary_areas")),
        low_priority_areas=_strs(raw.get("low_priority_areas")),
        skills=_strs(raw.get("skills")),
        ban_dates=_dates(raw.get("ban_dates")),
        ban_weekdays=frozenset(int(w) for w in raw.get("ban_weekdays", ()) or ()),
        prefer_dates=_dates(raw.get("prefer_dates")),
        avoid_dates=_dates(raw.get("avoid_dates")),
        prefer_service_types=_strs(raw.get("prefer_service_types")),
        avoid_service_types=_strs(raw.get("avoid_service_types")),
    )


def _to_int(value: Any, field: str) -> int:
    if value is None:
        raise ValueError(f"Employee entry missing '{field}'.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid integer for '{field}': {value!r}") from exc
