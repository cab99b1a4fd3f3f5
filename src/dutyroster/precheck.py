# dutyroster/precheck.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np

from dutyroster.config import Config
from dutyroster.input_data import InputSnapshot


@dataclass
class PrecheckResult:
    cap: int
    dem: int
    ok_cap: bool
    # service_type -> list of (date iso, demanded, available)
    shortfalls: Dict[str, List[Tuple[str, int, int]]] = field(default_factory=dict)
    # service_type -> {"required", "min_slack", "tight_days", "shortfall_days", "staff_count"}
    role_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def availability_matrix(snapshot: InputSnapshot) -> np.ndarray:
    """(employees, days) bool: the employee could take *some* duty that day.

    Only static blockers count (status, absences, banned dates/weekdays).
    """
    days = snapshot.period.days()
    absences = snapshot.absence_index()
    mat = np.zeros((len(snapshot.employees), len(days)), dtype=bool)
    for e, emp in enumerate(snapshot.employees):
        if not emp.active or not emp.takes_shifts or emp.fixed_only:
            continue
        absent = absences.get(emp.id, {})
        for d, day in enumerate(days):
            mat[e, d] = not (
                day in absent
                or day in emp.ban_dates
                or day.weekday() in emp.ban_weekdays
            )
    return mat


def role_matrix(snapshot: InputSnapshot, roles: List[str]) -> np.ndarray:
    """(employees, roles) bool: service types each employee may cover."""
    mat = np.zeros((len(snapshot.employees), len(roles)), dtype=bool)
    for e, emp in enumerate(snapshot.employees):
        for r, role in enumerate(roles):
            mat[e, r] = role in emp.can_role_ids
    return mat


def precheck_availability(
    cfg: Config,
    snapshot: InputSnapshot,
    *,
    verbose: bool = True,
    examples_per_role: int = 3,
    stream=None,
) -> PrecheckResult:
    """
    Cheap supply/demand check before solving.

    cap: upper bound on assignable duties, sum over employees of
         min(available days, period cap)
    dem: mandatory slots in the period
    Per service type, days where fewer employees could cover the role than
    slots demand are listed as shortfalls. Sequence rules are ignored, so a
    clean pre-check does not guarantee a full roster.
    """
    stream = stream or sys.stdout
    days = snapshot.period.days()
    day_index = {d: i for i, d in enumerate(days)}
    roles = sorted({s.service_type for s in snapshot.slots})

    avail = availability_matrix(snapshot)
    can = role_matrix(snapshot, roles)

    caps = np.array(
        [
            emp.max_slots
            if emp.max_slots is not None
            else (cfg.MAX_SLOTS_PER_PERIOD if cfg.MAX_SLOTS_PER_PERIOD is not None else len(days))
            for emp in snapshot.employees
        ],
        dtype=int,
    )
    cap = int(np.minimum(avail.sum(axis=1), caps).sum()) if len(caps) else 0
    dem = sum(1 for s in snapshot.slots if s.mandatory)

    demand = np.zeros((len(roles), len(days)), dtype=int)
    role_pos = {r: i for i, r in enumerate(roles)}
    for s in snapshot.slots:
        demand[role_pos[s.service_type], day_index[s.date]] += 1
    # supply[r, d] = employees available on d who may cover r
    supply = can.T.astype(int) @ avail.astype(int)

    result = PrecheckResult(cap=cap, dem=dem, ok_cap=cap >= dem)
    for r, role in enumerate(roles):
        slack = supply[r] - demand[r]
        demanded = demand[r] > 0
        short = np.where(demanded & (slack < 0))[0]
        result.shortfalls[role] = [
            (days[int(d)].isoformat(), int(demand[r, d]), int(supply[r, d]))
            for d in short
        ]
        result.role_stats[role] = {
            "required": int(demand[r].sum()),
            "min_slack": int(slack[demanded].min()) if demanded.any() else 0,
            "tight_days": int((demanded & (slack == 0)).sum()),
            "shortfall_days": int(len(short)),
            "staff_count": int(can[:, r].sum()),
        }

    if verbose:
        print_precheck_header(result, stream=stream)
        print_role_status(result, examples_per_role=examples_per_role, stream=stream)
    return result


def print_precheck_header(result: PrecheckResult, *, stream=sys.stdout) -> None:
    print("\nPre-check:\n", file=stream)
    mark = "✅" if result.ok_cap else "❌"
    verdict = "OK" if result.ok_cap else "NOT OK"
    print(
        f"{mark} Capacity = {result.cap:,} | mandatory slots = {result.dem:,} | {verdict}",
        file=stream,
    )
    print(
        "ℹ️  Pre-check only verifies raw availability per service type; sequence "
        "and cap rules can still leave slots open.",
        file=stream,
    )


def print_role_status(
    result: PrecheckResult, *, examples_per_role: int = 3, stream=sys.stdout
) -> None:
    for role in sorted(result.role_stats):
        st = result.role_stats[role]
        short = result.shortfalls.get(role, [])
        suffix = (
            f" | requires {st['required']:,} (min slack={st['min_slack']}; "
            f"tight days={st['tight_days']}) | staff for role: {st['staff_count']}"
        )
        if not short:
            print(f"✅ {role} — satisfied{suffix}", file=stream)
            continue
        sample = ", ".join(
            f"{d} (need {need}, have {have})" for d, need, have in short[:examples_per_role]
        )
        more = (
            f", +{len(short) - examples_per_role} more"
            if len(short) > examples_per_role
            else ""
        )
        print(
            f"❌ {role} — {len(short)} shortfall day(s) — e.g. {sample}{more}{suffix}",
            file=stream,
        )
