"""pandas views of a RunResult."""

from __future__ import annotations

import pandas as pd

from dutyroster.input_data import InputSnapshot
from dutyroster.result_types import RunResult

ASSIGNMENT_COLUMNS = [
    "date",
    "slot_id",
    "service_type",
    "employee_id",
    "name",
    "group",
    "source",
]
VIOLATION_COLUMNS = ["code", "severity", "slot_id", "employee_id", "message"]
UNFILLED_COLUMNS = [
    "date",
    "slot_id",
    "service_type",
    "mandatory",
    "blocks_publish",
    "reason_codes",
    "candidates_blocked_by",
]
EMPLOYEE_COLUMNS = [
    "employee_id",
    "name",
    "group",
    "slots",
    "weekend_slots",
    "hard_violations",
    "soft_violations",
]


def assignments_frame(result: RunResult, snapshot: InputSnapshot) -> pd.DataFrame:
    names = {e.id: e for e in snapshot.employees}
    rows = []
    for a in result.assignments:
        emp = names.get(a.employee_id)
        rows.append(
            {
                "date": a.date.isoformat(),
                "slot_id": a.slot_id,
                "service_type": a.service_type,
                "employee_id": a.employee_id,
                "name": emp.name if emp else "",
                "group": emp.group if emp else "",
                "source": a.source,
            }
        )
    if not rows:
        return pd.DataFrame(columns=ASSIGNMENT_COLUMNS)
    return pd.DataFrame(rows).sort_values(["date", "slot_id"]).reset_index(drop=True)


def violations_frame(result: RunResult) -> pd.DataFrame:
    rows = [
        {
            "code": v.code,
            "severity": v.severity,
            "slot_id": v.slot_id,
            "employee_id": v.employee_id,
            "message": v.message,
        }
        for v in result.violations
    ]
    if not rows:
        return pd.DataFrame(columns=VIOLATION_COLUMNS)
    return pd.DataFrame(rows)


def unfilled_frame(result: RunResult) -> pd.DataFrame:
    rows = [
        {
            "date": u.date.isoformat(),
            "slot_id": u.slot_id,
            "service_type": u.service_type,
            "mandatory": u.mandatory,
            "blocks_publish": u.blocks_publish,
            "reason_codes": ",".join(u.reason_codes),
            "candidates_blocked_by": ",".join(u.candidates_blocked_by),
        }
        for u in result.unfilled_slots
    ]
    if not rows:
        return pd.DataFrame(columns=UNFILLED_COLUMNS)
    return pd.DataFrame(rows)


def employee_totals(result: RunResult, snapshot: InputSnapshot) -> pd.DataFrame:
    """One row per employee in the snapshot, including those without duties."""
    df_assign = assignments_frame(result, snapshot)
    df_viol = violations_frame(result)
    base = pd.DataFrame(
        [{"employee_id": e.id, "name": e.name, "group": e.group} for e in snapshot.employees],
        columns=["employee_id", "name", "group"],
    )
    if base.empty:
        return pd.DataFrame(columns=EMPLOYEE_COLUMNS)

    if df_assign.empty:
        slots = pd.Series(dtype=int)
        weekend = pd.Series(dtype=int)
    else:
        is_weekend = pd.to_datetime(df_assign["date"]).dt.dayofweek >= 5
        slots = df_assign.groupby("employee_id").size()
        weekend = df_assign[is_weekend].groupby("employee_id").size()

    with_emp = df_viol.dropna(subset=["employee_id"]) if not df_viol.empty else df_viol
    if with_emp.empty:
        hard = pd.Series(dtype=int)
        soft = pd.Series(dtype=int)
    else:
        with_emp = with_emp.assign(employee_id=with_emp["employee_id"].astype(int))
        hard = with_emp[with_emp["severity"] == "hard"].groupby("employee_id").size()
        soft = with_emp[with_emp["severity"] == "soft"].groupby("employee_id").size()

    out = base.set_index("employee_id")
    out["slots"] = slots.reindex(out.index, fill_value=0).astype(int)
    out["weekend_slots"] = weekend.reindex(out.index, fill_value=0).astype(int)
    out["hard_violations"] = hard.reindex(out.index, fill_value=0).astype(int)
    out["soft_violations"] = soft.reindex(out.index, fill_value=0).astype(int)
    return out.reset_index()[EMPLOYEE_COLUMNS]
