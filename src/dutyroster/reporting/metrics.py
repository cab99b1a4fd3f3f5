from __future__ import annotations

import pandas as pd

from dutyroster.catalog import RuleCatalog
from dutyroster.input_data import InputSnapshot
from dutyroster.result_types import RunResult


def coverage_by_day(result: RunResult, snapshot: InputSnapshot) -> pd.DataFrame:
    """Per date: mandatory/optional slots demanded and filled."""
    assigned = {a.slot_id for a in result.assignments}
    rows = []
    for day in snapshot.period.days():
        todays = [s for s in snapshot.slots if s.date == day]
        mand = [s for s in todays if s.mandatory]
        opt = [s for s in todays if not s.mandatory]
        rows.append(
            {
                "date": day.isoformat(),
                "mandatory_required": len(mand),
                "mandatory_filled": sum(1 for s in mand if s.id in assigned),
                "optional_required": len(opt),
                "optional_filled": sum(1 for s in opt if s.id in assigned),
            }
        )
    return pd.DataFrame(rows)


def violation_counts(result: RunResult, catalog: RuleCatalog) -> pd.DataFrame:
    """Count per code, in catalog order, with its label."""
    counts: dict[str, int] = {}
    for v in result.violations:
        counts[v.code] = counts.get(v.code, 0) + 1
    rows = [
        {
            "code": code,
            "severity": catalog.describe(code).severity,
            "label": catalog.describe(code).label,
            "count": counts[code],
        }
        for code in catalog.sort_codes(counts)
    ]
    return pd.DataFrame(rows, columns=["code", "severity", "label", "count"])


def load_spread(df_emp: pd.DataFrame) -> dict[str, float]:
    """Distribution of slots over employees who hold at least one."""
    if df_emp.empty:
        return {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}
    held = pd.to_numeric(df_emp["slots"], errors="coerce").dropna()
    held = held[held > 0]
    if held.empty:
        return {"mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}
    return {
        "mean": float(held.mean()),
        "std": float(held.std(ddof=1)) if len(held) > 1 else 0.0,
        "min": float(held.min()),
        "max": float(held.max()),
    }
