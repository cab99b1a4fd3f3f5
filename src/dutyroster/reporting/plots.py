from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from dutyroster.input_data import InputSnapshot
from dutyroster.result_types import RunResult

from .frames import assignments_frame
from .metrics import coverage_by_day
from .text_report import get_active_report


def _save(fig: plt.Figure, out_dir: Path, filename: str, show: bool) -> None:
    """Persist the plot under ``out_dir``, add it to the active report, optionally show."""
    out_dir.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_dir / filename, dpi=fig.dpi, bbox_inches="tight")
    report = get_active_report()
    if report is not None:
        report.add_figure(fig)
    if show:
        plt.show()


def assignment_heatmap(
    result: RunResult,
    snapshot: InputSnapshot,
    out_dir: Path = Path("outputs"),
    show: bool = False,
) -> plt.Figure | None:
    """Employees x days grid; cell = number of duties that day."""
    df = assignments_frame(result, snapshot)
    if df.empty:
        return None

    days = [d.isoformat() for d in snapshot.period.days()]
    grid = (
        df.pivot_table(
            index="employee_id", columns="date", values="slot_id", aggfunc="count"
        )
        .reindex(columns=days, fill_value=0)
        .fillna(0)
        .astype(int)
    )
    names = {e.id: e.name for e in snapshot.employees}
    labels = [names.get(i, str(i)) for i in grid.index]

    fig_height = 2 + 0.25 * len(grid.index)
    fig, ax = plt.subplots(figsize=(10, fig_height), dpi=120)
    ax.imshow(grid.to_numpy(), aspect="auto", cmap="Blues", vmin=0)
    ax.set_yticks(np.arange(len(labels)), labels)
    ax.set_xticks(np.arange(len(days)), [d[-2:] for d in days], fontsize=7)
    ax.set_xlabel("Day of month")
    ax.set_title(f"Duty assignments {snapshot.period}", fontsize=11)
    for spine in ("top", "right"):
        ax.spines[spine].set_visible(False)
    fig.tight_layout()
    _save(fig, out_dir, "assignments_heatmap.png", show)
    return fig


def coverage_chart(
    result: RunResult,
    snapshot: InputSnapshot,
    out_dir: Path = Path("outputs"),
    show: bool = False,
) -> plt.Figure | None:
    """Stacked bars of filled vs open mandatory slots per day."""
    cov = coverage_by_day(result, snapshot)
    if cov.empty or int(cov["mandatory_required"].sum()) == 0:
        return None

    x = pd.to_datetime(cov["date"]).dt.day.to_numpy()
    filled = cov["mandatory_filled"].to_numpy()
    open_ = (cov["mandatory_required"] - cov["mandatory_filled"]).to_numpy()

    fig, ax = plt.subplots(figsize=(9, 3.5), dpi=120)
    ax.bar(x, filled, color="#34D399", label="filled")
    ax.bar(x, open_, bottom=filled, color="#F87171", label="open")
    ax.set_xlabel("Day of month")
    ax.set_ylabel("Mandatory slots")
    ax.set_title("Mandatory coverage per day", fontsize=11)
    ax.legend(frameon=False, ncol=2)
    for spine in ("top", "right"):
        ax.spines[spine].set_visible(False)
    fig.tight_layout()
    _save(fig, out_dir, "coverage_per_day.png", show)
    return fig
