from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from dutyroster.catalog import DEFAULT_CATALOG, RuleCatalog
from dutyroster.input_data import InputSnapshot
from dutyroster.precheck import precheck_availability
from dutyroster.result_types import RunResult
from dutyroster.reporting.frames import assignments_frame, unfilled_frame, violations_frame
from dutyroster.reporting.plots import assignment_heatmap, coverage_chart
from dutyroster.reporting.text_report import (
    ReportDocument,
    render_text_report,
    set_active_report,
)

_YES = ("", "y", "yes")
_NO = ("n", "no")


class Reporter:
    """Runs the pre-check before solving and writes the report afterwards.

    Output lands in ``out_dir``: ``report.pdf`` (text plus figures), the PNG
    plots and CSV exports of assignments, violations and unfilled slots.
    """

    def __init__(
        self,
        cfg: Any,
        catalog: RuleCatalog = DEFAULT_CATALOG,
        num_print_examples: int = 6,
        enable_plots: bool = True,
        out_dir: Path = Path("outputs"),
        interactive: bool = True,
    ) -> None:
        self.cfg = cfg
        self.catalog = catalog
        self.num_print_examples = num_print_examples
        self.enable_plots = enable_plots
        self.out_dir = Path(out_dir)
        self.interactive = interactive

    def pre_solve(self, snapshot: InputSnapshot) -> None:
        """Print the supply/demand pre-check; ask before solving a month that cannot be covered."""
        pre = precheck_availability(self.cfg, snapshot, verbose=True)
        if pre.ok_cap or not self.interactive:
            return
        question = (
            f"Capacity {pre.cap} is below {pre.dem} mandatory slots for "
            f"{snapshot.period}. Plan anyway?"
        )
        if not self._prompt_yes_no_default_yes(question):
            raise SystemExit("Stopped by user after failed pre-check.")

    def render_text_report(self, res: RunResult, snapshot: InputSnapshot) -> None:
        render_text_report(
            res, snapshot, self.catalog, num_print_examples=self.num_print_examples
        )

    def export_csv(self, res: RunResult, snapshot: InputSnapshot) -> list[Path]:
        """Write the result frames as CSV; returns the written paths."""
        self.out_dir.mkdir(parents=True, exist_ok=True)
        frames = {
            "assignments.csv": assignments_frame(res, snapshot),
            "violations.csv": violations_frame(res),
            "unfilled_slots.csv": unfilled_frame(res),
        }
        written = []
        for filename, df in frames.items():
            path = self.out_dir / filename
            df.to_csv(path, index=False)
            written.append(path)
        return written

    def post_solve(self, res: RunResult, snapshot: InputSnapshot) -> None:
        report_doc = ReportDocument(
            self.out_dir / "report.pdf", title=f"Duty roster {snapshot.period}"
        )
        set_active_report(report_doc)
        try:
            self.render_text_report(res, snapshot)
            self.export_csv(res, snapshot)
            if self.enable_plots:
                assignment_heatmap(res, snapshot, out_dir=self.out_dir)
                coverage_chart(res, snapshot, out_dir=self.out_dir)
        finally:
            set_active_report(None)
            report_doc.write()

    # ---------- helpers ----------

    def _prompt_yes_no_default_yes(self, msg: str) -> bool:
        """Ask '[Y/n]'; without a terminal the default (yes) is taken."""
        if not sys.stdin or not sys.stdin.isatty():
            print(f"{msg} [Y/n] (no terminal, continuing)")
            return True
        try:
            while True:
                answer = input(f"{msg} [Y/n]: ").strip().lower()
                if answer in _YES or answer in _NO:
                    return answer in _YES
                print("Please answer 'y' or 'n'.")
        except (EOFError, KeyboardInterrupt):
            print("\nAborted by user.")
            return False
