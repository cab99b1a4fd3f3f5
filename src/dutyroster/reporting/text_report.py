from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from dutyroster.catalog import RuleCatalog
from dutyroster.input_data import InputSnapshot
from dutyroster.publish import blocking_reasons
from dutyroster.result_types import RunResult

from .frames import employee_totals, unfilled_frame
from .metrics import load_spread, violation_counts

A4_PORTRAIT = (8.27, 11.69)
LINES_PER_PAGE = 90


class ReportDocument:
    """Collects printed report text and figures; ``write()`` renders one PDF.

    Text is split over as many A4 pages as it needs, figures follow on their
    own pages.
    """

    def __init__(self, path: Path, title: str = "Duty roster report") -> None:
        self.path = path
        self.title = title
        self.lines: list[str] = []
        self.figures: list[plt.Figure] = []

    def add_text(self, text: str) -> None:
        self.lines.extend(text.split("\n"))

    def add_figure(self, fig: plt.Figure) -> None:
        self.figures.append(fig)

    def text_pages(self) -> list[list[str]]:
        if not self.lines:
            return [["Report contains no data."]] if not self.figures else []
        return [
            self.lines[i : i + LINES_PER_PAGE]
            for i in range(0, len(self.lines), LINES_PER_PAGE)
        ]

    def _text_page(self, lines: list[str], page: int, pages: int) -> plt.Figure:
        fig, ax = plt.subplots(figsize=A4_PORTRAIT)
        ax.axis("off")
        ax.set_title(f"{self.title} ({page}/{pages})", fontsize=9, loc="left")
        ax.text(0.01, 0.99, "\n".join(lines), ha="left", va="top", fontsize=7, family="monospace")
        return fig

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        pages = self.text_pages()
        with PdfPages(self.path) as pdf:
            for i, lines in enumerate(pages, start=1):
                fig = self._text_page(lines, i, len(pages))
                pdf.savefig(fig, bbox_inches="tight")
                plt.close(fig)
            for fig in self.figures:
                pdf.savefig(fig, bbox_inches="tight")
                plt.close(fig)


_ACTIVE_REPORT: Optional[ReportDocument] = None


def set_active_report(doc: Optional[ReportDocument]) -> None:
    global _ACTIVE_REPORT
    _ACTIVE_REPORT = doc


def get_active_report() -> Optional[ReportDocument]:
    return _ACTIVE_REPORT


def _log_print(*args: Any, sep: str = " ") -> None:
    """print() to stdout and mirror the same text into the active report."""
    text = sep.join(str(a) for a in args)
    print(text)
    if _ACTIVE_REPORT is not None:
        _ACTIVE_REPORT.add_text(text)


def render_text_report(
    result: RunResult,
    snapshot: InputSnapshot,
    catalog: RuleCatalog,
    *,
    num_print_examples: int = 6,
) -> None:
    summary = result.summary
    _log_print(
        f"Roster {snapshot.period} | engine={result.engine} | kind={result.planning_kind}"
    )
    _log_print(
        f"Score: {summary.score:.4f} | coverage {summary.coverage.filled}/"
        f"{summary.coverage.required} mandatory slots"
    )
    _log_print(
        f"Violations: hard={summary.hard_violations} soft={summary.soft_violations} | "
        f"unfilled: mandatory={summary.unfilled_mandatory} optional={summary.unfilled_optional}"
    )

    if result.publish_allowed:
        _log_print("\n✅ Roster may be published.")
    else:
        reasons = blocking_reasons(
            list(snapshot.slots),
            result.assignments,
            result.violations,
            result.unfilled_slots,
        )
        _log_print(f"\n❌ Publishing blocked ({len(reasons)} reason(s)):")
        for r in reasons[:num_print_examples]:
            _log_print(f"  - {r}")
        if len(reasons) > num_print_examples:
            _log_print(f"  - … {len(reasons) - num_print_examples} more")

    counts = violation_counts(result, catalog)
    if counts.empty:
        _log_print("\nNo violations.")
    else:
        _log_print("\nViolations by code:")
        _log_print(counts.to_string(index=False))

    df_unfilled = unfilled_frame(result)
    if not df_unfilled.empty:
        _log_print(f"\nUnfilled slots (first {num_print_examples}):")
        _log_print(df_unfilled.head(num_print_examples).to_string(index=False))

    df_emp = employee_totals(result, snapshot)
    if not df_emp.empty:
        _log_print(f"\nPer-employee load (top {num_print_examples}):")
        _log_print(
            df_emp.sort_values(["slots", "employee_id"], ascending=[False, True])
            .head(num_print_examples)
            .to_string(index=False)
        )
        spread = load_spread(df_emp)
        _log_print(
            "\nSlots per assigned employee: "
            f"mean={spread['mean']:.2f} | std={spread['std']:.2f} | "
            f"min={spread['min']:.0f} | max={spread['max']:.0f}"
        )
