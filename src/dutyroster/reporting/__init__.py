from __future__ import annotations

from .frames import assignments_frame, employee_totals, unfilled_frame, violations_frame
from .reporter import Reporter

__all__ = [
    "Reporter",
    "assignments_frame",
    "employee_totals",
    "unfilled_frame",
    "violations_frame",
]
