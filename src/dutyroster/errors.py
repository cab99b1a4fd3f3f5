from __future__ import annotations


class PlanningError(Exception):
    """Base class for every error raised by the planning engine."""


class ValidationError(PlanningError):
    """Malformed request (bad period, unknown slot in a lock request...).

    Raised before any solving happens.
    """


class ConcurrencyError(PlanningError):
    """The lock set changed while a commit was being computed; retry."""

    def __init__(self, year: int, month: int, expected: int, actual: int) -> None:
        super().__init__(
            f"Locks for {year}-{month:02d} changed during the run "
            f"(version {expected} -> {actual}); retry the commit."
        )
        self.year = year
        self.month = month
        self.expected = expected
        self.actual = actual


class SolverInternalError(PlanningError):
    """A rule predicate or catalog lookup failed. Aborts the run, nothing persists."""


class PreviewCancelled(PlanningError):
    """The caller cancelled an in-flight preview."""
