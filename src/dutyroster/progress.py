from __future__ import annotations

from ortools.sat.python import cp_model

HEADER = (
    "\nCP-SAT search (maximising weighted slot coverage):\n"
    "  best: objective of the best roster found so far\n"
    "  gap:  distance to the solver's upper bound, in percent\n"
)


class MinimalProgress(cp_model.CpSolverSolutionCallback):
    """
    Throttled console progress for the CP-SAT engine.

    Every improving solution is kept in ``history``; a line is printed at most
    every ``log_every_sec`` seconds of wall time.
    """

    def __init__(self, time_limit_sec: float, log_every_sec: float = 5.0):
        super().__init__()
        self.time_limit = (
            float(time_limit_sec) if time_limit_sec and time_limit_sec > 0 else None
        )
        self.log_every = float(log_every_sec)
        self.last_time: float | None = None
        self.sols = 0
        self.history: list[tuple[float, float, float]] = []
        self._width = 0

    def _due(self, now: float) -> bool:
        return self.last_time is None or (now - self.last_time) >= self.log_every

    def _line(self, now: float, best: float, bound: float) -> str:
        best_str = f"{best:,.0f}"
        self._width = max(self._width, len(best_str))
        gap = f"{100.0 * (bound - best) / abs(bound):5.2f}%" if abs(bound) > 1e-9 else "  n/a"
        clock = (
            f"{min(100.0, 100.0 * now / self.time_limit):6.2f}%"
            if self.time_limit
            else "  n/a "
        )
        return (
            f"[{now:5.1f}s] time used={clock} | best={best_str.ljust(self._width)} "
            f"| gap={gap} | sols={self.sols:<5d}"
        )

    def OnSolutionCallback(self):
        if not self.sols:
            print(HEADER)
        self.sols += 1
        now = self.WallTime()
        best = self.ObjectiveValue()
        bound = self.BestObjectiveBound()
        self.history.append((now, best, bound))

        if self._due(now):
            print(self._line(now, best, bound), flush=True)
            self.last_time = now

    def solution_history(self) -> list[tuple[float, float, float]]:
        """Return collected (wall_time, best_obj, best_bound) tuples."""
        return list(self.history)
