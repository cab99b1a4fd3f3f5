from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

Engine = Literal["local-greedy", "cp-sat"]

ENGINES: tuple[str, ...] = ("local-greedy", "cp-sat")


def _default_soft_weights() -> dict[str, float]:
    return {
        "ONLY_FALLBACK_CANDIDATES": 3.0,
        "CONTINUITY_CONFLICT": 1.0,
        "LOW_PRIORITY_AREA_MATCH": 2.0,
        "OPTIONAL_QUALIFICATION_MISSING": 1.5,
    }


@dataclass
class Config:

    ### WORKLOAD DEFAULTS (used when an employee has no own cap) ###

    MAX_SLOTS_PER_PERIOD: Optional[int] = 6
    MAX_SLOTS_PER_WEEK: Optional[int] = 2
    MAX_WEEKEND_SLOTS: Optional[int] = None  # None = no weekend cap

    ### HARD SEQUENCE RULES ###

    NO_CONSECUTIVE_DAYS: bool = True
    # rest day after an overnight duty (slot end_time <= start_time)
    AFTER_DUTY_REST: bool = True

    ### SERVICE ROLES ###

    # processing order within a day; unknown service types go last
    SERVICE_ROLE_PRIORITY: tuple[str, ...] = (
        "kreiszimmer",
        "gyn",
        "turnus",
        "overduty",
    )
    # vacancies in these service types block publication
    REQUIRED_SERVICE_ROLES: frozenset[str] = frozenset({"gyn", "kreiszimmer"})

    ### RANKING ###

    SOFT_WEIGHTS: dict[str, float] = field(default_factory=_default_soft_weights)
    PREFER_DATE_SCORE: float = 100.0
    AVOID_DATE_SCORE: float = 100.0
    PREFER_SERVICE_SCORE: float = 30.0
    AVOID_SERVICE_SCORE: float = 30.0
    PREFERENCE_SCALE: float = 0.01  # preference points -> penalty units
    LOAD_WEIGHT: float = 0.005  # penalty per slot already held

    # employees whose preferred dates are placed before normal ranking
    FIXED_PREFERRED_EMPLOYEES: tuple[int, ...] = ()

    ### SCORE ###

    SCORE_UNFILLED_MANDATORY_WEIGHT: float = 1.0
    SCORE_UNFILLED_OPTIONAL_WEIGHT: float = 0.25
    SCORE_HARD_WEIGHT: float = 0.5
    SCORE_SOFT_WEIGHT: float = 0.05

    ### ENGINE SETUP ###

    ENGINE: Engine = "local-greedy"

    # CP-SAT only
    TIME_LIMIT_SEC: float = 10.0
    NUM_PARALLEL_WORKERS: int = 4
    LOG_SOLUTIONS_FREQUENCY_SECONDS: float = 5.0
    SEED: Optional[int] = None

    ### COMMIT ###

    COMMIT_RETRIES: int = 2

    def __post_init__(self) -> None:
        self.REQUIRED_SERVICE_ROLES = frozenset(self.REQUIRED_SERVICE_ROLES)
        self.SERVICE_ROLE_PRIORITY = tuple(self.SERVICE_ROLE_PRIORITY)
        self.FIXED_PREFERRED_EMPLOYEES = tuple(
            int(e) for e in self.FIXED_PREFERRED_EMPLOYEES
        )

    def validate(self) -> None:
        """
        Validate the Config object has sensible values before solving.
        """
        for attr in ("MAX_SLOTS_PER_PERIOD", "MAX_SLOTS_PER_WEEK", "MAX_WEEKEND_SLOTS"):
            val = getattr(self, attr)
            if val is not None and val < 0:
                raise ValueError(f"{attr} must be >= 0 or None.")
        if (
            self.MAX_SLOTS_PER_PERIOD is not None
            and self.MAX_SLOTS_PER_WEEK is not None
            and self.MAX_SLOTS_PER_WEEK > self.MAX_SLOTS_PER_PERIOD
        ):
            raise ValueError("MAX_SLOTS_PER_WEEK cannot exceed MAX_SLOTS_PER_PERIOD.")
        for code, weight in self.SOFT_WEIGHTS.items():
            if weight < 0:
                raise ValueError(f"Soft weight for {code} must be >= 0.")
        for attr in (
            "PREFER_DATE_SCORE",
            "AVOID_DATE_SCORE",
            "PREFER_SERVICE_SCORE",
            "AVOID_SERVICE_SCORE",
            "PREFERENCE_SCALE",
            "LOAD_WEIGHT",
        ):
            if getattr(self, attr) < 0:
                raise ValueError(f"{attr} must be non-negative.")
        for attr in (
            "SCORE_UNFILLED_MANDATORY_WEIGHT",
            "SCORE_UNFILLED_OPTIONAL_WEIGHT",
            "SCORE_HARD_WEIGHT",
            "SCORE_SOFT_WEIGHT",
        ):
            if getattr(self, attr) <= 0:
                raise ValueError(f"{attr} must be > 0 to keep the score monotonic.")
        if self.ENGINE not in ENGINES:
            raise ValueError(f"ENGINE must be one of {ENGINES}, got {self.ENGINE!r}.")
        if self.TIME_LIMIT_SEC <= 0.0:
            raise ValueError("TIME_LIMIT_SEC must be > 0.")
        if self.NUM_PARALLEL_WORKERS <= 0:
            raise ValueError("NUM_PARALLEL_WORKERS must be > 0.")
        if self.COMMIT_RETRIES < 0:
            raise ValueError("COMMIT_RETRIES must be >= 0.")

    def role_priority(self, service_type: str) -> int:
        try:
            return self.SERVICE_ROLE_PRIORITY.index(service_type)
        except ValueError:
            return len(self.SERVICE_ROLE_PRIORITY)

    def soft_weight(self, code: str) -> float:
        return float(self.SOFT_WEIGHTS.get(code, 1.0))


cfg = Config()
