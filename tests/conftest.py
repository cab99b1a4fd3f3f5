# tests/conftest.py
from __future__ import annotations

import os
import random
from datetime import date
from pathlib import Path

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg", force=True)

from dutyroster.catalog import DEFAULT_CATALOG  # noqa: E402
from dutyroster.config import Config  # noqa: E402
from dutyroster.input_data import InputSnapshot, Period  # noqa: E402
from dutyroster.rules.base import EvaluationContext  # noqa: E402
from dutyroster.staff import DutySlot, Employee  # noqa: E402

_AREAS = {"kreiszimmer": "delivery", "gyn": "gynaecology", "turnus": "ward"}


# -----------------------------
# Global, deterministic seeding
# -----------------------------
@pytest.fixture(autouse=True, scope="session")
def _seed_everything() -> None:
    """
    Make tests deterministic across runs. If you need a different seed in a test,
    override locally.
    """
    seed = int(os.environ.get("PYTEST_SEED", "1234"))
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)


# -----------------------------
# Path helpers
# -----------------------------
@pytest.fixture(scope="session")
def project_root() -> Path:
    """Repository root (where pyproject.toml lives)."""
    return Path(__file__).resolve().parents[1]


# -----------------------------
# Planning helpers
# -----------------------------
@pytest.fixture
def march() -> Period:
    """March 2025; the 1st is a Saturday."""
    return Period(2025, 3)


@pytest.fixture
def make_slot():
    """Factory for slots with ids shaped like the generated skeleton."""

    def _make(
        day: int,
        service_type: str = "gyn",
        *,
        year: int = 2025,
        month: int = 3,
        **kwargs,
    ) -> DutySlot:
        d = date(year, month, day)
        kwargs.setdefault("area", _AREAS.get(service_type))
        return DutySlot(
            id=f"{d.isoformat()}-{service_type}",
            date=d,
            service_type=service_type,
            **kwargs,
        )

    return _make


@pytest.fixture
def seniors() -> list[Employee]:
    """Three interchangeable OA employees."""
    return [
        Employee(id=1, name="Anna", group="OA"),
        Employee(id=2, name="Ben", group="OA"),
        Employee(id=3, name="Clara", group="OA"),
    ]


@pytest.fixture
def make_context():
    """EvaluationContext for a snapshot, default config unless given."""

    def _make(snapshot: InputSnapshot, cfg: Config | None = None) -> EvaluationContext:
        return EvaluationContext.from_snapshot(
            snapshot, cfg or Config(), DEFAULT_CATALOG
        )

    return _make
