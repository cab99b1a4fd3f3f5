from __future__ import annotations

from datetime import date

import matplotlib.pyplot as plt
import pytest

from dutyroster.config import Config
from dutyroster.input_data import build_input
from dutyroster.main import run_solver
from dutyroster.staff import Absence, Employee


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


@pytest.fixture
def planned(march, make_slot):
    """A small month with one unfillable day: (snapshot, result)."""
    employees = [
        Employee(1, "Anna", "OA"),
        Employee(2, "Ben", "OA", primary_areas=frozenset({"delivery"})),
    ]
    slots = [make_slot(d, blocks_publish=True) for d in (3, 5, 8)]
    absences = [Absence(1, date(2025, 3, 8), date(2025, 3, 8))]
    snap = build_input(march, employees, slots, absences=absences)
    return snap, run_solver(snap, config=Config())
