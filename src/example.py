"""
Module with example code for running the duty-roster planner.

There are three ways to run the code:

1. Run the code with default options. This will generate
    synthetic employees and plan a month for them.
2. Run the code with a few employees defined via code, with locks and wishes.
3. Run the code with employees pre-defined in a JSON file, using the CP-SAT engine.

Usage via cli:
    python3 -m src.example --option 1
    python3 -m src.example --option 2 --policy src/example_policy.yaml
"""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

from dutyroster import Config, Period, build_input, run_solver
from dutyroster.generate.staff import (
    StaffGenConfig,
    create_absences,
    create_employees,
    employees_from_json,
)
from dutyroster.main import MinimalProgress, Reporter, select_backend
from dutyroster.policy import load_enabled_rules
from dutyroster.skeleton import slot_id_for
from dutyroster.staff import Absence, Employee, Lock

cfg = Config(
    MAX_SLOTS_PER_PERIOD=6,
    MAX_SLOTS_PER_WEEK=2,
    TIME_LIMIT_SEC=10.0,
    NUM_PARALLEL_WORKERS=4,
    LOG_SOLUTIONS_FREQUENCY_SECONDS=5.0,
)

PERIOD = Period(2025, 3)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run duty-roster examples.")
    parser.add_argument(
        "--option",
        type=int,
        default=1,
        choices=(1, 2, 3),
        help="Example scenario to run (default: 1).",
    )
    parser.add_argument(
        "--employees",
        type=Path,
        default=Path("src/example_employees.json"),
        help="Employee JSON file for option 3.",
    )
    parser.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="YAML file switching rules on or off (e.g. src/example_policy.yaml).",
    )
    return parser.parse_args()


def run_option(option: int, employees_path: Path, policy_path: Path | None = None) -> None:
    print(f"Running example code with option {option}")
    enabled_rules = load_enabled_rules(policy_path)

    # Synthetic employees, default skeleton, greedy engine.
    if option == 1:
        gen = StaffGenConfig(n=24, seed=7)
        employees = create_employees(gen, PERIOD)
        snapshot = build_input(
            PERIOD, employees, absences=create_absences(employees, PERIOD, gen),
            enabled_rules=enabled_rules,
        )
        run_solver(snapshot, config=cfg, reporter=Reporter(cfg))

    # Hand-written employees with an absence, a lock and wishes.
    elif option == 2:
        employees = [
            Employee(id=1, name="Anna", group="OA", prefer_dates={date(2025, 3, 3)}),
            Employee(id=2, name="Ben", group="OA", ban_weekdays={5, 6}),
            Employee(id=3, name="Clara", group="ASS", primary_areas={"delivery"}),
            Employee(id=4, name="David", group="ASS"),
            Employee(id=5, name="Elena", group="TA", avoid_service_types={"turnus"}),
            Employee(id=6, name="Felix", group="OA", max_slots=4),
        ]
        absences = [Absence(employee_id=4, start=date(2025, 3, 10), end=date(2025, 3, 16))]
        locks = [
            Lock(2025, 3, slot_id_for(PERIOD, 1, "gyn"), 6),
            Lock(2025, 3, slot_id_for(PERIOD, 2, "turnus"), None),
        ]
        snapshot = build_input(
            PERIOD, employees, absences=absences, locks=locks, enabled_rules=enabled_rules
        )
        run_solver(snapshot, config=cfg, reporter=Reporter(cfg, enable_plots=False))

    # Employees from JSON, CP-SAT engine. Typical production use.
    elif option == 3:
        employees = employees_from_json(employees_path)
        cfg.ENGINE = "cp-sat"
        cfg.TIME_LIMIT_SEC = 30
        snapshot = build_input(PERIOD, employees, enabled_rules=enabled_rules)
        progress = MinimalProgress(cfg.TIME_LIMIT_SEC, cfg.LOG_SOLUTIONS_FREQUENCY_SECONDS)
        run_solver(
            snapshot,
            config=cfg,
            backend=select_backend(cfg, progress_cb=progress),
            reporter=Reporter(cfg),
        )
    else:
        raise SystemExit(f"Unknown option {option}")


def main() -> None:
    args = parse_args()
    run_option(args.option, args.employees, args.policy)


if __name__ == "__main__":
    main()
