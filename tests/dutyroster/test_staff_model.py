from __future__ import annotations

from datetime import date, datetime, time

import pytest

from dutyroster.staff import Absence, DutySlot, Employee, Lock, to_date


def test_employee_roles_default_to_group_map():
    assert Employee(id=1, name="A", group="OA").can_role_ids == {
        "gyn",
        "kreiszimmer",
        "overduty",
    }
    assert Employee(id=2, name="B", group="TA").can_role_ids == {"turnus", "overduty"}
    own = Employee(id=3, name="C", group="TA", can_role_ids=frozenset({"gyn"}))
    assert own.can_role_ids == {"gyn"}


def test_employee_normalizes_dates_and_validates():
    emp = Employee(id=1, name="A", ban_dates={"2025-03-04"})  # type: ignore[arg-type]
    assert emp.ban_dates == {date(2025, 3, 4)}
    with pytest.raises(ValueError, match="group"):
        Employee(id=1, name="A", group="CHIEF")
    with pytest.raises(ValueError, match="ban_weekdays"):
        Employee(id=1, name="A", ban_weekdays=frozenset({7}))
    with pytest.raises(ValueError, match="max_slots"):
        Employee(id=1, name="A", max_slots=-1)


def test_slot_calendar_helpers():
    sat = DutySlot("s", date(2025, 3, 1), "gyn")
    assert sat.is_weekend
    assert sat.iso_week == (2025, 9)
    assert not sat.is_overnight

    night = DutySlot("n", "2025-03-03", "overduty", mandatory=False, start_time="18:00", end_time="07:00")  # type: ignore[arg-type]
    assert night.is_overnight
    assert night.start_time == time(18, 0)
    start, end = night.interval()
    assert start == datetime(2025, 3, 3, 18, 0)
    assert end == datetime(2025, 3, 4, 7, 0)


def test_blocking_slot_must_be_mandatory():
    with pytest.raises(ValueError, match="blocks_publish"):
        DutySlot("s", date(2025, 3, 3), "turnus", mandatory=False, blocks_publish=True)


def test_absence_range():
    ab = Absence(employee_id=1, start="2025-03-30", end="2025-04-02")  # type: ignore[arg-type]
    assert ab.covers(date(2025, 3, 31))
    assert not ab.covers(date(2025, 4, 3))
    assert len(ab.dates()) == 4
    with pytest.raises(ValueError, match="ends before"):
        Absence(employee_id=1, start=date(2025, 3, 5), end=date(2025, 3, 4))


def test_lock_empty_and_date_parsing():
    assert Lock(2025, 3, "s", None).is_empty
    assert not Lock(2025, 3, "s", 4).is_empty
    assert to_date(datetime(2025, 3, 1, 12)) == date(2025, 3, 1)
    with pytest.raises(TypeError):
        to_date(20250301)
