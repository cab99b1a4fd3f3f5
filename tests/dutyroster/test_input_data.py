from __future__ import annotations

from datetime import date

import pytest

from dutyroster.catalog import DEFAULT_CATALOG
from dutyroster.errors import ValidationError
from dutyroster.input_data import Period, build_input
from dutyroster.staff import Absence, Lock


def test_period_bounds_and_validation():
    p = Period(2025, 2)
    assert p.start == date(2025, 2, 1)
    assert p.end == date(2025, 2, 28)
    assert len(p.days()) == 28
    assert str(p) == "2025-02"
    for month in (0, 13):
        with pytest.raises(ValidationError):
            Period(2025, month)
    with pytest.raises(ValidationError):
        Period("2025", 3)  # type: ignore[arg-type]


def test_build_input_generates_default_skeleton(march, seniors):
    snap = build_input(march, seniors)
    assert len(snap.slots) == 31 * 3
    assert snap.slot("2025-03-01-kreiszimmer") is not None
    assert [e.id for e in snap.employees] == [1, 2, 3]


def test_build_input_with_empty_skeleton(march, seniors):
    assert build_input(march, seniors, slots=[]).slots == ()


def test_employees_sorted_by_id(march, seniors):
    snap = build_input(march, list(reversed(seniors)), slots=[])
    assert [e.id for e in snap.employees] == [1, 2, 3]


def test_validation_rejects_bad_inputs(march, seniors, make_slot):
    with pytest.raises(ValidationError, match="outside"):
        build_input(march, seniors, [make_slot(3, month=4)])
    with pytest.raises(ValidationError, match="Duplicate slot"):
        build_input(march, seniors, [make_slot(3), make_slot(3)])
    with pytest.raises(ValidationError, match="Duplicate employee"):
        build_input(march, seniors + seniors[:1], [make_slot(3)])
    with pytest.raises(ValidationError, match="unknown slot"):
        build_input(march, seniors, [make_slot(3)], locks=[Lock(2025, 3, "nope", 1)])


def test_absence_index_clips_to_period_and_long_term_wins(march, seniors, make_slot):
    absences = [
        Absence(1, date(2025, 2, 27), date(2025, 3, 2)),
        Absence(1, date(2025, 3, 2), date(2025, 3, 20), long_term=True),
    ]
    snap = build_input(march, seniors, [make_slot(3)], absences=absences)
    idx = snap.absence_index()[1]
    assert date(2025, 2, 28) not in idx
    assert idx[date(2025, 3, 1)] is False
    assert idx[date(2025, 3, 2)] is True
    assert len(idx) == 20


def test_input_hash_is_stable_and_sensitive(march, seniors, make_slot):
    slots = [make_slot(3), make_slot(4)]
    a = build_input(march, seniors, slots)
    b = build_input(march, seniors, slots)
    assert a.input_hash() == b.input_hash()
    locked = build_input(march, seniors, slots, locks=[Lock(2025, 3, slots[0].id, 2)])
    assert locked.input_hash() != a.input_hash()


def test_payload_shape(march, seniors, make_slot):
    snap = build_input(
        march,
        seniors,
        [make_slot(3)],
        locks=[Lock(2025, 3, "2025-03-03-gyn", None)],
        closures={date(2025, 3, 3): {"delivery"}},
    )
    payload = snap.to_payload()
    assert payload["version"] == "v1"
    assert payload["period"] == {
        "year": 2025,
        "month": 3,
        "startDate": "2025-03-01",
        "endDate": "2025-03-31",
    }
    assert payload["roles"] == ["gyn"]
    assert payload["locks"] == [{"slotId": "2025-03-03-gyn", "employeeId": None}]
    assert payload["closures"] == {"2025-03-03": ["delivery"]}
    assert payload["rules"] == {
        "hardRules": DEFAULT_CATALOG.hard_codes(),
        "softRules": DEFAULT_CATALOG.soft_codes(),
    }
    assert snap.locked_empty_slots() == {"2025-03-03-gyn"}
