from __future__ import annotations

import json
from datetime import date

from dutyroster.result_types import (
    Assignment,
    Coverage,
    RunResult,
    Summary,
    UnfilledSlot,
    Violation,
)


def _result() -> RunResult:
    return RunResult(
        assignments=(Assignment("s1", 4, date(2025, 3, 3), "gyn", source="lock"),),
        violations=(
            Violation("LOCKED_INVALID_EMPLOYEE", "hard", "bad lock", slot_id="s1", employee_id=4),
            Violation("NO_DUTY_PLAN_IN_PERIOD", "hard", "none"),
        ),
        unfilled_slots=(
            UnfilledSlot(
                "s2",
                date(2025, 3, 4),
                "kreiszimmer",
                True,
                ("NO_ELIGIBLE_CANDIDATE",),
                True,
                ("ABSENCE_BLOCKED",),
            ),
        ),
        summary=Summary(score=40.0, coverage=Coverage(1, 2), hard_violations=2, unfilled_mandatory=1),
        publish_allowed=False,
        engine="local-greedy",
        planning_kind="preview",
        input_hash="abc",
        catalog_version="v1",
    )


def test_to_dict_uses_camel_case():
    out = _result().to_dict()
    assert set(out) == {
        "assignments",
        "violations",
        "unfilledSlots",
        "summary",
        "publishAllowed",
        "meta",
    }
    assert out["assignments"][0] == {
        "slotId": "s1",
        "employeeId": 4,
        "date": "2025-03-03",
        "serviceType": "gyn",
        "locked": True,
        "source": "lock",
    }
    assert out["unfilledSlots"][0]["candidatesBlockedBy"] == ["ABSENCE_BLOCKED"]
    assert out["summary"]["counts"]["unfilledMandatory"] == 1
    assert out["meta"] == {
        "version": "v1",
        "engine": "local-greedy",
        "planningKind": "preview",
        "inputHash": "abc",
        "catalogVersion": "v1",
    }


def test_period_level_violation_has_no_slot_or_employee():
    out = _result().to_dict()["violations"][1]
    assert out == {"code": "NO_DUTY_PLAN_IN_PERIOD", "severity": "hard", "message": "none"}


def test_json_round_trips_to_dict():
    res = _result()
    assert json.loads(res.to_json()) == res.to_dict()
    assert res.assignment_map() == {"s1": 4}
    assert len(res.hard_violations) == 2
    assert res.soft_violations == []
