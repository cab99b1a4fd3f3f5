"""Pydantic schemas for the planning API (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dutyroster.staff import Lock
from dutyroster.tracker import PlanningState


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LockIn(_Camel):
    slot_id: str = Field(alias="slotId", min_length=1)
    employee_id: Optional[int] = Field(default=None, alias="employeeId")


class LocksUpsert(_Camel):
    locks: List[LockIn]
    updated_by: Optional[int] = Field(default=None, alias="updatedBy")


class LockOut(_Camel):
    slot_id: str = Field(alias="slotId")
    employee_id: Optional[int] = Field(default=None, alias="employeeId")
    updated_at: datetime = Field(alias="updatedAt")
    updated_by: Optional[int] = Field(default=None, alias="updatedBy")

    @classmethod
    def from_lock(cls, lock: Lock) -> "LockOut":
        return cls(
            slot_id=lock.slot_id,
            employee_id=lock.employee_id,
            updated_at=lock.updated_at,
            updated_by=lock.updated_by,
        )


class PlanningStateOut(_Camel):
    year: int
    month: int
    last_run_at: Optional[datetime] = Field(default=None, alias="lastRunAt")
    is_dirty: bool = Field(alias="isDirty")
    submitted_count: int = Field(alias="submittedCount")
    missing_count: int = Field(alias="missingCount")

    @classmethod
    def from_state(cls, state: PlanningState) -> "PlanningStateOut":
        return cls(
            year=state.year,
            month=state.month,
            last_run_at=state.last_run_at,
            is_dirty=state.is_dirty,
            submitted_count=state.submitted_count,
            missing_count=state.missing_count,
        )


class WishSubmission(_Camel):
    employee_id: int = Field(alias="employeeId")


class RunRequest(_Camel):
    retries: Optional[int] = Field(default=None, ge=0)


class ErrorOut(BaseModel):
    error: str
    detail: Any = None
