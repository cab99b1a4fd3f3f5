"""FastAPI surface for the planning service."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from dutyroster.errors import (
    ConcurrencyError,
    PlanningError,
    PreviewCancelled,
    SolverInternalError,
    ValidationError,
)
from dutyroster.schemas import (
    ErrorOut,
    LockOut,
    LocksUpsert,
    PlanningStateOut,
    RunRequest,
    WishSubmission,
)
from dutyroster.service import PlanningService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/roster/planning"

ERROR_STATUS: dict[type[PlanningError], int] = {
    ValidationError: 400,
    ConcurrencyError: 409,
    PreviewCancelled: 499,
    SolverInternalError: 500,
}


def _status_for(exc: PlanningError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def build_router(get_service: Callable[[], PlanningService]) -> APIRouter:
    router = APIRouter(prefix=API_PREFIX)

    @router.get("/{year}/{month}/input")
    def get_input(
        year: int, month: int, service: PlanningService = Depends(get_service)
    ) -> dict[str, Any]:
        return {
            "summary": service.input_summary(year, month),
            "input": service.input_payload(year, month),
        }

    @router.get("/{year}/{month}/state", response_model=PlanningStateOut)
    def get_state(
        year: int, month: int, service: PlanningService = Depends(get_service)
    ) -> PlanningStateOut:
        return PlanningStateOut.from_state(service.get_state(year, month))

    @router.get("/{year}/{month}/locks", response_model=list[LockOut])
    def list_locks(
        year: int, month: int, service: PlanningService = Depends(get_service)
    ) -> list[LockOut]:
        return [LockOut.from_lock(lk) for lk in service.list_locks(year, month)]

    @router.put("/{year}/{month}/locks", response_model=list[LockOut])
    def upsert_locks(
        year: int,
        month: int,
        data: LocksUpsert,
        service: PlanningService = Depends(get_service),
    ) -> list[LockOut]:
        out = []
        for item in data.locks:
            lock = service.upsert_lock(
                year, month, item.slot_id, item.employee_id, data.updated_by
            )
            out.append(LockOut.from_lock(lock))
        return out

    @router.delete("/{year}/{month}/locks/{slot_id}")
    def delete_lock(
        year: int,
        month: int,
        slot_id: str,
        service: PlanningService = Depends(get_service),
    ) -> dict[str, Any]:
        return {"ok": True, "deleted": service.delete_lock(year, month, slot_id)}

    @router.post("/{year}/{month}/wishes", response_model=PlanningStateOut)
    def submit_wishes(
        year: int,
        month: int,
        data: WishSubmission,
        service: PlanningService = Depends(get_service),
    ) -> PlanningStateOut:
        return PlanningStateOut.from_state(
            service.submit_wishes(year, month, data.employee_id)
        )

    @router.post("/{year}/{month}/preview")
    def preview(
        year: int, month: int, service: PlanningService = Depends(get_service)
    ) -> dict[str, Any]:
        return service.preview(year, month).to_dict()

    @router.post("/{year}/{month}/run")
    def run(
        year: int,
        month: int,
        data: Optional[RunRequest] = None,
        service: PlanningService = Depends(get_service),
    ) -> dict[str, Any]:
        retries = data.retries if data is not None else None
        result = service.run(year, month, retries=retries)
        return {"result": result.to_dict(), "state": service.get_state(year, month).to_dict()}

    return router


def create_app(service: PlanningService) -> FastAPI:
    app = FastAPI(title="dutyroster")

    def _service() -> PlanningService:
        return service

    @app.exception_handler(PlanningError)
    def _planning_error(request: Request, exc: PlanningError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status,
            content=ErrorOut(error=type(exc).__name__, detail=str(exc)).model_dump(),
        )

    app.include_router(build_router(_service))

    @app.get("/api/ping")
    def ping() -> JSONResponse:
        """Simple health check endpoint."""
        return JSONResponse({"status": "ok"})

    return app
