"""
HTTP surface over the lifecycle engine.

The router only translates JSON in and out; every rule lives in the engine.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .engine import LifecycleEngine
from .errors import TablecycleError

logger = logging.getLogger(__name__)

router = APIRouter()


class StatusUpdate(BaseModel):
    status: str


def get_lifecycle(request: Request) -> LifecycleEngine:
    return request.app.state.lifecycle


def current_host_id(request: Request) -> str:
    """Placeholder owner until authentication is wired in."""
    return request.app.state.settings.host_id


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/tables")
def create_table(
    payload: Dict[str, Any] = Body(...),
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
    host_id: str = Depends(current_host_id),
) -> Dict[str, Any]:
    table = lifecycle.create_table(payload, host_id=host_id)
    return {"success": True, "table_id": table.id, "table": table.model_dump(mode="json")}


@router.get("/tables/host")
def list_host_tables(
    status: Optional[str] = None,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
    host_id: str = Depends(current_host_id),
) -> Dict[str, Any]:
    tables = lifecycle.list_tables(host_id, status)
    return {"success": True, "tables": [t.model_dump(mode="json") for t in tables]}


@router.get("/tables/{table_id}")
def get_table(
    table_id: str, lifecycle: LifecycleEngine = Depends(get_lifecycle)
) -> Dict[str, Any]:
    table = lifecycle.get_table(table_id)
    return {"success": True, "table": table.model_dump(mode="json")}


@router.put("/tables/{table_id}/status")
def update_status(
    table_id: str,
    body: StatusUpdate,
    lifecycle: LifecycleEngine = Depends(get_lifecycle),
) -> Dict[str, Any]:
    table = lifecycle.set_status(table_id, body.status)
    return {"success": True, "table": table.model_dump(mode="json")}


def install(app: FastAPI) -> None:
    """Mount the routes and map engine errors onto JSON responses."""
    app.include_router(router)

    @app.exception_handler(TablecycleError)
    async def handle_tablecycle_error(request: Request, exc: TablecycleError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.http_status,
            content={"success": False, "error": exc.message, "code": exc.code},
        )
