"""
API Router: Call Logging Endpoints.

JSON access to the session: log, edit, delete and list calls, read the
derived statistics, and start a new session.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from call_tracker.logging_config import get_logger, record_id_var
from call_tracker.schemas.call import CallCreate, CallRecord, CallUpdate, SessionStats
from call_tracker.schemas.outcome import CALL_OUTCOMES
from call_tracker.services.call_store import CallStore, get_store

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Calls"])


@router.get("/outcomes")
async def list_outcomes() -> list[dict[str, str]]:
    """The outcome catalog in display order."""
    return [
        {"code": d.code.value, "label": d.label, "color": d.color}
        for d in CALL_OUTCOMES
    ]


@router.get("/calls")
async def list_calls(store: CallStore = Depends(get_store)) -> dict[str, Any]:
    """All calls in the current session, most recent first."""
    try:
        calls = await store.list_calls()
    except Exception as e:
        logger.error("list_calls_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "data": [c.model_dump(mode="json") for c in calls],
        "total": len(calls),
    }


@router.post("/calls", response_model=CallRecord, status_code=status.HTTP_201_CREATED)
async def log_call(body: CallCreate, store: CallStore = Depends(get_store)) -> CallRecord:
    """Log a new call outcome."""
    try:
        return await store.add(body.outcome, body.notes)
    except Exception as e:
        logger.error("log_call_error", outcome=body.outcome.value, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/calls/{call_id}", response_model=CallRecord)
async def get_call(call_id: str, store: CallStore = Depends(get_store)) -> CallRecord:
    record_id_var.set(call_id)
    try:
        record = await store.get(call_id)
    except Exception as e:
        logger.error("get_call_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    if not record:
        raise HTTPException(status_code=404, detail="Call not found")
    return record


@router.put("/calls/{call_id}", response_model=CallRecord)
async def update_call(
    call_id: str,
    body: CallUpdate,
    store: CallStore = Depends(get_store),
) -> CallRecord:
    """Replace a call's outcome and notes. The original timestamp is kept."""
    record_id_var.set(call_id)
    try:
        record = await store.update(call_id, body.outcome, body.notes)
    except Exception as e:
        logger.error("update_call_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))

    if not record:
        raise HTTPException(status_code=404, detail="Call not found")
    return record


@router.delete("/calls/{call_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_call(call_id: str, store: CallStore = Depends(get_store)) -> Response:
    """Remove a call. Deleting an unknown id is a no-op."""
    record_id_var.set(call_id)
    try:
        await store.delete(call_id)
    except Exception as e:
        logger.error("delete_call_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/session/reset")
async def reset_session(store: CallStore = Depends(get_store)) -> dict[str, Any]:
    """Discard every call and start a new, empty session."""
    try:
        cleared = await store.reset()
    except Exception as e:
        logger.error("reset_session_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "reset", "cleared": cleared}


@router.get("/stats", response_model=SessionStats)
async def get_stats(store: CallStore = Depends(get_store)) -> SessionStats:
    """Derived statistics for the current session."""
    try:
        return await store.stats()
    except Exception as e:
        logger.error("get_stats_error", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
