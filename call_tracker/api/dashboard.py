"""
Call Tracker dashboard.

Server-rendered view over the call store: statistics cards, the outcome
button grid with a shared notes box, and the call history with inline
edit and delete. Every form posts back and redirects to ``/`` so the
draft notes are cleared after each action.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from call_tracker.config import get_settings
from call_tracker.logging_config import record_id_var
from call_tracker.schemas.call import clean_notes
from call_tracker.schemas.outcome import CALL_OUTCOMES, CallOutcome, describe
from call_tracker.services.call_store import CallStore, get_store

router = APIRouter(tags=["Dashboard"])

templates_dir = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))

EMPTY_HISTORY_MESSAGE = "No calls logged yet. Start making calls!"


def format_time(value: datetime, tz_name: str | None = None) -> str:
    """Time of day as ``hh:mm AM/PM`` in the configured display timezone."""
    tz = ZoneInfo(tz_name or get_settings().display_timezone)
    return value.astimezone(tz).strftime("%I:%M %p")


templates.env.filters["time_of_day"] = format_time
templates.env.globals["describe"] = describe


def _back_to_dashboard() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


@router.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    edit: Optional[str] = None,
    store: CallStore = Depends(get_store),
) -> HTMLResponse:
    """Render the dashboard; ``?edit=<id>`` opens the edit dialog for that call."""
    calls = await store.list_calls()
    stats = await store.stats()

    editing = None
    if edit:
        editing = next((c for c in calls if c.id == edit), None)

    context: dict[str, Any] = {
        "title": get_settings().app_title,
        "outcomes": CALL_OUTCOMES,
        "calls": calls,
        "stats": stats,
        "editing": editing,
        "empty_message": EMPTY_HISTORY_MESSAGE,
    }
    return templates.TemplateResponse(request, "dashboard.html", context)


@router.post("/calls")
async def log_call(
    outcome: CallOutcome = Form(...),
    notes: str = Form(""),
    store: CallStore = Depends(get_store),
) -> RedirectResponse:
    await store.add(outcome, clean_notes(notes))
    return _back_to_dashboard()


@router.post("/calls/{call_id}/edit")
async def edit_call(
    call_id: str,
    outcome: CallOutcome = Form(...),
    notes: str = Form(""),
    store: CallStore = Depends(get_store),
) -> RedirectResponse:
    record_id_var.set(call_id)
    # Unknown ids are ignored; the dashboard simply re-renders
    await store.update(call_id, outcome, clean_notes(notes))
    return _back_to_dashboard()


@router.post("/calls/{call_id}/delete")
async def delete_call(call_id: str, store: CallStore = Depends(get_store)) -> RedirectResponse:
    record_id_var.set(call_id)
    await store.delete(call_id)
    return _back_to_dashboard()


@router.post("/session/reset")
async def new_session(store: CallStore = Depends(get_store)) -> RedirectResponse:
    await store.reset()
    return _back_to_dashboard()
