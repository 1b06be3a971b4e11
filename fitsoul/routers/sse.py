"""Server-Sent Events (SSE) endpoint for session state changes."""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from fitsoul.config import get_settings
from fitsoul.routers.auth import get_coordinator
from fitsoul.services.session import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["sse"])


def serialize_change(kind: str, value: Any) -> dict:
    """Serialize an observable value for JSON output."""
    if isinstance(value, BaseModel):
        data = value.model_dump(mode="json")
    else:
        data = dict(value)
    return {"type": kind, "data": data}


def format_event(event: dict) -> str:
    return f"data: {json.dumps(event)}\n\n"


async def generate_auth_events(
    coordinator: SessionCoordinator,
    request: Request,
    keepalive_seconds: float | None = None,
) -> AsyncGenerator[str, None]:
    """Generate SSE events for the coordinator's three observables.

    Each observable's current value is sent first, followed by every change.
    """
    if keepalive_seconds is None:
        keepalive_seconds = get_settings().sse_keepalive_seconds

    queue: asyncio.Queue[dict] = asyncio.Queue()
    unsubscribers = [
        coordinator.ui_state.subscribe(
            lambda value: queue.put_nowait(serialize_change("ui_state", value))
        ),
        coordinator.auth_state.subscribe(
            lambda value: queue.put_nowait(serialize_change("auth_state", value))
        ),
        coordinator.validation_errors.subscribe(
            lambda value: queue.put_nowait(serialize_change("validation_errors", value))
        ),
    ]

    try:
        yield format_event({"type": "connected"})

        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield format_event({"type": "keepalive"})
                continue
            yield format_event(event)

    except Exception as e:
        logger.error(f"Auth event stream error: {e}")
        yield format_event({"type": "error", "message": str(e)})

    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()


@router.get("/auth")
async def stream_auth_events(
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> StreamingResponse:
    """Stream session state changes to the UI."""
    return StreamingResponse(
        generate_auth_events(coordinator, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
