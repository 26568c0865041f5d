"""GET /events - Stream session state changes as Server-Sent Events."""

import asyncio
import json
import logging

from fastapi import Depends, Request
from fastapi.responses import StreamingResponse

from apps.helpers import new_request_id, set_session_cookie
from dependencies import get_session_id, require_session
from state import ChatController
from state.controller import jsonable

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0
MAX_PENDING_CHANGES = 1000


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def stream_events(
    request: Request,
    session_id: str = Depends(get_session_id),
    controller: ChatController = Depends(require_session),
) -> StreamingResponse:
    """Stream cell changes for an existing session.

    Returns Server-Sent Events stream with chunks:
    - type: "snapshot" - Every cell, sent once on connect
    - type: "change" - One cell's new value
    Comment lines are sent as keep-alives while idle.
    """
    request_id = new_request_id()
    # Subscribe before taking the snapshot so no change falls in between
    queue, close = controller.cells.changes(maxsize=MAX_PENDING_CHANGES)
    logger.info("[%s] Event stream opened", request_id)

    async def event_generator():
        try:
            yield _sse({"type": "snapshot", "state": controller.snapshot()})

            while not await request.is_disconnected():
                try:
                    change = await asyncio.wait_for(queue.get(), KEEPALIVE_SECONDS)
                except TimeoutError:
                    yield ": keep-alive\n\n"
                    continue

                value = jsonable(change.value)
                if change.cell == "event" and value is None:
                    # Already delivered elsewhere
                    continue
                yield _sse({"type": "change", "cell": change.cell, "value": value})
        finally:
            close()
            logger.info("[%s] Event stream closed", request_id)

    resp = StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Request-ID": request_id,
        },
    )
    return set_session_cookie(resp, session_id)
