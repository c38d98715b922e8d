"""FastAPI route definitions for the bot server."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from botbuilder.schema import Activity
from fastapi import APIRouter, HTTPException, Request, Response, WebSocket
from fastapi.responses import JSONResponse

from dentabot.adapter import create_streaming_adapter
from dentabot.api.schemas import HealthResponse, MetricsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_bot(app):
    """Retrieve the bot built by the lifespan (see ``server.py``)."""
    bot = getattr(app.state, "bot", None)
    if bot is None:
        raise HTTPException(
            status_code=503,
            detail="The bot is still starting up. Please try again in a moment.",
        )
    return bot


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Liveness plus whether the bot has been wired up."""
    ready = getattr(request.app.state, "bot", None) is not None
    return HealthResponse(
        bot_status="ready" if ready else "starting",
        timestamp=datetime.now(UTC),
    )


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(request: Request):
    bot = _get_bot(request.app)
    return MetricsResponse(**bot.metrics.snapshot())


@router.post("/messages")
async def messages(request: Request):
    """Bot Framework messaging endpoint.

    The adapter validates the channel's ``Authorization`` header and runs
    the turn; invoke activities get their response as the HTTP body.
    """
    bot = _get_bot(request.app)
    adapter = request.app.state.adapter
    request_id = getattr(request.state, "request_id", "?")

    if "application/json" not in request.headers.get("Content-Type", ""):
        return Response(status_code=415)

    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON.") from None

    activity = Activity().deserialize(body)
    auth_header = request.headers.get("Authorization", "")
    logger.info("[%s] Activity %s received", request_id, activity.type)

    try:
        invoke_response = await adapter.process_activity(activity, auth_header, bot.on_turn)
    except PermissionError:
        logger.warning("[%s] Rejected unauthorized activity", request_id)
        return Response(status_code=401)
    except Exception as e:
        logger.exception("[%s] Error processing activity", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e

    if invoke_response:
        return JSONResponse(content=invoke_response.body, status_code=invoke_response.status)
    return Response(status_code=200)


@router.websocket("/messages")
async def messages_stream(websocket: WebSocket):
    """Bot Framework streaming endpoint (Direct Line App Service Extension).

    Each upgrade gets its own adapter; the channel token is checked before
    the socket is accepted.
    """
    bot = getattr(websocket.app.state, "bot", None)
    if bot is None:
        await websocket.close(code=1013)
        return

    adapter = create_streaming_adapter(websocket.app.state.settings)
    try:
        await adapter.authenticate(
            websocket.headers.get("Authorization", ""),
            websocket.headers.get("channelid", ""),
        )
    except PermissionError:
        logger.warning("Rejected unauthorized streaming connection")
        await websocket.close(code=1008)
        return

    await websocket.accept()
    logger.info("Streaming connection opened")
    await adapter.listen(websocket, bot)
    logger.info("Streaming connection closed")
