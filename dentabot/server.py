"""FastAPI server hosting the Contoso Dental bot.

Run with:
    uvicorn dentabot.server:app --host 0.0.0.0 --port 3978
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response

from dentabot import __version__
from dentabot.adapter import create_adapter
from dentabot.api.routes import router
from dentabot.bot import DentaBot
from dentabot.config import Settings, load_settings
from dentabot.router import MessageRouter
from dentabot.services.clu_client import IntentClassifierClient
from dentabot.services.metrics import ConversationMetrics, MetricsClient
from dentabot.services.qna_client import QnAClient
from dentabot.services.scheduler_client import SchedulerClient

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def build_bot(
    settings: Settings, telemetry: MetricsClient | None = None,
) -> tuple[DentaBot, list]:
    """Wire clients, router and bot from *settings*.

    Returns the bot and the HTTP clients the caller must close.
    """
    counters = ConversationMetrics()
    classifier = IntentClassifierClient(
        settings.language_endpoint,
        settings.language_key,
        settings.clu_project_name,
        settings.clu_deployment_name,
        timeout=settings.http_timeout_seconds,
        telemetry=telemetry,
    )
    qna = QnAClient(
        settings.language_endpoint,
        settings.language_key,
        settings.qna_project_name,
        settings.qna_deployment_name,
        counters=counters,
        timeout=settings.http_timeout_seconds,
        telemetry=telemetry,
    )
    scheduler = SchedulerClient(
        settings.scheduler_endpoint,
        timeout=settings.http_timeout_seconds,
        telemetry=telemetry,
    )
    message_router = MessageRouter(
        classifier, qna, scheduler, counters,
        threshold=settings.confidence_threshold,
    )
    return DentaBot(message_router, counters), [classifier, qna, scheduler]


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the bot once at start-up and close its HTTP clients on shutdown."""
    settings = load_settings()
    telemetry = MetricsClient(enabled=settings.metrics_enabled)
    bot, clients = build_bot(settings, telemetry)

    application.state.settings = settings
    application.state.adapter = create_adapter(settings)
    application.state.bot = bot
    logger.info(
        "Bot ready (scheduler=%s, threshold=%.2f)",
        settings.scheduler_endpoint, settings.confidence_threshold,
    )
    yield
    for client in clients:
        await client.aclose()
    telemetry.flush()


app = FastAPI(
    title="Contoso Dental Bot",
    description=(
        "Dental clinic chatbot: availability, booking, cancellation, "
        "services, pricing and insurance, with knowledge-base fallback."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Contoso Dental Bot",
        "version": __version__,
        "messages": "/api/messages",
        "health": "/api/health",
    }


if __name__ == "__main__":
    startup_settings = load_settings()
    logger.info(
        "Starting bot server on %s:%d",
        startup_settings.server_host, startup_settings.server_port,
    )
    uvicorn.run(
        "dentabot.server:app",
        host=startup_settings.server_host,
        port=startup_settings.server_port,
    )
