"""Bot Framework adapters and the shared turn error handler.

* ``create_adapter`` builds the HTTP ``BotFrameworkAdapter`` used by
  ``POST /api/messages``.
* ``create_streaming_adapter`` builds one ``StreamingBotAdapter`` per
  WebSocket upgrade.  The connection speaks the Bot Framework streaming
  protocol (binary request/response frames), as used by Direct Line App
  Service Extension; replies travel back over the same socket.

Both adapters report uncaught turn errors through ``on_turn_error``.
"""

from __future__ import annotations

import logging

from botbuilder.core import (
    Bot,
    BotFrameworkAdapter,
    BotFrameworkAdapterSettings,
    TurnContext,
)
from botbuilder.core.streaming import BotFrameworkHttpAdapterBase, StreamingRequestHandler
from botframework.connector.auth import JwtTokenValidation
from botframework.streaming.transport.web_socket import (
    WebSocket as StreamingSocket,
    WebSocketCloseStatus,
    WebSocketMessage,
    WebSocketMessageType,
    WebSocketState,
)
from fastapi import WebSocket
from fastapi.websockets import WebSocketState as ConnectionState

from dentabot.config import Settings

logger = logging.getLogger(__name__)

AAD_APP_NOT_FOUND = "AADSTS700016"

AUTH_ERROR_REPLY = (
    "⚠️ Authentication error with Azure AD. Please check your Bot "
    "Application configuration in the Azure Portal."
)
GENERIC_ERROR_REPLY = (
    "❌ An error occurred while processing your request. Please try again later."
)


async def on_turn_error(turn_context: TurnContext, error: Exception) -> None:
    """Catch-all for errors that escape the bot during a turn."""
    logger.error("Authentication/processing error: %s", error, exc_info=error)

    if AAD_APP_NOT_FOUND in str(error):
        await turn_context.send_activity(AUTH_ERROR_REPLY)
        return

    await turn_context.send_activity(GENERIC_ERROR_REPLY)


def _adapter_settings(settings: Settings) -> BotFrameworkAdapterSettings:
    return BotFrameworkAdapterSettings(
        app_id=settings.app_id,
        app_password=settings.app_password,
        channel_auth_tenant=settings.app_tenant_id or None,
    )


def create_adapter(settings: Settings) -> BotFrameworkAdapter:
    adapter = BotFrameworkAdapter(_adapter_settings(settings))
    adapter.on_turn_error = on_turn_error
    return adapter


def create_streaming_adapter(settings: Settings) -> StreamingBotAdapter:
    """Adapter scoped to one WebSocket connection."""
    return StreamingBotAdapter(_adapter_settings(settings))


class FastAPIWebSocket(StreamingSocket):
    """Presents a FastAPI ``WebSocket`` to the streaming transport."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    def dispose(self):
        pass

    async def close(self, close_status: WebSocketCloseStatus, status_description: str):
        await self._websocket.close(code=int(close_status), reason=status_description)

    async def receive(self) -> WebSocketMessage:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            return WebSocketMessage(message_type=WebSocketMessageType.CLOSE, data=[])
        if message.get("bytes") is not None:
            return WebSocketMessage(
                message_type=WebSocketMessageType.BINARY, data=list(message["bytes"]),
            )
        return WebSocketMessage(
            message_type=WebSocketMessageType.TEXT,
            data=list((message.get("text") or "").encode("utf-8")),
        )

    async def send(self, buffer, message_type: WebSocketMessageType, end_of_message: bool):
        if message_type == WebSocketMessageType.BINARY:
            # The transport's buffers are preallocated with None
            await self._websocket.send_bytes(bytes(b for b in buffer if b is not None))
        elif message_type == WebSocketMessageType.TEXT:
            await self._websocket.send_text(buffer)
        else:
            raise RuntimeError(f"Unsupported WebSocket message type: {message_type!r}")

    @property
    def status(self) -> WebSocketState:
        connected = (
            self._websocket.client_state == ConnectionState.CONNECTED
            and self._websocket.application_state == ConnectionState.CONNECTED
        )
        return WebSocketState.OPEN if connected else WebSocketState.CLOSED


class StreamingBotAdapter(BotFrameworkHttpAdapterBase):
    """Serves one Bot Framework streaming connection.

    Inbound requests on the socket are turned into activities and run
    through the bot; outbound activities are sent back as streaming
    requests by the connector client the base class installs per turn.
    """

    def __init__(self, settings: BotFrameworkAdapterSettings):
        super().__init__(settings)
        self.on_turn_error = on_turn_error
        self.request_handlers = []

    async def authenticate(self, auth_header: str, channel_id: str) -> None:
        """Validate the upgrade request's channel token.

        Raises:
            PermissionError: if a token is required and missing or invalid.
        """
        if await self._credential_provider.is_authentication_disabled():
            return
        if not auth_header or not channel_id:
            raise PermissionError("Missing Authorization or channelid header")

        try:
            identity = await JwtTokenValidation.validate_auth_header(
                auth_header, self._credential_provider, self._channel_provider, channel_id,
            )
        except PermissionError:
            raise
        except Exception as exc:
            raise PermissionError(f"Channel token rejected: {exc}") from exc

        if not identity.is_authenticated:
            raise PermissionError("Unauthorized Access")
        self.claims_identity = identity

    async def listen(self, websocket: WebSocket, bot: Bot) -> None:
        """Serve *websocket* until the channel disconnects."""
        handler = StreamingRequestHandler(bot, self, FastAPIWebSocket(websocket))
        self.request_handlers.append(handler)
        try:
            await handler.listen()
        finally:
            self.request_handlers.remove(handler)
