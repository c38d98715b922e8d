"""Client for Azure AI Language Conversational Language Understanding.

Sends one utterance per call to ``:analyze-conversations`` and normalises
the result into a ``Prediction``.  Failures never propagate: the caller
falls back to question answering when ``classify`` returns ``None``.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import httpx
from pydantic import ValidationError

from dentabot.models import Entity, Prediction
from dentabot.services.base import (
    REQUEST_TIMEOUT_SECONDS,
    JsonServiceClient,
    ServiceAPIError,
)
from dentabot.services.metrics import MetricsClient

logger = logging.getLogger(__name__)

CLU_API_VERSION = "2022-10-01-preview"
ANALYZE_PATH = "/language/:analyze-conversations"


def new_request_id() -> str:
    """Return an id like ``req_1733817600000_k3j9x2abq``."""
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class IntentClassifierClient(JsonServiceClient):
    service_name = "clu"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        project_name: str,
        deployment_name: str,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        telemetry: MetricsClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            endpoint,
            headers={"Ocp-Apim-Subscription-Key": api_key},
            timeout=timeout,
            telemetry=telemetry,
            transport=transport,
        )
        self._project_name = project_name
        self._deployment_name = deployment_name

    def _build_payload(self, text: str, request_id: str) -> dict[str, Any]:
        return {
            "kind": "Conversation",
            "analysisInput": {
                "conversationItem": {
                    "id": request_id,
                    "text": text,
                    "modality": "text",
                    "language": "en",
                    "participantId": "user1",
                },
            },
            "parameters": {
                "projectName": self._project_name,
                "deploymentName": self._deployment_name,
                "stringIndexType": "TextElement_V8",
                "verbose": True,
            },
        }

    async def classify(self, text: str) -> Prediction | None:
        """Classify *text*; ``None`` means "no usable prediction"."""
        request_id = new_request_id()
        try:
            data = await self._request(
                "POST",
                ANALYZE_PATH,
                params={"api-version": CLU_API_VERSION},
                json_body=self._build_payload(text, request_id),
                headers={"Apim-Request-Id": request_id},
                operation="analyze-conversations",
            )
        except ServiceAPIError as exc:
            logger.error(
                "CLU analysis failed [%s] status=%s body=%s",
                request_id, exc.status_code, exc.body or exc,
            )
            return None

        logger.debug("CLU response [%s]: %s", request_id, data)
        try:
            prediction = parse_prediction(data)
        except (AttributeError, TypeError, ValidationError):
            logger.exception("Unexpected CLU response shape [%s]", request_id)
            return None
        if prediction is None:
            logger.warning("No prediction found in CLU response [%s]", request_id)
        return prediction


def parse_prediction(data: Any) -> Prediction | None:
    """Extract a ``Prediction`` from an ``analyze-conversations`` body."""
    if not isinstance(data, dict):
        return None
    raw = (data.get("result") or {}).get("prediction")
    if not raw or not raw.get("topIntent"):
        return None

    top_intent = raw["topIntent"]
    score = next(
        (
            intent.get("confidenceScore")
            for intent in raw.get("intents") or []
            if intent.get("category") == top_intent
        ),
        None,
    )

    entities: list[Entity] = []
    for item in raw.get("entities") or []:
        try:
            entities.append(Entity.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed CLU entity: %s", item)

    return Prediction(
        top_intent=top_intent,
        confidence_score=score if score is not None else 0.0,
        entities=entities,
        raw=raw,
    )
