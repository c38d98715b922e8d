"""Client for Azure AI Language custom question answering.

Unlike the intent classifier, errors here propagate to the caller; the
bot's turn error handler turns them into a generic apology.
"""

from __future__ import annotations

import logging

import httpx

from dentabot.services.base import REQUEST_TIMEOUT_SECONDS, JsonServiceClient
from dentabot.services.metrics import ConversationMetrics, MetricsClient

logger = logging.getLogger(__name__)

QNA_API_VERSION = "2021-10-01"
QUERY_PATH = "/language/:query-knowledgebases"
NOT_FOUND_ANSWER = "Sorry, I could not find relevant information."


class QnAClient(JsonServiceClient):
    service_name = "qna"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        project_name: str,
        deployment_name: str,
        *,
        counters: ConversationMetrics | None = None,
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
        self._counters = counters

    async def answer(self, text: str) -> str:
        """Return the best knowledge-base answer for *text*.

        Raises:
            ServiceAPIError: on transport failure or a non-2xx response.
        """
        logger.info("Forwarding to QnA service: %r", text)
        data = await self._request(
            "POST",
            QUERY_PATH,
            params={
                "projectName": self._project_name,
                "api-version": QNA_API_VERSION,
                "deploymentName": self._deployment_name,
            },
            json_body={
                "top": 1,
                "question": text,
                "includeUnstructuredSources": True,
            },
            operation="query-knowledgebases",
        )

        if self._counters is not None:
            self._counters.record_qna_query()

        answers = data.get("answers") if isinstance(data, dict) else None
        if answers and answers[0].get("answer"):
            return answers[0]["answer"]
        logger.info("QnA returned no answer for %r", text)
        return NOT_FOUND_ANSWER
