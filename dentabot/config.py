"""Centralized configuration for the Contoso Dental bot.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/dentabot/<VARIABLE_NAME>``.

Nothing is read at import time: ``load_settings()`` is called once at
startup and the resulting ``Settings`` object is passed down explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULER_ENDPOINT = "http://localhost:3000"
DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0


# ── Secret resolution ────────────────────────────────────────────────

def _on_aws() -> bool:
    return bool(os.getenv("AWS_EXECUTION_ENV"))


def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or cannot be read
    (no credentials, no network).  Errors are logged but never raised so
    that local-dev fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415 - only needed when running on AWS

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/dentabot/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    # 1. Env var / .env (always checked first — allows local override)
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    # 2. SSM Parameter Store (only on AWS)
    if _on_aws():
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /dentabot/{name} (AWS)."
    )


def _optional_secret(name: str) -> str:
    """Like ``_require_env`` but an unset value means "not configured"."""
    try:
        return _require_env(name)
    except OSError:
        return ""


# ── Settings ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration, built once at startup."""

    # Azure AI Language (shared by CLU and QnA)
    language_endpoint: str
    language_key: str
    clu_project_name: str
    clu_deployment_name: str
    qna_project_name: str
    qna_deployment_name: str

    # Scheduler backend
    scheduler_endpoint: str = DEFAULT_SCHEDULER_ENDPOINT

    # Bot Framework channel identity (empty = emulator / anonymous)
    app_id: str = ""
    app_password: str = ""
    app_tenant_id: str = ""

    # Routing
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD

    # Outbound HTTP
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    # Servers
    server_host: str = "0.0.0.0"
    server_port: int = 3978
    scheduler_port: int = 3000

    # CloudWatch telemetry
    metrics_enabled: bool = False


def load_settings() -> Settings:
    """Read the environment (and ``.env``) into a ``Settings`` instance."""
    load_dotenv()

    threshold = float(
        os.getenv("CONFIDENCE_THRESHOLD", str(DEFAULT_CONFIDENCE_THRESHOLD))
    )
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(
            f"CONFIDENCE_THRESHOLD must be between 0 and 1, got {threshold}"
        )

    return Settings(
        language_endpoint=_require_env("AZURE_LANGUAGE_ENDPOINT"),
        language_key=_require_env("AZURE_LANGUAGE_KEY"),
        clu_project_name=_require_env("CLU_PROJECT_NAME"),
        clu_deployment_name=_require_env("CLU_DEPLOYMENT_NAME"),
        qna_project_name=_require_env("QNA_PROJECT_NAME"),
        qna_deployment_name=_require_env("QNA_DEPLOYMENT_NAME"),
        scheduler_endpoint=os.getenv(
            "SCHEDULER_API_ENDPOINT", DEFAULT_SCHEDULER_ENDPOINT,
        ),
        app_id=os.getenv("MICROSOFT_APP_ID", ""),
        app_password=_optional_secret("MICROSOFT_APP_PASSWORD"),
        app_tenant_id=os.getenv("MICROSOFT_APP_TENANT_ID", ""),
        confidence_threshold=threshold,
        http_timeout_seconds=float(
            os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        ),
        server_host=os.getenv("SERVER_HOST", "0.0.0.0"),
        server_port=int(os.getenv("PORT", "3978")),
        scheduler_port=int(os.getenv("SCHEDULER_PORT", "3000")),
        metrics_enabled=os.getenv("METRICS_ENABLED", "false").lower() == "true",
    )
