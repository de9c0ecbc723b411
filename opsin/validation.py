"""Offline checks that an Azure configuration is usable before any request is made."""
from __future__ import annotations

import re

from .models import AzureConfig, ConfigValidationError, ErrorKind

ENDPOINT_PATTERN = re.compile(r"^https://[^/]+\.openai\.azure\.com$")
MIN_API_KEY_LENGTH = 10
ENDPOINT_EXAMPLE = "https://your-service.openai.azure.com"


def normalize_endpoint(endpoint: str) -> str:
    """Trim whitespace and a single trailing slash from an endpoint URL."""
    cleaned = (endpoint or "").strip()
    if cleaned.endswith("/"):
        cleaned = cleaned[:-1]
    return cleaned


def validate_config(config: AzureConfig) -> None:
    """Raise ConfigValidationError if ``config`` cannot be used to reach Azure."""
    endpoint = normalize_endpoint(config.endpoint)
    api_key = (config.api_key or "").strip()
    deployment = (config.deployment_name or "").strip()

    if not endpoint:
        raise ConfigValidationError(ErrorKind.EMPTY_FIELD, "endpoint", "Azure endpoint not configured")
    if not api_key:
        raise ConfigValidationError(ErrorKind.EMPTY_FIELD, "api_key", "API key is empty")
    if not deployment:
        raise ConfigValidationError(
            ErrorKind.EMPTY_FIELD, "deployment_name", "Azure deployment name not configured"
        )
    if not ENDPOINT_PATTERN.match(endpoint):
        raise ConfigValidationError(
            ErrorKind.BAD_FORMAT,
            "endpoint",
            f"Invalid Azure OpenAI endpoint format. Expected format: {ENDPOINT_EXAMPLE}",
        )
    if len(api_key) < MIN_API_KEY_LENGTH:
        raise ConfigValidationError(
            ErrorKind.TOO_SHORT,
            "api_key",
            f"API key appears too short (less than {MIN_API_KEY_LENGTH} characters)",
        )
