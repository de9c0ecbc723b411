"""Staged connection test against an Azure OpenAI deployment.

The automatic chain is: offline validation, a probe on the current API
version and, only when that probe answers HTTP 400, the same probe on the
legacy API version. Every stage is a single round trip; network failures
are reported, never retried. The legacy-compatibility probe and the
detailed single-shot test are separate entry points.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .diagnostics import capture_record, mask_secret
from .models import (
    DEFAULT_CURRENT_API_VERSION,
    DEFAULT_LEGACY_API_VERSION,
    DEFAULT_TIMEOUT_SECONDS,
    ApiVersions,
    AzureConfig,
    ConfigValidationError,
    ConnectionTestResult,
    DiagnosticRecord,
    ErrorKind,
    NetworkError,
    RawResponse,
    kind_for_status,
)
from .payloads import build_probe_payload, chat_completions_url
from .transport import Transport, send
from .validation import validate_config

logger = logging.getLogger(__name__)

STAGE_BASIC_VALIDATION = "basic_validation"
STAGE_PRIMARY_PROBE = "primary_probe"
STAGE_FALLBACK_PROBE = "fallback_probe"
STAGE_LEGACY_COMPATIBILITY = "legacy_compatibility_probe"
STAGE_DETAILED_PROBE = "detailed_probe"

DEFAULT_VERSIONS = ApiVersions(current=DEFAULT_CURRENT_API_VERSION, legacy=DEFAULT_LEGACY_API_VERSION)


def run_connection_test(
    config: AzureConfig,
    *,
    transport: Optional[Transport] = None,
    versions: ApiVersions = DEFAULT_VERSIONS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    capture_diagnostics: bool = False,
) -> ConnectionTestResult:
    """Check that ``config`` reaches its deployment, falling back to the legacy API version on HTTP 400."""
    deployment = config.deployment_name.strip()
    logger.info(
        "connection test started",
        extra={"deployment": deployment, "api_key": mask_secret(config.api_key.strip())},
    )
    failure = _basic_validation(config)
    if failure is not None:
        return failure

    diagnostics: Optional[List[DiagnosticRecord]] = [] if capture_diagnostics else None
    payload = build_probe_payload(deployment)
    primary_url = chat_completions_url(config.endpoint, deployment, versions.current)

    try:
        response = _exchange(config, primary_url, payload, transport, timeout, diagnostics, STAGE_PRIMARY_PROBE)
    except NetworkError as exc:
        return _result(
            False,
            STAGE_PRIMARY_PROBE,
            f"Failed to connect to deployment endpoint. {exc.message}"
            + _details(primary_url, None)
            + "\n\nCheck network connectivity and firewall settings.",
            diagnostics,
            api_version=versions.current,
            kind=exc.kind,
            url=primary_url,
        )

    status = response.status
    kind = kind_for_status(status)
    if kind is None:
        return _result(
            True,
            STAGE_PRIMARY_PROBE,
            f"Connection successful! Deployment '{deployment}' is working with API version {versions.current}.",
            diagnostics,
            api_version=versions.current,
            http_status=status,
            url=primary_url,
        )
    if kind is ErrorKind.BAD_REQUEST:
        logger.info(
            "primary probe rejected, trying legacy API version",
            extra={"stage": STAGE_PRIMARY_PROBE, "url": primary_url, "status_code": status},
        )
        return _fallback_probe(config, payload, primary_url, transport, versions, timeout, diagnostics)

    if kind is ErrorKind.UNAUTHORIZED:
        message = (
            "Authentication failed at deployment level. API key may not have permissions for "
            f"deployment '{deployment}'. Check your Azure OpenAI resource permissions."
        )
    elif kind is ErrorKind.NOT_FOUND:
        message = (
            f"Deployment '{deployment}' not found OR API version {versions.current} not supported. "
            "Try a different API version or verify the deployment name in the Azure portal."
        )
    elif kind is ErrorKind.RATE_LIMITED:
        message = (
            "Rate limit exceeded (HTTP 429). Your Azure OpenAI service is being throttled. "
            "Wait a moment and try again."
        )
    elif kind is ErrorKind.SERVER_ERROR:
        message = (
            f"Server error (HTTP {status}). Azure OpenAI service may be temporarily unavailable. "
            "Try again in a few minutes."
        )
    elif 400 <= status < 500:
        message = f"Client error (HTTP {status})."
    else:
        # connected, but not with a status we know how to judge
        return _result(
            True,
            STAGE_PRIMARY_PROBE,
            f"Unexpected response (HTTP {status}) but connection established. May still work for analysis."
            + _details(primary_url, response.body),
            diagnostics,
            api_version=versions.current,
            kind=ErrorKind.OTHER,
            http_status=status,
            url=primary_url,
        )
    return _result(
        False,
        STAGE_PRIMARY_PROBE,
        message + _details(primary_url, response.body),
        diagnostics,
        api_version=versions.current,
        kind=kind,
        http_status=status,
        url=primary_url,
    )


def _fallback_probe(
    config: AzureConfig,
    payload: Dict[str, Any],
    primary_url: str,
    transport: Optional[Transport],
    versions: ApiVersions,
    timeout: float,
    diagnostics: Optional[List[DiagnosticRecord]],
) -> ConnectionTestResult:
    deployment = config.deployment_name.strip()
    fallback_url = chat_completions_url(config.endpoint, deployment, versions.legacy)
    both = f"{versions.current} and {versions.legacy}"
    try:
        response = _exchange(config, fallback_url, payload, transport, timeout, diagnostics, STAGE_FALLBACK_PROBE)
    except NetworkError as exc:
        return _result(
            False,
            STAGE_FALLBACK_PROBE,
            f"Failed to connect with either API version ({both}). {exc.message}"
            + _details(fallback_url, None)
            + "\n\nCheck network connectivity.",
            diagnostics,
            api_version=versions.legacy,
            kind=exc.kind,
            url=fallback_url,
        )

    status = response.status
    kind = kind_for_status(status)
    if kind is None:
        return _result(
            True,
            STAGE_FALLBACK_PROBE,
            f"Connection successful using fallback API version {versions.legacy}! "
            f"API version {versions.current} rejected the request; consider checking which versions "
            "your resource supports.",
            diagnostics,
            api_version=versions.legacy,
            http_status=status,
            url=fallback_url,
        )
    if kind is ErrorKind.UNAUTHORIZED:
        message = (
            f"Authentication failed with both API versions ({both}) for deployment '{deployment}'. "
            "Please verify your API key has proper permissions."
        )
        details = _details(fallback_url, response.body)
    elif kind is ErrorKind.NOT_FOUND:
        message = (
            f"Deployment '{deployment}' not found with either API version. "
            "Please verify the deployment name in the Azure portal."
        )
        details = f"\n\nTested URLs:\n- {primary_url}\n- {fallback_url}" + _body_detail(response.body)
    else:
        message = f"Error with both API versions ({both}). Latest attempt returned HTTP {status}."
        details = _details(fallback_url, response.body)
    return _result(
        False,
        STAGE_FALLBACK_PROBE,
        message + details,
        diagnostics,
        api_version=versions.legacy,
        kind=kind,
        http_status=status,
        url=fallback_url,
    )


def run_legacy_compatibility_test(
    config: AzureConfig,
    *,
    transport: Optional[Transport] = None,
    versions: ApiVersions = DEFAULT_VERSIONS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    capture_diagnostics: bool = False,
) -> ConnectionTestResult:
    """Probe with the older request shape: no ``model`` field and ``max_tokens``."""
    failure = _basic_validation(config)
    if failure is not None:
        return failure

    diagnostics: Optional[List[DiagnosticRecord]] = [] if capture_diagnostics else None
    deployment = config.deployment_name.strip()
    url = chat_completions_url(config.endpoint, deployment, versions.current)
    payload = build_probe_payload(deployment, legacy=True)
    try:
        response = _exchange(config, url, payload, transport, timeout, diagnostics, STAGE_LEGACY_COMPATIBILITY)
    except NetworkError as exc:
        return _result(
            False,
            STAGE_LEGACY_COMPATIBILITY,
            f"Legacy compatibility test failed: {exc.message}" + _details(url, None),
            diagnostics,
            api_version=versions.current,
            kind=exc.kind,
            url=url,
        )
    kind = kind_for_status(response.status)
    if kind is None:
        return _result(
            True,
            STAGE_LEGACY_COMPATIBILITY,
            "Legacy compatibility test successful with simplified parameters!",
            diagnostics,
            api_version=versions.current,
            http_status=response.status,
            url=url,
        )
    return _result(
        False,
        STAGE_LEGACY_COMPATIBILITY,
        f"Legacy compatibility test failed (HTTP {response.status})." + _details(url, response.body),
        diagnostics,
        api_version=versions.current,
        kind=kind,
        http_status=response.status,
        url=url,
    )


def run_detailed_test(
    config: AzureConfig,
    *,
    transport: Optional[Transport] = None,
    versions: ApiVersions = DEFAULT_VERSIONS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ConnectionTestResult:
    """Single probe on the current API version that always records the exchange."""
    failure = _basic_validation(config)
    if failure is not None:
        return failure

    diagnostics: List[DiagnosticRecord] = []
    deployment = config.deployment_name.strip()
    url = chat_completions_url(config.endpoint, deployment, versions.current)
    payload = build_probe_payload(deployment)
    try:
        response = _exchange(config, url, payload, transport, timeout, diagnostics, STAGE_DETAILED_PROBE)
    except NetworkError as exc:
        return _result(
            False,
            STAGE_DETAILED_PROBE,
            f"Failed to connect. No HTTP response received. {exc.message}" + _details(url, None),
            diagnostics,
            api_version=versions.current,
            kind=exc.kind,
            url=url,
        )

    status = response.status
    kind = kind_for_status(status)
    if kind is None:
        return _result(
            True,
            STAGE_DETAILED_PROBE,
            f"Connection successful! (API version {versions.current})",
            diagnostics,
            api_version=versions.current,
            http_status=status,
            url=url,
        )
    summaries = {
        ErrorKind.UNAUTHORIZED: "Authentication failed (HTTP 401). API key rejected by Azure OpenAI.",
        ErrorKind.NOT_FOUND: "Not found (HTTP 404). Check deployment name and API version.",
        ErrorKind.BAD_REQUEST: "Bad request (HTTP 400). Payload format may be incorrect.",
        ErrorKind.RATE_LIMITED: "Rate limit exceeded (HTTP 429).",
        ErrorKind.SERVER_ERROR: f"Server error (HTTP {status}).",
    }
    message = summaries.get(kind, f"Unexpected response (HTTP {status}).")
    return _result(
        False,
        STAGE_DETAILED_PROBE,
        message + _details(url, response.body),
        diagnostics,
        api_version=versions.current,
        kind=kind,
        http_status=status,
        url=url,
    )


def _basic_validation(config: AzureConfig) -> Optional[ConnectionTestResult]:
    try:
        validate_config(config)
    except ConfigValidationError as exc:
        logger.info(
            "basic validation failed",
            extra={"stage": STAGE_BASIC_VALIDATION, "field": exc.field_name, "error_code": exc.code},
        )
        return ConnectionTestResult(
            success=False,
            stage=STAGE_BASIC_VALIDATION,
            message=f"Basic validation failed: {exc.message}",
            kind=exc.kind,
        )
    return None


def _exchange(
    config: AzureConfig,
    url: str,
    payload: Dict[str, Any],
    transport: Optional[Transport],
    timeout: float,
    diagnostics: Optional[List[DiagnosticRecord]],
    stage: str,
) -> RawResponse:
    api_key = config.api_key.strip()
    logger.info("probe sent", extra={"stage": stage, "url": url})
    try:
        response = send(url, payload, api_key, timeout, transport=transport)
    except NetworkError:
        if diagnostics is not None:
            diagnostics.append(capture_record(url, api_key, payload, None))
        raise
    if diagnostics is not None:
        diagnostics.append(capture_record(url, api_key, payload, response))
    logger.info("probe answered", extra={"stage": stage, "url": url, "status_code": response.status})
    return response


def _result(
    success: bool,
    stage: str,
    message: str,
    diagnostics: Optional[List[DiagnosticRecord]],
    **fields: Any,
) -> ConnectionTestResult:
    log = logger.info if success else logger.warning
    log(
        "connection test finished",
        extra={"stage": stage, "status_code": fields.get("http_status"), "url": fields.get("url")},
    )
    return ConnectionTestResult(
        success=success,
        stage=stage,
        message=message,
        diagnostics=list(diagnostics or []),
        **fields,
    )


def _details(url: str, body: Optional[str]) -> str:
    return f"\n\nTested URL: {url}" + _body_detail(body)


def _body_detail(body: Optional[str]) -> str:
    if not body:
        return ""
    return f"\n\nResponse details: {body}"
