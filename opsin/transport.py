"""Single-shot HTTP POST to Azure OpenAI using requests."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import requests

from .jsoncodec import encode
from .models import ErrorKind, NetworkError, RawResponse

logger = logging.getLogger(__name__)


def request_headers(api_key: str) -> Dict[str, str]:
    """Azure authenticates with an ``api-key`` header rather than a bearer token."""
    return {
        "Content-Type": "application/json",
        "api-key": api_key,
    }


class Transport(Protocol):
    def __call__(self, url: str, payload: Dict[str, Any], api_key: str, timeout: float) -> RawResponse:
        ...


class RequestsTransport:
    """Default transport; one POST per call and no retries."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._session = session

    def __call__(self, url: str, payload: Dict[str, Any], api_key: str, timeout: float) -> RawResponse:
        body = encode(payload)
        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(url, data=body.encode("utf-8"), headers=request_headers(api_key), timeout=timeout)
        except requests.Timeout as exc:
            logger.warning("request timed out", extra={"url": url, "timeout": timeout})
            raise NetworkError(ErrorKind.TIMEOUT, f"Request timed out after {timeout:g} seconds", url) from exc
        except requests.RequestException as exc:
            logger.warning("request failed without a response", extra={"url": url, "error": str(exc)})
            raise NetworkError(ErrorKind.NO_RESPONSE, f"No response received: {exc}", url) from exc
        if response is None:
            raise NetworkError(ErrorKind.NO_RESPONSE, "No response received", url)
        return RawResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.text or "",
        )


def send(
    url: str,
    payload: Dict[str, Any],
    api_key: str,
    timeout: float,
    transport: Optional[Transport] = None,
) -> RawResponse:
    """POST ``payload`` to ``url``; raises NetworkError when no response arrives."""
    active = transport if transport is not None else RequestsTransport()
    logger.debug("dispatching request", extra={"url": url})
    response = active(url, payload, api_key, timeout)
    logger.debug("response received", extra={"url": url, "status_code": response.status})
    return response
