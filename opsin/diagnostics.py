"""Diagnostic capture and plain-text troubleshooting reports."""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .jsoncodec import encode
from .models import ApiVersions, AzureConfig, ConnectionTestResult, DiagnosticRecord, RawResponse
from .payloads import build_probe_payload, chat_completions_url

MASK_PREFIX = 8
MASK_SUFFIX = 4


def mask_secret(value: Optional[str]) -> str:
    """Return ``value`` with only its first 8 and last 4 characters visible."""
    if not value:
        return ""
    if len(value) <= MASK_PREFIX + MASK_SUFFIX:
        return "***"
    return f"{value[:MASK_PREFIX]}...{value[-MASK_SUFFIX:]}"


def masked_headers(api_key: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "api-key": mask_secret(api_key),
    }


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def capture_record(
    url: str,
    api_key: str,
    payload: Dict[str, Any],
    response: Optional[RawResponse],
) -> DiagnosticRecord:
    """Build a record of one exchange; ``response`` is ``None`` when nothing came back."""
    return DiagnosticRecord(
        request_url=url,
        request_headers=masked_headers(api_key),
        request_payload_json=encode(payload),
        response_status=response.status if response is not None else None,
        response_body=response.body if response is not None else None,
        timestamp_utc=utc_timestamp(),
    )


@dataclass(frozen=True)
class RequestPreview:
    """Exactly what a connection probe would send, with the key masked."""

    url: str
    headers: Dict[str, str]
    payload_json: str
    payload_pretty: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "headers": dict(self.headers),
            "payload_json": self.payload_json,
            "payload_pretty": self.payload_pretty,
        }


def describe_request(config: AzureConfig, versions: ApiVersions) -> RequestPreview:
    payload = build_probe_payload(config.deployment_name)
    return RequestPreview(
        url=chat_completions_url(config.endpoint, config.deployment_name, versions.current),
        headers=masked_headers(config.api_key.strip()),
        payload_json=encode(payload),
        payload_pretty=json.dumps(payload, indent=2, ensure_ascii=False),
    )


def render_request_details(preview: RequestPreview) -> str:
    header_lines = "\n".join(f"{name}: {value}" for name, value in preview.headers.items())
    return (
        "HTTP REQUEST DETAILS\n"
        "====================\n\n"
        f"URL:\n{preview.url}\n\n"
        f"Headers:\n{header_lines} (api-key masked)\n\n"
        f"Payload (formatted):\n{preview.payload_pretty}\n\n"
        f"Payload (actual JSON):\n{preview.payload_json}\n"
    )


def render_detailed_report(result: ConnectionTestResult) -> str:
    """Render a connection test and its captured exchanges for display."""
    lines = ["DETAILED CONNECTION TEST REPORT", "================================", ""]
    if not result.diagnostics:
        lines.append("No request was sent.")
        lines.append("")
    for index, record in enumerate(result.diagnostics, start=1):
        status = record.response_status if record.response_status is not None else "No HTTP response"
        header_text = ", ".join(f"{name}={value}" for name, value in record.request_headers.items())
        lines.extend(
            [
                f"Attempt {index} at {record.timestamp_utc}",
                "REQUEST:",
                f"URL: {record.request_url}",
                f"Headers: {header_text}",
                f"Payload: {record.request_payload_json}",
                "RESPONSE:",
                f"Status: {status}",
                f"Body: {record.response_body or 'No body'}",
                "",
            ]
        )
    outcome = "SUCCESS" if result.success else "FAILURE"
    lines.append("RESULT:")
    lines.append(f"{outcome} ({result.stage}): {result.message}")
    return "\n".join(lines)
