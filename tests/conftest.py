from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import pytest

from opsin.models import ApiVersions, AzureConfig, RawResponse

CURRENT = "2024-06-01"
LEGACY = "2024-02-01"

Outcome = Union[RawResponse, Exception]


def chat_body(text: str) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "choices": [
                {"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": text}}
            ],
            "usage": {"prompt_tokens": 9, "completion_tokens": 2, "total_tokens": 11},
        }
    )


def raw(status: int, body: str = "") -> RawResponse:
    return RawResponse(status=status, headers={"Content-Type": "application/json"}, body=body)


@dataclass
class FakeTransport:
    """Answers by ``api-version`` query value and records every call."""

    outcomes: Dict[str, Outcome]
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def __call__(self, url: str, payload: Dict[str, Any], api_key: str, timeout: float) -> RawResponse:
        self.calls.append({"url": url, "payload": payload, "api_key": api_key, "timeout": timeout})
        version = url.rsplit("api-version=", 1)[1]
        outcome = self.outcomes[version]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def versions_called(self) -> List[str]:
        return [call["url"].rsplit("api-version=", 1)[1] for call in self.calls]


@pytest.fixture
def config() -> AzureConfig:
    return AzureConfig(
        endpoint="https://foo.openai.azure.com/",
        api_key="abcdefghijklmnop",
        deployment_name="gpt-4o",
    )


@pytest.fixture
def versions() -> ApiVersions:
    return ApiVersions(current=CURRENT, legacy=LEGACY)
