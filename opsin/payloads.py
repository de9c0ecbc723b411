"""Chat-completion request bodies and URLs for Azure OpenAI deployments."""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

from .models import AnalysisRequest
from .validation import normalize_endpoint

PROBE_PROMPT = "Test connection"
PROBE_MAX_TOKENS = 5
PROBE_TEMPERATURE = 0


def chat_completions_url(endpoint: str, deployment: str, api_version: str) -> str:
    """Return the chat-completions URL for one deployment and API version."""
    base = normalize_endpoint(endpoint)
    return f"{base}/openai/deployments/{deployment.strip()}/chat/completions?api-version={api_version}"


def image_data_url(image: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(image).decode("ascii")


def build_chat_payload(
    prompt: str,
    image: Optional[bytes] = None,
    model: Optional[str] = None,
    *,
    max_tokens: int,
    temperature: float,
    use_legacy_token_param: bool = False,
    system_prompt: Optional[str] = None,
    top_p: Optional[float] = None,
) -> Dict[str, Any]:
    """Build a chat-completions request body.

    With ``image`` the user message carries a text part and a JPEG data-URL
    part; without it the user content is a plain string. The token limit is
    sent as ``max_tokens`` when ``use_legacy_token_param`` is set, otherwise as
    ``max_completion_tokens``. Numbers are passed through unchanged.
    """
    messages: List[Dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    if image is not None:
        content: Any = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_data_url(image)}},
        ]
    else:
        content = prompt
    messages.append({"role": "user", "content": content})

    payload: Dict[str, Any] = {"messages": messages}
    if model:
        payload["model"] = model
    token_field = "max_tokens" if use_legacy_token_param else "max_completion_tokens"
    payload[token_field] = max_tokens
    payload["temperature"] = temperature
    if top_p is not None:
        payload["top_p"] = top_p
    return payload


def build_probe_payload(deployment: str, legacy: bool = False) -> Dict[str, Any]:
    """Minimal low-cost request used only to test connectivity.

    The legacy form drops the ``model`` field and uses ``max_tokens`` for
    clients that only understand the older request shape.
    """
    return build_chat_payload(
        PROBE_PROMPT,
        model=None if legacy else deployment.strip(),
        max_tokens=PROBE_MAX_TOKENS,
        temperature=PROBE_TEMPERATURE,
        use_legacy_token_param=legacy,
    )


def build_analysis_payload(request: AnalysisRequest, model: Optional[str] = None) -> Dict[str, Any]:
    return build_chat_payload(
        request.user_prompt,
        image=request.image_bytes,
        model=model,
        max_tokens=request.max_output_tokens,
        temperature=request.temperature,
        system_prompt=request.system_prompt,
        top_p=request.top_p,
    )
