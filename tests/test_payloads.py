import base64

from opsin.payloads import build_chat_payload, build_probe_payload, chat_completions_url


def test_plain_text_payload_uses_current_token_field():
    payload = build_chat_payload("hello", model="gpt-4o", max_tokens=5, temperature=0)
    assert payload == {
        "messages": [{"role": "user", "content": "hello"}],
        "model": "gpt-4o",
        "max_completion_tokens": 5,
        "temperature": 0,
    }


def test_legacy_token_field():
    payload = build_chat_payload("hello", max_tokens=5, temperature=0, use_legacy_token_param=True)
    assert payload["max_tokens"] == 5
    assert "max_completion_tokens" not in payload
    assert "model" not in payload


def test_image_becomes_multimodal_content():
    image = b"\xff\xd8\xff\xe0fake-jpeg"
    payload = build_chat_payload(
        "describe", image=image, max_tokens=100, temperature=0.3, system_prompt="persona", top_p=0.95
    )
    system, user = payload["messages"]
    assert system == {"role": "system", "content": "persona"}
    text_part, image_part = user["content"]
    assert text_part == {"type": "text", "text": "describe"}
    assert image_part["type"] == "image_url"
    url = image_part["image_url"]["url"]
    assert url.startswith("data:image/jpeg;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == image
    assert payload["top_p"] == 0.95


def test_numbers_are_not_clamped():
    payload = build_chat_payload("x", max_tokens=-1, temperature=7.5, top_p=3.0)
    assert payload["temperature"] == 7.5
    assert payload["top_p"] == 3.0
    assert payload["max_completion_tokens"] == -1


def test_probe_payloads():
    assert build_probe_payload("gpt-4o") == {
        "messages": [{"role": "user", "content": "Test connection"}],
        "model": "gpt-4o",
        "max_completion_tokens": 5,
        "temperature": 0,
    }
    legacy = build_probe_payload("gpt-4o", legacy=True)
    assert "model" not in legacy
    assert legacy["max_tokens"] == 5


def test_chat_completions_url():
    url = chat_completions_url("https://foo.openai.azure.com/", " gpt-4o ", "2024-06-01")
    assert url == "https://foo.openai.azure.com/openai/deployments/gpt-4o/chat/completions?api-version=2024-06-01"
