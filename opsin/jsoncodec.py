"""Compact JSON encoding plus narrow field extraction for the chat-completions wire format."""
from __future__ import annotations

import json
import math
import re
from typing import Any, Mapping, Optional, Tuple, Union

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
}
_NUMBER_PATTERN = r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"


def encode(value: Any) -> str:
    """Return compact JSON text for ``value``.

    Mappings whose keys are exactly the integers ``1..len(mapping)`` are written
    as arrays ordered by key; every other mapping is written as an object in
    insertion order with its keys stringified.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot encode non-finite number {value!r}")
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Mapping):
        if _is_sequence_mapping(value):
            return "[" + ",".join(encode(value[index]) for index in range(1, len(value) + 1)) + "]"
        parts = [f"{json.dumps(str(key), ensure_ascii=False)}:{encode(item)}" for key, item in value.items()]
        return "{" + ",".join(parts) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(encode(item) for item in value) + "]"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _is_sequence_mapping(value: Mapping[Any, Any]) -> bool:
    for key in value:
        if isinstance(key, bool) or not isinstance(key, int):
            return False
    return set(value.keys()) == set(range(1, len(value) + 1))


def decode(text: str) -> Any:
    """Decode a complete JSON document."""
    return json.loads(text)


def scan_string(text: str, start: int) -> Optional[Tuple[str, int]]:
    """Read a JSON string body beginning just after its opening quote.

    Returns the unescaped value and the index of the closing quote, or ``None``
    when the string is never terminated.
    """
    escape_pending = False
    pos = start
    while pos < len(text):
        char = text[pos]
        if escape_pending:
            escape_pending = False
        elif char == "\\":
            escape_pending = True
        elif char == '"':
            return unescape(text[start:pos]), pos
        pos += 1
    return None


def unescape(raw: str) -> str:
    """Resolve JSON escape sequences in a string body."""
    if "\\" not in raw:
        return raw
    out = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char != "\\" or i + 1 >= len(raw):
            out.append(char)
            i += 1
            continue
        marker = raw[i + 1]
        if marker in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[marker])
            i += 2
            continue
        if marker == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", raw[i + 2 : i + 6]):
            code = int(raw[i + 2 : i + 6], 16)
            i += 6
            # surrogate pair
            if 0xD800 <= code <= 0xDBFF and raw[i : i + 2] == "\\u":
                low_hex = raw[i + 2 : i + 6]
                if re.fullmatch(r"[0-9a-fA-F]{4}", low_hex) and 0xDC00 <= int(low_hex, 16) <= 0xDFFF:
                    code = 0x10000 + ((code - 0xD800) << 10) + (int(low_hex, 16) - 0xDC00)
                    i += 6
            out.append(chr(code))
            continue
        out.append(char)
        i += 1
    return "".join(out)


def extract_string_field(text: str, key: str) -> Optional[str]:
    """Return the first string value stored under ``key`` anywhere in ``text``."""
    if not text:
        return None
    match = re.search(r'"' + re.escape(key) + r'"\s*:\s*"', text)
    if not match:
        return None
    scanned = scan_string(text, match.end())
    if scanned is None:
        return None
    return scanned[0]


def extract_number_field(text: str, key: str) -> Optional[Union[int, float]]:
    """Return the first numeric value stored under ``key`` anywhere in ``text``."""
    if not text:
        return None
    match = re.search(r'"' + re.escape(key) + r'"\s*:\s*(' + _NUMBER_PATTERN + r")", text)
    if not match:
        return None
    literal = match.group(1)
    if any(marker in literal for marker in ".eE"):
        return float(literal)
    return int(literal)
