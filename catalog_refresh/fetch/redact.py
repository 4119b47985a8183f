"""Mask the catalog API key in URLs, log lines and stored records."""
import re
from typing import Any

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = [
    (re.compile(r"(api_key=)([^&\s\"']+)", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"(X-API-KEY[\"']?\s*[:=]\s*[\"']?)([^\"'\s,]+)", re.IGNORECASE), r"\1" + REDACTED),
]

_SECRET_KEYS = ("api_key", "apikey", "x-api-key")


def redact_string(text: str) -> str:
    """Redact secrets from a string."""
    if not text:
        return text

    result = text
    for pattern, replacement in _SECRET_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_json(data: Any) -> Any:
    """Recursively redact secrets from JSON-serializable data."""
    if isinstance(data, dict):
        return {
            key: REDACTED if str(key).lower() in _SECRET_KEYS else redact_json(value)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [redact_json(item) for item in data]
    elif isinstance(data, str):
        return redact_string(data)
    else:
        return data
