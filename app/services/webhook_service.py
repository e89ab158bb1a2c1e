"""
Webhook service: payload construction and delivery to n8n.

Each payload is POSTed once as JSON. Non-2xx replies raise
WebhookDeliveryError; 2xx replies are normalized by normalize_reply.
"""
import json
import logging
from datetime import datetime, UTC
from typing import Any

import requests

from config import WEBHOOK_TIMEOUT

logger = logging.getLogger(__name__)

YOUTUBE_MARKERS = ("youtube.com", "youtu.be")

METADATA_TEXT_FIELDS = ("title", "description", "category", "publishedDate")

NON_JSON_NOTE = "n8n webhook accepted the data (non-JSON response)"


class WebhookDeliveryError(Exception):
    """Raised when the webhook is unset or answers with a non-2xx status."""

    def __init__(self, msg: str, status_code: int | None = None):
        self.msg = msg
        self.status_code = status_code
        super().__init__(msg)


def _timestamp() -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_youtube_url(url: str) -> bool:
    return any(marker in url for marker in YOUTUBE_MARKERS)


def count_words(content: str) -> int:
    return len(content.split())


def character_count(content: str) -> int:
    """Length in UTF-16 code units; astral characters such as emoji count twice."""
    return len(content.encode("utf-16-le")) // 2


def normalize_metadata(metadata: dict) -> dict:
    """Keep only the recognized fields; missing or empty ones become "" / []."""
    normalized = {field: metadata.get(field) or "" for field in METADATA_TEXT_FIELDS}
    tags = metadata.get("tags")
    normalized["tags"] = tags if isinstance(tags, list) else []
    return normalized


def build_youtube_payload(url: str) -> dict:
    return {"type": "youtube", "url": url, "timestamp": _timestamp()}


def build_text_payload(content: str, metadata: dict | None = None) -> dict:
    payload: dict[str, Any] = {
        "type": "text",
        "content": content,
        "wordCount": count_words(content),
        "characterCount": character_count(content),
        "timestamp": _timestamp(),
    }
    if metadata is not None:
        payload["metadata"] = normalize_metadata(metadata)
    return payload


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def normalize_reply(text: str) -> Any:
    """
    Reduce a 2xx reply body to one shape: parsed JSON passes through, a JSON
    array is reduced to its first element, and non-JSON text is wrapped as
    {raw, note}.
    """
    try:
        result = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        logger.warning("n8n returned non-JSON response: %s", text)
        return {"raw": text, "note": NON_JSON_NOTE}
    if isinstance(result, list):
        return result[0] if result else None
    return result


def send_to_webhook(webhook_url: str | None, payload: dict) -> Any:
    """POST payload to webhook_url once and return the normalized reply."""
    if not webhook_url:
        raise WebhookDeliveryError("n8n webhook URL is not configured")

    resp = requests.post(webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT)
    logger.info("n8n response status: %s", resp.status_code)
    if not resp.ok:
        raise WebhookDeliveryError(
            f"n8n webhook failed: {resp.status_code}", status_code=resp.status_code
        )

    logger.debug("n8n raw response: %s", resp.text)
    return normalize_reply(resp.text)
