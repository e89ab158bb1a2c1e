"""
n8n router: forwards YouTube links and pasted text to the automation webhooks.

Validation happens here; payload building, delivery and reply normalization
live in services.webhook_service. Delivery failures become 500s.
"""
import logging
from typing import Any

import requests
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import get_current_user
import config
from errors import ValidationError, WebhookFailedError
from services.webhook_service import (
    WebhookDeliveryError,
    build_text_payload,
    build_youtube_payload,
    is_youtube_url,
    send_to_webhook,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/n8n")


# --- Request models ---


class YoutubeLinkBody(BaseModel):
    url: str | None = None


class PasteTextBody(BaseModel):
    """Pasted text; metadata keys other than the recognized ones are dropped."""
    content: str | None = None
    metadata: dict[str, Any] | None = None


def _forward(webhook_url: str | None, payload: dict, message: str) -> dict:
    try:
        reply = send_to_webhook(webhook_url, payload)
    except (WebhookDeliveryError, requests.RequestException) as e:
        logger.exception("Error sending to n8n")
        raise WebhookFailedError(str(e))
    return {"success": True, "message": message, "n8nResponse": reply}


# --- Endpoints ---


@router.post("/youtube-link")
def youtube_link(body: YoutubeLinkBody, user: dict = Depends(get_current_user)):
    if not body.url:
        raise ValidationError("No URL provided")
    if not is_youtube_url(body.url):
        raise ValidationError("Invalid YouTube URL")

    logger.info("Sending to n8n: %s", body.url)
    return _forward(
        config.N8N_YOUTUBE_LINK_WEBHOOK,
        build_youtube_payload(body.url),
        "YouTube link sent to n8n successfully",
    )


@router.post("/paste-text")
def paste_text(body: PasteTextBody, user: dict = Depends(get_current_user)):
    """Forward text with word/character counts and optional metadata."""
    if not body.content:
        raise ValidationError("No content provided")

    logger.info("Sending text to n8n, length: %d", len(body.content))
    payload = build_text_payload(body.content, body.metadata)
    logger.debug("Full payload to n8n: %s", payload)
    return _forward(
        config.N8N_PASTE_TEXT_WEBHOOK,
        payload,
        "Text and metadata sent to n8n successfully",
    )
