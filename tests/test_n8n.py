"""
Webhook forwarding to n8n: validation, payloads, and reply normalization.
"""
from unittest.mock import patch

import pytest
import requests

import config
from services.webhook_service import (
    NON_JSON_NOTE,
    build_text_payload,
    character_count,
    count_words,
    normalize_metadata,
    normalize_reply,
)

YOUTUBE_HOOK = "https://n8n.example.test/webhook/youtube"
TEXT_HOOK = "https://n8n.example.test/webhook/text"


@pytest.fixture(autouse=True)
def webhooks(monkeypatch):
    monkeypatch.setattr(config, "N8N_YOUTUBE_LINK_WEBHOOK", YOUTUBE_HOOK)
    monkeypatch.setattr(config, "N8N_PASTE_TEXT_WEBHOOK", TEXT_HOOK)


class TestPayloads:
    def test_word_and_character_count(self):
        payload = build_text_payload("hello world")
        assert payload["wordCount"] == 2
        assert payload["characterCount"] == 11
        assert payload["type"] == "text"
        assert payload["timestamp"].endswith("Z")
        assert "metadata" not in payload

    def test_whitespace_runs_do_not_count_as_words(self):
        assert count_words("  one \n\t two   three ") == 3
        assert count_words("   ") == 0

    def test_character_count_uses_utf16_units(self):
        assert character_count("hello world") == 11
        assert character_count("hi \U0001F600") == 5
        assert build_text_payload("\U0001F600")["characterCount"] == 2

    def test_metadata_normalization(self):
        normalized = normalize_metadata({
            "title": "Episode 1",
            "category": None,
            "tags": "not-a-list",
            "author": "dropped",
        })
        assert normalized == {
            "title": "Episode 1",
            "description": "",
            "category": "",
            "publishedDate": "",
            "tags": [],
        }

    def test_empty_metadata_object_still_included(self):
        payload = build_text_payload("text", {})
        assert payload["metadata"]["tags"] == []


class TestReplyNormalization:
    def test_object_passes_through(self):
        assert normalize_reply('{"ok": true}') == {"ok": True}

    def test_array_reduced_to_first_element(self):
        assert normalize_reply('[{"id": 1}, {"id": 2}]') == {"id": 1}

    def test_empty_array(self):
        assert normalize_reply("[]") is None

    def test_non_json_wrapped(self):
        assert normalize_reply("not json") == {"raw": "not json", "note": NON_JSON_NOTE}

    @pytest.mark.parametrize("text", ["NaN", "[NaN]", "Infinity", "{\"score\": -Infinity}"])
    def test_non_standard_constants_wrapped(self, text):
        assert normalize_reply(text) == {"raw": text, "note": NON_JSON_NOTE}


class TestYoutubeLink:
    def test_requires_session_token(self, client):
        response = client.post("/api/n8n/youtube-link", json={"url": "https://youtu.be/abc123"})
        assert response.status_code == 401

    def test_missing_url(self, client, auth_headers):
        response = client.post("/api/n8n/youtube-link", headers=auth_headers, json={})
        assert response.status_code == 400
        assert response.json() == {"error": "No URL provided"}

    def test_rejects_unrecognized_host(self, client, auth_headers):
        with patch("services.webhook_service.requests.post") as post:
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://example.com/video"},
            )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid YouTube URL"}
        post.assert_not_called()

    def test_forwards_short_link(self, client, auth_headers, make_response):
        with patch(
            "services.webhook_service.requests.post",
            return_value=make_response(200, [{"id": 1}]),
        ) as post:
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://youtu.be/abc123"},
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "YouTube link sent to n8n successfully",
            "n8nResponse": {"id": 1},
        }
        assert post.call_args.args[0] == YOUTUBE_HOOK
        sent = post.call_args.kwargs["json"]
        assert sent["type"] == "youtube"
        assert sent["url"] == "https://youtu.be/abc123"

    def test_non_json_reply_is_success(self, client, auth_headers, make_response):
        with patch(
            "services.webhook_service.requests.post",
            return_value=make_response(200, "not json"),
        ):
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://www.youtube.com/watch?v=abc123"},
            )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["n8nResponse"] == {"raw": "not json", "note": NON_JSON_NOTE}

    def test_nan_reply_is_wrapped_not_500(self, client, auth_headers, make_response):
        with patch(
            "services.webhook_service.requests.post",
            return_value=make_response(200, "NaN"),
        ):
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://youtu.be/abc123"},
            )

        assert response.status_code == 200
        assert response.json()["n8nResponse"] == {"raw": "NaN", "note": NON_JSON_NOTE}

    def test_non_2xx_reply_is_500(self, client, auth_headers, make_response):
        with patch(
            "services.webhook_service.requests.post",
            return_value=make_response(404, "Webhook not registered"),
        ):
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://youtu.be/abc123"},
            )

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to send to n8n",
            "details": "n8n webhook failed: 404",
        }

    def test_unconfigured_webhook_is_500(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(config, "N8N_YOUTUBE_LINK_WEBHOOK", None)
        with patch("services.webhook_service.requests.post") as post:
            response = client.post(
                "/api/n8n/youtube-link",
                headers=auth_headers,
                json={"url": "https://youtu.be/abc123"},
            )
        assert response.status_code == 500
        post.assert_not_called()


class TestPasteText:
    def test_missing_content(self, client, auth_headers):
        response = client.post(
            "/api/n8n/paste-text", headers=auth_headers, json={"content": ""}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "No content provided"}

    def test_wrong_content_type_is_400(self, client, auth_headers):
        response = client.post(
            "/api/n8n/paste-text", headers=auth_headers, json={"content": ["a", "b"]}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_forwards_text_with_metadata(self, client, auth_headers, make_response):
        with patch(
            "services.webhook_service.requests.post",
            return_value=make_response(200, {"status": "queued"}),
        ) as post:
            response = client.post(
                "/api/n8n/paste-text",
                headers=auth_headers,
                json={
                    "content": "hello world",
                    "metadata": {"title": "Notes", "tags": ["a"], "extra": 1},
                },
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Text and metadata sent to n8n successfully",
            "n8nResponse": {"status": "queued"},
        }
        assert post.call_args.args[0] == TEXT_HOOK
        sent = post.call_args.kwargs["json"]
        assert sent["wordCount"] == 2
        assert sent["characterCount"] == 11
        assert sent["metadata"] == {
            "title": "Notes",
            "description": "",
            "category": "",
            "publishedDate": "",
            "tags": ["a"],
        }

    def test_transport_failure_is_500(self, client, auth_headers):
        with patch(
            "services.webhook_service.requests.post",
            side_effect=requests.Timeout("read timed out"),
        ):
            response = client.post(
                "/api/n8n/paste-text", headers=auth_headers, json={"content": "hi"}
            )
        assert response.status_code == 500
        assert response.json()["success"] is False
