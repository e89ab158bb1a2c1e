"""
Drive service: Google Drive API integration for uploads and folder listing.

Business logic separated from HTTP layer. All Drive API calls use timeouts
and raise requests exceptions on failure; the router converts them. No call
is retried.
"""
import json
import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import requests

from config import DRIVE_REQUEST_TIMEOUT, DRIVE_UPLOAD_TIMEOUT

logger = logging.getLogger(__name__)

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

UPLOAD_FIELDS = "id, name, webViewLink, webContentLink"
LIST_FIELDS = "files(id, name, mimeType, createdTime, webViewLink)"

METADATA_MIME = "application/json"


@dataclass
class Blob:
    """One uploaded part held in memory: original filename, bytes, MIME type."""
    name: str
    content: bytes
    mime_type: str = "application/octet-stream"


def _drive_request(
    method: str,
    url: str,
    access_token: str,
    **kwargs: Any,
) -> dict | list | None:
    """Call Drive API with timeout; returns JSON. Raises on HTTP errors."""
    headers = {"Authorization": f"Bearer {access_token}"}
    if "headers" in kwargs:
        headers.update(kwargs.pop("headers"))
    kwargs.setdefault("timeout", DRIVE_REQUEST_TIMEOUT)
    resp = requests.request(method, url, headers=headers, **kwargs)
    resp.raise_for_status()
    if resp.content:
        return resp.json()
    return None


def error_message(exc: Exception) -> str:
    """Drive's own error message when the failure carries a JSON error body."""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        if message:
            return message
    return str(exc)


def _multipart_related(metadata: dict, blob: Blob, mime_type: str) -> tuple[bytes, str]:
    """Build a multipart/related body (JSON metadata part + media part)."""
    boundary = secrets.token_hex(16)
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode()
    tail = f"\r\n--{boundary}--".encode()
    return head + blob.content + tail, f"multipart/related; boundary={boundary}"


def upload_file(
    access_token: str,
    folder_id: str | None,
    blob: Blob,
    mime_type: str | None = None,
) -> dict:
    """
    Create one file in Drive (under folder_id when set) and return
    {id, name, webViewLink, webContentLink} as Drive reports them.
    """
    metadata: dict[str, Any] = {"name": blob.name}
    if folder_id:
        metadata["parents"] = [folder_id]
    body, content_type = _multipart_related(metadata, blob, mime_type or blob.mime_type)
    data = _drive_request(
        "POST",
        DRIVE_UPLOAD_URL,
        access_token,
        params={
            "uploadType": "multipart",
            "fields": UPLOAD_FIELDS,
            "supportsAllDrives": "true",
        },
        headers={"Content-Type": content_type},
        data=body,
        timeout=DRIVE_UPLOAD_TIMEOUT,
    )
    return data or {}


def upload_batch(
    access_token: str,
    folder_id: str | None,
    files: list[Blob],
    metadata: Blob | None = None,
) -> list[dict]:
    """
    Upload an optional metadata document, then every file.

    The metadata document goes first and alone, so the folder never shows
    batch files without it. The files are then uploaded concurrently, one
    worker each; any failure propagates and fails the whole batch. Returns
    records {name, id, webViewLink, webContentLink, type}, metadata first,
    files in request order.
    """
    records: list[dict] = []

    if metadata is not None:
        logger.info("Uploading metadata file: %s", metadata.name)
        data = upload_file(access_token, folder_id, metadata, METADATA_MIME)
        records.append({
            "name": metadata.name,
            "id": data.get("id"),
            "webViewLink": data.get("webViewLink"),
            "webContentLink": data.get("webContentLink"),
            "type": "metadata",
        })
        logger.info("Metadata file uploaded: %s", data.get("name", metadata.name))

    if files:
        with ThreadPoolExecutor(max_workers=len(files)) as pool:
            futures = [
                pool.submit(upload_file, access_token, folder_id, blob)
                for blob in files
            ]
            # result() re-raises the first failure in request order
            results = [future.result() for future in futures]
        for result in results:
            records.append({**result, "type": "file"})

    return records


def list_folder_files(access_token: str, folder_id: str | None) -> list[dict]:
    """
    List non-trashed items in folder_id, newest first. Returns
    [{id, name, mimeType, createdTime, webViewLink}].
    """
    query = "trashed=false"
    if folder_id:
        query = f"'{folder_id}' in parents and trashed=false"
    data = _drive_request(
        "GET",
        DRIVE_FILES_URL,
        access_token,
        params={
            "q": query,
            "fields": LIST_FIELDS,
            "orderBy": "createdTime desc",
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        },
    )
    return (data or {}).get("files", [])
