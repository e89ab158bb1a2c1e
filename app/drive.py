"""
Drive router: HTTP endpoints for uploading to and listing the destination folder.

Delegates Drive calls to services.drive_service. Both routes need a valid
session token and a held Drive credential (get_valid_access_token). Enforces
upload limits before any Drive call; Drive failures become 500s.
"""
import logging

import requests
from fastapi import APIRouter, Depends, File, UploadFile

from auth import get_current_user, get_valid_access_token
import config
from credentials import DriveCredentials, get_drive_credentials
from errors import NotAuthenticatedWithProvider, UpstreamError, ValidationError
from services.drive_service import Blob, error_message, list_folder_files, upload_batch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _read_blob(upload: UploadFile) -> Blob:
    """Read an uploaded part into memory, rejecting parts over the size limit."""
    content = upload.file.read(config.MAX_UPLOAD_FILE_SIZE_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_FILE_SIZE_BYTES:
        raise ValidationError(
            "File too large",
            f"{upload.filename} exceeds {config.MAX_UPLOAD_FILE_SIZE_BYTES} bytes",
        )
    return Blob(
        name=upload.filename or "unnamed",
        content=content,
        mime_type=upload.content_type or "application/octet-stream",
    )


@router.post("/upload")
def upload_files(
    user: dict = Depends(get_current_user),
    credentials: DriveCredentials = Depends(get_drive_credentials),
    files: list[UploadFile] | None = File(None),
    metadata: list[UploadFile] | None = File(None),
):
    """
    Upload files (and an optional metadata JSON document) to the Drive folder.
    The metadata document is uploaded first; the files follow concurrently.
    Any Drive failure fails the whole request.
    """
    if not credentials.is_authenticated:
        raise NotAuthenticatedWithProvider()

    files = files or []
    metadata = metadata or []
    if len(files) > config.MAX_UPLOAD_FILES:
        raise ValidationError(f"At most {config.MAX_UPLOAD_FILES} files per request")
    if len(metadata) > 1:
        raise ValidationError("At most one metadata file per request")
    if not files:
        raise ValidationError("No files uploaded")

    blobs = [_read_blob(f) for f in files]
    metadata_blob = _read_blob(metadata[0]) if metadata else None

    # Refresh only once the request is known to reach Drive
    access_token = get_valid_access_token(credentials)

    logger.info("Uploading %d file(s)...", len(blobs))
    try:
        records = upload_batch(
            access_token,
            config.GOOGLE_DRIVE_FOLDER_ID,
            blobs,
            metadata_blob,
        )
    except requests.RequestException as e:
        logger.exception("Upload error")
        raise UpstreamError("Failed to upload files", error_message(e))

    logger.info("Successfully uploaded %d file(s) to Google Drive", len(records))
    return {
        "message": "Files uploaded successfully",
        "files": records,
        "count": len(records),
    }


@router.get("/files")
def list_files(
    user: dict = Depends(get_current_user),
    credentials: DriveCredentials = Depends(get_drive_credentials),
):
    """Items in the destination folder, newest first, excluding trashed ones."""
    access_token = get_valid_access_token(credentials)
    try:
        files = list_folder_files(access_token, config.GOOGLE_DRIVE_FOLDER_ID)
    except requests.RequestException as e:
        logger.exception("Error fetching files")
        raise UpstreamError("Failed to fetch files", error_message(e))
    return {"files": files, "count": len(files)}
