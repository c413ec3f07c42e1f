"""Storage service: activity photo uploads to Supabase Storage (prod) or local disk (dev).

Supabase bucket: activity-photos (must be created in Supabase dashboard).
Local fallback: instance/uploads/ directory, debug apps only. In production
a failed or unconfigured upload raises StorageError so the activity is never
saved with a photo URL nothing serves.

Photos are addressed as <reference_id>/<uuid>.<ext> and the public URL is
what gets attached to the activity record as selfie_url.
"""

import logging
import os
import uuid

import requests
from flask import current_app

from fluxx.services.credential_store import is_valid_reference_id

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The photo could not be stored anywhere the app serves it from."""


# Max file size: 10 MB
MAX_FILE_SIZE = 10 * 1024 * 1024

# Allowed MIME types
ALLOWED_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
}

EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
}


def _get_supabase_config():
    """Return Supabase storage config if available, else None."""
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_SERVICE_KEY")
    bucket = current_app.config.get("SUPABASE_STORAGE_BUCKET") or "activity-photos"

    if url and key:
        return {"url": url.rstrip("/"), "key": key, "bucket": bucket}
    return None


def content_type_for(filename):
    """MIME type implied by a photo's file extension, or None."""
    ext = os.path.splitext(filename or "")[1].lower()
    return EXTENSION_TYPES.get(ext)


def validate_photo(data, content_type="image/jpeg"):
    """Validate captured photo bytes.

    Returns (ok: bool, error: str|None).
    """
    if content_type not in ALLOWED_TYPES:
        return False, f"File type '{content_type}' is not allowed. Accepted: JPEG, PNG, WebP, HEIC."

    size = len(data or b"")
    if size == 0:
        return False, "File is empty."

    if size > MAX_FILE_SIZE:
        return False, f"File is too large ({size / (1024*1024):.1f} MB). Maximum is 10 MB."

    return True, None


def upload_photo(data, reference_id, content_type="image/jpeg"):
    """Upload a captured photo and return its public URL.

    Raises:
        ValueError: If the photo or the reference ID fails validation.
        StorageError: If no storage the app serves from accepted the photo.
    """
    ok, error = validate_photo(data, content_type)
    if not ok:
        raise ValueError(error)
    if not is_valid_reference_id(reference_id):
        raise ValueError(f"Invalid reference ID '{reference_id}'.")

    ext = next(
        (e for e, t in EXTENSION_TYPES.items() if t == content_type), ".jpg"
    )
    storage_path = f"{reference_id}/{uuid.uuid4().hex}{ext}"

    # Try Supabase first, fall back to local in debug
    supabase = _get_supabase_config()
    if supabase:
        return _upload_supabase(supabase, storage_path, data, content_type)
    if not current_app.debug:
        raise StorageError("Photo storage is not configured.")
    return _upload_local(storage_path, data)


def _upload_supabase(config, path, data, content_type):
    """Upload to Supabase Storage. Returns public URL."""
    url = f"{config['url']}/storage/v1/object/{config['bucket']}/{path}"

    headers = {
        "Authorization": f"Bearer {config['key']}",
        "Content-Type": content_type,
        "x-upsert": "true",
    }

    try:
        resp = requests.post(url, headers=headers, data=data, timeout=30)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Supabase upload failed: {e}")
        if not current_app.debug:
            raise StorageError("Photo upload failed.") from e
        return _upload_local(path, data)

    public_url = f"{config['url']}/storage/v1/object/public/{config['bucket']}/{path}"
    logger.info(f"Uploaded to Supabase: {path}")
    return public_url


def _upload_local(path, data):
    """Upload to local filesystem (dev fallback). Returns URL path."""
    upload_root = os.path.realpath(os.path.join(current_app.instance_path, "uploads"))
    filepath = os.path.realpath(os.path.join(upload_root, path))
    if os.path.commonpath([upload_root, filepath]) != upload_root:
        raise ValueError(f"Refusing to write outside the upload folder: {path}")

    os.makedirs(os.path.dirname(filepath), exist_ok=True)
    with open(filepath, "wb") as f:
        f.write(data)

    logger.info(f"Uploaded locally: {filepath}")
    # Return a URL path that our Flask app can serve
    return f"/uploads/{path}"
