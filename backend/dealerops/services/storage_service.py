# Overview: Service-layer operations for file storage buckets on local disk.

"""
File Storage

Buckets are directories under UPLOAD_FOLDER. Objects are addressed by
(bucket, path) where path is relative, e.g. "12/1718000000000-k3j9x2.png".
Stored objects are served back by GET /uploads/<bucket>/<path>; the URL
persisted on records is PUBLIC_BASE_URL + that route.
"""

from __future__ import annotations

import os
import secrets
import string
import time
from dataclasses import dataclass

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename


VEHICLE_IMAGES_BUCKET = "vehicle-images"
VEHICLE_DOCUMENTS_BUCKET = "vehicle-documents"
BUCKETS = (VEHICLE_IMAGES_BUCKET, VEHICLE_DOCUMENTS_BUCKET)

IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}
IMAGE_EXTENSIONS = {"jpeg", "jpg", "png", "pdf"}
MAX_IMAGE_BYTES = 10 * 1024 * 1024


class StorageError(ValueError):
    """Raised when an upload is rejected or cannot be stored."""


@dataclass
class StoredFile:
    bucket: str
    path: str
    url: str
    size: int
    content_type: str
    original_name: str


def _upload_root() -> str:
    return current_app.config["UPLOAD_FOLDER"]


def _bucket_dir(bucket: str) -> str:
    if bucket not in BUCKETS:
        raise StorageError(f"Unknown bucket: {bucket}")
    return os.path.join(_upload_root(), bucket)


def public_url(bucket: str, path: str) -> str:
    base = (current_app.config.get("PUBLIC_BASE_URL") or "").rstrip("/")
    return f"{base}/uploads/{bucket}/{path}"


def resolve_path(bucket: str, path: str) -> str | None:
    """Absolute filesystem path for an object, or None if it escapes the bucket."""
    return safe_join(_bucket_dir(bucket), path)


def _file_size(file: FileStorage) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _random_suffix(length: int = 6) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def validate_upload(
    file: FileStorage | None,
    *,
    allowed_types: set[str],
    allowed_extensions: set[str],
    max_bytes: int,
) -> tuple[str, int]:
    """
    Check presence, type and size of an uploaded file.

    Returns (extension, size). Raises StorageError with a user-facing message.
    """
    if file is None or not file.filename:
        raise StorageError("No file provided")

    ext = _extension(file.filename)
    content_type = (file.mimetype or "").lower()
    # Browsers sometimes send octet-stream; the extension decides then
    type_ok = content_type in allowed_types or content_type in ("", "application/octet-stream")
    if ext not in allowed_extensions or not type_ok:
        raise StorageError("Invalid file type. Only JPEG, PNG, and PDF files are allowed.")

    size = _file_size(file)
    if size == 0:
        raise StorageError("File is empty")
    if size > max_bytes:
        raise StorageError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")

    return ext, size


def store_file(bucket: str, prefix: str, file: FileStorage, *, ext: str, size: int) -> StoredFile:
    """
    Save an upload as {prefix}/{millis}-{random}.{ext} inside the bucket.
    """
    name = f"{int(time.time() * 1000)}-{_random_suffix()}.{ext}"
    rel_path = f"{secure_filename(str(prefix))}/{name}"

    target = resolve_path(bucket, rel_path)
    if target is None:
        raise StorageError("Invalid storage path")
    os.makedirs(os.path.dirname(target), exist_ok=True)
    file.stream.seek(0)
    file.save(target)

    return StoredFile(
        bucket=bucket,
        path=rel_path,
        url=public_url(bucket, rel_path),
        size=size,
        content_type=(file.mimetype or f"application/{ext}"),
        original_name=os.path.basename(file.filename) or name,
    )


def remove_file(bucket: str, path: str) -> bool:
    """Delete a stored object. Returns False when it was already gone."""
    target = resolve_path(bucket, path)
    if target is None or not os.path.isfile(target):
        return False
    os.remove(target)
    return True
