"""Object key helpers shared by the storage backends."""

import os
import secrets
import string
import time

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def generate_unique_key(suggested_name: str) -> str:
    """
    `projects/PRJ-123/photo.jpeg` → `projects/PRJ-123/1718461920000-k3x9qa-photo.jpeg`.
    The directory part of the suggested name is kept as the key prefix.
    """
    prefix, filename = os.path.split(suggested_name)
    base, ext = os.path.splitext(filename)
    timestamp = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))
    key = f"{timestamp}-{random_part}-{base}{ext}"
    return f"{prefix}/{key}" if prefix else key


def content_type_for(name: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(name)[1].lower(), "application/octet-stream")
