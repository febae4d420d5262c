"""Path utilities: folder path materialisation and object-store key naming.

- Folder paths always start with '/' and never end with '/'; a root folder
  named ``Docs`` has path ``/Docs``, a child ``2024`` has ``/Docs/2024``.
- Object keys are namespaced by user id and never reuse the client-supplied
  name, only its extension: ``<user_id>/<epoch_ms>-<random hex>.<ext>``.
"""

from __future__ import annotations

import os
import secrets
import time

from app.packages.drive.core.constants import STORAGE_KEY_RANDOM_BYTES


def join_folder_path(parent_path: str | None, name: str) -> str:
    if parent_path is None:
        return f"/{name}"
    return f"{parent_path.rstrip('/')}/{name}"


def file_extension(filename: str | None) -> str:
    """Lower-cased extension without the dot, '' when the name has none."""
    _, ext = os.path.splitext(os.path.basename(filename or ""))
    return ext.lstrip(".").lower()


def build_storage_key(user_id: int, filename: str | None, *, now_ms: int | None = None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    random_part = secrets.token_hex(STORAGE_KEY_RANDOM_BYTES)
    ext = file_extension(filename)
    suffix = f".{ext}" if ext else ""
    return f"{user_id}/{timestamp}-{random_part}{suffix}"
