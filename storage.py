import logging
import re
import time
from typing import Optional

from auth import get_supabase_admin
from config import get_settings

logger = logging.getLogger(__name__)


def _safe_filename(original: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", original)


def upload_file(user_id: str, filename: str, data: bytes, content_type: str) -> Optional[str]:
    """Archive an uploaded original. Returns the storage path, or None if storage is unavailable."""
    client = get_supabase_admin()
    if client is None:
        return None

    path = f"{user_id}/{int(time.time() * 1000)}-{_safe_filename(filename)}"
    try:
        client.storage.from_(get_settings().storage_bucket).upload(
            path, data, {"content-type": content_type, "upsert": "false"}
        )
    except Exception as e:
        logger.warning("Storage upload failed for %s: %s", path, e)
        return None
    return path


def remove_file(path: Optional[str]) -> None:
    if not path:
        return
    client = get_supabase_admin()
    if client is None:
        return
    try:
        client.storage.from_(get_settings().storage_bucket).remove([path])
    except Exception as e:
        logger.warning("Failed to delete %s from storage: %s", path, e)
