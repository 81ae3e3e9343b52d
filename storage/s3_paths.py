"""
Object key generation for media uploads.

Layout: uploads/<user_id>/<epoch_millis>-<random>.<ext>
"""
import secrets
import time
from pathlib import PurePosixPath

import config


def media_extension(original_filename: str) -> str:
    """Extension of the uploaded file without the dot, 'bin' when there is none."""
    suffix = PurePosixPath(original_filename or "").suffix.lstrip(".").lower()
    return suffix or "bin"


def generate_media_filename(original_filename: str) -> str:
    """<epoch_millis>-<random>.<ext>"""
    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(4)
    return f"{timestamp}-{random_part}.{media_extension(original_filename)}"


def media_object_key(user_id: str, filename: str) -> str:
    """uploads/<user_id>/<filename>"""
    return f"{config.MEDIA_PREFIX}/{user_id}/{filename}"
