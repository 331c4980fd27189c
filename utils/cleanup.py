"""
Cleanup functions for temporary files
"""
import logging
import os
import re
import time
from typing import Optional

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000

# Names written by TempStorage: 19-digit time_ns() stamp, optional short extension
TEMP_FILE_PATTERN = re.compile(r"^(?:enhanced_)?([0-9]{19})(?:\.[a-z0-9]{1,5})?$")


def file_timestamp(filename: str) -> Optional[int]:
    """Creation time (seconds) embedded in ``enhanced_<ns>.ext`` or ``<ns>.ext``"""
    match = TEMP_FILE_PATTERN.match(filename)
    if not match:
        return None
    return int(match.group(1)) // NS_PER_SECOND


def cleanup_expired_files(directory, max_age_seconds: int = 3600, now: Optional[float] = None) -> dict:
    """Delete temp uploads and results older than ``max_age_seconds``.

    Files whose names carry no timestamp are left alone, the directory may
    be shared (``/tmp`` by default).
    """
    current_time = int(now if now is not None else time.time())
    processed_count = 0
    deleted_count = 0

    try:
        filenames = os.listdir(directory)
    except FileNotFoundError:
        logger.info(f"✅ Temp directory {directory} does not exist, nothing to clean")
        return {"processed": 0, "deleted": 0}

    for filename in filenames:
        file_timestamp_s = file_timestamp(filename)
        if file_timestamp_s is None:
            continue

        file_path = os.path.join(directory, filename)
        if not os.path.isfile(file_path):
            continue

        processed_count += 1
        age_seconds = current_time - file_timestamp_s
        if age_seconds <= max_age_seconds:
            continue

        try:
            os.remove(file_path)
            deleted_count += 1
            logger.info(f"🗑️ Deleted expired file: {filename} (age: {age_seconds // 60} minutes)")
        except OSError as e:
            logger.warning(f"❌ Error deleting file {file_path}: {e}")

    logger.info(f"📊 Cleanup summary: processed {processed_count}, deleted {deleted_count}")
    return {"processed": processed_count, "deleted": deleted_count}
