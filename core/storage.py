"""
Ephemeral temp storage for uploads and enhanced results
"""
import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from .errors import StorageError

logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = "enhanced_"
_UPLOAD_EXTENSION = re.compile(r"^\.[a-z0-9]{1,5}$")


class TempStorage:
    """Flat directory of timestamp-named files.

    Uploads are stored as ``<stamp><ext>``, results as ``enhanced_<stamp><ext>``.
    Stamps are nanosecond timestamps, strictly increasing across all instances
    in the process, so names never collide between concurrent requests.
    """

    _stamp_lock = threading.Lock()
    _last_stamp = 0

    def __init__(self, directory):
        self.directory = Path(directory)

    def ensure_dir(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def next_stamp(cls) -> int:
        with cls._stamp_lock:
            stamp = time.time_ns()
            if stamp <= cls._last_stamp:
                stamp = cls._last_stamp + 1
            cls._last_stamp = stamp
            return stamp

    def _write(self, filename: str, content: bytes) -> Path:
        path = self.directory / filename
        try:
            self.ensure_dir()
            path.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to write {filename}: {e}") from e
        return path

    def save_upload(self, content: bytes, original_filename: Optional[str] = None) -> Path:
        ext = os.path.splitext(original_filename or "")[1].lower()
        if not _UPLOAD_EXTENSION.match(ext):
            ext = ""
        return self._write(f"{self.next_stamp()}{ext}", content)

    def write_artifact(self, content: bytes, ext: str = ".jpg") -> Tuple[str, Path]:
        filename = f"{ARTIFACT_PREFIX}{self.next_stamp()}{ext}"
        path = self._write(filename, content)
        logger.info(f"✅ Saved {filename} ({len(content)} bytes)")
        return filename, path

    def remove(self, path) -> bool:
        """Best-effort delete; never raises"""
        if path is None:
            return False
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"⚠️ Could not remove temp file {path}: {e}")
            return False

    def resolve_artifact(self, filename: str) -> Optional[Path]:
        if not filename.startswith(ARTIFACT_PREFIX) or "/" in filename or "\\" in filename:
            return None
        path = self.directory / filename
        return path if path.is_file() else None
