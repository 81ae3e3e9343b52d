"""
Local-disk object store with the same interface as S3Client.
Used in development and tests when USE_S3 is false.
"""
from pathlib import Path
from typing import Optional

from core.logger import logger


class LocalStorage:
    """Stores objects as files under ``root``; keys are relative POSIX paths."""

    def __init__(self, root: Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        path = (self.root / safe_key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object key escapes storage root: {key}")
        return path

    def upload_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored object locally: {path}")
        return key

    def delete_file(self, key: str) -> bool:
        """Delete the object; a missing file is an error, as with S3 clients that report it."""
        path = self._path(key)
        path.unlink()
        logger.info(f"Deleted local object: {path}")
        return True

    def file_exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def get_url(self, key: str) -> Optional[str]:
        if not key:
            return None
        return f"{self.url_prefix}/{key.lstrip('/')}"

    def health_check(self) -> dict:
        if not self.root.is_dir():
            raise OSError(f"Storage root missing: {self.root}")
        return {"status": "ok", "backend": "local", "root": str(self.root)}
