# services/file_storage.py
from pathlib import Path
from typing import Optional
import logging

from core.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores uploads under ``root`` and serves them from ``{public_base_url}/static``."""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/static/{path.lstrip('/')}"

    def store(self, path: str, contents: bytes, content_type: Optional[str] = None) -> str:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError("Invalid storage path")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(contents)
        except OSError as e:
            logger.error(f"❌ Failed to store {path} ({content_type}): {e}")
            raise StorageError()

        logger.info(f"📁 Stored {path} ({len(contents)} bytes, {content_type})")
        return self.public_url(path)
