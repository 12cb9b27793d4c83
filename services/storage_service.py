# services/storage_service.py
from pathlib import Path
import logging

from core.config import settings
from core.exceptions import FormValidationError, StoreUnavailableError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores uploads under ``UPLOAD_DIR``; ``main.py`` serves that directory at ``STATIC_URL``."""

    def __init__(self, base_dir: str = None, base_url: str = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)
        self.base_url = (base_url or settings.STATIC_URL).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.base_dir / path.lstrip("/")).resolve()
        if self.base_dir.resolve() not in target.parents:
            raise FormValidationError("Invalid upload path.")
        return target

    def upload(self, path: str, content: bytes) -> str:
        """Write ``content`` at ``path`` (relative to the upload root) and return its public URL."""
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error("❌ Failed to store upload %s: %s", path, e)
            raise StoreUnavailableError("Could not store the uploaded file.") from e

        logger.info("📁 Stored upload %s (%s bytes)", path, len(content))
        return f"{self.base_url}/{path.lstrip('/')}"


def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage()
