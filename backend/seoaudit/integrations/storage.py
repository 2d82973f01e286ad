"""
Storage Integration Client

Local filesystem storage for audit artifacts (screenshots, rendered reports).
Keys are relative paths; callers persist keys, never absolute paths.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from seoaudit.config import settings

logger = logging.getLogger(__name__)


class BaseStorageClient(ABC):
    """Abstract base class for storage clients."""

    @abstractmethod
    def upload_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def download_bytes(self, key: str) -> bytes:
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        pass

    def upload_text(self, key: str, content: str, content_type: str = "text/html") -> str:
        return self.upload_bytes(key, content.encode("utf-8"), content_type=content_type)


class LocalStorageClient(BaseStorageClient):
    """Local filesystem storage."""

    def __init__(self, base_path: str | Path | None = None, base_url: str | None = None):
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)
        self.base_url = base_url or settings.LOCAL_STORAGE_BASE_URL

    def _get_full_path(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise ValueError(f"Storage key escapes base path: {key}")
        return path

    def upload_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        file_path = self._get_full_path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)

        logger.debug(f"Stored {len(data)} bytes at {key}")
        return key

    def download_bytes(self, key: str) -> bytes:
        file_path = self._get_full_path(key)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {key}")
        return file_path.read_bytes()

    def exists(self, key: str) -> bool:
        return self._get_full_path(key).exists()

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


class AuditStoragePaths:
    """Helper class for consistent storage paths."""

    @staticmethod
    def audit_dir(job_id: str) -> str:
        return f"seo-audits/{job_id}"

    @staticmethod
    def screenshot(job_id: str, url_index: int, device: str) -> str:
        return f"{AuditStoragePaths.audit_dir(job_id)}/{url_index}_{device}.png"

    @staticmethod
    def report(job_id: str, extension: str = "html") -> str:
        return f"{AuditStoragePaths.audit_dir(job_id)}/report.{extension}"


def get_storage_client(base_path: str | Path | None = None) -> BaseStorageClient:
    """Create a storage client rooted at the configured path."""
    return LocalStorageClient(base_path=base_path)
