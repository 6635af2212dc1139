"""Credential storage for providers"""

import logging
from pathlib import Path
from typing import Optional

from viki.storage import Storage

logger = logging.getLogger(__name__)


class CredentialStore:
    """Simple file-based secret storage, keyed by api key reference"""

    def __init__(self, path: Path | None = None):
        if path is None:
            path = Path.home() / ".config" / "viki" / "credentials.json"
        self.credentials_file = Path(path)
        self._storage = Storage(self.credentials_file, mode=0o600)

    def _load(self) -> dict:
        try:
            data = self._storage.read()
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.credentials_file}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict):
        self._storage.write(data)

    def get(self, ref: str) -> Optional[str]:
        """Get the secret stored under a reference"""
        value = self._load().get(ref)
        if isinstance(value, dict):
            # Entries written by older tools carry {"api_key": ...}
            value = value.get("api_key")
        return value or None

    def set(self, ref: str, secret: str):
        data = self._load()
        data[ref] = secret
        self._save(data)

    def delete(self, ref: str) -> bool:
        data = self._load()
        if ref not in data:
            return False
        del data[ref]
        self._save(data)
        return True

    def list(self) -> list[str]:
        return sorted(self._load())
