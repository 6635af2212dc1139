"""Provider configuration store"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from viki.errors import ConfigError
from viki.storage import Storage

from . import catalog
from .schema import GatewaySettings, ProviderKind, ProviderProfile, ProvidersDocument

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers, one writer"""

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            while self._writing or self._readers:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class ProviderStore:
    """Named provider profiles plus the default provider, persisted as JSON.

    Every mutation builds a new document, writes it to disk and only then
    replaces the in-memory copy. A failed write leaves both the file and
    the store unchanged.
    """

    def __init__(self, path: Path, document: ProvidersDocument | None = None):
        self._storage = Storage(path)
        self._document = document or ProvidersDocument()
        self._lock = ReadWriteLock()

    @property
    def path(self) -> Path:
        return self._storage.path

    @classmethod
    def load(cls, path: Path | None = None, settings: GatewaySettings | None = None) -> "ProviderStore":
        """Load the store from disk; a missing file yields an empty store"""
        if path is None:
            path = (settings or GatewaySettings()).config_path()
        storage = Storage(path)
        try:
            data = storage.read()
        except ValueError as e:
            raise ConfigError(f"failed to parse {path}: {e}", operation="load") from e
        except OSError as e:
            raise ConfigError(f"failed to read {path}: {e}", operation="load") from e

        if data is None:
            logger.debug(f"No provider config at {path}, starting empty")
            return cls(path)

        try:
            document = ProvidersDocument.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"invalid provider config {path}: {e}", operation="load") from e
        return cls(path, document)

    # Reads

    @property
    def default_provider(self) -> str:
        with self._lock.read():
            return self._document.default_provider

    def get_profile(self, name: str) -> ProviderProfile:
        """Return a copy of the named profile"""
        with self._lock.read():
            profile = self._document.providers.get(name)
            if profile is None:
                raise ConfigError(f"provider '{name}' not found", operation="get_profile")
            return profile.model_copy()

    def resolve(self, name: str = "") -> ProviderProfile:
        """Return the enabled profile to use for a call.

        An empty name selects the default provider.
        """
        with self._lock.read():
            if not name:
                name = self._document.default_provider
                if not name:
                    raise ConfigError("no default provider configured", operation="resolve")
            profile = self._document.providers.get(name)
            if profile is None or not profile.enabled:
                raise ConfigError(f"provider '{name}' not configured or disabled", operation="resolve")
            return profile.model_copy()

    def list_providers(self) -> list[ProviderProfile]:
        with self._lock.read():
            return [
                self._document.providers[name].model_copy()
                for name in sorted(self._document.providers)
            ]

    # Writes

    def add_provider(
        self,
        name: str,
        kind: ProviderKind | str,
        api_key_ref: str = "",
        model: str = "",
        options: dict[str, Any] | None = None,
    ) -> ProviderProfile:
        """Add or replace a profile; the first enabled profile becomes the default"""
        if not name:
            raise ConfigError("provider name must not be empty", operation="add_provider")
        try:
            kind = ProviderKind(kind)
        except ValueError:
            valid = ", ".join(k.value for k in ProviderKind)
            raise ConfigError(
                f"invalid provider kind '{kind}'. Valid kinds: {valid}", operation="add_provider"
            ) from None

        options = options or {}
        profile = ProviderProfile(
            name=name,
            kind=kind,
            api_key_ref=api_key_ref or name,
            base_url=options.get("base_url") or "",
            model=model or catalog.default_model(kind),
            enabled=bool(options.get("enabled", True)),
        )

        with self._lock.write():
            document = self._document.model_copy(deep=True)
            document.providers[name] = profile
            if not document.default_provider and profile.enabled:
                document.default_provider = name
            elif document.default_provider == name and not profile.enabled:
                document.default_provider = document.fallback_default()
            self._commit(document)

        logger.info(f"Added provider {name} ({kind.value}, model={profile.model})")
        return profile.model_copy()

    def remove_provider(self, name: str):
        with self._lock.write():
            if name not in self._document.providers:
                raise ConfigError(f"provider '{name}' not found", operation="remove_provider")
            document = self._document.model_copy(deep=True)
            del document.providers[name]
            if document.default_provider == name:
                document.default_provider = document.fallback_default()
            self._commit(document)
        logger.info(f"Removed provider {name}")

    def set_default(self, name: str):
        with self._lock.write():
            profile = self._document.providers.get(name)
            if profile is None:
                raise ConfigError(f"provider '{name}' not found", operation="set_default")
            if not profile.enabled:
                raise ConfigError(f"provider '{name}' is disabled", operation="set_default")
            document = self._document.model_copy(deep=True)
            document.default_provider = name
            self._commit(document)

    def set_enabled(self, name: str, enabled: bool):
        with self._lock.write():
            if name not in self._document.providers:
                raise ConfigError(f"provider '{name}' not found", operation="set_enabled")
            document = self._document.model_copy(deep=True)
            document.providers[name].enabled = enabled
            if not enabled and document.default_provider == name:
                document.default_provider = document.fallback_default()
            elif enabled and not document.default_provider:
                document.default_provider = name
            self._commit(document)

    def _commit(self, document: ProvidersDocument):
        """Persist, then swap in. Caller holds the write lock."""
        try:
            self._storage.write_text(document.to_json())
        except OSError as e:
            raise ConfigError(f"failed to write {self.path}: {e}", operation="save") from e
        self._document = document
