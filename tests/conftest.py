"""Pytest configuration and shared fixtures"""

import os

import httpx
import pytest

from viki.auth import CredentialResolver, CredentialStore
from viki.config import ProviderStore
from viki.provider import Gateway, Transport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep real VIKI_* variables and user files out of tests"""
    for key in list(os.environ):
        if key.startswith("VIKI_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / ".sdd" / "providers.json"


@pytest.fixture
def store(config_path):
    return ProviderStore(config_path)


@pytest.fixture
def credential_store(tmp_path):
    return CredentialStore(tmp_path / "credentials.json")


@pytest.fixture
def credentials(credential_store):
    return CredentialResolver(credential_store, environ={})


@pytest.fixture
def make_gateway(store, credentials):
    """Build a gateway whose HTTP traffic goes to ``handler``"""
    def factory(handler) -> Gateway:
        transport = Transport(transport=httpx.MockTransport(handler))
        return Gateway(store, credentials, transport)
    return factory


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered in pieces; records whether it was closed"""

    def __init__(self, chunks, error: Exception | None = None):
        self.chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self.error = error
        self.closed = False
        self.reads = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            self.reads += 1
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True
