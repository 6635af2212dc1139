"""API key lookup for provider profiles"""

import os
import re
from typing import Mapping

from viki.config.schema import ProviderProfile

from .credentials import CredentialStore


class CredentialResolver:
    """Finds the API key for a profile.

    Lookup order: ``<PREFIX>_<NAME>_API_KEY``, then ``<PREFIX>_API_KEY``,
    then the credential store entry named by the profile's ``api_key_ref``.
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        prefix: str = "VIKI",
        environ: Mapping[str, str] | None = None,
    ):
        self.store = store if store is not None else CredentialStore()
        self.prefix = prefix
        self.environ = environ if environ is not None else os.environ

    def env_names(self, provider_name: str) -> list[str]:
        upper = re.sub(r"[^A-Z0-9]", "_", provider_name.upper())
        return [f"{self.prefix}_{upper}_API_KEY", f"{self.prefix}_API_KEY"]

    def resolve(self, profile: ProviderProfile) -> str:
        """Return the key, or an empty string when none is configured"""
        for env_name in self.env_names(profile.name):
            value = self.environ.get(env_name)
            if value:
                return value
        return self.store.get(profile.api_key_ref or profile.name) or ""
