"""Authentication module for viki"""

from .credentials import CredentialStore
from .resolver import CredentialResolver

__all__ = ["CredentialResolver", "CredentialStore"]
