"""Configuration schemas using Pydantic"""

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Vendor API family a profile talks to"""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OLLAMA = "ollama"
    AZURE = "azure"


class ProviderProfile(BaseModel):
    """A named provider entry in providers.json"""
    model_config = ConfigDict(populate_by_name=True)

    # The name is the key in the providers map, not a stored field
    name: str = Field(default="", exclude=True)
    kind: ProviderKind
    api_key_ref: str = Field(default="", alias="apiKeyRef")
    base_url: str = Field(default="", alias="baseURL")
    model: str = ""
    enabled: bool = True


class ProvidersDocument(BaseModel):
    """On-disk layout of the provider configuration file"""
    model_config = ConfigDict(populate_by_name=True)

    providers: dict[str, ProviderProfile] = Field(default_factory=dict)
    default_provider: str = Field(default="", alias="defaultProvider")

    @model_validator(mode="after")
    def fill_names(self) -> "ProvidersDocument":
        for name, profile in self.providers.items():
            profile.name = name
        return self

    @model_validator(mode="after")
    def repair_default(self) -> "ProvidersDocument":
        """A default naming a missing or disabled profile is replaced"""
        if self.default_provider:
            profile = self.providers.get(self.default_provider)
            if profile is None or not profile.enabled:
                fallback = self.fallback_default()
                logger.warning(
                    f"Default provider '{self.default_provider}' is missing or disabled, "
                    f"using '{fallback}'"
                )
                self.default_provider = fallback
        return self

    def fallback_default(self) -> str:
        """First enabled profile in sorted-name order, or empty"""
        for name in sorted(self.providers):
            if self.providers[name].enabled:
                return name
        return ""

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class GatewaySettings(BaseSettings):
    """Process-level gateway settings, read from VIKI_* environment variables"""
    model_config = SettingsConfigDict(env_prefix="VIKI_", extra="ignore")

    timeout: float = 60.0
    key_prefix: str = "VIKI"
    config: Path | None = None
    credentials: Path | None = None

    def config_path(self) -> Path:
        return self.config or Path.cwd() / ".sdd" / "providers.json"

    def credentials_path(self) -> Path:
        return self.credentials or Path.home() / ".config" / "viki" / "credentials.json"
