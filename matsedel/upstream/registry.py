"""
Provider Registry Module
========================

Builds the ordered set of upstream providers from a YAML file. Each provider
pairs static metadata with an adapter instance. The registry is built once
and never changes afterwards.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from matsedel.core.errors import NotFoundError
from matsedel.core.schema import ProviderInfo
from matsedel.upstream.adapters import BaseAdapter, get_adapter
from matsedel.upstream.fetcher import DEFAULT_RETRY_ON, DEFAULT_USER_AGENT, FetchOptions, Fetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalConfig:
    """Settings shared by every provider's HTTP requests."""

    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 30.0
    max_attempts: int = 3
    backoff: float = 0.25
    retry_on: frozenset[int] = DEFAULT_RETRY_ON

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GlobalConfig:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        return cls(
            user_agent=data.get("user_agent", DEFAULT_USER_AGENT),
            request_timeout=float(data.get("request_timeout", 30.0)),
            max_attempts=int(data.get("max_attempts", 3)),
            backoff=float(data.get("backoff", 0.25)),
            retry_on=frozenset(int(code) for code in data.get("retry_on", DEFAULT_RETRY_ON)),
        )

    def create_fetcher(self) -> Fetcher:
        """Create a fetcher using these settings."""
        return Fetcher(
            user_agent=self.user_agent,
            timeout=self.request_timeout,
            options=FetchOptions(
                max_attempts=self.max_attempts,
                backoff=self.backoff,
                retry_on=self.retry_on,
            ),
        )


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for a single provider."""

    id: str
    name: str
    adapter: str
    base_url: str
    enabled: bool = True
    options: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderConfig:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            adapter=data["adapter"],
            base_url=data["base_url"],
            enabled=data.get("enabled", True),
            options=data.get("options") or {},
        )


@dataclass(frozen=True)
class RegistryConfig:
    """Complete registry configuration."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    providers: tuple[ProviderConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RegistryConfig:
        """Create from dictionary (the parsed YAML document)."""
        data = data or {}
        return cls(
            global_config=GlobalConfig.from_dict(data.get("global")),
            providers=tuple(
                ProviderConfig.from_dict(provider) for provider in data.get("providers", [])
            ),
        )

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> RegistryConfig:
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the providers.yaml file
        """
        config_path = Path(config_path).expanduser().resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            return cls.from_dict(yaml.safe_load(f))


# Providers used when no configuration file is available
DEFAULT_CONFIG = RegistryConfig(
    providers=(
        ProviderConfig(
            id="skolmaten",
            name="Skolmaten",
            adapter="skolmaten",
            base_url="https://skolmaten.se/api/4",
        ),
        ProviderConfig(
            id="sodexo",
            name="Sodexo",
            adapter="mashie",
            base_url="https://sodexo.mashie.com",
        ),
        ProviderConfig(
            id="mpi",
            name="MPI",
            adapter="mashie",
            base_url="https://mpi.mashie.com",
        ),
    ),
)


@dataclass(frozen=True)
class RegisteredProvider:
    """A provider's metadata paired with the adapter implementing it."""

    info: ProviderInfo
    implementation: BaseAdapter


class ProviderRegistry:
    """
    Ordered, read-only set of providers.

    Order only matters when iterating, e.g. when listing every menu.
    """

    def __init__(self, providers: list[RegisteredProvider] | tuple[RegisteredProvider, ...]) -> None:
        ids = [provider.info.id for provider in providers]
        duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
        if duplicates:
            raise ValueError(f"Duplicate provider ids: {', '.join(duplicates)}")

        self._providers: tuple[RegisteredProvider, ...] = tuple(providers)

    @classmethod
    def from_config(cls, config: RegistryConfig, fetcher: Fetcher | None = None) -> ProviderRegistry:
        """
        Build adapters for every enabled provider in a configuration.

        Args:
            config: Registry configuration
            fetcher: Fetcher shared by all adapters (built from the global
                settings if omitted)

        Raises:
            ValueError: If a provider names an unknown adapter
        """
        fetcher = fetcher or config.global_config.create_fetcher()

        providers: list[RegisteredProvider] = []
        for provider_config in config.providers:
            if not provider_config.enabled:
                logger.info(f"Skipping disabled provider '{provider_config.id}'")
                continue

            adapter = get_adapter(
                provider_config.adapter,
                provider_config.base_url,
                fetcher=fetcher,
                options=provider_config.options,
            )
            if adapter is None:
                raise ValueError(
                    f"Unknown adapter '{provider_config.adapter}' "
                    f"for provider '{provider_config.id}'"
                )

            providers.append(
                RegisteredProvider(
                    info=ProviderInfo(id=provider_config.id, name=provider_config.name),
                    implementation=adapter,
                )
            )

        return cls(providers)

    @property
    def providers(self) -> tuple[RegisteredProvider, ...]:
        """All providers, in registration order."""
        return self._providers

    def list_infos(self) -> list[ProviderInfo]:
        """Metadata of all providers, in registration order."""
        return [provider.info for provider in self._providers]

    def lookup(self, provider_id: str) -> RegisteredProvider:
        """
        Get a provider by ID.

        Raises:
            NotFoundError: If no provider has this ID
        """
        for provider in self._providers:
            if provider.info.id == provider_id:
                return provider
        raise NotFoundError(f"provider with id `{provider_id}` not found")

    def __len__(self) -> int:
        return len(self._providers)


# Global registry instance
_default_registry: ProviderRegistry | None = None


def get_config_path() -> Path:
    """
    Get the providers.yaml location.

    Uses the PROVIDERS_CONFIG_PATH environment variable, or falls back to
    config/providers.yaml in the project root.
    """
    config_path = os.environ.get("PROVIDERS_CONFIG_PATH")
    if config_path:
        return Path(config_path)

    project_root = Path(__file__).parent.parent.parent
    return project_root / "config" / "providers.yaml"


def load_default_config() -> RegistryConfig:
    """Load providers.yaml, or the built-in defaults when it does not exist."""
    path = get_config_path()
    if path.exists():
        logger.info(f"Loading providers from {path}")
        return RegistryConfig.from_yaml(path)

    logger.info("No providers.yaml found, using built-in providers")
    return DEFAULT_CONFIG


def get_default_registry() -> ProviderRegistry:
    """
    Get the process-wide provider registry, building it on first use.

    Returns:
        The global ProviderRegistry instance
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = ProviderRegistry.from_config(load_default_config())

    return _default_registry


def reset_default_registry() -> None:
    """Reset the default registry (useful for testing)."""
    global _default_registry
    _default_registry = None
