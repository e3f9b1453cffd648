"""
Adapter Registry Module
=======================

Central registry for upstream adapters.
Provides factory functions for creating adapters by name.
"""

from __future__ import annotations

from typing import Any, Type

from matsedel.upstream.adapters.base import BaseAdapter
from matsedel.upstream.adapters.mashie import MashieAdapter
from matsedel.upstream.adapters.skolmaten import SkolmatenAdapter
from matsedel.upstream.fetcher import Fetcher


# Registry mapping adapter names to their classes
ADAPTER_REGISTRY: dict[str, Type[BaseAdapter]] = {
    "mashie": MashieAdapter,
    "skolmaten": SkolmatenAdapter,
}


def get_adapter(
    adapter_type: str,
    base_url: str,
    fetcher: Fetcher | None = None,
    options: dict[str, Any] | None = None,
) -> BaseAdapter | None:
    """
    Get an adapter instance by type name.

    Args:
        adapter_type: Name of the adapter (e.g., "mashie")
        base_url: Root URL of the upstream
        fetcher: Retrying HTTP fetcher shared by the adapter's requests
        options: Optional adapter-specific configuration

    Returns:
        Adapter instance, or None if type not found
    """
    adapter_class = ADAPTER_REGISTRY.get(adapter_type)
    if adapter_class is None:
        return None
    return adapter_class(base_url, fetcher=fetcher, options=options)


def list_adapters() -> list[str]:
    """
    List all registered adapter names.

    Returns:
        List of adapter type names
    """
    return list(ADAPTER_REGISTRY.keys())


def get_adapter_info(adapter_type: str) -> dict[str, str] | None:
    """
    Get information about an adapter type.

    Args:
        adapter_type: Name of the adapter

    Returns:
        Dict with adapter info, or None if not found
    """
    adapter_class = ADAPTER_REGISTRY.get(adapter_type)
    if adapter_class is None:
        return None

    return {
        "name": adapter_class.ADAPTER_NAME,
        "version": adapter_class.ADAPTER_VERSION,
        "class": adapter_class.__name__,
    }


__all__ = [
    # Registry functions
    "get_adapter",
    "list_adapters",
    "get_adapter_info",
    "ADAPTER_REGISTRY",
    # Base class
    "BaseAdapter",
    # Concrete adapters
    "MashieAdapter",
    "SkolmatenAdapter",
]
