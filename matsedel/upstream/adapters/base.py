"""
Adapter Base Module
===================

Defines the capability interface every upstream provider implements.
Adapters are responsible for:
1. Listing the menus an upstream knows about
2. Looking up a single menu by its provider-local ID
3. Fetching and normalizing the days (and meals) of a menu
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from matsedel.core.schema import Day, ProviderMenu
from matsedel.upstream.fetcher import Fetcher


class BaseAdapter(ABC):
    """
    Abstract base class for upstream adapters.

    Subclasses must implement:
    - list_menus: All menus offered by the upstream
    - query_menu: One menu by provider-local ID
    - list_days: Days of one menu within an inclusive date range
    """

    # Adapter identification (override in subclasses)
    ADAPTER_NAME: str = "base"
    ADAPTER_VERSION: str = "1.0.0"

    def __init__(
        self,
        base_url: str,
        fetcher: Fetcher | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            base_url: Root URL of the upstream
            fetcher: Retrying HTTP fetcher (a default one is created if omitted)
            options: Adapter-specific options from providers.yaml
        """
        self.base_url = base_url.rstrip("/")
        self.fetcher = fetcher or Fetcher()
        self.options = options or {}

    @abstractmethod
    async def list_menus(self) -> list[ProviderMenu]:
        """
        List every menu offered by the upstream.

        Returns:
            Provider-local menus in upstream order
        """

    @abstractmethod
    async def query_menu(self, menu_id: str) -> ProviderMenu:
        """
        Look up a single menu.

        Args:
            menu_id: Provider-local menu ID

        Returns:
            The menu

        Raises:
            NotFoundError: If the upstream has no such menu
        """

    @abstractmethod
    async def list_days(self, menu_id: str, first: date, last: date) -> list[Day]:
        """
        List the days of a menu.

        Args:
            menu_id: Provider-local menu ID
            first: First date to include
            last: Last date to include

        Returns:
            Days within [first, last] with normalized meals
        """

    def get_info(self) -> dict[str, str]:
        """Get adapter information."""
        return {
            "name": self.ADAPTER_NAME,
            "version": self.ADAPTER_VERSION,
            "class": self.__class__.__name__,
            "base_url": self.base_url,
        }
