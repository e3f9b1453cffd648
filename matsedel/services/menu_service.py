"""Menu service aggregating every registered provider.

This service provides the uniform query interface:
- Listing the menus of all providers
- Looking up a single menu by its composite ID
- Listing the days of a menu within a date range

Errors raised by providers pass through unchanged.
"""

import asyncio
import logging
from datetime import UTC, date, datetime, timedelta

from matsedel.core.errors import InvalidRangeError
from matsedel.core.schema import Day, Menu, MenuID, ProviderInfo
from matsedel.upstream.registry import ProviderRegistry, RegisteredProvider, get_default_registry

logger = logging.getLogger(__name__)

# Length of the day listing when no last date is given
DEFAULT_DAY_SPAN = timedelta(weeks=4)


def resolve_range(first: date | None = None, last: date | None = None) -> tuple[date, date]:
    """
    Fill in default dates for a day listing.

    Args:
        first: First date (defaults to the current UTC date)
        last: Last date (defaults to four weeks after first)

    Returns:
        The (first, last) pair

    Raises:
        InvalidRangeError: If first is after last
    """
    first = first or datetime.now(UTC).date()
    last = last or first + DEFAULT_DAY_SPAN

    if first > last:
        raise InvalidRangeError("?first cannot be after ?last")

    return first, last


class MenuService:
    """Service for querying menus across every provider."""

    def __init__(self, registry: ProviderRegistry | None = None):
        """
        Initialize the menu service.

        Args:
            registry: Provider registry (optional, the process-wide one is
                used if not provided)
        """
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        """Get the provider registry."""
        if self._registry is None:
            self._registry = get_default_registry()
        return self._registry

    def list_providers(self) -> list[ProviderInfo]:
        """List the metadata of every provider, in registry order."""
        return self.registry.list_infos()

    async def _list_provider_menus(self, provider: RegisteredProvider) -> list[Menu]:
        menus = await provider.implementation.list_menus()
        return [Menu.lift(provider.info, menu) for menu in menus]

    async def list_menus(self) -> list[Menu]:
        """
        List the menus of every provider.

        Providers are queried concurrently; the result keeps registry order.
        """
        per_provider = await asyncio.gather(
            *(self._list_provider_menus(provider) for provider in self.registry.providers)
        )
        menus = [menu for menus in per_provider for menu in menus]
        logger.info(f"Listed {len(menus)} menus from {len(per_provider)} providers")
        return menus

    async def query_menu(self, menu_id: MenuID) -> Menu:
        """
        Look up a single menu.

        Raises:
            NotFoundError: If the provider or the menu does not exist
        """
        provider = self.registry.lookup(menu_id.provider)
        menu = await provider.implementation.query_menu(menu_id.provided_id)
        return Menu.lift(provider.info, menu)

    async def list_days(
        self,
        menu_id: MenuID,
        first: date | None = None,
        last: date | None = None,
    ) -> list[Day]:
        """
        List the days of a menu within [first, last].

        Raises:
            InvalidRangeError: If first is after last
            NotFoundError: If the provider or the menu does not exist
        """
        first, last = resolve_range(first, last)
        provider = self.registry.lookup(menu_id.provider)
        return await provider.implementation.list_days(menu_id.provided_id, first, last)


def get_menu_service(registry: ProviderRegistry | None = None) -> MenuService:
    """Get a menu service instance."""
    return MenuService(registry=registry)
