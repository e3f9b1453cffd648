"""Tests against the real upstream services.

These make network requests and are skipped unless MATSEDEL_LIVE_TESTS=1.
"""

import os
import re
from datetime import UTC, datetime, timedelta

import pytest

from matsedel.core.errors import InvalidIdentifierError, NotFoundError
from matsedel.core.schema import MenuID
from matsedel.services.menu_service import MenuService
from matsedel.upstream.registry import DEFAULT_CONFIG, ProviderRegistry

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(
        os.environ.get("MATSEDEL_LIVE_TESTS") != "1",
        reason="set MATSEDEL_LIVE_TESTS=1 to run tests against the real upstreams",
    ),
]


@pytest.fixture
def service() -> MenuService:
    return MenuService(ProviderRegistry.from_config(DEFAULT_CONFIG))


class TestAllProviders:
    """Live tests across every built-in provider."""

    @pytest.mark.asyncio
    async def test_list_menus_in_the_thousands(self, service) -> None:
        """Test the combined listing holds thousands of menus."""
        menus = await service.list_menus()

        assert len(menus) >= 1000
        assert {"skolmaten", "sodexo"} <= {menu.provider.id for menu in menus}


class TestSodexo:
    """Live tests for the Sodexo Mashie instance."""

    MENU_ID = MenuID(provider="sodexo", provided_id="b4639689-60f2-4a19-a2dc-abe500a08e45")

    @pytest.mark.asyncio
    async def test_list_menus(self, service) -> None:
        """Test the listing contains menus."""
        provider = service.registry.lookup("sodexo")
        menus = await provider.implementation.list_menus()
        assert len(menus) > 0

    @pytest.mark.asyncio
    async def test_query_menu(self, service) -> None:
        """Test a known school."""
        menu = await service.query_menu(self.MENU_ID)
        assert re.search("Norra Real", menu.title, re.IGNORECASE)

    @pytest.mark.asyncio
    async def test_list_days(self, service) -> None:
        """Test days are within range and have meals."""
        first = datetime.now(UTC).date()
        last = first + timedelta(weeks=2)
        days = await service.list_days(self.MENU_ID, first, last)

        for day in days:
            assert first <= day.date <= last
            assert day.meals


class TestSkolmaten:
    """Live tests for Skolmaten."""

    @pytest.mark.asyncio
    async def test_query_menu(self, service) -> None:
        """Test a known station."""
        menu = await service.query_menu(MenuID.decode("skolmaten.85957002"))
        assert re.search("Fogelstr", menu.title, re.IGNORECASE)

    @pytest.mark.asyncio
    async def test_query_menu_not_found(self, service) -> None:
        """Test an unknown station."""
        with pytest.raises(NotFoundError):
            await service.query_menu(MenuID.decode("skolmaten.123"))

    @pytest.mark.asyncio
    async def test_query_menu_invalid_id(self, service) -> None:
        """Test a non-integer station ID."""
        with pytest.raises(InvalidIdentifierError):
            await service.query_menu(MenuID.decode("skolmaten.a"))

    @pytest.mark.asyncio
    async def test_list_days_across_years(self, service) -> None:
        """Test a range spanning a year boundary."""
        first = datetime.now(UTC).date()
        last = first + timedelta(days=400)
        days = await service.list_days(MenuID.decode("skolmaten.85957002"), first, last)

        dates = [day.date for day in days]
        assert dates == sorted(set(dates))
        assert all(first <= d <= last for d in dates)
