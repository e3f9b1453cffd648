"""Shared fixtures: an in-memory provider registry."""

from datetime import date

import pytest

from matsedel.core.errors import NotFoundError, UpstreamError
from matsedel.core.schema import Day, Meal, ProviderInfo, ProviderMenu
from matsedel.upstream.adapters.base import BaseAdapter
from matsedel.upstream.registry import ProviderRegistry, RegisteredProvider


class FakeAdapter(BaseAdapter):
    """Adapter serving fixed menus and days without any HTTP."""

    ADAPTER_NAME = "fake"

    def __init__(
        self,
        menus: list[ProviderMenu],
        days: dict[str, list[Day]] | None = None,
        failure: Exception | None = None,
    ) -> None:
        super().__init__("https://fake.example")
        self.menus = menus
        self.days = days or {}
        self.failure = failure
        self.day_requests: list[tuple[str, date, date]] = []

    async def list_menus(self) -> list[ProviderMenu]:
        if self.failure:
            raise self.failure
        return list(self.menus)

    async def query_menu(self, menu_id: str) -> ProviderMenu:
        for menu in self.menus:
            if menu.id == menu_id:
                return menu
        raise NotFoundError(f"menu with id `{menu_id}` not found")

    async def list_days(self, menu_id: str, first: date, last: date) -> list[Day]:
        self.day_requests.append((menu_id, first, last))
        await self.query_menu(menu_id)
        return [day for day in self.days.get(menu_id, []) if first <= day.date <= last]


def make_registry(*adapters: tuple[str, str, FakeAdapter]) -> ProviderRegistry:
    return ProviderRegistry(
        [
            RegisteredProvider(info=ProviderInfo(id=pid, name=name), implementation=adapter)
            for pid, name, adapter in adapters
        ]
    )


@pytest.fixture
def school_adapter() -> FakeAdapter:
    return FakeAdapter(
        menus=[ProviderMenu(id="1", title="Norra Real"), ProviderMenu(id="2", title="Södra Latin")],
        days={
            "1": [
                Day(date=date(2024, 5, 13), meals=[Meal(value="Köttbullar"), Meal(value="Potatismos")]),
                Day(date=date(2024, 5, 14), meals=[Meal(value="Fiskgratäng")]),
                Day(date=date(2024, 6, 20), meals=[Meal(value="Sill")]),
            ]
        },
    )


@pytest.fixture
def other_adapter() -> FakeAdapter:
    return FakeAdapter(menus=[ProviderMenu(id="abc-123", title="Förskolan")])


@pytest.fixture
def registry(school_adapter, other_adapter) -> ProviderRegistry:
    return make_registry(
        ("sodexo", "Sodexo", school_adapter),
        ("mpi", "MPI", other_adapter),
    )


@pytest.fixture
def failing_registry(school_adapter) -> ProviderRegistry:
    return make_registry(
        ("sodexo", "Sodexo", school_adapter),
        ("broken", "Broken", FakeAdapter(menus=[], failure=UpstreamError("upstream down", status_code=503))),
    )
