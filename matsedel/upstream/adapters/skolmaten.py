"""
Skolmaten Adapter Module
========================

Adapter for the Skolmaten JSON API. Menus ("stations") are listed by walking
provinces, districts and stations; days are fetched in per-year windows of
ISO weeks (see ``matsedel.upstream.time_range``).
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from matsedel.core.errors import InvalidIdentifierError, NotFoundError, ParseError
from matsedel.core.schema import Day, Meal, ProviderMenu
from matsedel.upstream.adapters.base import BaseAdapter
from matsedel.upstream.fetcher import decode_json, gather_ordered
from matsedel.upstream.normalizer import polish_meals, trim_title
from matsedel.upstream.time_range import SkolmatenTimeRange, skolmaten_time_ranges

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

REQUEST_HEADERS: dict[str, str] = {
    "API-Version": "4.0",
    "Client-Token": "web",
    "Client-Version-Token": "web",
    "Locale": "sv_SE",
}

# Window used to look up station metadata when querying a single menu
QUERY_WINDOW = timedelta(days=7)


# ============================================================================
# Upstream response models
# ============================================================================


class SkolmatenObject(BaseModel):
    id: int
    name: str


class ProvincesResponse(BaseModel):
    provinces: list[SkolmatenObject] = Field(default_factory=list)


class DistrictsResponse(BaseModel):
    districts: list[SkolmatenObject] = Field(default_factory=list)


class StationsResponse(BaseModel):
    stations: list[SkolmatenObject] = Field(default_factory=list)


class DetailedDistrict(SkolmatenObject):
    province: SkolmatenObject | None = None


class DetailedStation(SkolmatenObject):
    district: DetailedDistrict | None = None


class SkolmatenMeal(BaseModel):
    value: str
    attributes: list[int] = Field(default_factory=list)


class SkolmatenDay(BaseModel):
    year: int
    month: int
    day: int
    meals: list[SkolmatenMeal] | None = None
    reason: str | None = None


class SkolmatenWeek(BaseModel):
    year: int
    weekOfYear: int
    days: list[SkolmatenDay] = Field(default_factory=list)


class SkolmatenMenu(BaseModel):
    weeks: list[SkolmatenWeek] = Field(default_factory=list)
    station: DetailedStation | None = None


class MenuResponse(BaseModel):
    menu: SkolmatenMenu | None = None


# ============================================================================
# Options and helpers
# ============================================================================


@dataclass(frozen=True)
class SkolmatenOptions:
    """
    Normalization policy for station listings.

    By default stations whose name looks like an informational notice rather
    than a menu are dropped, and titles are left as the station name.
    """

    exclude_informational: bool = True
    informational_pattern: str = "info"
    append_district: bool = False
    max_concurrency: int = 16

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SkolmatenOptions:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        return cls(
            exclude_informational=bool(data.get("exclude_informational", True)),
            informational_pattern=str(data.get("informational_pattern", "info")),
            append_district=bool(data.get("append_district", False)),
            max_concurrency=int(data.get("max_concurrency", 16)),
        )


def to_station_id(value: str) -> int:
    """
    Convert a menu ID to a Skolmaten station ID.

    Only canonical base-10 integer literals are accepted, so ``"007"`` and
    ``" 7"`` are rejected even though they would parse.

    Raises:
        InvalidIdentifierError: If the value is not a canonical integer
    """
    try:
        parsed = int(value, 10)
    except ValueError:
        raise InvalidIdentifierError(f"menu id must be an integer (got `{value}`)") from None

    if str(parsed) != value:
        raise InvalidIdentifierError(f"menu id must be an integer (got `{value}`)")

    return parsed


def to_date(day: SkolmatenDay) -> date:
    """Compose the calendar date of an upstream day."""
    try:
        return date(day.year, day.month, day.day)
    except (ValueError, OverflowError) as e:
        raise ParseError(f"invalid date {day.year}-{day.month}-{day.day}: {e}") from e


class SkolmatenAdapter(BaseAdapter):
    """Adapter for the Skolmaten API (skolmaten.se)."""

    ADAPTER_NAME = "skolmaten"
    ADAPTER_VERSION = "1.0.0"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.settings = SkolmatenOptions.from_dict(self.options)
        self._informational = re.compile(self.settings.informational_pattern, re.IGNORECASE)

    async def _request(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        """
        Perform a Skolmaten API request and validate the response.

        Raises:
            NotFoundError: If the upstream answers 404
            ParseError: If the body does not have the expected shape
        """
        response = await self.fetcher.get(
            f"{self.base_url}{path}",
            headers=REQUEST_HEADERS,
            params=params,
        )
        if response.status_code == 404:
            raise NotFoundError(f"skolmaten resource `{path}` not found")

        data = decode_json(response)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"unexpected response from skolmaten `{path}`: {e}") from e

    async def _get_raw_days(self, station: int, window: SkolmatenTimeRange) -> MenuResponse:
        """
        Fetch one raw, unvalidated window of a station's menu.

        Skolmaten does not always respect windows at extreme values, so the
        caller filters the returned days by date.
        """
        return await self._request(
            "/menu",
            MenuResponse,
            params={
                "station": station,
                "year": window.year,
                "weekOfYear": window.week_of_year,
                "count": window.count,
            },
        )

    def is_menu_name(self, name: str) -> bool:
        """Check whether a station name looks like an actual menu."""
        if not self.settings.exclude_informational:
            return True
        return self._informational.search(name) is None

    def format_title(self, name: str, district: str | None = None) -> str:
        """Build the title of a station according to the listing policy."""
        title = trim_title(name)
        if self.settings.append_district and district:
            title = f"{title} ({trim_title(district)})"
        return title

    async def list_menus(self) -> list[ProviderMenu]:
        """Walk provinces, districts and stations to list every menu."""
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def request(path: str, model: type[ModelT], params: dict[str, Any] | None = None) -> ModelT:
            async with semaphore:
                return await self._request(path, model, params)

        async def list_district(district: SkolmatenObject) -> list[ProviderMenu]:
            response = await request("/stations", StationsResponse, {"district": district.id})
            return [
                ProviderMenu(id=str(station.id), title=self.format_title(station.name, district.name))
                for station in response.stations
                if self.is_menu_name(station.name)
            ]

        async def list_province(province: SkolmatenObject) -> list[ProviderMenu]:
            response = await request("/districts", DistrictsResponse, {"province": province.id})
            per_district = await asyncio.gather(
                *(list_district(district) for district in response.districts)
            )
            return [menu for menus in per_district for menu in menus]

        provinces = await request("/provinces", ProvincesResponse)
        per_province = await asyncio.gather(
            *(list_province(province) for province in provinces.provinces)
        )

        menus = [menu for menus in per_province for menu in menus]
        logger.info(f"Listed {len(menus)} stations from {len(provinces.provinces)} provinces")
        return menus

    async def query_menu(self, menu_id: str) -> ProviderMenu:
        """
        Look up one station.

        There is no station endpoint, so a short menu window is fetched and the
        station embedded in it is returned.
        """
        station_id = to_station_id(menu_id)

        today = datetime.now(UTC).date()
        window = skolmaten_time_ranges(today, today + QUERY_WINDOW)[0]
        response = await self._get_raw_days(station_id, window)

        station = response.menu.station if response.menu else None
        if station is None:
            raise NotFoundError(f"menu with id `{menu_id}` not found")

        district = station.district.name if station.district else None
        return ProviderMenu(id=str(station.id), title=self.format_title(station.name, district))

    async def list_days(self, menu_id: str, first: date, last: date) -> list[Day]:
        """
        List the days of a station within [first, last].

        Days without meals are dropped, and a date returned by more than one
        window is only kept once.
        """
        station_id = to_station_id(menu_id)
        windows = skolmaten_time_ranges(first, last)
        logger.debug(f"Requesting {len(windows)} windows for station {station_id}")

        responses = await gather_ordered(
            (self._get_raw_days(station_id, window) for window in windows),
            concurrency=self.settings.max_concurrency,
        )

        days: dict[date, Day] = {}
        for response in responses:
            if response.menu is None:
                continue
            for week in response.menu.weeks:
                for raw_day in week.days:
                    if not raw_day.meals:
                        continue
                    day_date = to_date(raw_day)
                    if not first <= day_date <= last or day_date in days:
                        continue
                    meals = polish_meals(Meal(value=meal.value) for meal in raw_day.meals)
                    if meals:
                        days[day_date] = Day(date=day_date, meals=meals)

        return sorted(days.values(), key=lambda day: day.date)
