"""
Mashie Adapter Module
=====================

Adapter for the Mashie menu platform. A Mashie instance lists its menus
through a JSON query endpoint and renders each menu as an HTML page with one
panel per day, so days are scraped from markup.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from pydantic import BaseModel, ValidationError

from matsedel.core.errors import NotFoundError, ParseError, UpstreamError
from matsedel.core.schema import Day, Meal, ProviderMenu
from matsedel.upstream.adapters.base import BaseAdapter
from matsedel.upstream.fetcher import decode_json
from matsedel.upstream.normalizer import polish_meals, trim_title

logger = logging.getLogger(__name__)

LIST_MENUS_PATH = "/public/app/internal/execute-query"

# Swedish month abbreviations as printed in day headings
MONTH_LITERALS: tuple[str, ...] = (
    "jan", "feb", "mar", "apr", "maj", "jun",
    "jul", "aug", "sep", "okt", "nov", "dec",
)

DAY_SELECTOR = ".panel-group > .panel"
DATE_SELECTOR = ".panel-heading .pull-right"
MEAL_SELECTOR = ".app-daymenu-name"


class MashieMenu(BaseModel):
    """Menu descriptor returned by the Mashie query endpoint."""

    id: str
    title: str
    url: str


def is_numeral(literal: str) -> bool:
    """Check that a literal consists of ASCII digits only."""
    return literal.isascii() and literal.isdecimal()


def parse_date_text(text: str, today: date | None = None) -> date:
    """
    Parse a day heading such as ``"17 maj"`` or ``"29 feb 2020"``.

    Args:
        text: Heading text: day, month abbreviation and an optional year
        today: Reference date supplying the year when it is omitted

    Returns:
        The parsed date

    Raises:
        ParseError: If the text is not a valid date in this format
    """
    segments = text.split()

    if len(segments) > 3:
        raise ParseError(f"too many whitespaces in `{text}`")
    if len(segments) < 2:
        raise ParseError(f"`{text}` is not a day and a month")

    day_literal, month_literal = segments[0], segments[1]
    year_literal = segments[2] if len(segments) == 3 else None

    if not is_numeral(day_literal):
        raise ParseError(f"`{day_literal}` is not a valid day")

    try:
        month = MONTH_LITERALS.index(month_literal.lower()) + 1
    except ValueError:
        raise ParseError(f"`{month_literal}` is not a valid month literal") from None

    if year_literal is not None and not is_numeral(year_literal):
        raise ParseError(f"`{year_literal}` is not a valid year")

    try:
        if year_literal is None:
            year = (today or datetime.now(UTC).date()).year
        else:
            year = int(year_literal)
        return date(year, month, int(day_literal))
    except (ValueError, OverflowError) as e:
        raise ParseError(f"`{text}` is not a valid date: {e}") from e


def parse_meal_node(element: Tag) -> Meal:
    """
    Extract a meal from a meal name element.

    Raises:
        ParseError: If the element has no text
    """
    value = element.get_text()

    if not value.strip():
        raise ParseError("unable to parse meal node")

    return Meal(value=value)


def parse_day_node(element: Tag, today: date | None = None) -> Day:
    """
    Extract a day, with deduplicated meals, from a day panel element.

    Raises:
        ParseError: If the date heading or any meal cannot be parsed
    """
    date_node = element.select_one(DATE_SELECTOR)
    if date_node is None:
        raise ParseError("day panel has no date heading")

    meals = [parse_meal_node(node) for node in element.select(MEAL_SELECTOR)]

    return Day(
        date=parse_date_text(date_node.get_text(), today=today),
        meals=polish_meals(meals),
    )


def parse_days_html(html: str, today: date | None = None) -> list[Day]:
    """Extract every day panel from a Mashie menu page."""
    soup = BeautifulSoup(html, "html.parser")
    return [parse_day_node(element, today=today) for element in soup.select(DAY_SELECTOR)]


class MashieAdapter(BaseAdapter):
    """
    Adapter for a Mashie platform instance (e.g. sodexo.mashie.com).

    The platform has no "get one menu" call, so single-menu lookups list
    every menu and search the result.
    """

    ADAPTER_NAME = "mashie"
    ADAPTER_VERSION = "1.0.0"

    async def _list_raw_menus(self) -> list[MashieMenu]:
        """Fetch the raw menu descriptors, including page URLs."""
        response = await self.fetcher.post(
            f"{self.base_url}{LIST_MENUS_PATH}",
            params={"country": "se"},
        )
        if response.status_code == 404:
            raise NotFoundError(f"no menu listing at {self.base_url}")

        data: Any = decode_json(response)

        if not isinstance(data, list):
            raise ParseError(f"expected a list of menus from {self.base_url}")
        try:
            return [MashieMenu.model_validate(item) for item in data]
        except ValidationError as e:
            raise ParseError(f"invalid menu descriptor from {self.base_url}: {e}") from e

    async def _query_raw_menu(self, menu_id: str) -> MashieMenu:
        for menu in await self._list_raw_menus():
            if menu.id == menu_id:
                return menu
        raise NotFoundError(f"menu with id `{menu_id}` not found")

    async def list_menus(self) -> list[ProviderMenu]:
        """List every menu of this Mashie instance."""
        menus = [
            ProviderMenu(id=menu.id, title=trim_title(menu.title))
            for menu in await self._list_raw_menus()
        ]
        logger.info(f"Listed {len(menus)} menus from {self.base_url}")
        return menus

    async def query_menu(self, menu_id: str) -> ProviderMenu:
        """Look up one menu by its Mashie ID."""
        menu = await self._query_raw_menu(menu_id)
        return ProviderMenu(id=menu.id, title=trim_title(menu.title))

    async def list_days(self, menu_id: str, first: date, last: date) -> list[Day]:
        """
        Scrape the days of a menu.

        The menu page has no range filter, so the whole page is fetched and
        days outside [first, last] are dropped afterwards.
        """
        menu = await self._query_raw_menu(menu_id)
        url = urljoin(f"{self.base_url}/", menu.url)

        response = await self.fetcher.get(url)
        if response.status_code == 404:
            raise NotFoundError(f"menu page for `{menu_id}` not found")
        if not response.is_success:
            raise UpstreamError(
                f"upstream answered {response.status_code} for {url}",
                status_code=response.status_code,
            )

        days = parse_days_html(response.text)
        return [day for day in days if first <= day.date <= last]
