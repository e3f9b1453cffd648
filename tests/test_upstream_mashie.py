"""Tests for the Mashie adapter."""

from datetime import UTC, date, datetime

import httpx
import pytest
from bs4 import BeautifulSoup

from matsedel.core.errors import NotFoundError, ParseError, UpstreamError
from matsedel.core.schema import Day, Meal, ProviderMenu
from matsedel.upstream.adapters.mashie import (
    MONTH_LITERALS,
    MashieAdapter,
    parse_date_text,
    parse_day_node,
    parse_days_html,
    parse_meal_node,
)
from matsedel.upstream.fetcher import FetchOptions, Fetcher

BASE_URL = "https://sodexo.mashie.com"
MENU_ID = "b4639689-60f2-4a19-a2dc-abe500a08e45"

MENUS_JSON = [
    {"id": MENU_ID, "title": "  Norra Real.  ", "url": "/public/app/norra-real/b4639689"},
    {"id": "c0ffee00-0000-0000-0000-000000000000", "title": "Södra Latin", "url": "/public/app/Sodra/c0ffee00"},
]

MENU_HTML = """
<html><body>
<div class="panel-group">
  <div class="panel">
    <div class="panel-heading"><span class="pull-left">Måndag</span><span class="pull-right">13 maj 2024</span></div>
    <div class="panel-body">
      <div class="app-daymenu-name">Fisk Björkeby</div>
      <div class="app-daymenu-name">  fisk björkeby. </div>
      <div class="app-daymenu-name">Tacobuffé</div>
    </div>
  </div>
  <div class="panel">
    <div class="panel-heading"><span class="pull-right">14 maj 2024</span></div>
    <div class="panel-body">
      <div class="app-daymenu-name">Pannkaka</div>
    </div>
  </div>
  <div class="panel">
    <div class="panel-heading"><span class="pull-right">15 maj 2024</span></div>
    <div class="panel-body">
      <div class="app-daymenu-name">Köttbullar</div>
    </div>
  </div>
</div>
</body></html>
"""


def element(html: str, selector: str = "div"):
    return BeautifulSoup(html, "html.parser").select_one(selector)


class MashieUpstream:
    """Mock Mashie server."""

    def __init__(
        self, menus=None, page: str = MENU_HTML, page_status: int = 200, listing_status: int = 200
    ) -> None:
        self.menus = MENUS_JSON if menus is None else menus
        self.page = page
        self.page_status = page_status
        self.listing_status = listing_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/public/app/internal/execute-query":
            assert request.method == "POST"
            assert request.url.params["country"] == "se"
            return httpx.Response(self.listing_status, json=self.menus)
        if request.url.path.startswith("/public/app/"):
            return httpx.Response(self.page_status, text=self.page)
        return httpx.Response(404)


def make_adapter(upstream: MashieUpstream) -> MashieAdapter:
    fetcher = Fetcher(
        options=FetchOptions(max_attempts=2, backoff=0),
        transport=httpx.MockTransport(upstream),
    )
    return MashieAdapter(BASE_URL, fetcher=fetcher)


class TestParseDateText:
    """Tests for day heading parsing."""

    def test_month_literals(self) -> None:
        """Test there is one literal per month."""
        assert len(MONTH_LITERALS) == 12

    def test_without_year(self) -> None:
        """Test a missing year defaults to the current year."""
        assert parse_date_text("17 maj", today=date(2026, 10, 18)) == date(2026, 5, 17)
        assert parse_date_text("17 maj") == date(datetime.now(UTC).date().year, 5, 17)

    def test_with_year(self) -> None:
        """Test an explicit year is used."""
        assert parse_date_text("17 maj 2020") == date(2020, 5, 17)

    def test_leap_day(self) -> None:
        """Test 29 February parses in a leap year."""
        assert parse_date_text("29 feb 2020") == date(2020, 2, 29)

    def test_surrounding_whitespace(self) -> None:
        """Test whitespace around the heading is ignored."""
        assert parse_date_text("\n  3 okt 2023 ") == date(2023, 10, 3)

    @pytest.mark.parametrize(
        "text",
        [
            "May 17",
            "2020-05-17T00:00:00.000+02:00",
            "17 maj INVALIDYEAR",
            "1 december 100 f.Kr.",
            "29 feb 2021",
            "17 mai",
            "x maj",
            "32 jan 2024",
            "99999999999999999999 maj 2024",
            "17 maj 99999999999999999999",
            "17 maj " + "9" * 5000,
            "\u0661\u0667 maj",
            "17 maj \u0662\u0660\u0662\u0664",
            "17",
            "",
        ],
    )
    def test_invalid(self, text: str) -> None:
        """Test malformed headings raise ParseError."""
        with pytest.raises(ParseError):
            parse_date_text(text)


class TestParseNodes:
    """Tests for meal and day node parsing."""

    def test_empty_meal(self) -> None:
        """Test an empty meal element is rejected."""
        with pytest.raises(ParseError):
            parse_meal_node(element("<div></div>"))

    def test_blank_meal(self) -> None:
        """Test a whitespace-only meal element is rejected."""
        with pytest.raises(ParseError):
            parse_meal_node(element("<div>  \n </div>"))

    def test_meal(self) -> None:
        """Test a meal element becomes a meal."""
        assert parse_meal_node(element("<div>Fisk Björkeby</div>")) == Meal(value="Fisk Björkeby")

    def test_day(self) -> None:
        """Test a day element becomes a day with deduplicated meals."""
        html = """<div class="day">
            <h4 class="panel-heading">
                <span class="pull-right">17 maj</span>
            </h4>
            <ul>
                <li class="app-daymenu-name">Fisk Björkeby</li>
                <li class="app-daymenu-name">Fisk Björkeby</li>
                <li class="app-daymenu-name">Tacobuffé</li>
            </ul>
        </div>"""

        day = parse_day_node(element(html, ".day"), today=date(2026, 1, 1))

        assert day == Day(
            date=date(2026, 5, 17),
            meals=[Meal(value="Fisk Björkeby"), Meal(value="Tacobuffé")],
        )

    def test_day_without_heading(self) -> None:
        """Test a day element without a date is rejected."""
        with pytest.raises(ParseError):
            parse_day_node(element('<div class="day"><li class="app-daymenu-name">Soppa</li></div>', ".day"))

    def test_page(self) -> None:
        """Test every panel of a page is parsed."""
        days = parse_days_html(MENU_HTML)

        assert [day.date for day in days] == [date(2024, 5, 13), date(2024, 5, 14), date(2024, 5, 15)]
        assert [meal.value for meal in days[0].meals] == ["Fisk Björkeby", "Tacobuffé"]

    def test_page_without_panels(self) -> None:
        """Test a page without day panels has no days."""
        assert parse_days_html("<html><body><p>Stängt</p></body></html>") == []


class TestMashieAdapter:
    """Tests for MashieAdapter against a mock upstream."""

    @pytest.mark.asyncio
    async def test_list_menus(self) -> None:
        """Test menus are listed with trimmed titles and without URLs."""
        menus = await make_adapter(MashieUpstream()).list_menus()

        assert menus == [
            ProviderMenu(id=MENU_ID, title="Norra Real"),
            ProviderMenu(id="c0ffee00-0000-0000-0000-000000000000", title="Södra Latin"),
        ]

    @pytest.mark.asyncio
    async def test_query_menu(self) -> None:
        """Test a menu is found by exact ID."""
        menu = await make_adapter(MashieUpstream()).query_menu(MENU_ID)
        assert menu == ProviderMenu(id=MENU_ID, title="Norra Real")

    @pytest.mark.asyncio
    async def test_query_menu_not_found(self) -> None:
        """Test an unknown ID is not found."""
        with pytest.raises(NotFoundError):
            await make_adapter(MashieUpstream()).query_menu("aaa-bbb")

    @pytest.mark.asyncio
    async def test_list_days_filtered(self) -> None:
        """Test days outside the requested range are dropped."""
        upstream = MashieUpstream()
        days = await make_adapter(upstream).list_days(MENU_ID, date(2024, 5, 14), date(2024, 5, 20))

        assert [day.date for day in days] == [date(2024, 5, 14), date(2024, 5, 15)]
        assert upstream.requests[-1].url.path == "/public/app/norra-real/b4639689"

    @pytest.mark.asyncio
    async def test_list_days_inclusive(self) -> None:
        """Test both ends of the range are included."""
        days = await make_adapter(MashieUpstream()).list_days(MENU_ID, date(2024, 5, 13), date(2024, 5, 13))

        assert len(days) == 1
        assert days[0].date == date(2024, 5, 13)

    @pytest.mark.asyncio
    async def test_list_days_unknown_menu(self) -> None:
        """Test listing days of an unknown menu is not found."""
        with pytest.raises(NotFoundError):
            await make_adapter(MashieUpstream()).list_days("nope", date(2024, 1, 1), date(2024, 12, 31))

    @pytest.mark.asyncio
    async def test_list_days_bad_markup(self) -> None:
        """Test unparsable markup is a parse error."""
        page = '<div class="panel-group"><div class="panel"><span class="pull-right">idag</span></div></div>'
        with pytest.raises(ParseError):
            await make_adapter(MashieUpstream(page=page)).list_days(MENU_ID, date(2024, 1, 1), date(2024, 12, 31))

    @pytest.mark.asyncio
    async def test_list_days_upstream_failure(self) -> None:
        """Test a failing menu page is an upstream error."""
        with pytest.raises(UpstreamError):
            await make_adapter(MashieUpstream(page_status=503)).list_days(
                MENU_ID, date(2024, 1, 1), date(2024, 12, 31)
            )

    @pytest.mark.asyncio
    async def test_malformed_listing(self) -> None:
        """Test a listing with missing fields is a parse error."""
        with pytest.raises(ParseError):
            await make_adapter(MashieUpstream(menus=[{"id": "x"}])).list_menus()

    @pytest.mark.asyncio
    async def test_listing_not_a_list(self) -> None:
        """Test a listing that is not a list is a parse error."""
        with pytest.raises(ParseError):
            await make_adapter(MashieUpstream(menus={"menus": []})).list_menus()

    @pytest.mark.asyncio
    async def test_listing_not_found(self) -> None:
        """Test a missing listing endpoint is not found."""
        with pytest.raises(NotFoundError):
            await make_adapter(MashieUpstream(menus=[], listing_status=404)).list_menus()

    @pytest.mark.asyncio
    async def test_listing_upstream_failure(self) -> None:
        """Test a failing listing endpoint is an upstream error."""
        with pytest.raises(UpstreamError):
            await make_adapter(MashieUpstream(menus=[], listing_status=403)).list_menus()

    @pytest.mark.asyncio
    async def test_list_days_oversized_day(self) -> None:
        """Test a day number too large for a date is a parse error."""
        page = MENU_HTML.replace("14 maj 2024", "99999999999999999999 maj 2024")
        with pytest.raises(ParseError):
            await make_adapter(MashieUpstream(page=page)).list_days(MENU_ID, date(2024, 1, 1), date(2024, 12, 31))
