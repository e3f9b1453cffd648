"""Menu routes: providers, menus and days."""

from datetime import date

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from matsedel.web.dependencies import MenuIDDep, MenuServiceDep

router = APIRouter(tags=["menus"])


@router.get("/providers")
async def list_providers(service: MenuServiceDep) -> JSONResponse:
    """List every registered provider."""
    return JSONResponse([info.model_dump(mode="json") for info in service.list_providers()])


@router.get("/menus")
async def list_menus(service: MenuServiceDep) -> JSONResponse:
    """List the menus of every provider."""
    menus = await service.list_menus()
    return JSONResponse([menu.model_dump(mode="json") for menu in menus])


@router.get("/menus/{menu_id}")
async def query_menu(menu_id: MenuIDDep, service: MenuServiceDep) -> JSONResponse:
    """Get a menu by its composite ID."""
    menu = await service.query_menu(menu_id)
    return JSONResponse(menu.model_dump(mode="json"))


@router.get("/menus/{menu_id}/days")
async def list_days(
    menu_id: MenuIDDep,
    service: MenuServiceDep,
    first: date | None = None,
    last: date | None = None,
) -> JSONResponse:
    """
    List the days of a menu.

    ``first`` defaults to today (UTC) and ``last`` to four weeks after
    ``first``.
    """
    days = await service.list_days(menu_id, first, last)
    return JSONResponse([day.model_dump(mode="json") for day in days])
