"""FastAPI dependencies shared by the routes."""

from typing import Annotated

from fastapi import Depends, Request

from matsedel.core.schema import MenuID
from matsedel.services.menu_service import MenuService


def get_menu_service(request: Request) -> MenuService:
    """Dependency to get the application's menu service."""
    return request.app.state.menu_service


def parse_menu_id(menu_id: str) -> MenuID:
    """Dependency parsing the ``{menu_id}`` path parameter.

    Raises:
        MalformedIdentifierError: If the ID is not ``<provider>.<id>``
    """
    return MenuID.decode(menu_id)


# Type aliases for dependency injection
MenuServiceDep = Annotated[MenuService, Depends(get_menu_service)]
MenuIDDep = Annotated[MenuID, Depends(parse_menu_id)]
