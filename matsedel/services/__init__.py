"""Application services for Matsedel."""

from matsedel.services.menu_service import MenuService, get_menu_service, resolve_range

__all__ = [
    "MenuService",
    "get_menu_service",
    "resolve_range",
]
