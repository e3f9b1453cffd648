"""FastAPI application factory for Matsedel."""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from matsedel.services.menu_service import MenuService
from matsedel.upstream.registry import ProviderRegistry
from matsedel.web.errors import register_error_handlers

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

# Any http(s)://localhost origin, with or without a port
LOCALHOST_ORIGIN_REGEX = r"^https?://localhost(?::[0-9]+)?$"

DEFAULT_CACHE_MAX_AGE = 1800


def get_cors_origins() -> list[str]:
    """Read allowed CORS origins from the comma-separated CORS_ORIGINS variable."""
    value = os.environ.get("CORS_ORIGINS", "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def get_cache_max_age() -> int:
    """Read the Cache-Control max-age (seconds) from CACHE_MAX_AGE."""
    try:
        return int(os.environ.get("CACHE_MAX_AGE", DEFAULT_CACHE_MAX_AGE))
    except ValueError:
        return DEFAULT_CACHE_MAX_AGE


def create_app(registry: ProviderRegistry | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        registry: Provider registry (the process-wide one is used if omitted)
    """
    app = FastAPI(
        title="Matsedel",
        description="School lunch menus from multiple providers behind one API",
        version="0.1.0",
    )

    app.state.menu_service = MenuService(registry=registry)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_origin_regex=LOCALHOST_ORIGIN_REGEX,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    cache_max_age = get_cache_max_age()

    @app.middleware("http")
    async def add_cache_control(request: Request, call_next) -> Response:
        response = await call_next(request)
        if request.method == "GET" and response.status_code == 200:
            response.headers.setdefault("Cache-Control", f"public, max-age={cache_max_age}")
        return response

    register_error_handlers(app)

    # Include routers (import here to avoid circular imports)
    from matsedel.web.routes import health, menus

    app.include_router(health.router)
    app.include_router(menus.router)

    return app


# Application instance
app = create_app()
