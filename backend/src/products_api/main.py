from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from products_api.config import Settings, settings
from products_api.db.session import Database
from products_api.dependencies import DB
from products_api.handlers import install_problem_handlers
from products_api.logging import get_logger
from products_api.middleware import RequestContextMiddleware
from products_api.routers import product
from products_api.translator import ErrorTranslator, FailureLogger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: create missing tables if configured. Shutdown: close DB connections."""
    if app.state.settings.db_create_schema:
        await app.state.database.create_schema()
    yield
    await app.state.database.dispose()


async def health(db: DB) -> dict[str, str]:
    """Health check endpoint; verifies database connectivity."""
    await db.execute(text("SELECT 1"))
    return {"status": "ok"}


def create_app(
    app_settings: Settings | None = None,
    *,
    error_logger: FailureLogger | None = None,
) -> FastAPI:
    """Build the application from ``app_settings``.

    Everything configurable (database, API key, problem details) is read from
    ``app.state.settings``. The translator is created once per app and shared
    by the exception handlers and the middleware catch-all; ``error_logger``
    replaces its structlog logger.
    """
    app_settings = app_settings or settings
    translator = ErrorTranslator(
        error_logger or get_logger("products_api.errors"),
        type_base_url=app_settings.problem_type_base_url,
        expose_unexpected_details=app_settings.expose_unexpected_details,
    )

    app = FastAPI(title="Products API", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.database = Database(app_settings)
    app.state.translator = translator

    app.add_middleware(RequestContextMiddleware, translator=translator)
    install_problem_handlers(app, translator)

    app.add_api_route("/health", health, methods=["GET"])
    app.include_router(product.router)

    logger.debug("app_created", problem_type_base_url=app_settings.problem_type_base_url)
    return app


app = create_app()
