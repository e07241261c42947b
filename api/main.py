"""Local Library API — FastAPI application factory.

Builds the app from an explicit CatalogConfig: registers middleware,
routers, error handlers and the database lifecycle. Run with::

    uvicorn --factory api.main:create_app
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import verticals.catalog
import verticals.catalog.models.db_models  # noqa: F401  (registers tables)
from api.middleware import RequestContextMiddleware, RequestIdFilter
from core.database import Database
from core.engine.template_engine import Presenter
from patterns.domain_config import CatalogConfig
from verticals.catalog.router import router as catalog_router
from verticals.catalog.uploads import UploadStore

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(verticals.catalog.__file__), "templates")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(level: str) -> None:
    """Install a request-id aware handler unless logging is already set up."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database on startup and dispose of it on shutdown."""
    config: CatalogConfig = app.state.config
    database = Database(config.database)
    if config.database.create_tables:
        await database.create_all()
    app.state.database = database

    logger.info("catalog_started version=%s", config.version)
    try:
        yield
    finally:
        await database.dispose()
        logger.info("catalog_stopped")


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/catalog/api/")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if _wants_json(request):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})
    return request.app.state.presenter.render(request, "error", {
        "title": "Error",
        "message": exc.detail,
        "status_code": exc.status_code,
    }, status_code=exc.status_code)


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("store_failure path=%s", request.url.path)
    if _wants_json(request):
        return JSONResponse(status_code=500, content={"message": "Error fetching data"})
    return request.app.state.presenter.render(request, "error", {
        "title": "Error",
        "message": "The catalog could not be reached. Please try again later.",
        "status_code": 500,
    }, status_code=500)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(config: CatalogConfig | None = None) -> FastAPI:
    config = config or CatalogConfig.from_env()
    configure_logging(config.log_level)

    app = FastAPI(
        title=config.title,
        description="Server-rendered catalog of a library's authors, books, genres and copies",
        version=config.version,
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.presenter = Presenter(TEMPLATE_DIR, globals_={"site_title": config.title})
    app.state.uploads = UploadStore(config.uploads)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    app.include_router(catalog_router, prefix="/catalog", tags=["Catalog"])
    app.mount(
        app.state.uploads.url_prefix,
        StaticFiles(directory=app.state.uploads.directory),
        name="uploads",
    )

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": config.version}

    @app.get("/")
    async def root():
        return RedirectResponse("/catalog/")

    return app
