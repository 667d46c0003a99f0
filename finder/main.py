# finder/main.py
"""
Finder FastAPI application factory.

Storage adapters and public links are built once here and stored on
`app.state`; request handlers only read them.
"""
import traceback
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finder import __version__
from finder.api.errors import storage_error_handler
from finder.api.health import router as health_router
from finder.api.router import router as finder_router
from finder.config import FinderConfig, Settings, settings as default_settings
from finder.core.operations import Finder
from finder.monitoring.context import request_context
from finder.monitoring.logger import log, set_level
from finder.monitoring.slack_alerts import send_slack_alert
from finder.storage.errors import StorageError
from finder.storage.registry import build_registry


def build_finder(settings: Settings, config: FinderConfig) -> Finder:
    """Build the adapter registry and public-link table from configuration."""
    storages = settings.storage_configs(config)
    if not config.storages:
        # The default local root is ours to create; configured roots must already exist
        Path(settings.STORAGE_PATH).mkdir(parents=True, exist_ok=True)

    registry = build_registry(storage.model_dump() for storage in storages)
    log("INFO", f"Registered storage adapters: {registry.names()}", module="main")
    return Finder(registry, public_links=config.public_links)


def create_app(
    settings: Optional[Settings] = None,
    config: Optional[FinderConfig] = None,
    finder: Optional[Finder] = None,
) -> FastAPI:
    settings = settings or default_settings
    config = config or settings.load_finder_config()
    set_level(settings.LOG_LEVEL)

    app = FastAPI(title="Finder API", version=__version__)
    app.state.settings = settings
    app.state.finder = finder or build_finder(settings, config)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allowed_origins,
        allow_credentials=True,
        allow_methods=config.cors.allowed_methods,
        allow_headers=config.cors.allowed_headers,
        max_age=config.cors.max_age,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        with request_context(request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(StorageError, storage_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        tb = traceback.format_exc()
        log(
            "ERROR",
            f"Unhandled exception: {exc}",
            module="main",
            request_id=request_id
        )
        await send_slack_alert(
            message=f"Critical error: {exc}",
            context={"traceback": tb},
            severity="CRITICAL",
            module="main",
            request_id=request_id
        )
        return JSONResponse(
            status_code=500,
            content={
                "status": False,
                "message": "An unexpected error occurred.",
                "request_id": request_id,
            }
        )

    # Mount routers
    app.include_router(health_router)
    app.include_router(finder_router, prefix=settings.API_PATH)

    log("INFO", f"Finder API v{__version__} ready", module="main")
    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "finder.main:create_app",
        factory=True,
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
