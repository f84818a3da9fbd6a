import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from .config import Settings, load_settings
from .errors import install_error_handlers
from .logging import setup_logging
from .routes import router
from .stats import RequestStats

SERVICE_NAME = "sample-api"

# Helpers
def resolve_endpoint(request: Request) -> str:
    """Matched route pattern, or the raw path when nothing matched."""
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return str(route.path)
    return request.url.path

# App factory
def create_app(settings: Settings | None = None, stats: RequestStats | None = None) -> FastAPI:
    settings = settings or load_settings()
    stats = stats or RequestStats()

    setup_logging(SERVICE_NAME, settings.log_level, settings.log_format)
    log = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        log.info(
            f"Server started successfully on port {settings.port}",
            extra={"event": "startup", "extra_fields": settings.describe()},
        )
        try:
            yield
        finally:
            log.info("Server closed", extra={"event": "shutdown"})

    app = FastAPI(title="Sample API", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.stats = stats
    app.state.started_at = time.time()

    install_error_handlers(app, detailed=settings.enable_detailed_errors)
    app.include_router(router)

    if settings.enable_metrics:
        @app.middleware("http")
        async def collect_metrics(request: Request, call_next):
            t0 = time.time()
            status = 500
            try:
                response = await call_next(request)
                status = response.status_code
                return response
            finally:
                duration_ms = int((time.time() - t0) * 1000)
                stats.record(resolve_endpoint(request), duration_ms, status)

    # Access log + latency
    @app.middleware("http")
    async def access_logger(request: Request, call_next):
        t0 = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            log.info(
                "Request processed",
                extra={
                    "event": "http.access",
                    "extra_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "status": status,
                        "duration_ms": int((time.time() - t0) * 1000),
                    },
                },
            )

    return app

# Entry point
def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)

if __name__ == "__main__":
    # Dev run: python -m api_server.app
    run()
