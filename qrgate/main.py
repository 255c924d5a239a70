# qrgate/main.py

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import Response

from qrgate.config import Settings, get_settings
from qrgate.db.base import create_engine
from qrgate.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from qrgate.observability.logger import configure_logging, log_info
from qrgate.observability.metrics import PrometheusMiddleware, router as metrics_router
from qrgate.repositories.json_record_store import JsonRecordStore
from qrgate.repositories.record_store import RecordStore
from qrgate.repositories.sql_record_store import SqlRecordStore
from qrgate.routers.health import router as health_router
from qrgate.routers.qrs import router as qrs_router
from qrgate.routers.render import router as render_router
from qrgate.routers.resolve import router as resolve_router
from qrgate.services.qr_service import QRService
from qrgate.services.resolver import QRResolver


def build_store(settings: Settings) -> RecordStore:
    """Pick the record store backend named by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "sql":
        return SqlRecordStore(create_engine(settings.DB_URL, echo=settings.DEBUG))
    return JsonRecordStore(settings.DATA_FILE)


def create_app(settings: Optional[Settings] = None, store: Optional[RecordStore] = None) -> FastAPI:
    """Build the application; tests pass their own settings and store."""
    settings = settings or get_settings()
    configure_logging(settings)
    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(store, SqlRecordStore):
            await store.init_schema()
        log_info(f"qrgate started with {type(store).__name__}")
        yield
        if isinstance(store, SqlRecordStore):
            await store.dispose()
        log_info("qrgate stopped")

    app = FastAPI(
        title="QR Gate API",
        description="Static and dynamic QR codes with an editable redirect resolver",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.record_store = store
    app.state.qr_service = QRService(store)
    app.state.qr_resolver = QRResolver(store)

    # Add middleware (order matters: last added = outermost)
    app.add_middleware(PrometheusMiddleware)
    # Error handler should be outermost to catch all errors
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.DEBUG)

    # Register exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)  # Health checks at root level
    app.include_router(metrics_router)
    app.include_router(qrs_router, prefix="/api")
    app.include_router(resolve_router, prefix="/api")
    app.include_router(render_router, prefix="/api")

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        """Return empty response for favicon to prevent 404 errors."""
        return Response(status_code=204)

    if settings.OTEL_ENABLED:
        from qrgate.observability.tracing import init_otel
        init_otel(app)

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
