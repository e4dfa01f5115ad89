"""Cycle Login - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from cycle_login.core.config import Settings, get_settings
from cycle_login.core.errors import AdminRequired, BackendFailure
from cycle_login.core.log import configure_logging
from cycle_login.routers import admin, api, auth
from cycle_login.stores import RecordStore, SqlRecordStore, build_store

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(app.state.store, SqlRecordStore):
            await app.state.store.init_schema()
        logger.info("Cycle Login using %s store", app.state.store.name)
        yield
        await app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Rotating five-code PIN login with license tracking",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AdminRequired)
    async def admin_required_handler(request: Request, exc: AdminRequired):
        return JSONResponse(status_code=401, content={"error": "Dev auth required"})

    @app.exception_handler(BackendFailure)
    async def backend_failure_handler(request: Request, exc: BackendFailure):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": "Storage unavailable, try again"})

    app.include_router(auth.router)
    app.include_router(api.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def build_default_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings)
