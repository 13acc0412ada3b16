import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tracker.api.admin.requests import router as admin_requests_router
from tracker.api.auth import router as auth_router
from tracker.api.realtime import router as realtime_router
from tracker.api.service_requests import router as service_requests_router
from tracker.core.config import Settings, get_settings
from tracker.core.logging_config import setup_logging
from tracker.db.mongo import connect, ensure_indexes
from tracker.realtime.connections import ConnectionRegistry

logger = logging.getLogger(__name__)


# -------------------------
# Error envelope
# -------------------------
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"success": False, "message": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "msg": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(
        {
            "success": False,
            "message": ", ".join(f"{e['field']}: {e['msg']}" for e in errors) or "Invalid request",
            "errors": errors,
        },
        status_code=400,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"success": False, "message": "Internal server error"},
        status_code=500,
    )


def create_app(settings: Optional[Settings] = None, database=None) -> FastAPI:
    """Build the tracker app.

    ``database`` lets callers (tests) supply an open Motor-compatible
    database; otherwise a client is opened from ``settings.mongo_uri`` on
    startup and closed on shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.db is None:
            client = connect(settings)
            app.state.db = client[settings.mongo_db]
        await ensure_indexes(app.state.db)
        logger.info("%s ready (env=%s)", settings.app_name, settings.env)
        try:
            yield
        finally:
            await app.state.connections.close_all()
            if client is not None:
                client.close()
                app.state.db = None

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database
    app.state.connections = ConnectionRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-User-ID"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth_router)
    app.include_router(service_requests_router)
    app.include_router(admin_requests_router)
    app.include_router(realtime_router)

    @app.get("/")
    def root():
        return {"ok": True, "docs": "/docs"}

    return app


app = create_app()
