import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .redis_client import get_redis_client
from .routers import slots
from .services.slots import SlotError, SlotStore, build_store

logger = logging.getLogger(__name__)


def create_app(store: SlotStore | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the API. A ready store can be injected (tests); otherwise the
    configured backend is created on startup and closed on shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level.upper())
        owned = store is None
        app.state.store = store if store is not None else build_store(settings)
        logger.info("Slot store ready: %s backend", app.state.store.backend_name)
        yield
        if owned:
            app.state.store.close()
        logger.info("Application shutting down...")

    app = FastAPI(title="Slot Booking API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(slots.router)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error for %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": SlotError.INVALID_INPUT.value})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "server_error"})

    @app.get("/health")
    def health(request: Request):
        redis = get_redis_client(settings)
        redis_ok = None
        if redis is not None:
            try:
                redis_ok = bool(redis.ping())
            except RedisError:
                logger.warning("Redis ping failed")
                redis_ok = False
        return {
            "status": "ok",
            "backend": request.app.state.store.backend_name,
            "redis": redis_ok,
        }

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Slot booking API is running"

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(
        "slotbook.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
