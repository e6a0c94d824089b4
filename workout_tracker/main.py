import uuid

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from .config import Settings, get_settings
from .container import build_container
from .database import engine
from .exceptions import NotFoundException
from .logging_config import configure_logging
from .routers.progressions import router as progressions_router
from .routers.workouts import router as workouts_router

configure_logging()
logger = structlog.get_logger(__name__)


def _add_cors(app: FastAPI, origins: str) -> None:
    allow_origins = [o.strip() for o in origins.split(",")] if origins != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.SERVICE_NAME, version="0.1.0")
    app.state.container = build_container(settings)

    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    if settings.CORS_ORIGINS:
        _add_cors(app, settings.CORS_ORIGINS)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: str(uuid.uuid4()),
        update_request_header=True,
    )

    @app.exception_handler(NotFoundException)
    async def not_found_exception_handler(request, exc: NotFoundException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.on_event("shutdown")
    async def shutdown_event():
        await engine.dispose()

    app.include_router(workouts_router, prefix="/workouts", tags=["workouts"])
    app.include_router(progressions_router, prefix="/progressions", tags=["progressions"])

    logger.info("app_created", service=settings.SERVICE_NAME, env=settings.APP_ENV)
    return app


app = create_app()
