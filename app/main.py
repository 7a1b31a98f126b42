import logging
from contextlib import asynccontextmanager
from typing import Iterable

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import CORS_ORIGINS, DATABASE_URL, ENV_NORMALIZED
from app.core.database import Base, engine
from app.core.error_handlers import register_error_handlers
from app.core.logging_setup import configure_logging
from app.core.startup_checks import validate_environment
from app.middleware.auth_rate_limit import AuthRateLimitMiddleware
from app.middleware.observability import ObservabilityMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
import app.models  # garante que os models são importados antes do create_all

from app.routers.auth import router as auth_router
from app.routers.businesses import router as businesses_router
from app.routers.health import router as health_router
from app.routers.media import router as media_router
from app.routers.users import router as users_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"

ALL_ROUTERS = (
    health_router,
    auth_router,
    users_router,
    media_router,
    businesses_router,
)


def _startup_tasks() -> None:
    try:
        validate_environment()
        # Cria tabelas (dev). Em produção, use migrations.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        logger.info("%s ready env=%s", STARTUP_PREFIX, ENV_NORMALIZED)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


def build_app(routers: Iterable[APIRouter] = ALL_ROUTERS, *, title: str = "Buy Locals API") -> FastAPI:
    """Assemble an application with the shared middleware stack.

    The monolith mounts every router; each Lambda function mounts only its own.
    """
    application = FastAPI(
        title=title,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # a última adicionada é a mais externa
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    application.add_middleware(AuthRateLimitMiddleware)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(ObservabilityMiddleware)

    register_error_handlers(application)

    for router in routers:
        application.include_router(router)
    return application


app = build_app()


@app.get("/")
def root():
    return {"status": "ok"}
