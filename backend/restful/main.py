"""
FastAPI application factory.
Assembles an app with logging, middleware, database lifespan and the
controller routes.
"""

from contextlib import asynccontextmanager
from typing import Any, Iterable, Mapping, Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from restful.api.middleware import RequestLoggingMiddleware
from restful.core.config import Settings, settings as default_settings
from restful.core.logging import get_logger, setup_logging
from restful.db.session import close_db, init_db, setup_database
from restful.routes import urls
from restful.schemas.route import Route

logger = get_logger(__name__)


def create_app(
    views: Iterable[Union[Route, Mapping[str, Any]]] = (),
    settings: Optional[Settings] = None,
    prefix: Optional[str] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.
    
    Args:
        views: Controllers to mount, see ``restful.routes.urls``
        settings: Settings override, defaults to the environment settings
        prefix: Url prefix override, defaults to ``settings.API_PREFIX``
        
    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the database on startup and dispose of it on shutdown."""
        setup_database(settings.DATABASE_URL)
        await init_db()
        yield
        await close_db()
    
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.environment = settings.ENVIRONMENT
    
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Rate limiting middleware
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    
    # Access log, errors only in production
    app.add_middleware(RequestLoggingMiddleware, errors_only=settings.is_production)
    
    # Controllers, 404 and error handlers
    urls(app, settings.API_PREFIX if prefix is None else prefix, views)
    
    logger.info(
        "Application created",
        extra={"environment": settings.ENVIRONMENT, "project": settings.PROJECT_NAME},
    )
    return app
