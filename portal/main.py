# portal/main.py
"""
Growth Portal API - Main Application

Client onboarding portal for a marketing agency: onboarding survey,
AI strategy documents, support chat, marketing agents and admin tooling.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.config import Settings, settings as default_settings
from portal.database import Base, build_engine, build_session_factory
from portal.errors import PortalError
from portal.routers import admin, agents, chat, client, documents, health
from portal.services.generation import GenerationInvoker
from portal.services.notifications import Notifier
import portal.models  # noqa: F401  registers every table on Base.metadata

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Create tables, report configuration
    - Shutdown: Dispose of the engine
    """
    settings: Settings = app.state.settings
    engine = app.state.engine

    # Startup
    logger.info("=" * 80)
    logger.info("🚀 GROWTH PORTAL API STARTING UP")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug Mode: {settings.DEBUG}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else settings.DATABASE_URL}")
    logger.info(f"Models: {settings.OPENAI_MODEL} / {settings.OPENAI_FAST_MODEL}")

    # Create database tables (if not exist)
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Database tables created/verified")
    except SQLAlchemyError as e:
        logger.error(f"❌ Database initialization error: {e}")
        raise

    # Validate critical configuration
    if not settings.OPENAI_API_KEY:
        logger.warning("⚠️  OPENAI_API_KEY not set - documents, chat and agents will not work")

    if not settings.N8N_WEBHOOK_URL:
        logger.warning("⚠️  N8N_WEBHOOK_URL not set - onboarding webhooks will be skipped")

    if not settings.EMAIL_WEBHOOK_URL:
        logger.warning("⚠️  EMAIL_WEBHOOK_URL not set - emails will be recorded as failed")

    logger.info("✅ Growth Portal API ready to accept requests")
    logger.info("=" * 80)

    yield

    # Shutdown
    logger.info("=" * 80)
    logger.info("🛑 GROWTH PORTAL API SHUTTING DOWN")
    logger.info("=" * 80)
    logger.info("Closing database connections...")
    engine.dispose()
    logger.info("✅ Shutdown complete")
    logger.info("=" * 80)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def portal_exception_handler(request: Request, exc: PortalError):
    """Handle errors from the portal taxonomy"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle framework HTTP errors (unknown routes, wrong methods)"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    logger.error(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors())
        }
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors"""
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database error occurred"}
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"}
    )


# =============================================================================
# FASTAPI APPLICATION
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    generator=None,
    notifier: Optional[Notifier] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (defaults to the environment)
        session_factory: Session factory; built from DATABASE_URL if omitted
        generator: Generation invoker; an OpenAI-backed one if omitted
        notifier: Notification outbox; HTTP sinks from settings if omitted
    """
    settings = settings or default_settings

    if session_factory is None:
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)
    else:
        engine = session_factory.kw["bind"]

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Client onboarding portal for a marketing agency. "
            "AI strategy documents, support chat and marketing agents."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,  # Disable in production
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check and status endpoints"},
            {"name": "Client", "description": "Onboarding and client profile"},
            {"name": "Documents", "description": "Strategy document generation"},
            {"name": "Chat", "description": "Support chat"},
            {"name": "Agents", "description": "Marketing agents"},
            {"name": "Admin", "description": "Agency administration"},
        ]
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.generator = generator or GenerationInvoker(settings)
    app.state.notifier = notifier or Notifier(settings, session_factory=session_factory)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"]
    )

    # Request Logging Middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests"""
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    app.add_exception_handler(PortalError, portal_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/", tags=["Health"])
    async def root():
        """
        Root endpoint with API information.
        """
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "operational",
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if settings.DEBUG else None,
            "health": "/health"
        }

    # Register routers
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(client.router, prefix="/api/v1/client", tags=["Client"])
    app.include_router(documents.router, prefix="/api/v1/documents", tags=["Documents"])
    app.include_router(chat.router, prefix="/api/v1/chat", tags=["Chat"])
    app.include_router(agents.router, prefix="/api/v1/agents", tags=["Agents"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])

    return app


app = create_app()


# =============================================================================
# STARTUP MESSAGE
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    logger.info("=" * 80)
    logger.info("Starting Growth Portal API in development mode")
    logger.info("Visit: http://localhost:8000/docs for API documentation")
    logger.info("=" * 80)

    uvicorn.run(
        "portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower()
    )
