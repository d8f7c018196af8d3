"""FastAPI application entry point.

MedVoice - call lifecycle and transcript service for AI medical voice consultations.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from medvoice import __version__
from medvoice.api.routes import calls, health, metrics
from medvoice.api.websocket.call_stream import call_registry, call_stream_endpoint
from medvoice.config import get_settings
from medvoice.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup:
    - Initialize logging

    Shutdown:
    - Close active calls
    """
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        enable_file=settings.is_production,
    )

    yield

    await call_registry.close_all()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MedVoice API",
        description="Call lifecycle and transcript service for AI medical voice consultations",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # Live call snapshots
    app.include_router(calls.router, prefix="/api", tags=["Calls"])

    # Metrics endpoint for Prometheus scraping
    app.include_router(metrics.router, tags=["Observability"])

    # WebSocket endpoint for browser-relayed SDK events
    @app.websocket("/ws/calls/{session_id}")
    async def call_ws(websocket: WebSocket, session_id: str):
        """WebSocket endpoint for one consultation's call."""
        await call_stream_endpoint(websocket, session_id)

    return app


# Application instance
app = create_app()
