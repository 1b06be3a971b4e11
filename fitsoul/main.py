"""FastAPI application entry point for Fitsoul."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitsoul.config import get_settings
from fitsoul.database import Database
from fitsoul.routers import auth_router, sse_router
from fitsoul.services import (
    AuthService,
    FirebaseAuthClient,
    GoogleSignInHelper,
    SessionCoordinator,
    UserStore,
)
from fitsoul.services.google_sign_in import ConsentHost

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Builds the auth stack on startup and tears it down on shutdown. The
    Google helper starts uninitialised; see ``attach_consent_host``.
    """
    # Startup
    logger.info("Starting Fitsoul auth bridge...")
    await Database.connect()

    firebase_auth = FirebaseAuthClient()
    auth_service = AuthService(firebase_auth, UserStore(Database.get_db()))
    google_sign_in = GoogleSignInHelper()
    coordinator = SessionCoordinator(auth_service, firebase_auth, google_sign_in)

    app.state.coordinator = coordinator
    logger.info("Fitsoul auth bridge started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Fitsoul auth bridge...")
    coordinator.dispose()
    await coordinator.wait_until_idle()
    await firebase_auth.close()
    await Database.disconnect()
    logger.info("Fitsoul auth bridge shutdown complete")


def attach_consent_host(app: FastAPI, host: ConsentHost) -> None:
    """Enable the Google account picker with the embedding shell's consent host."""
    settings = get_settings()
    coordinator: SessionCoordinator = app.state.coordinator
    coordinator.google_sign_in.initialize(host, settings.google_web_client_id)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} Auth API",
        description="Authentication bridge for the Fitsoul client",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(sse_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        try:
            # Check database connection
            db = Database.get_db()
            await db.command("ping")
            return {
                "status": "healthy",
                "database": "connected",
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
            }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fitsoul.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
