"""
FastAPI application factory for the PlotTwist API.

- Builds and initializes the ServiceContainer in the lifespan
- Configures CORS for the web client
- Registers routers and exception handlers
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.routes import auth, challenges, clans, predictions, users
from api.schemas import HealthResponse
from config import CLIENT_URLS, DEBUG
from infrastructure.service_container import ServiceConfig, ServiceContainer

logger = logging.getLogger("plottwist.api")

API_VERSION = "0.1.0"


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """
    Create the API application.

    Args:
        container: Pre-built container (tests pass one pointing at a temp DB).
            Defaults to a container configured from the environment.
    """
    container = container or ServiceContainer(ServiceConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting PlotTwist API")
        await container.initialize()
        logger.info(f"PlotTwist API ready (db={container.config.db_path})")
        yield
        logger.info("Shutting down PlotTwist API")

    app = FastAPI(
        title="PlotTwist API",
        description="Social prediction markets with a pari-mutuel coin ledger",
        version=API_VERSION,
        lifespan=lifespan,
        debug=DEBUG,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CLIENT_URLS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(predictions.router)
    app.include_router(challenges.router)
    app.include_router(clans.router)

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health_check():
        return {
            "status": "ok",
            "timestamp": int(time.time()),
            "service": "plottwist-api",
            "version": API_VERSION,
        }

    return app
