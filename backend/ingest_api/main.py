"""
Sensor Ingest - Backend API
===========================
FastAPI application that collects readings from our ESP sensor nodes and
serves them to the dashboard.

ARCHITECTURE:

    [ESP32 full-sensor node] --POST /upload/outdoor--+
                                                     |
    [ESP8266 CO2 node] ------POST /upload/indoor-----+--> [This Backend] --> [Reading Store]
                                                                |              (sqlite)
    [Dashboard] <----------GET /data/latest, /data/history------+

SUPPORTED DEVICES:
    1. Full-sensor node (ESP32) - temperature, humidity, pressure, light, CO2
    2. CO2-only node (ESP8266) - CO2

HOW TO RUN:
    # Install (from the repo root)
    python -m venv venv
    source venv/bin/activate  # Windows: venv\\Scripts\\activate
    pip install -e .

    # Optional: put settings in a .env file (see config.py)

    # Run the server
    cd backend
    uvicorn ingest_api.main:app --reload --port 3000

API DOCUMENTATION:
    After starting the server, visit:
    - Swagger UI: http://localhost:3000/docs
    - ReDoc: http://localhost:3000/redoc

Author: Sensor Ingest Team
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ingest_api.config import Config
from ingest_api.exceptions import (
    FieldValidationError,
    PayloadParseError,
    StoreError,
    StoreUnavailableError,
)
from ingest_api.routers import data_router, upload_router
from ingest_api.services import (
    DeviceRouter,
    FieldNormalizer,
    IngestionService,
    ReadingStore,
    ViewAggregator,
    create_store,
)


logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(message)s',
    datefmt='%H:%M:%S',
    handlers=[logging.StreamHandler(sys.stderr)]
)
logger = logging.getLogger(__name__)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def handle_parse_error(request: Request, exc: PayloadParseError):
    """Unparseable body -> 400 with the diagnostic text."""
    logger.warning(f"[UPLOAD] {request.url.path} rejected: {exc.message}")
    return PlainTextResponse(exc.diagnostic, status_code=400)


async def handle_validation_error(request: Request, exc: FieldValidationError):
    """Mandatory field isn't a number -> 400 naming the field."""
    logger.warning(f"[UPLOAD] {request.url.path} rejected: {exc}")
    return JSONResponse(
        status_code=400,
        content={"error": str(exc), "field": exc.field, "reason": exc.reason},
    )


async def handle_store_error(request: Request, exc: StoreError):
    """Store failed -> 500. Devices re-send on their next cycle."""
    logger.error(f"[STORE] {request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": "Storage backend error"})


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(config: Optional[Config] = None, store: Optional[ReadingStore] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        config: Settings to use (default: read from the environment)
        store: Store to use (default: built from config)

    Returns:
        The app, ready for uvicorn or TestClient
    """
    config = config or Config.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        STARTUP:
            1. Open the reading store (fail fast if we can't)
            2. Build normalizer -> router -> ingestion service
            3. Build the dashboard views
            4. Print startup information

        SHUTDOWN:
            1. Close the store
        """
        # ========== STARTUP ==========
        print("=" * 60)
        print("🚀 SENSOR INGEST - Starting Backend")
        print("=" * 60)

        reading_store = store or create_store(config)
        try:
            await reading_store.connect()
        except StoreUnavailableError as e:
            logger.error(f"[STORE] Startup failed: {e}")
            raise

        normalizer = FieldNormalizer(policy=config.mandatory_field_policy)
        app.state.store = reading_store
        app.state.ingestion = IngestionService(
            store=reading_store,
            router=DeviceRouter(normalizer),
            echo_payloads=config.debug_echo_payloads,
        )
        app.state.views = ViewAggregator(reading_store, history_limit=config.history_limit)

        print(f"✅ Store connected ({reading_store.name})")
        print(f"   co2 policy: {config.mandatory_field_policy.value}")
        print(f"   Debug echo: {'on' if config.debug_echo_payloads else 'off'}")
        print(f"   History limit: {config.history_limit} per partition")
        print(f"   CORS origins: {len(config.allowed_origins)} configured")
        print()
        print("📖 API Documentation: /docs")
        print("=" * 60)

        yield  # Application runs here

        # ========== SHUTDOWN ==========
        print()
        print("🛑 Shutting down...")
        await reading_store.close()
        app.state.ingestion = None
        app.state.views = None
        print("✅ Shutdown complete")

    app = FastAPI(
        title="Sensor Ingest API",
        description="""
## Overview

Collects readings from ESP sensor nodes and serves them to the dashboard.

## Devices

| Endpoint | Device | Fields |
|----------|--------|--------|
| `POST /upload/outdoor` | ESP32 full-sensor node | temperature, humidity, pressure, light, co2 |
| `POST /upload/indoor` | ESP8266 CO2 node | co2 |

Missing values are stored as `-99999`.

## Dashboard

- `GET /data/latest` - newest reading per partition
- `GET /data/history` - outdoor block then indoor block, newest first
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PayloadParseError, handle_parse_error)
    app.add_exception_handler(FieldValidationError, handle_validation_error)
    app.add_exception_handler(StoreError, handle_store_error)

    # Device uploads
    app.include_router(upload_router)

    # Dashboard reads
    app.include_router(data_router)

    @app.get(
        "/",
        summary="API Information",
        description="Get basic API information and available endpoints."
    )
    async def root():
        """Root endpoint with API overview."""
        return {
            "name": "Sensor Ingest API",
            "version": "1.0.0",
            "documentation": {
                "swagger": "/docs",
                "redoc": "/redoc",
                "openapi": "/openapi.json"
            },
            "endpoints": {
                "upload": {
                    "outdoor": "POST /upload/outdoor",
                    "indoor": "POST /upload/indoor"
                },
                "data": {
                    "latest": "GET /data/latest",
                    "history": "GET /data/history"
                }
            }
        }

    @app.get(
        "/health",
        summary="Health Check",
        description="Check if the backend is running."
    )
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "store_backend": config.store_backend,
            "mandatory_field_policy": config.mandatory_field_policy.value,
            "history_limit": config.history_limit
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.config.port)
