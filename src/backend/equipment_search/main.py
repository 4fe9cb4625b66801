"""
Equipment Search - Hybrid catalog search service
FastAPI Application Entry Point
"""

import logging
import logging.handlers
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.health import get_container_dep, router as health_router
from .api.v1.search import get_catalog_service_dep, router as search_router
from .container import ServiceContainer
from .database.database import postgresql_manager
from .services.config.configuration_service import get_config_service

# Load environment variables
load_dotenv()


def configure_logging():
    """
    Configure structured logging using structlog.

    - Production (ENV=production): JSON output for log aggregation
    - Development (ENV=development): Human-readable console output
    - Includes automatic context: timestamp, level, logger name, search_id
    """
    env = os.getenv("ENV", "development").lower()
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.contextvars.merge_contextvars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        timestamper,
    ]

    if env == "production":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback
        )

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    # File logging is opt-in via LOG_FILE_PATH
    log_file_path = os.getenv("LOG_FILE_PATH")
    if log_file_path:
        log_file_path = str(Path(log_file_path).resolve())
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB per file
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(log_level)

    # Reduce noise from verbose libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    return structlog.get_logger(__name__)


# Initialize structured logging
logger = configure_logging()

# Global instances
container: Optional[ServiceContainer] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown"""
    global container

    logger.info("Starting Equipment Search service...")

    config_service = get_config_service()
    if not config_service.validate_config("search_config"):
        logger.warning("search_config.json validation found issues - check logs for details")

    container = ServiceContainer(config_service, postgresql_manager)
    await container.startup()

    logger.info("All services initialized successfully")

    yield

    logger.info("Shutting down Equipment Search service...")
    await container.shutdown()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Equipment Search",
    description="Hybrid full-text and vector search over the equipment catalog",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Update for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_container() -> ServiceContainer:
    """Get service container for dependency injection"""
    if container is None:
        raise RuntimeError("Service container not initialized")
    return container


def get_catalog_service():
    """Get catalog service for dependency injection"""
    return get_container().catalog_service


# Include routers
app.include_router(search_router)
app.include_router(health_router)

# Override dependencies in app (not router)
app.dependency_overrides[get_catalog_service_dep] = get_catalog_service
app.dependency_overrides[get_container_dep] = get_container


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "equipment-search",
        "version": "1.0.0",
        "endpoints": {
            "search": "/api/v1/search",
            "parameters": "/api/v1/search/parameters",
            "health": "/api/v1/health",
            "docs": "/docs"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "equipment_search.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False,
        log_level="info"
    )
