"""
Main Application - DARE YIW Tracker Report API

FastAPI web application exposing the filtered report engine: listing,
querying, exporting and summarising youth, business, mentor and feasibility
assessment records.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

# ============================================================================
# IMPORTS
# ============================================================================
import logging
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from . import __version__
from .config import config, setup_logging
from .database import get_database_manager, reset_database_manager

# Global state
app_state = {
    "db_manager": None,
}

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open the database on startup, release it on shutdown"""
    setup_logging()

    # Startup
    if app_state.get("db_manager") is None:
        app_state["db_manager"] = get_database_manager()
    logger.info(f"DARE YIW Tracker report API started ({config.environment.value})")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if app_state.get("db_manager"):
        try:
            app_state["db_manager"].close()
            reset_database_manager()
            logger.info("Database connections closed")
        except Exception as e:
            logger.error(f"Error closing database connections: {e}")
    app_state["db_manager"] = None


# Create FastAPI app
app = FastAPI(
    title="DARE YIW Tracker Reports",
    description="Filtered report engine for the DARE Youth in Work tracker",
    version=__version__,
    lifespan=lifespan
)


# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration"""
    start_time = datetime.now()
    is_health_check = request.url.path == "/api/health"
    query_string = f"?{request.url.query}" if request.url.query else ""

    if not is_health_check:
        logger.info(f"Request: {request.method} {request.url.path}{query_string}")

    response = await call_next(request)
    duration = (datetime.now() - start_time).total_seconds()

    if response.status_code >= 500:
        logger.error(
            f"SERVER ERROR: {request.method} {request.url.path}{query_string} - "
            f"Status: {response.status_code} - Duration: {duration:.3f}s"
        )
    elif response.status_code >= 400:
        logger.warning(
            f"CLIENT ERROR: {request.method} {request.url.path}{query_string} - "
            f"Status: {response.status_code} - Duration: {duration:.3f}s"
        )
    elif not is_health_check:
        logger.info(f"Response: {request.method} {request.url.path} - Status: {response.status_code} - Duration: {duration:.3f}s")

    return response


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.web.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    db_manager = app_state.get("db_manager")
    if db_manager is None:
        return {
            "status": "unhealthy",
            "database": "not initialized",
            "timestamp": datetime.now().isoformat()
        }

    result = db_manager.execute_query("SELECT 1 as test")
    health = {
        "status": "healthy" if result.success else "unhealthy",
        "database": "connected" if result.success else "disconnected",
        "pool": db_manager.pool.get_pool_stats(),
        "timestamp": datetime.now().isoformat()
    }
    if result.success:
        health["tables"] = db_manager.get_table_stats()
    return health


# ============================================================================
# REPORTS API
# ============================================================================

from .reports import reports_router  # noqa: E402

app.include_router(reports_router)


# ============================================================================
# MAIN APPLICATION ENTRY POINT
# ============================================================================

def main():
    """Run the API with uvicorn"""
    uvicorn.run(
        "dare_tracker.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=config.web.reload,
        log_level=config.web.log_level
    )


if __name__ == "__main__":
    main()
