# hidden_meaning/main.py
# Start backend using uvicorn hidden_meaning.main:app --reload --host 0.0.0.0
import logging
import logging.config
import logging.handlers
import json
import pathlib
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from hidden_meaning.core.config import settings
from hidden_meaning.api import game as game_router
from hidden_meaning.api import plays as plays_router
from hidden_meaning.crud import crud_system
from hidden_meaning.db.base import Base # Registers every table on Base.metadata
from hidden_meaning.db.session import SessionLocal, engine
from hidden_meaning.services import session_store

_queue_handler_instance: Optional[logging.handlers.QueueHandler] = None # Module-level variable
_api_stats = {"total_requests": 0, "errors_5xx": 0}

async def metrics_middleware(request: Request, call_next):
    _api_stats["total_requests"] += 1
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            _api_stats["errors_5xx"] += 1
        return response
    except Exception as e:
        _api_stats["errors_5xx"] += 1
        # Record the unhandled error as an alert, then let it propagate
        db = SessionLocal()
        try:
            crud_system.create_alert(db, "CRITICAL", f"Unhandled exception on {request.method} {request.url.path}", str(e))
        finally:
            db.close()
        raise

def configure_logging_from_file():
    """Loads logging configuration from the JSON file and identifies the QueueHandler."""
    global _queue_handler_instance
    config_file = pathlib.Path(__file__).parent / "logging_config.json"
    try:
        with open(config_file) as f_in:
            config = json.load(f_in)

        # File handler paths are relative to the configured logs directory
        for handler in config.get("handlers", {}).values():
            if "filename" in handler:
                handler["filename"] = str(settings.LOGS_DIR / handler["filename"])

        logging.config.dictConfig(config)

        # Find the QueueHandler instance to start/stop its listener later
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if isinstance(handler, logging.handlers.QueueHandler):
                _queue_handler_instance = handler
                break

        if not _queue_handler_instance:
            logging.getLogger("hidden_meaning.main.logging_setup_check").error(
                "QueueHandler not found in root logger. Off-thread logging will not work as intended."
            )
    except FileNotFoundError:
        logging.basicConfig(level=logging.INFO, format='%(levelname)-8s [%(name)s] %(message)s')
        logging.getLogger("hidden_meaning.main.logging_setup_fallback").error(
            f"Logging configuration file not found at {config_file}. Falling back to basic stdout logging."
        )
    except (json.JSONDecodeError, ValueError, TypeError, AttributeError, ImportError) as e:
        # dictConfig raises ValueError for most configuration problems
        logging.basicConfig(level=logging.INFO, format='%(levelname)-8s [%(name)s] %(message)s')
        logging.getLogger("hidden_meaning.main.logging_setup_fallback").error(
            f"Failed to configure logging from {config_file}: {e}. Falling back to basic stdout logging.", exc_info=True
        )


# Configure logging when the module is loaded. Listener is started/stopped by lifespan.
configure_logging_from_file()
logger = logging.getLogger("hidden_meaning.main") # Logger for this module

def create_tables():
    Base.metadata.create_all(bind=engine)
create_tables()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup sequence initiated...")
    if _queue_handler_instance and getattr(_queue_handler_instance, 'listener', None):
        _queue_handler_instance.listener.start()
        logger.info("Logging QueueListener started successfully via lifespan.")
    else:
        logger.warning("QueueHandler or its listener not found during startup; off-thread logging might not be active.")

    yield  # This is where the application will run

    logger.info("Application shutdown sequence initiated...")
    if session_store.active_sessions:
        logger.info(f"Dropping {len(session_store.active_sessions)} in-memory game sessions.")
        session_store.active_sessions.clear()
    if _queue_handler_instance and getattr(_queue_handler_instance, 'listener', None):
        _queue_handler_instance.listener.stop()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)
app.middleware("http")(metrics_middleware)

# Include Routers
app.include_router(game_router.router, prefix=settings.API_V1_STR + "/game", tags=["Game"])
app.include_router(plays_router.router, prefix=settings.API_V1_STR + "/plays", tags=["Plays"])

logger.info("--- FastAPI Registered Routes ---")
for route in app.routes:
    if isinstance(route, APIRoute):
        logger.info(f"Path: {route.path}, Methods: {route.methods}, Name: {route.name}")
logger.info("--- End Registered Routes ---")


@app.get(settings.API_V1_STR + "/health", tags=["Health Check"])
async def health_check():
    return {
        "status": "healthy",
        "project": settings.PROJECT_NAME,
        "active_sessions": len(session_store.active_sessions),
        "total_requests": _api_stats["total_requests"],
        "errors_5xx": _api_stats["errors_5xx"],
    }
