# eventlog/main.py
"""
Event log producer API.

Run with:
    uvicorn eventlog.main:app --host 0.0.0.0 --port 5000
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventlog.api.api import api_router
from eventlog.api.errors import register_exception_handlers
from eventlog.core.config import settings
from eventlog.core.kafka_producer import EventLogPublisher
from eventlog.db.session import LogStore

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the queue and log store handles for the lifetime of the process"""
    logger.info("Starting event log API...")
    app.state.event_publisher = EventLogPublisher()
    # Read-only here; the log-writer service owns the schema.
    app.state.log_store = LogStore()
    logger.info(
        f"Publishing to topic {settings.EVENT_LOG_TOPIC} via {settings.KAFKA_BOOTSTRAP_SERVERS}"
    )
    yield
    logger.info("Shutting down event log API...")
    app.state.event_publisher.close()
    app.state.log_store.dispose()


app = FastAPI(
    title="Event Log API",
    version="1.0.0",
    description="Accepts storefront behavioral events and queues them for the log-writer.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins() or ["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)
