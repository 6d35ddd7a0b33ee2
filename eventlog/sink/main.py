# eventlog/sink/main.py
"""
Log-writer service: serves the LogEvent procedure and owns the log store.

Run with:
    uvicorn eventlog.sink.main:app --host 0.0.0.0 --port 50051
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from eventlog.api.deps import get_log_store
from eventlog.core.config import settings
from eventlog.db.session import LogStore
from eventlog.sink.errors import register_rpc_exception_handlers
from eventlog.sink.router import router as rpc_router

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the log store on startup, release it on shutdown"""
    logger.info("Starting log-writer service...")
    log_store = getattr(app.state, "log_store", None)
    if log_store is None:
        log_store = LogStore()
        app.state.log_store = log_store
    try:
        log_store.create_tables()
    except SQLAlchemyError as e:
        # Serve anyway: LogEvent answers UNAVAILABLE until the database is back
        logger.warning(f"Log store not ready at startup: {e}")
    if not settings.INTERNAL_API_KEY:
        logger.warning("INTERNAL_API_KEY not set - LogEvent accepts unauthenticated calls")
    yield
    logger.info("Shutting down log-writer service...")
    log_store.dispose()


app = FastAPI(
    title="Event Log Writer",
    version="1.0.0",
    description="Persists behavioral events delivered by the bridge worker.",
    lifespan=lifespan,
)

register_rpc_exception_handlers(app)
app.include_router(rpc_router)


@app.get("/health")
def health_check(log_store: LogStore = Depends(get_log_store)):
    try:
        log_store.ping()
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Database unhealthy: {str(e)}")
    return {"status": "healthy", "service": "log-writer"}
