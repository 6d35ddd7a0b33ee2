# eventlog/api/deps.py
from typing import Generator, Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from eventlog.core.config import settings
from eventlog.db.session import LogStore

api_key_header = APIKeyHeader(name="X-Internal-Api-Key", auto_error=False)


def get_log_store(request: Request) -> LogStore:
    """Returns the LogStore created in the app lifespan."""
    return request.app.state.log_store


def get_db(request: Request) -> Generator[Session, None, None]:
    # One session per request, always closed afterwards
    with get_log_store(request).session() as db:
        yield db


def get_internal_api_key(api_key: Optional[str] = Security(api_key_header)) -> Optional[str]:
    """
    Checks the internal API key when one is configured.

    With INTERNAL_API_KEY unset the service trusts its private network.
    """
    if not settings.INTERNAL_API_KEY:
        return None
    if api_key == settings.INTERNAL_API_KEY:
        return api_key
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing Internal API Key",
    )
