# eventlog/api/api.py

from fastapi import APIRouter
from eventlog.api.endpoints import health, logs

# Mounted at the root: the storefront posts to /log directly.
api_router = APIRouter()

api_router.include_router(logs.router)
api_router.include_router(health.router)
