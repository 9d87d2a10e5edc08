"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from clipqueue.api.v1.health import router as health_router
from clipqueue.api.v1.operations import router as operations_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(operations_router, tags=["operations"])
