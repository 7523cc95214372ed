"""API routes for the FastAPI application."""

from fastapi import APIRouter

from draftsync.api.v1.endpoints import health, publish

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(publish.router, prefix="/publish", tags=["publish"])
