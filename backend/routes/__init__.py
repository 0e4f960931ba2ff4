"""API routes for the decision tree builder backend."""

from fastapi import APIRouter

from backend.routes import monitoring, records, trees

api_router = APIRouter(prefix="/api", tags=["api"])

api_router.include_router(monitoring.router)
api_router.include_router(trees.router, prefix="/trees", tags=["trees"])
api_router.include_router(records.router, prefix="/records", tags=["records"])
