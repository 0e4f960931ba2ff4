"""
Decision tree builder FastAPI application entrypoint.

Run with: uvicorn backend.main:app --reload
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routes import api_router
from backend.utils.logging import configure_logging

# Comma-separated; defaults to the local UI dev server
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("DTB_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    configure_logging()
    yield


app = FastAPI(
    title="Decision Tree Builder API",
    description="""Build binary decision trees over patient records by hand and measure their accuracy.

Edits are sent as intent events (`add_child`, `delete_node`, `update_node`) to
`POST /api/trees/{tree_id}/intents`; each response carries the new tree snapshot.
Trees are kept in memory only.
""",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)


@app.get("/")
def root():
    return {"service": "Decision Tree Builder", "docs": "/docs", "api": "/api"}
