"""
FastAPI Backend for the Follow-up Journey Engine

Endpoints, all scoped to a user session and a customer:
- Refreshing the note snapshot from the note store
- Reading the stage timeline and classified notes
- Listing and acknowledging due reminders
- Checking candidate customers for repeated profile shares
- Validating and submitting new notes

Architecture Decision:
- No database - notes live in the external note store
- Session state (snapshot, acknowledgements) lives in memory only
"""

# Load .env BEFORE any application imports that read os.environ
from dotenv import load_dotenv
load_dotenv()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from followup import __version__
from followup.api.deps import get_registry
from followup.api.routes import followups
from followup.config.settings import get_settings

logging.basicConfig(level=get_settings().log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the note store connection on shutdown."""
    yield
    if get_registry.cache_info().currsize:
        await get_registry().client.aclose()


app = FastAPI(
    title="Follow-up Journey API",
    description="Stage timelines, reminders and share checks over customer follow-up notes",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(followups.router, prefix="/api", tags=["Follow-ups"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Run with: python -m followup.api.main
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8100))
    uvicorn.run(
        "followup.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
