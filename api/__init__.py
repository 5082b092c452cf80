"""REST API module for the moderation console.

This module provides HTTP endpoints for:
- Operator login and logout
- Dashboard counters and recent accounts
- Account, seller and listing views with search and tabs
- Approving and rejecting sellers and listings
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from auth import get_current_operator
from console import AdminConsole, get_console, init_console
from database import init_db, close as db_close

logger = logging.getLogger(__name__)

# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Initializing console...")
    await init_db()
    console = init_console()
    snapshot = await console.refresh()
    for message in snapshot.diagnostics:
        logger.warning(f"Initial fetch: {message}")

    yield

    logger.info("Shutting down console...")
    await db_close()

# Create FastAPI app
app = FastAPI(
    title="Marketplace Moderation Console",
    description="Operator API for reviewing marketplace sellers and listings",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "name": "Marketplace Moderation Console",
        "version": "1.0.0",
        "status": "running"
    }

@app.post("/refresh")
async def refresh(
    console: AdminConsole = Depends(get_console),
    operator: str = Depends(get_current_operator)
):
    """Refetch accounts, profiles and listings from the store."""
    snapshot = await console.refresh()
    return {
        "accounts": len(console.state.accounts),
        "profiles": len(console.state.profiles),
        "listings": len(console.state.listings),
        "fallback": snapshot.fallback,
        "diagnostics": snapshot.diagnostics
    }

# Import and include all routers
from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .accounts import router as accounts_router
from .listings import router as listings_router

app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(accounts_router)
app.include_router(listings_router)
