"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatpulse.api.middleware import RequestContextMiddleware
from chatpulse.api.routes import api_router
from chatpulse.logging_config import setup_logging
from chatpulse.persistence.database import Database
from chatpulse.settings import settings

# Setup logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup; tests may install their own database first
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database(settings.database_url)
        app.state.database = database
    await database.open()
    yield
    # Shutdown
    await database.close()
    if owns_database:
        del app.state.database


# Create FastAPI app
app = FastAPI(
    title="ChatPulse Analytics API",
    description="Conversation analytics and productivity scoring for WhatsApp customer service",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
