"""
Linchpin - task dependency graph and critical-path engine.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.database import init_db
from app.routes import dependencies, projects, tasks
from app.exceptions import register_exception_handlers
from app.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Linchpin API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Linchpin API...")


app = FastAPI(
    title="Linchpin",
    description="Task dependency graph with cycle prevention and critical-path scheduling",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
