"""Main FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import DatabaseConnection, get_redis
from api.routes import content_router, pipeline_router, source_items_router
from api.websocket import websocket_endpoint, redis_subscriber
from pipeline.errors import PipelineError
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Background task for Redis subscriber
subscriber_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global subscriber_task

    # Startup
    await DatabaseConnection.init_mongo()
    await DatabaseConnection.init_redis()
    logger.info(f"Generation provider {settings.llm_provider} with model {settings.llm_model}")

    # Start Redis subscriber for WebSocket progress events
    redis_client = await get_redis()
    subscriber_task = asyncio.create_task(redis_subscriber(redis_client))

    yield

    # Shutdown
    if subscriber_task:
        subscriber_task.cancel()
        try:
            await subscriber_task
        except asyncio.CancelledError:
            pass

    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="Editorial Content Pipeline",
    description="Rewrites ingested sports news and fixtures into original draft articles",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(request: Request, exc: PipelineError):
    """Translate classified pipeline failures into their status codes."""
    logger.info(f"{request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message, "status": exc.terminal_status}
    )


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


# Include routers
app.include_router(pipeline_router)
app.include_router(source_items_router)
app.include_router(content_router)


# WebSocket endpoints
@app.websocket("/ws")
async def websocket_all(websocket: WebSocket):
    """WebSocket endpoint for all pipeline progress events."""
    await websocket_endpoint(websocket)


@app.websocket("/ws/source-items/{external_id}")
async def websocket_source_item(websocket: WebSocket, external_id: str):
    """WebSocket endpoint for one source item's progress events."""
    await websocket_endpoint(websocket, external_id)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Report MongoDB and Redis reachability; 503 when either is down."""
    checks = await DatabaseConnection.ping()
    if all(checks.values()):
        return {"status": "healthy", **checks}
    return JSONResponse(status_code=503, content={"status": "degraded", **checks})


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Editorial Content Pipeline",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
