import contextlib
import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from links_app.config import settings
from links_app.database.connection import engine, Base, get_session_factory
from links_app.api.v1 import links, redirect
from links_app.clicks.click_worker import local_click_worker
from links_app.dependencies import ClickDispatchMode, get_queue

# Import models to ensure they're registered with Base
from links_app.models import Link  # noqa: F401


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("links_app")

# Create database tables
Base.metadata.create_all(bind=engine)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Queued clicks on a process-local queue are drained by a worker task here"""
    async with contextlib.AsyncExitStack() as stack:
        if ClickDispatchMode(settings.click_dispatch) == ClickDispatchMode.QUEUE:
            queue = get_queue()
            if not queue.shared:
                logger.warning("Click queue is process-local, starting an in-process click worker")
                await stack.enter_async_context(local_click_worker(queue, get_session_factory()))
        yield


# Docs live under /api so every short code at the root stays resolvable
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with owner-scoped links",
    debug=settings.debug,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed requests get the same {"error": ...} shape as everything else"""
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs",
        "redoc": "/api/redoc"
    }


@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
app.include_router(links.router, prefix="/api/v1")
# Catch-all /{short_code} goes last
app.include_router(redirect.router)


def run():
    """Serve the app on the configured host and port"""
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
