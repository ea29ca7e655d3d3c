# main.py
# Main application file for the FastAPI recipe sharing service.

import logging.config
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
import uvicorn
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Import the CORS middleware
from fastapi.middleware.cors import CORSMiddleware

# Rate limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Import local modules
from recipe_share import models  # noqa: F401  registers the tables on Base.metadata
from recipe_share import images
from recipe_share import schemas
from recipe_share.api import edit_recipe, favorites, listings, recipes, uploads, users
from recipe_share.core.config import settings
from recipe_share.core.errors import register_exception_handlers
from recipe_share.core.logging_middleware import StructuredLoggingMiddleware
from recipe_share.core.rate_limit import limiter
from recipe_share.db.session import DatabaseMonitor

# Load logging configuration
if os.path.exists(settings.LOGGING_CONFIG):
    logging.config.fileConfig(settings.LOGGING_CONFIG, disable_existing_loggers=False)

# Get the logger instance
logger = logging.getLogger(__name__)

# The image directories must exist before StaticFiles is mounted on them.
for target in images.TARGETS:
    os.makedirs(images.target_dir(target), exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The monitor keeps retrying in the background; startup never blocks on
    # the database and the app serves (with errors) until it answers.
    monitor = DatabaseMonitor()
    app.state.db_monitor = monitor
    await monitor.start()
    logger.info(f"{settings.PROJECT_NAME} started in {settings.ENVIRONMENT} mode")
    try:
        yield
    finally:
        await monitor.stop()
        logger.info(f"{settings.PROJECT_NAME} stopped")


# Initialize the FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for sharing recipes, ratings, comments and favorites.",
    version="1.0.0",
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
)

# Add rate limiter to app state and register exception handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# --- Add Structured Logging Middleware ---
app.add_middleware(StructuredLoggingMiddleware)

# --- Add CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

# --- Security Headers Middleware ---


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app.add_middleware(SecurityHeadersMiddleware)

# Include API routers
app.include_router(recipes.router, prefix="/recipes", tags=["Recipes"])
app.include_router(edit_recipe.router, prefix="/edit-recipe", tags=["Recipe Editor"])
app.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])
app.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(listings.router, tags=["Listings"])

# Stored images are served from the content directory
app.mount(images.URL_PREFIX, StaticFiles(directory=settings.CONTENT_DIR), name="images")


@app.get("/health", response_model=schemas.Health, tags=["Root"])
async def health(request: Request):
    """
    Liveness plus a live check of the database connection.
    """
    connected = await request.app.state.db_monitor.check()
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "database": "connected" if connected else "disconnected",
    }


@app.get("/", tags=["Root"])
async def read_root():
    """
    Root endpoint to check if the API is running.
    """
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the Recipe Share API!"}


if __name__ == "__main__":
    # This block allows running the app directly with uvicorn for development.
    uvicorn.run("recipe_share.main:app", host="0.0.0.0", port=8000, reload=True)
