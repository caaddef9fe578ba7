"""Anime metadata caching proxy: AniList search with DeepL-translated, cached results."""
import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from anime_proxy.app_state import AppState, init_app_state
from anime_proxy.config import VERSION
from anime_proxy.database import get_db
from anime_proxy.exceptions import register_exception_handlers
from anime_proxy.search.router import get_app_state, router as search_router
from anime_proxy.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared upstream clients at startup and close them at shutdown."""
    app_state = init_app_state(settings)
    app.state.app_state = app_state

    if not app_state.translator.configured:
        logger.warning("DEEPL_API_KEY is not set; translated text will use the fallback placeholder")

    logger.info("Startup complete")

    yield

    logger.info("Shutting down")
    await app_state.aclose()


app = FastAPI(
    title="Anime Metadata Caching Proxy",
    version=VERSION,
    lifespan=lifespan
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log request method, path, status, and duration."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    if request.url.path not in ["/health", "/"]:
        logger.info(f"{request.method} {request.url.path} | Status: {response.status_code} | Duration: {duration:.3f}s")

    return response


@app.get("/")
async def root(db: Session = Depends(get_db), app_state: AppState = Depends(get_app_state)):
    """Root endpoint redirects to health check."""
    return await health(db, app_state)


@app.get("/health")
async def health(db: Session = Depends(get_db), app_state: AppState = Depends(get_app_state)):
    """Health check endpoint for monitoring."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database health probe failed: {e}")
        return app_state.get_health_status(database_ok=False, database_error=str(e))
    return app_state.get_health_status(database_ok=True)


app.include_router(search_router)


if __name__ == "__main__":
    uvicorn.run("anime_proxy.main:app", host="0.0.0.0", port=3000)
