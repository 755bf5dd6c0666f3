"""
web/main.py -- FastAPI application entry point for the PawConnect web shell.

The shell is a single-user client served on localhost: one SessionManager per
process, persisted to local storage so the identity survives restarts.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost; Starlette puts the last added first):
  1. log_requests              -- method, path, status, latency
  2. reject_cross_site_writes  -- 403 for POSTs whose Origin/Referer is foreign
  3. SlowAPIMiddleware         -- enforces per-route rate limits from web.limiter
  4. TrustedHostMiddleware     -- rejects requests with unexpected Host headers

Lifespan is the composition root: it builds local storage, the Auth API
client and the SessionManager, runs SessionManager.init() before the first
request is served, and closes everything on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import HTMLResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException

from auth.client import AuthApiClient
from auth.session import SessionManager
from auth.storage import LocalStorage, SessionStorage
from core.config import get_settings
from web.limiter import limiter
from web.security import SAFE_METHODS, is_same_origin

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("pawconnect.web")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan -- composition root
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build and initialize the session services for the server lifetime.

    Startup order matters:
      1. Local storage -- the SessionStorage reads from it.
      2. Auth API client -- no I/O at construction.
      3. SessionManager.init() -- must finish before any guard renders a
         final decision; a failure here aborts startup.
    """
    logger.info("PawConnect web shell starting up (Auth API %s)", _settings.api_url)
    app.state.local_storage = LocalStorage(_settings.storage_url)
    app.state.auth_client = AuthApiClient(_settings.api_url, timeout=_settings.api_timeout)
    app.state.session = SessionManager(app.state.auth_client, SessionStorage(app.state.local_storage))
    app.state.session.init()
    logger.info("Session initialized (authenticated=%s)", app.state.session.state.is_authenticated)

    yield

    app.state.auth_client.close()
    app.state.local_storage.close()
    logger.info("PawConnect web shell shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="PawConnect",
    description="Rescue and adoption coordination client.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)
app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Cross-site write protection
# ---------------------------------------------------------------------------


@app.middleware("http")
async def reject_cross_site_writes(request: Request, call_next):
    """403 any unsafe-method request whose Origin/Referer is another site."""
    if request.method not in SAFE_METHODS and not is_same_origin(request):
        logger.warning("Rejected cross-site %s %s", request.method, request.url.path)
        response = _error_page(403, "Cross-site form submissions are not allowed.")
        response.headers["Vary"] = "Origin"
        return response
    return await call_next(request)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        ms,
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_page(status_code: int, message: str) -> HTMLResponse:
    body = f"<!doctype html><title>PawConnect</title><h1>{status_code}</h1><p>{message}</p>"
    return HTMLResponse(body, status_code=status_code)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> HTMLResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_page(429, "Too many attempts. Please wait a minute and try again.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> HTMLResponse:
    """Render HTTP errors (unknown paths included) as a plain page."""
    if exc.status_code == 404:
        return _error_page(404, "Page not found.")
    return _error_page(exc.status_code, "The request could not be completed.")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> HTMLResponse:
    """Catch-all handler for unexpected errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_page(500, "An unexpected error occurred.")
