"""
web/security.py -- Same-origin check for state-changing form posts.

The shell holds one server-side identity and no per-browser cookie, so a page
on another site could otherwise submit /login, /logout or /profile on the
user's behalf. Every unsafe-method request must carry an Origin (or, failing
that, a Referer) whose scheme, host and port equal the shell's own.

Requests with neither header are allowed for non-browser clients. Browsers
send Origin on every cross-site POST.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from starlette.requests import Request

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin_of(url: str) -> Optional[tuple[str, str, int]]:
    """Return (scheme, host, port) for url, or None when it has no usable origin ("null" included)."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        return None
    return scheme, parts.hostname.lower(), port or _DEFAULT_PORTS[scheme]


def _server_origin(request: Request) -> tuple[str, str, int]:
    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    return scheme, host, request.url.port or _DEFAULT_PORTS.get(scheme, 80)


def is_same_origin(request: Request) -> bool:
    """True when Origin (or Referer) names this server, or when neither header is sent."""
    claimed = request.headers.get("origin") or request.headers.get("referer")
    if claimed is None:
        return True
    return _origin_of(claimed) == _server_origin(request)
