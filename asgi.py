"""
asgi.py -- Application assembly for the PawConnect web shell.

web/main.py builds the app, middleware and session services; web/routes.py
holds the page and form routes. Joining them here keeps the route module
importable on its own (tests, the CLI's site map).

Run with:  uvicorn asgi:app --reload
"""

from web.main import app
from web.routes import router as web_router

app.include_router(web_router, tags=["Web UI"])
