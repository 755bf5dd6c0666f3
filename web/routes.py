"""
web/routes.py -- Jinja2 template routes for the PawConnect web shell.

Every GET page in web/sitemap.PAGES is registered here with one generic
handler. The handler reads one SessionState snapshot, runs the page's guard
chain, and only builds page context when the whole chain ALLOWs:

  PENDING   -> pending.html with "Refresh: 1" (session still loading)
  REDIRECT  -> 302 to the decision's location
  ALLOW     -> the page template

Form actions:
  POST /login            -- SessionManager.login, redirect / (AuthRedirect takes over)
  POST /register         -- SessionManager.register; pending roles go to /login
  POST /logout           -- SessionManager.logout, redirect /login
  POST /profile          -- SessionManager.update_profile, errors rendered inline
  POST /forgot-password  -- Auth API OTP request
  POST /reset-password   -- Auth API password reset, redirect /login

Query params ?error= and ?notice= are looked up in whitelists; the raw value
is never rendered.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from auth.client import AuthApiClient, AuthApiError
from auth.guards import Outcome, evaluate
from auth.landing import LOGIN_PATH, role_label
from auth.models import VERIFIED_ROLES, Role
from auth.session import SessionManager, SessionState
from core.config import get_settings
from web.limiter import limiter
from web.navigation import navbar_context
from web.sitemap import PAGES, PageRoute, dashboard_page_for, resolve

logger = logging.getLogger("pawconnect.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

# ---------------------------------------------------------------------------
# Whitelisted messages
# ---------------------------------------------------------------------------

_ERROR_MESSAGES: dict[str, str] = {
    "bad_credentials": "Login failed. Check your email and password, or try again later.",
    "registration_failed": "Registration failed. The email may already be registered. Please try again.",
    "invalid_role": "Please choose a valid account type.",
    "password_mismatch": "New passwords do not match.",
    "document_required": "Please upload a verification document for this role.",
}

_NOTICE_MESSAGES: dict[str, str] = {
    "pending_verification": (
        "Registration successful. Your account is pending verification. "
        "You will be notified via email once approved."
    ),
    "logged_out": "You have been logged out.",
    "password_reset": "Your password has been reset. You can now login with your new password.",
    "profile_updated": "Profile updated successfully.",
}

_SELF_REGISTER_ROLES = [Role.ADOPTER, Role.VOLUNTEER, Role.NGO_ADMIN, Role.VETERINARIAN]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session_manager(request: Request) -> SessionManager:
    """Return the app's SessionManager, failing loudly if startup never built it."""
    manager: Optional[SessionManager] = getattr(request.app.state, "session", None)
    if manager is None or not manager.initialized:
        raise RuntimeError(
            "No initialized SessionManager on app.state.session. "
            "The application lifespan must construct it and call init() before serving."
        )
    return manager


def _auth_client(request: Request) -> AuthApiClient:
    client: Optional[AuthApiClient] = getattr(request.app.state, "auth_client", None)
    if client is None:
        raise RuntimeError("No AuthApiClient on app.state.auth_client.")
    return client


def _login_limit() -> str:
    return get_settings().login_rate_limit


def _base_context(request: Request, state: SessionState) -> dict:
    user = state.user
    return {
        "user": user,
        "role_title": role_label(user.role) if user else None,
        "error_msg": _ERROR_MESSAGES.get(request.query_params.get("error", "")),
        "notice_msg": _NOTICE_MESSAGES.get(request.query_params.get("notice", "")),
        **navbar_context(user),
    }


def _pending(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "pending.html", {}, headers={"Refresh": "1"})


def _guarded(request: Request, route: PageRoute) -> tuple[Optional[Response], SessionState]:
    """Evaluate route's guard chain. Returns (response to send instead, state)."""
    state = _session_manager(request).state
    decision = evaluate(route.guards, state)
    if decision.outcome is Outcome.PENDING:
        return _pending(request), state
    if decision.outcome is Outcome.REDIRECT:
        return RedirectResponse(decision.location, status_code=302), state
    return None, state


def _render(
    request: Request,
    route: PageRoute,
    state: SessionState,
    status_code: int = 200,
    **extra,
) -> HTMLResponse:
    page = route.page
    if page == "dashboard" and state.user is not None:
        page = dashboard_page_for(state.user.role)
    context = {
        **_base_context(request, state),
        "route": route,
        "page": page,
        "path_params": dict(request.path_params),
        "self_register_roles": [(r.value, role_label(r)) for r in _SELF_REGISTER_ROLES],
        **extra,
    }
    return templates.TemplateResponse(request, route.template, context, status_code=status_code)


def _page(path: str) -> PageRoute:
    route = resolve(path)
    if route is None:
        raise LookupError(f"no page registered for {path}")
    return route


# ---------------------------------------------------------------------------
# GET pages -- one handler per PageRoute
# ---------------------------------------------------------------------------


def _page_handler(route: PageRoute):
    def handler(request: Request) -> Response:
        redirect, state = _guarded(request, route)
        if redirect is not None:
            return redirect
        return _render(request, route, state)

    handler.__name__ = f"page_{route.page}"
    return handler


for _route in PAGES:
    router.add_api_route(
        _route.path,
        _page_handler(_route),
        methods=["GET"],
        response_class=HTMLResponse,
        name=_route.page,
        include_in_schema=False,
    )


# ---------------------------------------------------------------------------
# Auth form actions
# ---------------------------------------------------------------------------


@limiter.limit(_login_limit)  # brute-force mitigation -- must be ABOVE @router
@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
) -> RedirectResponse:
    """Handle the login form. Success lands on / and AuthRedirect picks the dashboard."""
    manager = _session_manager(request)
    if not manager.login(email.strip(), password):
        return RedirectResponse(f"{LOGIN_PATH}?error=bad_credentials", status_code=302)
    resp = RedirectResponse("/", status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/register", response_class=HTMLResponse)
def register_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    name: str = Form(...),
    role: str = Form(...),
    phone: Optional[str] = Form(None),
    organization: Optional[str] = Form(None),
    verification_document: Optional[str] = Form(None),
) -> RedirectResponse:
    """Handle the registration form.

    Roles that need administrative approval are not logged in: the user is
    sent to the login page with a pending-verification notice.
    """
    try:
        chosen = Role(role)
    except ValueError:
        return RedirectResponse("/register?error=invalid_role", status_code=302)
    if chosen not in _SELF_REGISTER_ROLES:
        return RedirectResponse("/register?error=invalid_role", status_code=302)
    if chosen in VERIFIED_ROLES and not verification_document:
        return RedirectResponse("/register?error=document_required", status_code=302)

    manager = _session_manager(request)
    result = manager.register(
        email.strip(),
        password,
        name.strip(),
        chosen,
        phone=phone or None,
        organization=organization or None,
        verification_document=verification_document or None,
    )
    if result is True:
        return RedirectResponse("/", status_code=302)
    if result is False:
        return RedirectResponse("/register?error=registration_failed", status_code=302)
    return RedirectResponse(f"{LOGIN_PATH}?notice=pending_verification", status_code=302)


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """End the session and return to the login page."""
    _session_manager(request).logout()
    return RedirectResponse(f"{LOGIN_PATH}?notice=logged_out", status_code=302)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.post("/profile", response_class=HTMLResponse)
def profile_post(
    request: Request,
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    organization: Optional[str] = Form(None),
    avatar: Optional[str] = Form(None),
    current_password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None),
    confirm_password: Optional[str] = Form(None),
) -> Response:
    """Send profile changes to the Auth API; show its error message on failure."""
    route = _page("/profile")
    redirect, state = _guarded(request, route)
    if redirect is not None:
        return redirect

    if new_password and new_password != confirm_password:
        return _render(request, route, state, status_code=400, form_error=_ERROR_MESSAGES["password_mismatch"])

    changes = {
        key: value
        for key, value in {
            "name": name,
            "phone": phone,
            "organization": organization,
            "avatar": avatar,
        }.items()
        if value
    }
    if new_password:
        changes["current_password"] = current_password
        changes["new_password"] = new_password

    manager = _session_manager(request)
    try:
        manager.update_profile(**changes)
    except AuthApiError as e:
        return _render(request, route, manager.state, status_code=400, form_error=e.message)
    return RedirectResponse("/profile?notice=profile_updated", status_code=302)


# ---------------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------------


@router.post("/forgot-password", response_class=HTMLResponse)
def forgot_password_post(request: Request, email: str = Form(...)) -> HTMLResponse:
    """Ask the Auth API to email a reset OTP. The answer never reveals whether the account exists."""
    route = _page("/forgot-password")
    state = _session_manager(request).state
    try:
        message = _auth_client(request).forgot_password(email.strip())
    except AuthApiError as e:
        return _render(request, route, state, status_code=400, form_error=e.message, email=email)
    return _render(request, route, state, form_notice=message, email=email)


@router.post("/reset-password", response_class=HTMLResponse)
def reset_password_post(
    request: Request,
    email: str = Form(...),
    otp: str = Form(...),
    new_password: str = Form(...),
    confirm_password: str = Form(...),
) -> Response:
    """Reset the password with the emailed OTP, then send the user to login."""
    route = _page("/reset-password")
    state = _session_manager(request).state
    if new_password != confirm_password:
        return _render(request, route, state, status_code=400, form_error=_ERROR_MESSAGES["password_mismatch"])
    try:
        _auth_client(request).reset_password(email.strip(), otp.strip(), new_password)
    except AuthApiError as e:
        return _render(request, route, state, status_code=400, form_error=e.message, email=email)
    return RedirectResponse(f"{LOGIN_PATH}?notice=password_reset", status_code=302)
