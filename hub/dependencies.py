"""
Common dependencies for route handlers.
"""
from typing import Optional
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import RedirectResponse

from hub.auth import validate_session, deserialize_session
from hub.config import SESSION_COOKIE_NAME
from hub import roles


def get_current_user(request: Request) -> Optional[dict]:
    """
    Get the current logged-in user from session cookie.
    Returns user dict or None if not authenticated.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None

    session_id = deserialize_session(token)
    if not session_id:
        return None

    return validate_session(session_id)


def require_role(request: Request, role: str):
    """
    Check if user holds a role (admins pass every check).
    Returns (user, None) if authorized, (None, redirect) otherwise.
    """
    user = get_current_user(request)
    if not user:
        return None, RedirectResponse(url="/login", status_code=302)
    if not roles.has_role(user, role):
        return None, RedirectResponse(url="/dashboard?error=unauthorized", status_code=302)
    return user, None


def require_admin(request: Request):
    """Admin-only pages."""
    user = get_current_user(request)
    if not user:
        return None, RedirectResponse(url="/login", status_code=302)
    if not roles.is_admin(user):
        return None, RedirectResponse(url="/dashboard?error=unauthorized", status_code=302)
    return user, None


def redirect_with(url: str, message: str = None, error: str = None) -> RedirectResponse:
    """Redirect back to a page with a notification in the query string."""
    if message:
        url += ("&" if "?" in url else "?") + "message=" + quote(message)
    if error:
        url += ("&" if "?" in url else "?") + "error=" + quote(error)
    return RedirectResponse(url=url, status_code=302)


def page_context(request: Request, user: dict, active_page: str = None, error: str = None, **extra) -> dict:
    """Template context shared by every portal page."""
    context = {
        "request": request,
        "user": user,
        "active_page": active_page,
        "message": request.query_params.get("message"),
        "error": error or request.query_params.get("error"),
    }
    context.update(extra)
    return context
