"""
Authentication routes: login, signup, logout.
"""
from fastapi import APIRouter, Request, Form
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.auth import (
    authenticate_user, create_session, create_user, delete_session, email_exists,
    serialize_session, deserialize_session,
)
from hub.config import SESSION_COOKIE_NAME, SESSION_MAX_AGE
from hub.dependencies import get_current_user
from hub.roles import ROLE_EMPLOYEE, get_primary_role
from hub.templates_config import templates

router = APIRouter()


def _signed_in_response(user_id: str, roles: list) -> RedirectResponse:
    session_id = create_session(user_id, active_role=get_primary_role(roles))
    token = serialize_session(session_id)

    response = RedirectResponse(url="/dashboard", status_code=302)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE
    )
    return response


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    """Display login page."""
    # If already logged in, redirect to dashboard
    user = get_current_user(request)
    if user:
        return RedirectResponse(url="/dashboard", status_code=302)

    return templates.TemplateResponse(
        "login.html",
        {"request": request, "error": None, "message": request.query_params.get("message")}
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request, email: str = Form(...), password: str = Form(...)):
    """Handle login form submission."""
    profile = authenticate_user(email, password)

    if not profile:
        return templates.TemplateResponse(
            "login.html",
            {"request": request, "error": "Invalid email or password", "message": None},
            status_code=401
        )

    return _signed_in_response(profile['id'], profile['roles'])


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    """Display sign-up page."""
    return templates.TemplateResponse("signup.html", {"request": request, "error": None})


@router.post("/signup", response_class=HTMLResponse)
async def signup_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    first_name: str = Form(""),
    last_name: str = Form("")
):
    """Create an employee account and sign it in."""
    error = None
    if len(password) < 8:
        error = "Password must be at least 8 characters"
    elif email_exists(email):
        error = "An account with this email already exists"

    if error:
        return templates.TemplateResponse(
            "signup.html",
            {"request": request, "error": error},
            status_code=400
        )

    user_id = create_user(email, password, first_name or None, last_name or None, roles=[ROLE_EMPLOYEE])
    return _signed_in_response(user_id, [ROLE_EMPLOYEE])


@router.get("/logout")
async def logout(request: Request):
    """Sign out the current user."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        session_id = deserialize_session(token)
        if session_id:
            delete_session(session_id)

    response = RedirectResponse(url="/login", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response
