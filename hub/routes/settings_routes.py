"""
Account settings: profile names and password change.
"""
from fastapi import APIRouter, Request, Form
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.auth import hash_password, verify_password
from hub.dependencies import get_current_user, redirect_with, page_context
from hub.store import StoreError, get_store
from hub.templates_config import templates

router = APIRouter()


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request):
    """Display the user's own settings."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)

    return templates.TemplateResponse("settings.html", page_context(request, user, "settings"))


@router.post("/settings")
async def update_profile(request: Request, first_name: str = Form(""), last_name: str = Form("")):
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)

    try:
        get_store().update('profiles', {
            'first_name': first_name.strip() or None,
            'last_name': last_name.strip() or None,
        }, {'id': user['id']})
    except StoreError as e:
        return redirect_with("/settings", error=str(e))
    return redirect_with("/settings", message="Profile updated successfully")


@router.post("/settings/password")
async def change_password(
    request: Request,
    current_password: str = Form(...),
    new_password: str = Form(...),
    confirm_password: str = Form(...)
):
    """Process password change request."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)

    if len(new_password) < 8:
        return redirect_with("/settings", error="Password must be at least 8 characters")
    if new_password != confirm_password:
        return redirect_with("/settings", error="New passwords do not match")

    store = get_store()
    try:
        profile = store.get('profiles', user['id'])
        if not profile:
            return redirect_with("/settings", error="User not found")
        if not verify_password(current_password, profile['password_hash']):
            return redirect_with("/settings", error="Current password is incorrect")
        store.update('profiles', {'password_hash': hash_password(new_password)}, {'id': user['id']})
    except StoreError as e:
        return redirect_with("/settings", error=str(e))
    return redirect_with("/settings", message="Password changed successfully")
