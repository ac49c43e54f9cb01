"""
Dashboard route: micro-app cards filtered by the user's roles.
"""
from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.dependencies import get_current_user, page_context
from hub.roles import available_apps
from hub.templates_config import templates

router = APIRouter()


@router.get("", response_class=HTMLResponse)
async def dashboard(request: Request):
    """Display the workspace dashboard."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)

    apps = available_apps(user['roles'])
    return templates.TemplateResponse(
        "dashboard.html",
        page_context(request, user, apps=apps)
    )
