"""
Admin portal routes: users, roles, managers, companies, surveys, metrics
and the quarterly KPI cycle timeline.
"""
from typing import Optional

from fastapi import APIRouter, Request, Form, Query
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.auth import create_user, email_exists
from hub.dependencies import require_admin, redirect_with, page_context
from hub.procedures import APP_ROLES
from hub.quarters import schedule_view
from hub.roles import ROLE_MANAGER, sort_roles
from hub.store import StoreError, get_store
from hub.templates_config import templates

router = APIRouter()


def _roles_by_user(store) -> dict:
    roles = {}
    for row in store.select('user_roles'):
        roles.setdefault(row['user_id'], []).append(row['role'])
    return {user_id: sort_roles(r) for user_id, r in roles.items()}


@router.get("", response_class=HTMLResponse)
async def admin_home(request: Request):
    user, redirect = require_admin(request)
    if redirect:
        return redirect
    return RedirectResponse(url="/admin/users", status_code=302)


@router.get("/users", response_class=HTMLResponse)
async def users_list(request: Request):
    """All profiles with their roles."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    users = []
    error = None
    try:
        roles = _roles_by_user(store)
        users = store.select('profiles', order_by='created_at', descending=True,
                             columns=['id', 'email', 'first_name', 'last_name', 'is_active', 'created_at'])
        for profile in users:
            profile['roles'] = roles.get(profile['id'], [])
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "users", error=error, users=users, all_roles=APP_ROLES)
    return templates.TemplateResponse("admin/users.html", context)


@router.get("/create-user", response_class=HTMLResponse)
async def create_user_form(request: Request):
    user, redirect = require_admin(request)
    if redirect:
        return redirect
    return templates.TemplateResponse(
        "admin/create_user.html",
        page_context(request, user, "create-user", all_roles=APP_ROLES)
    )


@router.post("/create-user")
async def create_user_submit(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    first_name: str = Form(""),
    last_name: str = Form(""),
    role: str = Form("employee")
):
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    if role not in APP_ROLES:
        return redirect_with("/admin/create-user", error="Invalid role")
    if len(password) < 8:
        return redirect_with("/admin/create-user", error="Password must be at least 8 characters")
    if email_exists(email):
        return redirect_with("/admin/create-user", error="An account with this email already exists")

    create_user(email, password, first_name or None, last_name or None, roles=[role])
    return redirect_with("/admin/users", message=f"User {email} created")


@router.post("/users/{user_id}/roles")
async def assign_role(request: Request, user_id: str, role: str = Form(...)):
    """Grant an additional role to a user."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    try:
        added = get_store().rpc('admin_assign_role', _target_user=user_id, _role=role)
    except StoreError as e:
        return redirect_with("/admin/users", error=str(e))
    if not added:
        return redirect_with("/admin/users", message="User already has that role")
    return redirect_with("/admin/users", message="Role assigned")


@router.post("/users/{user_id}/roles/{role}/remove")
async def remove_role(request: Request, user_id: str, role: str):
    user, redirect = require_admin(request)
    if redirect:
        return redirect
    if user_id == user['id']:
        return redirect_with("/admin/users", error="You cannot change your own roles")

    try:
        get_store().delete('user_roles', {'user_id': user_id, 'role': role})
    except StoreError as e:
        return redirect_with("/admin/users", error=str(e))
    return redirect_with("/admin/users", message="Role removed")


@router.post("/users/{user_id}/toggle-active")
async def toggle_active(request: Request, user_id: str):
    user, redirect = require_admin(request)
    if redirect:
        return redirect
    if user_id == user['id']:
        return redirect_with("/admin/users", error="You cannot deactivate yourself")

    store = get_store()
    try:
        profile = store.get('profiles', user_id)
        if not profile:
            return redirect_with("/admin/users", error="User not found")
        store.update('profiles', {'is_active': 0 if profile['is_active'] else 1}, {'id': user_id})
    except StoreError as e:
        return redirect_with("/admin/users", error=str(e))
    return redirect_with("/admin/users", message="User updated")


@router.get("/managers", response_class=HTMLResponse)
async def managers_list(request: Request):
    """Managers with their team size and companies."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    managers = []
    error = None
    try:
        manager_ids = [r['user_id'] for r in store.select('user_roles', {'role': ROLE_MANAGER})]
        if manager_ids:
            profiles = store.select('profiles', {'id': manager_ids})
            links = store.select('manager_employees', {'manager_id': manager_ids})
            companies = {c['id']: c['name'] for c in store.select('companies')}
            for profile in profiles:
                own = [link for link in links if link['manager_id'] == profile['id']]
                managers.append({
                    'profile': profile,
                    'employee_count': len(own),
                    'companies': sorted({companies.get(link['company_id'], 'Unknown')
                                         for link in own if link['company_id']}),
                })
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "managers", error=error, managers=managers)
    return templates.TemplateResponse("admin/managers.html", context)


@router.get("/companies", response_class=HTMLResponse)
async def companies_list(request: Request):
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    companies = []
    error = None
    try:
        companies = store.select('companies', order_by='name')
        links = store.select('employee_companies', columns=['company_id'])
        for company in companies:
            company['employee_count'] = sum(1 for link in links if link['company_id'] == company['id'])
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "companies", error=error, companies=companies)
    return templates.TemplateResponse("admin/companies.html", context)


@router.post("/companies")
async def create_company(request: Request, name: str = Form(...), owner_email: str = Form(...)):
    """Create a company owned by an existing user."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    try:
        owners = store.select('profiles', {'email': owner_email.lower().strip()}, limit=1)
        if not owners:
            return redirect_with("/admin/companies", error="No user with that email")
        store.rpc('create_company_for_user', _company_name=name.strip(), _user_id=owners[0]['id'])
    except StoreError as e:
        return redirect_with("/admin/companies", error=str(e))
    return redirect_with("/admin/companies", message=f"Company {name} created")


@router.get("/surveys", response_class=HTMLResponse)
async def surveys_setup(request: Request):
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    surveys = []
    error = None
    try:
        surveys = store.select('surveys', order_by='created_at', descending=True)
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "surveys", error=error, surveys=surveys)
    return templates.TemplateResponse("admin/surveys.html", context)


@router.get("/metrics", response_class=HTMLResponse)
async def platform_metrics(request: Request):
    """Row counts across the platform."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    metrics = {}
    error = None
    try:
        metrics = {
            'Users': len(store.select('profiles', columns=['id'])),
            'Companies': len(store.select('companies', columns=['id'])),
            'Active Surveys': len(store.select('surveys', {'status': 'active'}, columns=['id'])),
            'Pending Requests': len(store.select('employee_requests', {'status': 'pending'}, columns=['id'])),
            'Pending Redemptions': len(store.select('reward_redemptions', {'status': 'pending'}, columns=['id'])),
        }
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "metrics", error=error, metrics=metrics)
    return templates.TemplateResponse("admin/metrics.html", context)


@router.get("/kpi-cycles", response_class=HTMLResponse)
async def kpi_cycles(request: Request, company_id: Optional[str] = Query(None)):
    """Quarter timeline with the current and upcoming KPI questions."""
    user, redirect = require_admin(request)
    if redirect:
        return redirect

    store = get_store()
    schedule = None
    companies = []
    error = None
    try:
        companies = store.select('companies', order_by='name')
        schedule = schedule_view(store, company_id=company_id or None)
    except StoreError as e:
        error = str(e)

    context = page_context(request, user, "kpi-cycles", error=error, schedule=schedule,
                           companies=companies, company_id=company_id)
    return templates.TemplateResponse("admin/kpi_cycles.html", context)


@router.get("/system", response_class=HTMLResponse)
async def system_settings(request: Request):
    user, redirect = require_admin(request)
    if redirect:
        return redirect
    return RedirectResponse(url="/settings", status_code=302)
