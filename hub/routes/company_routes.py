"""
Company portal routes: dashboard, employees, surveys, rewards, requests,
resources, metrics and the company's quarterly KPI questions.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Request, Form, File, UploadFile
from fastapi.responses import RedirectResponse, HTMLResponse, Response

from hub.config import (
    CONTRACT_TYPE_OPTIONS, KPI_QUESTION_TYPES, MAX_UPLOAD_BYTES, QUARTERS,
    RESOURCES_BUCKET, RESOURCE_CATEGORY_OPTIONS, SURVEY_STATUS_OPTIONS,
)
from hub.dependencies import require_role, redirect_with, page_context
from hub.employee_requests import review_request
from hub.engagement import (
    average, employee_performance, needs_attention, response_rate, top_performers, display_name,
)
from hub.quarters import quarter_code, schedule_view
from hub.rewards import set_redemption_status
from hub.roles import ROLE_COMPANY, ROLE_MANAGER
from hub.storage import BlobStorage, StorageError, object_path
from hub.store import StoreError, get_store
from hub.templates_config import templates

router = APIRouter()

NO_COMPANY = "No company is linked to your account yet. Ask an administrator to create one."


def get_company(store, user: dict) -> Optional[dict]:
    """Company owned by the user, if any."""
    companies = store.select('companies', {'owner_id': user['id']}, order_by='created_at', limit=1)
    return companies[0] if companies else None


def company_employee_ids(store, company_id: str) -> list:
    return [row['employee_id'] for row in store.select('employee_companies', {'company_id': company_id})]


def _company_or_redirect(request: Request):
    """(user, store, company, redirect) for company pages."""
    user, redirect = require_role(request, ROLE_COMPANY)
    if redirect:
        return None, None, None, redirect
    store = get_store()
    try:
        company = get_company(store, user)
    except StoreError as e:
        return user, store, None, redirect_with("/dashboard", error=str(e))
    return user, store, company, None


def _no_company_page(request: Request, user: dict, active_page: str):
    return templates.TemplateResponse(
        "company/no_company.html",
        page_context(request, user, active_page, notice=NO_COMPANY)
    )


@router.get("", response_class=HTMLResponse)
async def company_home(request: Request):
    user, redirect = require_role(request, ROLE_COMPANY)
    if redirect:
        return redirect
    return RedirectResponse(url="/company/dashboard", status_code=302)


# ── Dashboard ────────────────────────────────────────────────────────

@router.get("/dashboard", response_class=HTMLResponse)
async def company_dashboard(request: Request):
    """Recent survey answers, top performers and who needs attention."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "dashboard")

    recent, best, low = [], [], []
    error = None
    try:
        surveys = {s['id']: s for s in store.select('surveys', {'company_id': company['id']})}
        responses = store.select('survey_responses', {'survey_id': list(surveys)},
                                 order_by='submitted_at', descending=True) if surveys else []
        user_ids = list({r['user_id'] for r in responses})
        profiles = {p['id']: p for p in store.select('profiles', {'id': user_ids})} if user_ids else {}

        for response in responses[:5]:
            recent.append({
                'id': response['id'],
                'survey_title': surveys.get(response['survey_id'], {}).get('title', 'Unknown Survey'),
                'user_name': display_name(profiles.get(response['user_id'])),
                'response_value': response.get('response_value') or 0,
                'submitted_at': response.get('submitted_at'),
            })

        performance = employee_performance(responses, profiles)
        best = top_performers(performance)
        low = needs_attention(performance)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/dashboard.html",
        page_context(request, user, "dashboard", error=error, company=company,
                     recent_responses=recent, top_performers=best, needs_attention=low)
    )


# ── Employees ────────────────────────────────────────────────────────

@router.get("/employees", response_class=HTMLResponse)
async def employees_page(request: Request):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "employees")

    employees = []
    error = None
    try:
        links = store.select('employee_companies', {'company_id': company['id']}, order_by='date_started')
        ids = [link['employee_id'] for link in links]
        profiles = {p['id']: p for p in store.select('profiles', {'id': ids})} if ids else {}
        managers = {}
        for row in store.select('manager_employees', {'company_id': company['id']}):
            managers[row['employee_id']] = row['manager_id']
        manager_profiles = {p['id']: p for p in store.select('profiles', {'id': list(set(managers.values()))})} \
            if managers else {}
        for link in links:
            employees.append({
                'link': link,
                'profile': profiles.get(link['employee_id']),
                'manager': manager_profiles.get(managers.get(link['employee_id'])),
            })
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/employees.html",
        page_context(request, user, "employees", error=error, company=company, employees=employees,
                     contract_types=CONTRACT_TYPE_OPTIONS, today=date.today().isoformat())
    )


@router.post("/employees")
async def add_employee(
    request: Request,
    email: str = Form(...),
    job_title: str = Form(...),
    contract_type: str = Form(...),
    date_started: str = Form(...)
):
    """Link an existing user to the company as an employee."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/employees", error=NO_COMPANY)
    if contract_type not in CONTRACT_TYPE_OPTIONS:
        return redirect_with("/company/employees", error="Invalid contract type")

    try:
        profiles = store.select('profiles', {'email': email.lower().strip()}, limit=1)
        if not profiles:
            return redirect_with("/company/employees", error="No user with that email")
        employee_id = profiles[0]['id']
        if store.select('employee_companies', {'company_id': company['id'], 'employee_id': employee_id}):
            return redirect_with("/company/employees", error="Already an employee of this company")
        store.rpc('assign_employee_to_company', _company_id=company['id'], _employee_id=employee_id,
                  _job_title=job_title, _contract_type=contract_type, _date_started=date_started)
    except StoreError as e:
        return redirect_with("/company/employees", error=str(e))
    return redirect_with("/company/employees", message="Employee added")


@router.post("/employees/{link_id}/remove")
async def remove_employee(request: Request, link_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/employees", error=NO_COMPANY)

    try:
        store.delete('employee_companies', {'id': link_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/employees", error=str(e))
    return redirect_with("/company/employees", message="Employee removed")


@router.post("/employees/{employee_id}/manager")
async def set_manager(request: Request, employee_id: str, manager_email: str = Form(...)):
    """Put an employee in a manager's team, granting the manager role."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/employees", error=NO_COMPANY)

    try:
        managers = store.select('profiles', {'email': manager_email.lower().strip()}, limit=1)
        if not managers:
            return redirect_with("/company/employees", error="No user with that email")
        manager_id = managers[0]['id']
        if manager_id == employee_id:
            return redirect_with("/company/employees", error="An employee cannot manage themselves")
        store.delete('manager_employees', {'employee_id': employee_id, 'company_id': company['id']})
        store.insert('manager_employees', {
            'manager_id': manager_id,
            'employee_id': employee_id,
            'company_id': company['id'],
        })
        store.rpc('admin_assign_role', _target_user=manager_id, _role=ROLE_MANAGER)
    except StoreError as e:
        return redirect_with("/company/employees", error=str(e))
    return redirect_with("/company/employees", message="Manager assigned")


# ── Surveys ──────────────────────────────────────────────────────────

@router.get("/surveys", response_class=HTMLResponse)
async def surveys_page(request: Request):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "surveys")

    surveys = []
    error = None
    try:
        surveys = store.select('surveys', {'company_id': company['id']}, order_by='created_at', descending=True)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/surveys.html",
        page_context(request, user, "surveys", error=error, company=company, surveys=surveys,
                     statuses=SURVEY_STATUS_OPTIONS)
    )


@router.post("/surveys")
async def create_survey(
    request: Request,
    title: str = Form(...),
    description: str = Form(""),
    status: str = Form("draft")
):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/surveys", error=NO_COMPANY)
    if status not in SURVEY_STATUS_OPTIONS:
        return redirect_with("/company/surveys", error="Invalid status")

    try:
        survey = store.insert('surveys', {
            'company_id': company['id'],
            'created_by': user['id'],
            'title': title.strip(),
            'description': description or None,
            'status': status,
        })[0]
    except StoreError as e:
        return redirect_with("/company/surveys", error=str(e))
    return redirect_with(f"/company/surveys/{survey['id']}", message="Survey created successfully")


def _own_survey(store, company: dict, survey_id: str) -> Optional[dict]:
    survey = store.get('surveys', survey_id)
    if survey and survey['company_id'] == company['id']:
        return survey
    return None


@router.get("/surveys/{survey_id}", response_class=HTMLResponse)
async def survey_detail(request: Request, survey_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "surveys")

    try:
        survey = _own_survey(store, company, survey_id)
        if not survey:
            return redirect_with("/company/surveys", error="Survey not found")
        questions = store.select('survey_questions', {'survey_id': survey_id}, order_by='order_index')
        responses = store.select('survey_responses', {'survey_id': survey_id})
    except StoreError as e:
        return redirect_with("/company/surveys", error=str(e))

    averages = {
        q['id']: average([r.get('response_value') for r in responses if r['question_id'] == q['id']])
        for q in questions
    }
    return templates.TemplateResponse(
        "company/survey_detail.html",
        page_context(request, user, "surveys", company=company, survey=survey, questions=questions,
                     averages=averages, respondents=len({r['user_id'] for r in responses}),
                     statuses=SURVEY_STATUS_OPTIONS)
    )


@router.post("/surveys/{survey_id}/questions")
async def add_survey_question(
    request: Request,
    survey_id: str,
    question_text: str = Form(...),
    question_type: str = Form("scale"),
    required: bool = Form(True)
):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/surveys", error=NO_COMPANY)
    if question_type not in ("scale", "text"):
        return redirect_with(f"/company/surveys/{survey_id}", error="Invalid question type")

    try:
        if not _own_survey(store, company, survey_id):
            return redirect_with("/company/surveys", error="Survey not found")
        existing = store.select('survey_questions', {'survey_id': survey_id}, columns=['id'])
        store.insert('survey_questions', {
            'survey_id': survey_id,
            'question_text': question_text.strip(),
            'question_type': question_type,
            'order_index': len(existing),
            'required': 1 if required else 0,
        })
    except StoreError as e:
        return redirect_with(f"/company/surveys/{survey_id}", error=str(e))
    return redirect_with(f"/company/surveys/{survey_id}", message="Question added")


@router.post("/surveys/{survey_id}/status")
async def update_survey_status(request: Request, survey_id: str, status: str = Form(...)):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/surveys", error=NO_COMPANY)
    if status not in SURVEY_STATUS_OPTIONS:
        return redirect_with("/company/surveys", error="Invalid status")

    try:
        store.update('surveys', {'status': status}, {'id': survey_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/surveys", error=str(e))
    return redirect_with("/company/surveys", message=f"Survey {status}")


@router.post("/surveys/{survey_id}/delete")
async def delete_survey(request: Request, survey_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/surveys", error=NO_COMPANY)

    try:
        store.delete('surveys', {'id': survey_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/surveys", error=str(e))
    return redirect_with("/company/surveys", message="Survey deleted")


# ── Rewards ──────────────────────────────────────────────────────────

@router.get("/rewards", response_class=HTMLResponse)
async def rewards_page(request: Request):
    """Reward catalog and redemptions waiting on the company."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "rewards")

    rewards, redemptions = [], []
    error = None
    try:
        rewards = store.select('rewards', {'company_id': company['id']}, order_by='created_at', descending=True)
        by_id = {r['id']: r for r in rewards}
        if by_id:
            redemptions = store.select('reward_redemptions', {'reward_id': list(by_id)},
                                       order_by='created_at', descending=True)
        user_ids = list({r['user_id'] for r in redemptions})
        profiles = {p['id']: p for p in store.select('profiles', {'id': user_ids})} if user_ids else {}
        for redemption in redemptions:
            redemption['reward'] = by_id.get(redemption['reward_id'])
            redemption['user_name'] = display_name(profiles.get(redemption['user_id']))
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/rewards.html",
        page_context(request, user, "rewards", error=error, company=company,
                     rewards=rewards, redemptions=redemptions)
    )


def _reward_values(title, description, category, points_cost, stock_quantity, active):
    """Validated reward columns, or an error message."""
    if points_cost <= 0:
        return None, "Points cost must be greater than zero"
    stock = None
    if stock_quantity not in (None, ""):
        try:
            stock = int(stock_quantity)
        except ValueError:
            return None, "Stock must be a whole number"
        if stock < 0:
            return None, "Stock cannot be negative"
    return {
        'title': title.strip(),
        'description': description or None,
        'category': category or None,
        'points_cost': points_cost,
        'stock_quantity': stock,
        'active': 1 if active else 0,
    }, None


@router.post("/rewards")
async def create_reward(
    request: Request,
    title: str = Form(...),
    description: str = Form(""),
    category: str = Form(""),
    points_cost: int = Form(...),
    stock_quantity: str = Form(""),
    active: bool = Form(False)
):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/rewards", error=NO_COMPANY)

    values, problem = _reward_values(title, description, category, points_cost, stock_quantity, active)
    if problem:
        return redirect_with("/company/rewards", error=problem)
    try:
        store.insert('rewards', dict(values, company_id=company['id']))
    except StoreError as e:
        return redirect_with("/company/rewards", error=str(e))
    return redirect_with("/company/rewards", message="Reward created successfully")


@router.post("/rewards/{reward_id}")
async def update_reward(
    request: Request,
    reward_id: str,
    title: str = Form(...),
    description: str = Form(""),
    category: str = Form(""),
    points_cost: int = Form(...),
    stock_quantity: str = Form(""),
    active: bool = Form(False)
):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/rewards", error=NO_COMPANY)

    values, problem = _reward_values(title, description, category, points_cost, stock_quantity, active)
    if problem:
        return redirect_with("/company/rewards", error=problem)
    try:
        store.update('rewards', values, {'id': reward_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/rewards", error=str(e))
    return redirect_with("/company/rewards", message="Reward updated successfully")


@router.post("/rewards/{reward_id}/delete")
async def delete_reward(request: Request, reward_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/rewards", error=NO_COMPANY)

    try:
        if store.select('reward_redemptions', {'reward_id': reward_id}, columns=['id'], limit=1):
            return redirect_with("/company/rewards",
                                 error="This reward has redemptions; deactivate it instead")
        store.delete('rewards', {'id': reward_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/rewards", error=str(e))
    return redirect_with("/company/rewards", message="Reward deleted")


@router.post("/redemptions/{redemption_id}/status")
async def update_redemption(request: Request, redemption_id: str, status: str = Form(...)):
    """Approve, deliver or cancel a redemption of one of the company's rewards."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/rewards", error=NO_COMPANY)

    try:
        redemption = store.get('reward_redemptions', redemption_id)
        reward = store.get('rewards', redemption['reward_id']) if redemption else None
        if not reward or reward['company_id'] != company['id']:
            return redirect_with("/company/rewards", error="Redemption not found")
        set_redemption_status(store, redemption_id, status)
    except ValueError as e:
        return redirect_with("/company/rewards", error=str(e))
    except StoreError as e:
        return redirect_with("/company/rewards", error=str(e))
    return redirect_with("/company/rewards", message=f"Redemption marked as {status}")


# ── Requests ─────────────────────────────────────────────────────────

@router.get("/requests", response_class=HTMLResponse)
async def requests_page(request: Request):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "requests")

    requests_by_status = {'pending': [], 'approved': [], 'rejected': []}
    error = None
    try:
        employee_ids = company_employee_ids(store, company['id'])
        rows = store.select('employee_requests', {'user_id': employee_ids},
                            order_by='created_at', descending=True) if employee_ids else []
        profiles = {p['id']: p for p in store.select('profiles', {'id': employee_ids})} if employee_ids else {}
        for row in rows:
            row['user_name'] = display_name(profiles.get(row['user_id']))
            requests_by_status.setdefault(row['status'], []).append(row)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/requests.html",
        page_context(request, user, "requests", error=error, company=company,
                     requests_by_status=requests_by_status)
    )


@router.post("/requests/{request_id}/status")
async def update_request_status(request: Request, request_id: str, status: str = Form(...)):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/requests", error=NO_COMPANY)

    try:
        review_request(store, user['id'], request_id, status, company_employee_ids(store, company['id']))
    except ValueError as e:
        return redirect_with("/company/requests", error=str(e))
    except StoreError as e:
        return redirect_with("/company/requests", error=str(e))
    return redirect_with("/company/requests", message=f"Request {status}!")


# ── Resources ────────────────────────────────────────────────────────

def resource_storage() -> BlobStorage:
    return BlobStorage(RESOURCES_BUCKET)


@router.get("/resources", response_class=HTMLResponse)
async def resources_page(request: Request):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "resources")

    resources = []
    error = None
    try:
        resources = store.select('company_resources', {'company_id': company['id']},
                                 order_by='created_at', descending=True)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/resources.html",
        page_context(request, user, "resources", error=error, company=company,
                     resources=resources, categories=RESOURCE_CATEGORY_OPTIONS)
    )


@router.post("/resources")
async def upload_resource(
    request: Request,
    file: UploadFile = File(...),
    category: str = Form("general"),
    description: str = Form("")
):
    """Store the file, then record it; the file is removed if recording fails."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/resources", error=NO_COMPANY)

    data = await file.read()
    if not data:
        return redirect_with("/company/resources", error="Please choose a file to upload")
    if len(data) > MAX_UPLOAD_BYTES:
        return redirect_with("/company/resources", error="File is too large")

    storage = resource_storage()
    path = object_path(company['id'], file.filename)
    try:
        storage.upload(path, data)
    except StorageError as e:
        return redirect_with("/company/resources", error=str(e))

    try:
        store.insert('company_resources', {
            'company_id': company['id'],
            'uploaded_by': user['id'],
            'file_name': file.filename or 'file',
            'file_path': path,
            'file_size': len(data),
            'file_type': file.content_type or 'application/octet-stream',
            'category': category if category in RESOURCE_CATEGORY_OPTIONS else 'general',
            'description': description or None,
        })
    except StoreError as e:
        storage.remove([path])
        return redirect_with("/company/resources", error=str(e))
    return redirect_with("/company/resources", message="File uploaded successfully")


def _own_resource(store, company: dict, resource_id: str) -> Optional[dict]:
    resource = store.get('company_resources', resource_id)
    if resource and resource['company_id'] == company['id']:
        return resource
    return None


@router.get("/resources/{resource_id}/download")
async def download_resource(request: Request, resource_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/resources", error=NO_COMPANY)

    try:
        resource = _own_resource(store, company, resource_id)
        if not resource:
            return redirect_with("/company/resources", error="Resource not found")
        data = resource_storage().download(resource['file_path'])
    except (StoreError, StorageError) as e:
        return redirect_with("/company/resources", error=str(e))

    return Response(
        content=data,
        media_type=resource['file_type'],
        headers={"Content-Disposition": f'attachment; filename="{resource["file_name"]}"'}
    )


@router.post("/resources/{resource_id}/delete")
async def delete_resource(request: Request, resource_id: str):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/resources", error=NO_COMPANY)

    try:
        resource = _own_resource(store, company, resource_id)
        if not resource:
            return redirect_with("/company/resources", error="Resource not found")
        resource_storage().remove([resource['file_path']])
        store.delete('company_resources', {'id': resource_id})
    except (StoreError, StorageError) as e:
        return redirect_with("/company/resources", error=str(e))
    return redirect_with("/company/resources", message="File deleted successfully")


@router.post("/resources/{resource_id}/category")
async def categorize_resource(request: Request, resource_id: str, category: str = Form(...)):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/resources", error=NO_COMPANY)
    if category not in RESOURCE_CATEGORY_OPTIONS:
        return redirect_with("/company/resources", error="Invalid category")

    try:
        store.update('company_resources', {'category': category},
                     {'id': resource_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/resources", error=str(e))
    return redirect_with("/company/resources", message="Category updated")


# ── Metrics ──────────────────────────────────────────────────────────

@router.get("/metrics", response_class=HTMLResponse)
async def metrics_page(request: Request):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "metrics")

    metrics = {}
    error = None
    try:
        employee_ids = company_employee_ids(store, company['id'])
        surveys = store.select('surveys', {'company_id': company['id']})
        survey_ids = [s['id'] for s in surveys]
        responses = store.select('survey_responses', {'survey_id': survey_ids}) if survey_ids else []
        satisfaction = average([r.get('response_value') for r in responses])
        metrics = {
            'total_employees': len(employee_ids),
            'active_surveys': sum(1 for s in surveys if s['status'] == 'active'),
            'response_rate': response_rate({r['user_id'] for r in responses}, employee_ids),
            'satisfaction': satisfaction,
        }
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "company/metrics.html",
        page_context(request, user, "metrics", error=error, company=company, metrics=metrics)
    )


# ── KPI questions ────────────────────────────────────────────────────

@router.get("/kpi-questions", response_class=HTMLResponse)
async def kpi_questions_page(request: Request):
    """This quarter's 13-week KPI schedule for the company."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return _no_company_page(request, user, "kpi-questions")

    schedule = None
    error = None
    try:
        schedule = schedule_view(store, company_id=company['id'])
    except StoreError as e:
        error = str(e)

    quarter, year = quarter_code(date.today())
    return templates.TemplateResponse(
        "company/kpi_questions.html",
        page_context(request, user, "kpi-questions", error=error, company=company, schedule=schedule,
                     quarters=QUARTERS, current_quarter=quarter, current_year=year,
                     question_types=KPI_QUESTION_TYPES)
    )


@router.post("/kpi-questions/initialize")
async def initialize_kpi_questions(request: Request, quarter: str = Form(...), year: int = Form(...)):
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/kpi-questions", error=NO_COMPANY)

    try:
        added = store.rpc('initialize_default_kpi_questions',
                          _company_id=company['id'], _quarter=quarter, _year=year)
    except StoreError as e:
        return redirect_with("/company/kpi-questions", error=str(e))
    return redirect_with("/company/kpi-questions", message=f"{added} KPI questions added for {quarter} {year}")


@router.post("/kpi-questions/{question_id}")
async def update_kpi_question(
    request: Request,
    question_id: str,
    question_text: str = Form(...),
    active: bool = Form(False)
):
    """Only the text and the active flag of a scheduled question can change."""
    user, store, company, redirect = _company_or_redirect(request)
    if redirect:
        return redirect
    if not company:
        return redirect_with("/company/kpi-questions", error=NO_COMPANY)
    if not question_text.strip():
        return redirect_with("/company/kpi-questions", error="Question text is required")

    try:
        store.update('kpi_questions', {'question_text': question_text.strip(), 'active': 1 if active else 0},
                     {'id': question_id, 'company_id': company['id']})
    except StoreError as e:
        return redirect_with("/company/kpi-questions", error=str(e))
    return redirect_with("/company/kpi-questions", message="KPI question updated")
