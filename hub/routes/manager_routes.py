"""
Manager portal routes: team, weekly KPI check-ins, requests, metrics,
engagement and surveys.
"""
from datetime import date

from fastapi import APIRouter, Request, Form
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.config import MOOD_OPTIONS
from hub.dependencies import require_role, redirect_with, page_context
from hub.employee_requests import review_request
from hub.engagement import average, display_name, response_rate, team_status
from hub.quarters import schedule_view, week_start
from hub.roles import ROLE_MANAGER
from hub.store import StoreError, get_store
from hub.templates_config import templates

router = APIRouter()

MOOD_VALUES = [value for value, _ in MOOD_OPTIONS]
KPI_SCORES = range(1, 6)


def load_team(store, manager_id: str) -> list:
    """Profiles of the manager's direct reports, with the team link."""
    links = store.select('manager_employees', {'manager_id': manager_id})
    ids = [link['employee_id'] for link in links]
    profiles = {p['id']: p for p in store.select('profiles', {'id': ids})} if ids else {}
    team = []
    for link in links:
        profile = profiles.get(link['employee_id'])
        if profile:
            team.append({'profile': profile, 'company_id': link['company_id'], 'name': display_name(profile)})
    return sorted(team, key=lambda member: member['name'])


def team_company_ids(team: list) -> list:
    return sorted({member['company_id'] for member in team if member['company_id']})


@router.get("", response_class=HTMLResponse)
async def manager_home(request: Request):
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect
    return RedirectResponse(url="/manager/employees", status_code=302)


@router.get("/employees", response_class=HTMLResponse)
async def team_page(request: Request):
    """Team list with each member's latest check-in."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    team, latest = [], {}
    error = None
    try:
        team = load_team(store, user['id'])
        latest = team_status(store.select('employee_kpi_surveys', {'manager_id': user['id']}))
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/employees.html",
        page_context(request, user, "employees", error=error, team=team, latest=latest,
                     moods=dict(MOOD_OPTIONS))
    )


@router.get("/kpi-surveys", response_class=HTMLResponse)
async def kpi_surveys_page(request: Request):
    """Weekly check-in form for the current KPI question."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    team, submissions = [], []
    schedule = None
    error = None
    try:
        team = load_team(store, user['id'])
        companies = team_company_ids(team)
        schedule = schedule_view(store, company_id=companies[0] if len(companies) == 1 else None)
        submissions = store.select('employee_kpi_surveys', {'manager_id': user['id']},
                                   order_by='submitted_at', descending=True, limit=20)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/kpi_surveys.html",
        page_context(request, user, "kpi-surveys", error=error, team=team, schedule=schedule,
                     submissions=submissions, moods=MOOD_OPTIONS, scores=list(KPI_SCORES),
                     week_start_date=week_start(date.today()).isoformat())
    )


@router.post("/kpi-surveys")
async def submit_kpi_survey(
    request: Request,
    employee_id: str = Form(...),
    mood_rating: int = Form(...),
    kpi_score: int = Form(...),
    kpi_feedback: str = Form("")
):
    """Record one employee's weekly check-in against the current KPI question."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    if mood_rating not in MOOD_VALUES:
        return redirect_with("/manager/kpi-surveys", error="Please select a mood rating")
    if kpi_score not in KPI_SCORES:
        return redirect_with("/manager/kpi-surveys", error="KPI score must be between 1 and 5")

    store = get_store()
    try:
        team = load_team(store, user['id'])
        member = next((m for m in team if m['profile']['id'] == employee_id), None)
        if not member:
            return redirect_with("/manager/kpi-surveys", error="Employee is not in your team")

        schedule = schedule_view(store, company_id=member['company_id'])
        question = schedule['current_question']
        store.insert('employee_kpi_surveys', {
            'manager_id': user['id'],
            'employee_id': employee_id,
            'employee_name': member['name'],
            'mood_rating': mood_rating,
            'kpi_score': kpi_score,
            'kpi_feedback': kpi_feedback or None,
            'kpi_question_id': question['id'] if question else None,
            'kpi_question_text': question['question_text'] if question else None,
            'week_start_date': week_start(date.today()).isoformat(),
        })
    except StoreError as e:
        return redirect_with("/manager/kpi-surveys", error=str(e))
    return redirect_with("/manager/kpi-surveys", message=f"KPI survey submitted for {member['name']}")


@router.get("/requests", response_class=HTMLResponse)
async def requests_page(request: Request):
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    pending, reviewed = [], []
    error = None
    try:
        team = load_team(store, user['id'])
        names = {m['profile']['id']: m['name'] for m in team}
        rows = store.select('employee_requests', {'user_id': list(names)},
                            order_by='created_at', descending=True) if names else []
        for row in rows:
            row['user_name'] = names.get(row['user_id'], 'Unknown User')
            (pending if row['status'] == 'pending' else reviewed).append(row)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/requests.html",
        page_context(request, user, "requests", error=error, pending=pending, reviewed=reviewed)
    )


@router.post("/requests/{request_id}/status")
async def update_request_status(request: Request, request_id: str, status: str = Form(...)):
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    try:
        team_ids = [m['profile']['id'] for m in load_team(store, user['id'])]
        review_request(store, user['id'], request_id, status, team_ids)
    except ValueError as e:
        return redirect_with("/manager/requests", error=str(e))
    except StoreError as e:
        return redirect_with("/manager/requests", error=str(e))
    return redirect_with("/manager/requests", message=f"Request {status}!")


@router.get("/metrics", response_class=HTMLResponse)
async def metrics_page(request: Request):
    """Team averages over all weekly check-ins."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    metrics = {}
    error = None
    try:
        team = load_team(store, user['id'])
        checkins = store.select('employee_kpi_surveys', {'manager_id': user['id']})
        this_week = week_start(date.today()).isoformat()
        metrics = {
            'team_size': len(team),
            'checkins': len(checkins),
            'avg_kpi_score': average([c['kpi_score'] for c in checkins]),
            'avg_mood': average([c['mood_rating'] for c in checkins]),
            'checked_in_this_week': response_rate(
                {c['employee_id'] for c in checkins if c['week_start_date'] == this_week},
                [m['profile']['id'] for m in team]),
        }
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/metrics.html",
        page_context(request, user, "metrics", error=error, metrics=metrics)
    )


@router.get("/engagement", response_class=HTMLResponse)
async def engagement_page(request: Request):
    """Latest mood per team member, lowest first."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    rows = []
    error = None
    try:
        team = load_team(store, user['id'])
        latest = team_status(store.select('employee_kpi_surveys', {'manager_id': user['id']}))
        for member in team:
            checkin = latest.get(member['profile']['id'])
            rows.append({'member': member, 'checkin': checkin})
        rows.sort(key=lambda r: r['checkin']['mood_rating'] if r['checkin'] else 0)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/engagement.html",
        page_context(request, user, "engagement", error=error, rows=rows, moods=dict(MOOD_OPTIONS))
    )


@router.get("/surveys", response_class=HTMLResponse)
async def surveys_page(request: Request):
    """Active surveys of the team's companies and how many of the team answered."""
    user, redirect = require_role(request, ROLE_MANAGER)
    if redirect:
        return redirect

    store = get_store()
    surveys = []
    error = None
    try:
        team = load_team(store, user['id'])
        team_ids = [m['profile']['id'] for m in team]
        companies = team_company_ids(team)
        if companies:
            surveys = store.select('surveys', {'company_id': companies, 'status': 'active'},
                                   order_by='created_at', descending=True)
        for survey in surveys:
            respondents = {r['user_id'] for r in store.select('survey_responses', {'survey_id': survey['id']},
                                                              columns=['user_id'])}
            survey['team_response_rate'] = response_rate(respondents, team_ids)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "manager/surveys.html",
        page_context(request, user, "surveys", error=error, surveys=surveys)
    )
