"""
Employee portal routes: home, surveys, feedback, achievements, rewards
and requests.
"""
from fastapi import APIRouter, Request, Form
from fastapi.responses import RedirectResponse, HTMLResponse

from hub.achievements import EMPTY_MESSAGE, load_catalog, load_progress, load_summary, summarize
from hub.config import REQUEST_TYPE_OPTIONS
from hub.dependencies import require_role, redirect_with, page_context
from hub.employee_requests import submit_request
from hub.engagement import display_name
from hub.levels import DEFAULT_LEVEL_POLICY
from hub.quarters import schedule_view
from hub.rewards import RedemptionRejected, load_redemptions, points_balance, redeem_reward, can_afford, in_stock
from hub.roles import ROLE_EMPLOYEE
from hub.store import StoreError, get_store
from hub.templates_config import templates

router = APIRouter()

NO_KPI_QUESTION = "No KPI question is scheduled for this week."
NO_REWARDS = "No rewards are available yet. Keep earning points!"

FEEDBACK_CATEGORIES = [
    ("work-environment", "Work Environment"),
    ("team-collaboration", "Team Collaboration"),
    ("management", "Management"),
    ("tools-resources", "Tools & Resources"),
    ("other", "Other"),
]


def employee_company_ids(store, user_id: str) -> list:
    return [row['company_id'] for row in store.select('employee_companies', {'employee_id': user_id})]


@router.get("", response_class=HTMLResponse)
async def employee_root(request: Request):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect
    return RedirectResponse(url="/employee/home", status_code=302)


@router.get("/home", response_class=HTMLResponse)
async def employee_home(request: Request):
    """Points, level, unlocked achievements and this week's KPI question."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    summary = summarize([], [], DEFAULT_LEVEL_POLICY)
    schedule = None
    error = None
    try:
        summary = load_summary(store, user['id'])
        companies = employee_company_ids(store, user['id'])
        schedule = schedule_view(store, company_id=companies[0] if companies else None)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "employee/home.html",
        page_context(request, user, "home", error=error, summary=summary, schedule=schedule,
                     no_question=NO_KPI_QUESTION)
    )


@router.get("/achievements", response_class=HTMLResponse)
async def achievements_page(request: Request):
    """Skill tree of the visible achievements."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    summary = summarize([], [], DEFAULT_LEVEL_POLICY)
    error = None
    try:
        summary = load_summary(store, user['id'])
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "employee/achievements.html",
        page_context(request, user, "achievements", error=error, summary=summary, empty_message=EMPTY_MESSAGE)
    )


# ── Rewards ──────────────────────────────────────────────────────────

@router.get("/rewards", response_class=HTMLResponse)
async def rewards_page(request: Request):
    """Rewards store, balance and redemption history."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    rewards, redemptions = [], []
    balance = 0
    error = None
    try:
        redemptions = load_redemptions(store, user['id'])
        balance = points_balance(load_catalog(store), load_progress(store, user['id']), redemptions)
        companies = employee_company_ids(store, user['id'])
        if companies:
            rewards = store.select('rewards', {'company_id': companies, 'active': 1}, order_by='points_cost')
        for reward in rewards:
            reward['affordable'] = can_afford(reward, balance)
            reward['in_stock'] = in_stock(reward)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "employee/rewards.html",
        page_context(request, user, "rewards", error=error, balance=balance, rewards=rewards,
                     redemptions=redemptions, empty_message=NO_REWARDS)
    )


@router.post("/rewards/{reward_id}/redeem")
async def redeem(request: Request, reward_id: str):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    try:
        reward = store.get('rewards', reward_id)
        if reward and reward['company_id'] not in employee_company_ids(store, user['id']):
            reward = None
        if reward is None:
            return redirect_with("/employee/rewards", error="Reward not found")
        balance = redeem_reward(store, user['id'], reward_id)
    except RedemptionRejected as e:
        return redirect_with("/employee/rewards", error=str(e))
    except StoreError as e:
        return redirect_with("/employee/rewards", error=str(e))
    return redirect_with("/employee/rewards",
                         message=f"Redeemed {reward['title']}! You have {balance} points left.")


# ── Requests ─────────────────────────────────────────────────────────

@router.get("/requests", response_class=HTMLResponse)
async def requests_page(request: Request):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    requests_list = []
    error = None
    try:
        requests_list = get_store().select('employee_requests', {'user_id': user['id']},
                                           order_by='created_at', descending=True)
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "employee/requests.html",
        page_context(request, user, "requests", error=error, requests=requests_list,
                     request_types=REQUEST_TYPE_OPTIONS)
    )


@router.post("/requests")
async def create_request(
    request: Request,
    request_type: str = Form(...),
    title: str = Form(...),
    description: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form("")
):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    try:
        submit_request(get_store(), user['id'], request_type, title, description, start_date, end_date)
    except ValueError as e:
        return redirect_with("/employee/requests", error=str(e))
    except StoreError as e:
        return redirect_with("/employee/requests", error=str(e))
    return redirect_with("/employee/requests", message="Request submitted successfully")


# ── Surveys ──────────────────────────────────────────────────────────

@router.get("/surveys", response_class=HTMLResponse)
async def surveys_page(request: Request):
    """Active surveys of the employee's companies."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    surveys = []
    error = None
    try:
        companies = employee_company_ids(store, user['id'])
        if companies:
            surveys = store.select('surveys', {'company_id': companies, 'status': 'active'},
                                   order_by='created_at', descending=True)
        answered = {r['survey_id'] for r in store.select('survey_responses', {'user_id': user['id']},
                                                         columns=['survey_id'])}
        for survey in surveys:
            survey['completed'] = survey['id'] in answered
    except StoreError as e:
        error = str(e)

    return templates.TemplateResponse(
        "employee/surveys.html",
        page_context(request, user, "surveys", error=error, surveys=surveys)
    )


def _open_survey(store, user_id: str, survey_id: str):
    survey = store.get('surveys', survey_id)
    if not survey or survey['status'] != 'active':
        return None
    if survey['company_id'] not in employee_company_ids(store, user_id):
        return None
    return survey


@router.get("/surveys/{survey_id}", response_class=HTMLResponse)
async def take_survey_form(request: Request, survey_id: str):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    store = get_store()
    try:
        survey = _open_survey(store, user['id'], survey_id)
        if not survey:
            return redirect_with("/employee/surveys", error="Survey not found")
        questions = store.select('survey_questions', {'survey_id': survey_id}, order_by='order_index')
    except StoreError as e:
        return redirect_with("/employee/surveys", error=str(e))

    return templates.TemplateResponse(
        "employee/take_survey.html",
        page_context(request, user, "surveys", survey=survey, questions=questions)
    )


@router.post("/surveys/{survey_id}")
async def submit_survey(request: Request, survey_id: str):
    """Answers arrive as q_<question id> form fields."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect

    form = await request.form()
    store = get_store()
    try:
        survey = _open_survey(store, user['id'], survey_id)
        if not survey:
            return redirect_with("/employee/surveys", error="Survey not found")
        if store.select('survey_responses', {'survey_id': survey_id, 'user_id': user['id']}, limit=1):
            return redirect_with("/employee/surveys", error="You have already completed this survey")

        questions = store.select('survey_questions', {'survey_id': survey_id}, order_by='order_index')
        rows = []
        for question in questions:
            answer = (form.get(f"q_{question['id']}") or '').strip()
            if not answer:
                if question['required']:
                    return redirect_with(f"/employee/surveys/{survey_id}", error="Please answer all questions")
                continue
            row = {'survey_id': survey_id, 'question_id': question['id'], 'user_id': user['id']}
            if question['question_type'] == 'scale':
                try:
                    row['response_value'] = int(answer)
                except ValueError:
                    return redirect_with(f"/employee/surveys/{survey_id}", error="Invalid answer")
            else:
                row['response_text'] = answer
            rows.append(row)
        if rows:
            store.insert('survey_responses', rows)
    except StoreError as e:
        return redirect_with("/employee/surveys", error=str(e))
    return redirect_with("/employee/surveys", message="Survey submitted! Thank you for your feedback")


# ── Feedback ─────────────────────────────────────────────────────────

@router.get("/feedback", response_class=HTMLResponse)
async def feedback_page(request: Request):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect
    return templates.TemplateResponse(
        "employee/feedback.html",
        page_context(request, user, "feedback", categories=FEEDBACK_CATEGORIES)
    )


@router.post("/feedback")
async def submit_feedback(
    request: Request,
    category: str = Form("work-environment"),
    rating: int = Form(0),
    feedback: str = Form("")
):
    """Deliver feedback to the owners of the employee's companies as notifications."""
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect
    if not feedback.strip():
        return redirect_with("/employee/feedback", error="Please provide your feedback before submitting")
    labels = dict(FEEDBACK_CATEGORIES)
    if category not in labels:
        return redirect_with("/employee/feedback", error="Invalid category")

    store = get_store()
    try:
        companies = employee_company_ids(store, user['id'])
        owners = {c['owner_id'] for c in store.select('companies', {'id': companies}) if c['owner_id']} \
            if companies else set()
        stars = f" ({rating}/5)" if 1 <= rating <= 5 else ""
        if owners:
            store.insert('notifications', [
                {
                    'user_id': owner_id,
                    'title': f"Feedback: {labels[category]}{stars}",
                    'message': f"{display_name(user)}: {feedback.strip()}",
                    'type': 'feedback',
                }
                for owner_id in sorted(owners)
            ])
    except StoreError as e:
        return redirect_with("/employee/feedback", error=str(e))
    return redirect_with("/employee/feedback", message="Feedback submitted! Thank you for helping us improve")


@router.get("/settings")
async def employee_settings(request: Request):
    user, redirect = require_role(request, ROLE_EMPLOYEE)
    if redirect:
        return redirect
    return RedirectResponse(url="/settings", status_code=302)
