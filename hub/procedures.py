"""
Server-side procedures callable through DataStore.rpc().

Each procedure receives the store as its first argument followed by keyword
parameters, mirroring the procedures exposed by the hosted database.
"""
import logging
from datetime import date

from hub.config import DEFAULT_KPI_QUESTIONS, QUARTERS, WEEKS_PER_QUARTER
from hub.store import StoreError

logger = logging.getLogger(__name__)

APP_ROLES = ('employee', 'manager', 'company', 'admin')


def get_current_quarter_week(store, today: date = None) -> int:
    """
    Week of the current quarter computed on the server.

    Uses the ISO week number of the server date, so it can disagree with the
    browser-side formula around quarter and year boundaries.
    """
    today = today or date.today()
    iso_week = today.isocalendar()[1]
    quarter_index = (today.month - 1) // 3
    week = iso_week - WEEKS_PER_QUARTER * quarter_index
    return max(1, min(WEEKS_PER_QUARTER, week))


def initialize_default_kpi_questions(store, _company_id: str, _quarter: str, _year: int) -> int:
    """
    Seed the 13 default KPI questions of a quarter for a company.
    Weeks that already have a question are left alone. Returns rows added.
    """
    if _quarter not in QUARTERS:
        raise StoreError(f"Invalid quarter '{_quarter}'")

    existing = store.select(
        'kpi_questions',
        {'company_id': _company_id, 'quarter': _quarter, 'year': int(_year)},
        columns=['week_number']
    )
    taken = {row['week_number'] for row in existing}

    rows = []
    for week, (text, question_type) in enumerate(DEFAULT_KPI_QUESTIONS, start=1):
        if week in taken:
            continue
        rows.append({
            'company_id': _company_id,
            'question_text': text,
            'question_type': question_type,
            'week_number': week,
            'quarter': _quarter,
            'year': int(_year),
            'active': 1,
        })
    if rows:
        store.insert('kpi_questions', rows)
    logger.info("Initialized %d KPI questions for %s %s %s", len(rows), _company_id, _quarter, _year)
    return len(rows)


def get_user_roles(store, _user_id: str) -> list:
    """Role names granted to a user."""
    rows = store.select('user_roles', {'user_id': _user_id}, columns=['role'])
    return [row['role'] for row in rows]


def has_role(store, _user_id: str, _role: str) -> bool:
    return _role in get_user_roles(store, _user_id=_user_id)


def admin_assign_role(store, _target_user: str, _role: str) -> bool:
    """Grant a role to a user; returns False when it was already granted."""
    if _role not in APP_ROLES:
        raise StoreError(f"Invalid role '{_role}'")
    if has_role(store, _user_id=_target_user, _role=_role):
        return False
    store.insert('user_roles', {'user_id': _target_user, 'role': _role})
    return True


def create_company_for_user(store, _company_name: str, _user_id: str) -> str:
    """Create a company owned by a user and grant them the company role."""
    company = store.insert('companies', {'name': _company_name, 'owner_id': _user_id, 'active': 1})[0]
    admin_assign_role(store, _target_user=_user_id, _role='company')
    return company['id']


def assign_employee_to_company(store, _company_id: str, _employee_id: str, _job_title: str,
                               _contract_type: str, _date_started: str) -> str:
    """Link an employee to a company and grant the employee role."""
    link = store.insert('employee_companies', {
        'company_id': _company_id,
        'employee_id': _employee_id,
        'job_title': _job_title,
        'contract_type': _contract_type,
        'date_started': _date_started,
    })[0]
    admin_assign_role(store, _target_user=_employee_id, _role='employee')
    return link['id']


PROCEDURES = {
    'get_current_quarter_week': get_current_quarter_week,
    'initialize_default_kpi_questions': initialize_default_kpi_questions,
    'get_user_roles': get_user_roles,
    'has_role': has_role,
    'admin_assign_role': admin_assign_role,
    'create_company_for_user': create_company_for_user,
    'assign_employee_to_company': assign_employee_to_company,
}
