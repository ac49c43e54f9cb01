"""
Quarter/week resolution for the weekly KPI question schedule.

A quarter is a 13-week business period and each company schedules one KPI
question per week. The week of the quarter is derived from the week of the
year: ceil(days since Jan 1 / 7) minus 13 for every completed quarter, then
clamped into 1..13.

The clamp hides year-boundary artifacts: late December can produce week 53,
which clamps to 13, and the first moments of January produce week 0, which
clamps to 1. Quarters are calendar quarters (by month) while weeks are
counted from Jan 1, so the first or last week of a quarter can also be
absorbed by the clamp.
"""
import logging
import math
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple, Union

from hub.config import WEEKS_PER_QUARTER
from hub.store import StoreError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

ONE_WEEK = timedelta(weeks=1)


def _as_datetime(moment: DateLike) -> datetime:
    if isinstance(moment, datetime):
        return moment
    return datetime.combine(moment, time.min)


def clamp_week(week) -> int:
    """Clamp any week value into 1..13."""
    return max(1, min(WEEKS_PER_QUARTER, int(week)))


def week_of_year(moment: DateLike) -> int:
    """Weeks elapsed since Jan 1 of the moment's year, rounded up."""
    moment = _as_datetime(moment)
    start_of_year = datetime(moment.year, 1, 1, tzinfo=moment.tzinfo)
    return math.ceil((moment - start_of_year) / ONE_WEEK)


def quarter_index(moment: DateLike) -> int:
    """Zero-based calendar quarter (0..3)."""
    return (moment.month - 1) // 3


def week_of_quarter(moment: DateLike) -> int:
    """Week of the quarter, always within 1..13."""
    week = week_of_year(moment) - WEEKS_PER_QUARTER * quarter_index(moment)
    return clamp_week(week)


def quarter_code(moment: DateLike) -> Tuple[str, int]:
    """("Q1".."Q4", year) for a date."""
    return f"Q{quarter_index(moment) + 1}", moment.year


def quarter_label(moment: DateLike) -> str:
    """Display label such as 'Q1 2025'."""
    quarter, year = quarter_code(moment)
    return f"{quarter} {year}"


def week_start(day: date) -> date:
    """Sunday that starts the week containing day."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def resolve_current_week(store, today: Optional[DateLike] = None) -> int:
    """
    Current week of the quarter.

    The store's get_current_quarter_week procedure is the source of truth;
    the local formula is only used when that call fails. A given date is
    passed on to the procedure.
    """
    params = {'today': today} if today else {}
    try:
        week = store.rpc("get_current_quarter_week", **params)
        if week is not None:
            return clamp_week(week)
        logger.warning("get_current_quarter_week returned nothing, using local week")
    except StoreError as e:
        logger.warning("Falling back to local week calculation: %s", e)
    return week_of_quarter(today or datetime.now())


def find_question(questions: List[dict], week: int, quarter: Optional[str] = None,
                  year: Optional[int] = None) -> Optional[dict]:
    """
    The KPI question scheduled for a week, or None when the slot is empty.
    An active row wins over an inactive one for the same slot.
    """
    candidates = [
        q for q in questions
        if q.get('week_number') == week
        and (quarter is None or q.get('quarter') == quarter)
        and (year is None or q.get('year') == year)
    ]
    if not candidates:
        return None
    for question in candidates:
        if question.get('active'):
            return question
    return candidates[0]


def timeline(questions: List[dict], current_week: int) -> List[dict]:
    """One slot per week of the quarter for the timeline view."""
    scheduled = {q.get('week_number') for q in questions}
    return [
        {
            'week': week,
            'has_question': week in scheduled,
            'is_current': week == current_week,
            'is_past': week < current_week,
        }
        for week in range(1, WEEKS_PER_QUARTER + 1)
    ]


def schedule_view(store, company_id: Optional[str] = None, today: Optional[DateLike] = None) -> dict:
    """
    Current and upcoming KPI questions for the quarter containing today.
    Raises StoreError when the questions cannot be loaded.
    """
    today = today or date.today()
    quarter, year = quarter_code(today)
    current_week = resolve_current_week(store, today)

    filters = {'quarter': quarter, 'year': year}
    if company_id:
        filters['company_id'] = company_id
    questions = store.select('kpi_questions', filters, order_by='week_number')

    next_week = current_week + 1 if current_week < WEEKS_PER_QUARTER else None
    return {
        'quarter': quarter,
        'year': year,
        'quarter_label': quarter_label(today),
        'current_week': current_week,
        'next_week': next_week,
        'questions': questions,
        'current_question': find_question(questions, current_week),
        'next_question': find_question(questions, next_week) if next_week else None,
        'timeline': timeline(questions, current_week),
    }
