"""
Dashboard aggregations over survey and KPI check-in rows.
"""
from typing import Dict, List, Optional

TOP_PERFORMER_MIN_SCORE = 4
NEEDS_ATTENTION_MAX_SCORE = 3
DASHBOARD_LIST_SIZE = 5


def display_name(profile: Optional[dict]) -> str:
    if not profile:
        return 'Unknown User'
    name = f"{profile.get('first_name') or ''} {profile.get('last_name') or ''}".strip()
    return name or profile.get('email') or 'Unknown User'


def employee_performance(responses: List[dict], profiles: Dict[str, dict]) -> List[dict]:
    """Average response value per user; empty answers are not scored."""
    scores = {}
    for response in responses:
        user_scores = scores.setdefault(response['user_id'], [])
        if response.get('response_value'):
            user_scores.append(response['response_value'])

    performance = []
    for user_id, values in scores.items():
        performance.append({
            'user_id': user_id,
            'user_name': display_name(profiles.get(user_id)),
            'avg_score': sum(values) / len(values) if values else 0.0,
            'response_count': len(values),
        })
    return performance


def top_performers(performance: List[dict], limit: int = DASHBOARD_LIST_SIZE) -> List[dict]:
    best = [p for p in performance if p['avg_score'] >= TOP_PERFORMER_MIN_SCORE]
    return sorted(best, key=lambda p: p['avg_score'], reverse=True)[:limit]


def needs_attention(performance: List[dict], limit: int = DASHBOARD_LIST_SIZE) -> List[dict]:
    # users with no scored answers are left out
    low = [p for p in performance if p['response_count'] and p['avg_score'] < NEEDS_ATTENTION_MAX_SCORE]
    return sorted(low, key=lambda p: p['avg_score'])[:limit]


def response_rate(respondent_ids, employee_ids) -> float:
    """Share of employees who answered at least once, as a percentage."""
    employees = set(employee_ids)
    if not employees:
        return 0.0
    return len(employees.intersection(respondent_ids)) / len(employees) * 100


def average(values) -> Optional[float]:
    values = [v for v in values if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def team_status(checkins: List[dict]) -> Dict[str, dict]:
    """Latest weekly KPI check-in per employee."""
    latest = {}
    for checkin in sorted(checkins, key=lambda c: c.get('week_start_date') or ''):
        latest[checkin['employee_id']] = checkin
    return latest
