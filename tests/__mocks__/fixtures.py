"""
Shared test fixtures -- mock rows for unit and integration tests.
"""
import datetime


# ── User fixtures ────────────────────────────────────────────────────

def make_user(
    user_id="user-1",
    email="jane@example.com",
    first_name="Jane",
    last_name="Doe",
    roles=None,
    active_role=None,
):
    """Build a user dict as returned by validate_session()."""
    roles = roles if roles is not None else ["employee"]
    return {
        "id": user_id,
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "name": f"{first_name} {last_name}".strip() or email,
        "roles": roles,
        "active_role": active_role or (roles[0] if roles else None),
        "role_display": ", ".join(roles),
        "is_admin": "admin" in roles,
    }


ADMIN_USER = make_user(user_id="admin-1", email="admin@example.com", first_name="System",
                       last_name="Administrator", roles=["admin"])
COMPANY_USER = make_user(user_id="owner-1", email="owner@example.com", first_name="Olivia",
                         last_name="Owner", roles=["company"])
MANAGER_USER = make_user(user_id="manager-1", email="manager@example.com", first_name="Max",
                         last_name="Manager", roles=["manager", "employee"])
EMPLOYEE_USER = make_user()


# ── Achievement fixtures ─────────────────────────────────────────────

def make_achievement(
    achievement_id="A",
    points=10,
    prerequisite_id=None,
    required_count=1,
    category="milestone",
    title=None,
    icon=None,
):
    return {
        "id": achievement_id,
        "category": category,
        "title": title or f"Achievement {achievement_id}",
        "description": None,
        "icon": icon,
        "points": points,
        "required_count": required_count,
        "prerequisite_id": prerequisite_id,
    }


def make_progress(achievement_id="A", user_id="user-1", progress=0, unlocked=False):
    return {
        "id": f"ua-{achievement_id}",
        "user_id": user_id,
        "achievement_id": achievement_id,
        "progress": progress,
        "unlocked": 1 if unlocked else 0,
        "unlocked_at": "2025-01-15T10:00:00" if unlocked else None,
    }


# ── Reward fixtures ──────────────────────────────────────────────────

def make_reward(
    reward_id="R1",
    company_id="company-1",
    title="Coffee voucher",
    points_cost=60,
    stock_quantity=None,
    active=1,
):
    return {
        "id": reward_id,
        "company_id": company_id,
        "title": title,
        "description": None,
        "category": None,
        "points_cost": points_cost,
        "stock_quantity": stock_quantity,
        "active": active,
    }


def make_redemption(redemption_id="RD1", reward_id="R1", user_id="user-1", points_spent=20, status="pending"):
    return {
        "id": redemption_id,
        "user_id": user_id,
        "reward_id": reward_id,
        "points_spent": points_spent,
        "status": status,
        "created_at": "2025-02-01 09:00:00",
        "delivered_at": None,
    }


# ── KPI fixtures ─────────────────────────────────────────────────────

def make_kpi_question(
    question_id="KQ1",
    week_number=6,
    quarter="Q1",
    year=2025,
    active=1,
    company_id="company-1",
    question_text=None,
):
    return {
        "id": question_id,
        "company_id": company_id,
        "question_text": question_text or f"Week {week_number} question",
        "question_type": "scale",
        "week_number": week_number,
        "quarter": quarter,
        "year": year,
        "active": active,
    }


def make_checkin(employee_id="user-1", week_start_date="2025-02-09", mood_rating=2, kpi_score=4):
    return {
        "id": f"chk-{employee_id}-{week_start_date}",
        "manager_id": "manager-1",
        "employee_id": employee_id,
        "employee_name": "Jane Doe",
        "mood_rating": mood_rating,
        "kpi_score": kpi_score,
        "week_start_date": week_start_date,
        "submitted_at": datetime.datetime(2025, 2, 10, 9, 0).isoformat(),
    }
