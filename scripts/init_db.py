"""
Database initialization script.
Creates tables, the admin account and a starter achievement catalog.

    python scripts/init_db.py          # create missing tables and seed
    python scripts/init_db.py --reset  # drop everything first (local only)
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hub.database import USE_POSTGRES, init_database, reset_database
from hub.store import get_store
from scripts.create_admin import create_admin_user

# (key, category, title, description, icon, points, required_count, prerequisite key)
DEMO_ACHIEVEMENTS = [
    ("first_steps", "milestone", "First Steps", "Complete your first survey", "👣", 50, 1, None),
    ("voice", "collaboration", "Voice of the Team", "Answer 5 surveys", "💬", 100, 5, "first_steps"),
    ("feedback_pro", "collaboration", "Feedback Pro", "Answer 20 surveys", "🎙", 250, 20, "voice"),
    ("learner", "learning", "Curious Mind", "Finish a training course", "📚", 75, 1, None),
    ("scholar", "learning", "Scholar", "Finish 5 training courses", "🎓", 200, 5, "learner"),
    ("on_target", "performance", "On Target", "Score 4 or more on a weekly KPI", "🎯", 100, 1, None),
    ("streak", "performance", "Streak", "Score 4 or more for 4 weeks in a row", "🔥", 200, 4, "on_target"),
    ("quarter_star", "performance", "Quarter Star", "Score 4 or more for a whole quarter", "⭐", 400, 13, "streak"),
    ("idea", "innovation", "Bright Idea", "Share an improvement idea", "💡", 75, 1, None),
    ("mentor", "leadership", "Mentor", "Help onboard a new colleague", "🤝", 150, 1, "voice"),
]


def seed_achievements(store) -> int:
    """Insert the demo catalog when the achievements table is empty."""
    if store.select('achievements', columns=['id'], limit=1):
        print("Achievements already present. Skipping.")
        return 0

    ids = {}
    for key, category, title, description, icon, points, required, parent in DEMO_ACHIEVEMENTS:
        row = store.insert('achievements', {
            'category': category,
            'title': title,
            'description': description,
            'icon': icon,
            'points': points,
            'required_count': required,
            'prerequisite_id': ids.get(parent),
        })[0]
        ids[key] = row['id']
    print(f"Added {len(ids)} achievements.")
    return len(ids)


def main(reset: bool = False):
    print("=" * 60, flush=True)
    print("Hub - Database Initialization", flush=True)
    print(f"Database: {'PostgreSQL' if USE_POSTGRES else 'SQLite'}", flush=True)
    print("=" * 60, flush=True)

    print("\nStep 1: Creating database tables...")
    print("-" * 40)
    if reset:
        reset_database()
    else:
        init_database()

    print("\nStep 2: Creating admin user...")
    print("-" * 40)
    create_admin_user()

    print("\nStep 3: Seeding achievements...")
    print("-" * 40)
    seed_achievements(get_store())

    print("\n" + "=" * 60)
    print("DATABASE INITIALIZATION COMPLETE!")
    print("=" * 60)


if __name__ == "__main__":
    main(reset="--reset" in sys.argv)
