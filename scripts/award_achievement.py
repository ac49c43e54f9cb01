"""
Record achievement progress for a user.
Hub has no automatic progress tracking yet, so progress is recorded here
by an operator or an external job.

    python scripts/award_achievement.py <email> "<achievement title>" [amount]
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hub.achievements import record_progress
from hub.store import get_store


def award_achievement(email: str, title: str, amount: int = 1) -> dict:
    """Add progress to the achievement with this title. Returns the progress row."""
    store = get_store()

    users = store.select('profiles', {'email': email.lower()}, limit=1)
    if not users:
        raise ValueError(f"No user with email {email}")
    achievements = store.select('achievements', {'title': title}, limit=1)
    if not achievements:
        raise ValueError(f"No achievement titled '{title}'")

    row = record_progress(store, users[0]['id'], achievements[0]['id'], amount)
    required = achievements[0].get('required_count') or 1
    state = "unlocked" if row.get('unlocked') else f"{row.get('progress')}/{required}"
    print(f"{email}: {title} {state}")
    return row


if __name__ == "__main__":
    if len(sys.argv) not in (3, 4):
        print(__doc__)
        sys.exit(1)
    try:
        award_achievement(sys.argv[1], sys.argv[2], int(sys.argv[3]) if len(sys.argv) == 4 else 1)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
