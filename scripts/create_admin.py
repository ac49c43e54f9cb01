"""
Create an admin user for Hub.
Uses ADMIN_EMAIL / ADMIN_PASSWORD from the environment; a password is
generated when none is set.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hub.auth import create_user, generate_password
from hub.config import ADMIN_EMAIL, ADMIN_PASSWORD
from hub.database import init_database
from hub.roles import ROLE_ADMIN
from hub.store import get_store


def create_admin_user(email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD):
    """Create the admin account, or grant the admin role to an existing one."""
    init_database()
    store = get_store()

    existing = store.select('profiles', {'email': email.lower()}, limit=1)
    if existing:
        added = store.rpc('admin_assign_role', _target_user=existing[0]['id'], _role=ROLE_ADMIN)
        print(f"Admin user already exists: {email}")
        print("Admin role granted." if added else "Admin role confirmed.")
        return existing[0]['id']

    password = password or generate_password()
    user_id = create_user(email, password, "System", "Administrator", roles=[ROLE_ADMIN])

    print("=" * 50)
    print("Admin user created successfully!")
    print("=" * 50)
    print(f"  Email: {email}")
    print(f"  Password: {password}")
    print("=" * 50)
    print("IMPORTANT: Change the password after first login!")
    print("=" * 50)
    return user_id


if __name__ == "__main__":
    create_admin_user()
