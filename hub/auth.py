"""
Authentication utilities: password hashing, session management, and auth helpers.
"""
import logging
import secrets
import string
import uuid
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from itsdangerous import BadSignature, URLSafeTimedSerializer

from hub.config import SECRET_KEY, SESSION_MAX_AGE
from hub.database import get_db, PH
from hub.roles import ROLE_ADMIN, ROLE_EMPLOYEE, get_role_display_name, sort_roles

logger = logging.getLogger(__name__)


def generate_password(length: int = 12) -> str:
    """Generate a random password."""
    alphabet = string.ascii_letters + string.digits + "!@#$%"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        password_bytes = password.encode('utf-8')
        hash_bytes = password_hash.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except (ValueError, TypeError, AttributeError):
        return False


def generate_session_id() -> str:
    """Generate a unique session ID."""
    return secrets.token_urlsafe(32)


def _fetch_roles(cursor, user_id: str) -> list:
    cursor.execute(f"SELECT role FROM user_roles WHERE user_id = {PH}", (user_id,))
    return sort_roles([row['role'] for row in cursor.fetchall()])


def create_user(email: str, password: str, first_name: str = None, last_name: str = None,
                roles: list = None) -> str:
    """Create a profile with a hashed password and its roles; returns the user id."""
    user_id = str(uuid.uuid4())
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"""INSERT INTO profiles (id, email, first_name, last_name, password_hash, is_active)
                VALUES ({PH}, {PH}, {PH}, {PH}, {PH}, 1)""",
            (user_id, email.lower().strip(), first_name, last_name, hash_password(password))
        )
        for role in roles or [ROLE_EMPLOYEE]:
            cursor.execute(
                f"INSERT INTO user_roles (id, user_id, role) VALUES ({PH}, {PH}, {PH})",
                (str(uuid.uuid4()), user_id, role)
            )
    logger.info("Created user %s with roles %s", email, roles or [ROLE_EMPLOYEE])
    return user_id


def email_exists(email: str) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(f"SELECT id FROM profiles WHERE email = {PH}", (email.lower().strip(),))
        return cursor.fetchone() is not None


def create_session(user_id: str, active_role: str = None) -> str:
    """Create a new session for a user and return the session ID."""
    session_id = generate_session_id()
    expires_at = datetime.now() + timedelta(seconds=SESSION_MAX_AGE)

    with get_db() as conn:
        cursor = conn.cursor()
        # Remove any existing sessions for this user
        cursor.execute(f"DELETE FROM sessions WHERE user_id = {PH}", (user_id,))
        cursor.execute(
            f"""INSERT INTO sessions (id, session_id, user_id, active_role, expires_at)
                VALUES ({PH}, {PH}, {PH}, {PH}, {PH})""",
            (str(uuid.uuid4()), session_id, user_id, active_role,
             expires_at.isoformat(sep=' ', timespec='seconds'))
        )

    return session_id


def validate_session(session_id: str) -> Optional[dict]:
    """
    Validate a session ID and return user info if valid.
    Returns None if session is invalid or expired.
    """
    if not session_id:
        return None

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"""SELECT s.user_id, s.expires_at, s.active_role, p.email, p.first_name, p.last_name
                FROM sessions s
                JOIN profiles p ON s.user_id = p.id
                WHERE s.session_id = {PH} AND p.is_active = 1""",
            (session_id,)
        )
        row = cursor.fetchone()

        if not row:
            return None

        # Check expiration - PostgreSQL returns datetime objects, SQLite returns strings
        expires_at = row['expires_at']
        if isinstance(expires_at, str):
            expires_at = datetime.fromisoformat(expires_at)
        if datetime.now() > expires_at:
            # Session expired, delete it
            cursor.execute(f"DELETE FROM sessions WHERE session_id = {PH}", (session_id,))
            return None

        roles = _fetch_roles(cursor, row['user_id'])
        active_role = row['active_role'] if row['active_role'] in roles else (roles[0] if roles else None)
        first_name = row['first_name'] or ''
        last_name = row['last_name'] or ''

        return {
            'id': row['user_id'],
            'email': row['email'],
            'first_name': row['first_name'],
            'last_name': row['last_name'],
            'name': f"{first_name} {last_name}".strip() or row['email'],
            'roles': roles,
            'active_role': active_role,
            'role_display': ", ".join(get_role_display_name(r) for r in roles),
            'is_admin': ROLE_ADMIN in roles,
        }


def delete_session(session_id: str) -> None:
    """Delete a session (sign out)."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(f"DELETE FROM sessions WHERE session_id = {PH}", (session_id,))


def authenticate_user(email: str, password: str) -> Optional[dict]:
    """
    Authenticate a user by email and password.
    Returns profile info and roles if successful, None otherwise.
    """
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"""SELECT id, email, first_name, last_name, password_hash, is_active
                FROM profiles WHERE email = {PH}""",
            (email.lower().strip(),)
        )
        row = cursor.fetchone()

        if not row:
            return None

        if not row['is_active']:
            return None

        if not verify_password(password, row['password_hash']):
            return None

        return {
            'id': row['id'],
            'email': row['email'],
            'first_name': row['first_name'],
            'last_name': row['last_name'],
            'roles': _fetch_roles(cursor, row['id']),
        }


def get_serializer():
    """Get the URL-safe serializer for session cookies."""
    return URLSafeTimedSerializer(SECRET_KEY)


def serialize_session(session_id: str) -> str:
    """Serialize session ID for cookie storage."""
    serializer = get_serializer()
    return serializer.dumps(session_id)


def deserialize_session(token: str) -> Optional[str]:
    """Deserialize session ID from cookie."""
    try:
        serializer = get_serializer()
        return serializer.loads(token, max_age=SESSION_MAX_AGE)
    except BadSignature:
        return None
