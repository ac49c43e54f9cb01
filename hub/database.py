"""
Database connection and schema management.
Supports both SQLite (local development) and PostgreSQL (production on Render).
"""
import sqlite3
from contextlib import contextmanager

from hub.config import DATABASE_PATH, DATABASE_URL, USE_POSTGRES

# PostgreSQL support
if USE_POSTGRES:
    import psycopg2
    from psycopg2.extras import RealDictCursor

PH = '%s' if USE_POSTGRES else '?'

# Errors raised by the active driver
if USE_POSTGRES:
    DB_ERRORS = (sqlite3.Error, psycopg2.Error)
else:
    DB_ERRORS = (sqlite3.Error,)


class DictRow:
    """Wrapper to make psycopg2 results behave like sqlite3.Row"""
    def __init__(self, data):
        self._data = data
        self._keys = list(data.keys()) if data else []

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._data[self._keys[key]]
        return self._data[key]

    def __iter__(self):
        return iter(self._data.values())

    def keys(self):
        return self._keys


def get_db_connection():
    """Create a database connection with row factory."""
    if USE_POSTGRES:
        conn = psycopg2.connect(DATABASE_URL)
        return conn
    else:
        conn = sqlite3.connect(str(DATABASE_PATH))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


class PostgresCursorWrapper:
    """Wrapper to make PostgreSQL cursor behave like SQLite cursor"""
    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, query, params=None):
        # Convert SQLite ? placeholders to PostgreSQL %s
        query = query.replace('?', '%s')
        if query.strip().upper().startswith('PRAGMA'):
            return self
        if params:
            self._cursor.execute(query, params)
        else:
            self._cursor.execute(query)
        return self

    def executemany(self, query, params_list):
        query = query.replace('?', '%s')
        for params in params_list:
            self._cursor.execute(query, params)
        return self

    def fetchone(self):
        row = self._cursor.fetchone()
        return DictRow(row) if row else None

    def fetchall(self):
        rows = self._cursor.fetchall()
        return [DictRow(row) for row in rows]

    @property
    def rowcount(self):
        return self._cursor.rowcount


class PostgresConnection:
    """Connection facade exposing the sqlite3-style cursor()/execute() API."""
    def __init__(self, conn, cursor):
        self._conn = conn
        self._cursor = PostgresCursorWrapper(cursor)

    def cursor(self):
        return self._cursor

    def execute(self, *args, **kwargs):
        return self._cursor.execute(*args, **kwargs)

    def commit(self):
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = get_db_connection()
    try:
        if USE_POSTGRES:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            yield PostgresConnection(conn, cursor)
        else:
            yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# Table definitions: column DDL lines followed by table constraints.
# Column names are the first token of every line that is not a constraint.
TABLES = {
    "profiles": [
        "id TEXT PRIMARY KEY",
        "email TEXT UNIQUE NOT NULL",
        "first_name TEXT",
        "last_name TEXT",
        "password_hash TEXT NOT NULL",
        "is_active INTEGER DEFAULT 1",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "user_roles": [
        "id TEXT PRIMARY KEY",
        "user_id TEXT NOT NULL",
        "role TEXT NOT NULL CHECK(role IN ('employee', 'manager', 'company', 'admin'))",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE",
        "UNIQUE(user_id, role)",
    ],
    "sessions": [
        "id TEXT PRIMARY KEY",
        "session_id TEXT UNIQUE NOT NULL",
        "user_id TEXT NOT NULL",
        "active_role TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "expires_at TIMESTAMP NOT NULL",
        "FOREIGN KEY (user_id) REFERENCES profiles(id) ON DELETE CASCADE",
    ],
    "companies": [
        "id TEXT PRIMARY KEY",
        "name TEXT NOT NULL",
        "owner_id TEXT",
        "active INTEGER DEFAULT 1",
        "settings TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "employee_companies": [
        "id TEXT PRIMARY KEY",
        "employee_id TEXT NOT NULL",
        "company_id TEXT NOT NULL",
        "job_title TEXT",
        "contract_type TEXT",
        "date_started TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (employee_id) REFERENCES profiles(id) ON DELETE CASCADE",
        "FOREIGN KEY (company_id) REFERENCES companies(id) ON DELETE CASCADE",
    ],
    "manager_employees": [
        "id TEXT PRIMARY KEY",
        "manager_id TEXT NOT NULL",
        "employee_id TEXT NOT NULL",
        "company_id TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "UNIQUE(manager_id, employee_id)",
    ],
    "kpi_questions": [
        "id TEXT PRIMARY KEY",
        "company_id TEXT",
        "created_by TEXT",
        "question_text TEXT NOT NULL",
        "question_type TEXT DEFAULT 'scale'",
        "week_number INTEGER CHECK(week_number IS NULL OR (week_number BETWEEN 1 AND 13))",
        "quarter TEXT",
        "year INTEGER",
        "active INTEGER DEFAULT 1",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "employee_kpi_surveys": [
        "id TEXT PRIMARY KEY",
        "manager_id TEXT NOT NULL",
        "employee_id TEXT NOT NULL",
        "employee_name TEXT NOT NULL",
        "mood_rating INTEGER NOT NULL",
        "kpi_score INTEGER NOT NULL",
        "kpi_feedback TEXT",
        "kpi_question_id TEXT",
        "kpi_question_text TEXT",
        "week_start_date TEXT NOT NULL",
        "submitted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "achievements": [
        "id TEXT PRIMARY KEY",
        "category TEXT NOT NULL",
        "title TEXT NOT NULL",
        "description TEXT",
        "icon TEXT",
        "points INTEGER NOT NULL DEFAULT 0",
        "required_count INTEGER DEFAULT 1",
        "prerequisite_id TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (prerequisite_id) REFERENCES achievements(id) ON DELETE SET NULL",
    ],
    "user_achievements": [
        "id TEXT PRIMARY KEY",
        "user_id TEXT NOT NULL",
        "achievement_id TEXT NOT NULL",
        "progress INTEGER DEFAULT 0",
        "unlocked INTEGER DEFAULT 0",
        "unlocked_at TIMESTAMP",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (achievement_id) REFERENCES achievements(id) ON DELETE CASCADE",
        "UNIQUE(user_id, achievement_id)",
    ],
    "rewards": [
        "id TEXT PRIMARY KEY",
        "company_id TEXT NOT NULL",
        "title TEXT NOT NULL",
        "description TEXT",
        "category TEXT",
        "image_url TEXT",
        "points_cost INTEGER NOT NULL",
        "stock_quantity INTEGER",
        "active INTEGER DEFAULT 1",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "reward_redemptions": [
        "id TEXT PRIMARY KEY",
        "user_id TEXT NOT NULL",
        "reward_id TEXT NOT NULL",
        "points_spent INTEGER NOT NULL",
        "status TEXT DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'delivered', 'cancelled'))",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "delivered_at TIMESTAMP",
        "FOREIGN KEY (reward_id) REFERENCES rewards(id)",
    ],
    "surveys": [
        "id TEXT PRIMARY KEY",
        "company_id TEXT NOT NULL",
        "created_by TEXT NOT NULL",
        "title TEXT NOT NULL",
        "description TEXT",
        "status TEXT DEFAULT 'draft' CHECK(status IN ('draft', 'active', 'closed'))",
        "expires_at TIMESTAMP",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "survey_questions": [
        "id TEXT PRIMARY KEY",
        "survey_id TEXT NOT NULL",
        "question_text TEXT NOT NULL",
        "question_type TEXT DEFAULT 'scale'",
        "options TEXT",
        "order_index INTEGER DEFAULT 0",
        "required INTEGER DEFAULT 1",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (survey_id) REFERENCES surveys(id) ON DELETE CASCADE",
    ],
    "survey_responses": [
        "id TEXT PRIMARY KEY",
        "survey_id TEXT NOT NULL",
        "question_id TEXT NOT NULL",
        "user_id TEXT NOT NULL",
        "response_value INTEGER",
        "response_text TEXT",
        "submitted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "FOREIGN KEY (survey_id) REFERENCES surveys(id) ON DELETE CASCADE",
        "FOREIGN KEY (question_id) REFERENCES survey_questions(id) ON DELETE CASCADE",
    ],
    "employee_requests": [
        "id TEXT PRIMARY KEY",
        "user_id TEXT NOT NULL",
        "request_type TEXT NOT NULL",
        "title TEXT NOT NULL",
        "description TEXT",
        "start_date TEXT",
        "end_date TEXT",
        "status TEXT DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'rejected'))",
        "reviewed_by TEXT",
        "reviewed_at TIMESTAMP",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "company_resources": [
        "id TEXT PRIMARY KEY",
        "company_id TEXT NOT NULL",
        "uploaded_by TEXT NOT NULL",
        "file_name TEXT NOT NULL",
        "file_path TEXT NOT NULL",
        "file_size INTEGER NOT NULL",
        "file_type TEXT NOT NULL",
        "category TEXT",
        "description TEXT",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
    "notifications": [
        "id TEXT PRIMARY KEY",
        "user_id TEXT NOT NULL",
        "title TEXT NOT NULL",
        "message TEXT NOT NULL",
        "type TEXT DEFAULT 'info'",
        "read INTEGER DEFAULT 0",
        "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
    ],
}

_CONSTRAINT_PREFIXES = ("FOREIGN KEY", "UNIQUE", "PRIMARY KEY", "CHECK")


def table_columns(table: str) -> list:
    """Column names declared for a table (empty list for unknown tables)."""
    return [
        line.split()[0]
        for line in TABLES.get(table, [])
        if not line.upper().startswith(_CONSTRAINT_PREFIXES)
    ]


def init_database():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()
        for table, lines in TABLES.items():
            body = ",\n                ".join(lines)
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                {body}
                )
            """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_user_roles_user ON user_roles(user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_user_achievements_user ON user_achievements(user_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_redemptions_user ON reward_redemptions(user_id)")
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_kpi_questions_slot
            ON kpi_questions(company_id, quarter, year, week_number)
        """)


def reset_database():
    """Drop all tables and recreate them. Local development only."""
    with get_db() as conn:
        cursor = conn.cursor()
        for table in reversed(list(TABLES)):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")
    init_database()
