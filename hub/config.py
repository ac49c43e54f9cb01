"""
Application configuration settings.
"""
import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if it exists (for local development)
env_file = BASE_DIR / ".env"
if env_file.exists():
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip())

# Database - Support both SQLite (local) and PostgreSQL (production)
DATABASE_URL = os.getenv("DATABASE_URL", "")
DATABASE_PATH = BASE_DIR / "hub.db"

# Determine if using PostgreSQL
USE_POSTGRES = DATABASE_URL.startswith("postgres")

# Render.com uses postgres:// but psycopg2 needs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-this-secret-key-in-production")
SESSION_COOKIE_NAME = "hub_session"
SESSION_MAX_AGE = 60 * 60 * 24  # 24 hours in seconds

# Development server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
RELOAD = os.getenv("RELOAD", "1") == "1"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# File storage for company resource documents
STORAGE_DIR = Path(os.getenv("STORAGE_DIR", str(BASE_DIR / "storage")))
RESOURCES_BUCKET = "company-resources"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Default admin account created by init_db
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@hub.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

# Quarter schedule
WEEKS_PER_QUARTER = 13
QUARTERS = ["Q1", "Q2", "Q3", "Q4"]

KPI_QUESTION_TYPES = ["scale", "yesno", "rating"]

# Seeded by the initialize_default_kpi_questions procedure, one per week
DEFAULT_KPI_QUESTIONS = [
    ("How clear were your goals this week?", "scale"),
    ("Did you have the resources you needed to do your job?", "yesno"),
    ("How would you rate your workload this week?", "rating"),
    ("How well did your team collaborate this week?", "scale"),
    ("Did you receive useful feedback from your manager?", "yesno"),
    ("How motivated did you feel this week?", "rating"),
    ("How satisfied are you with your progress on key tasks?", "scale"),
    ("Did you learn something new this week?", "yesno"),
    ("How would you rate communication within the company?", "rating"),
    ("How well are you balancing work and personal life?", "scale"),
    ("Did you feel recognised for your contributions?", "yesno"),
    ("How confident are you about hitting this quarter's targets?", "rating"),
    ("How would you rate this quarter overall?", "scale"),
]

# Points -> level tiers: (exclusive upper bound, tier name), ordered ascending
LEVEL_THRESHOLDS = [
    (100, "Newcomer"),
    (300, "Contributor"),
    (600, "Achiever"),
    (1000, "Expert"),
    (1500, "Champion"),
]
TOP_LEVEL_NAME = "Legend"

ACHIEVEMENT_CATEGORIES = [
    "learning",
    "performance",
    "collaboration",
    "innovation",
    "leadership",
    "milestone",
]

# Status options
SURVEY_STATUS_OPTIONS = ["draft", "active", "closed"]
REQUEST_STATUS_OPTIONS = ["pending", "approved", "rejected"]
REDEMPTION_STATUS_OPTIONS = ["pending", "approved", "delivered", "cancelled"]

REQUEST_TYPE_OPTIONS = [
    "time_off",
    "equipment",
    "training",
    "schedule_change",
    "other",
]

RESOURCE_CATEGORY_OPTIONS = [
    "policy",
    "handbook",
    "training",
    "template",
    "general",
]

CONTRACT_TYPE_OPTIONS = [
    "full_time",
    "part_time",
    "contractor",
    "intern",
]

# Manager weekly pulse: mood scale shown as emojis
MOOD_OPTIONS = [
    (1, "Needs Support"),
    (2, "On Track"),
    (3, "Excelling"),
]
