"""
Shared Jinja2 templates object for every router, with the display filters
and globals the portal pages rely on.
"""
import json
from datetime import date, datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

from hub.engagement import display_name
from hub.roles import ROLE_PORTALS, get_role_display_name, nav_items_for

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=BASE_DIR / "templates")


# SQLite hands back strings, PostgreSQL datetime objects
def format_date(value, format_str='%Y-%m-%d'):
    if value is None:
        return '-'
    if isinstance(value, (datetime, date)):
        return value.strftime(format_str)
    return str(value)[:10]


def format_datetime(value, format_str='%Y-%m-%d %H:%M:%S'):
    if value is None:
        return '-'
    if isinstance(value, datetime):
        return value.strftime(format_str)
    return str(value)[:19]


def score(value, digits=1):
    """Average score with fixed decimals; '-' when nothing was scored."""
    if not isinstance(value, (int, float)):
        return '-'
    return f"{value:.{digits}f}"


def percent(value):
    """0-100 float as a whole percentage."""
    return f"{round(value or 0)}%"


def file_size(num_bytes):
    if num_bytes is None:
        return '-'
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def json_serial(obj):
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


def safe_tojson(value):
    """json.dumps that accepts date and datetime values."""
    return json.dumps(value, default=json_serial)


templates.env.filters.update({
    'format_date': format_date,
    'format_datetime': format_datetime,
    'score': score,
    'percent': percent,
    'file_size': file_size,
    'safe_tojson': safe_tojson,
    'full_name': display_name,
    'role_name': get_role_display_name,
})
templates.env.globals.update({
    'nav_items_for': nav_items_for,
    'role_portals': ROLE_PORTALS,
})
