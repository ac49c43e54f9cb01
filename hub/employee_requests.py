"""
Employee requests (time off, equipment, training...) and their review.
"""
import logging
from datetime import datetime

from hub.config import REQUEST_TYPE_OPTIONS

logger = logging.getLogger(__name__)

REVIEW_STATUSES = ('approved', 'rejected')


def submit_request(store, user_id: str, request_type: str, title: str, description: str = None,
                   start_date: str = None, end_date: str = None) -> dict:
    if request_type not in REQUEST_TYPE_OPTIONS:
        raise ValueError("Invalid request type")
    if not title or not title.strip():
        raise ValueError("Title is required")
    if start_date and end_date and end_date < start_date:
        raise ValueError("End date cannot be before start date")

    return store.insert('employee_requests', {
        'user_id': user_id,
        'request_type': request_type,
        'title': title.strip(),
        'description': description or None,
        'start_date': start_date or None,
        'end_date': end_date or None,
        'status': 'pending',
    })[0]


def review_request(store, reviewer_id: str, request_id: str, status: str, allowed_user_ids) -> dict:
    """Approve or reject a pending request from one of allowed_user_ids and notify its author."""
    if status not in REVIEW_STATUSES:
        raise ValueError("Invalid status")
    row = store.get('employee_requests', request_id)
    if not row or row['user_id'] not in set(allowed_user_ids):
        raise ValueError("Request not found")
    if row['status'] != 'pending':
        raise ValueError("Request has already been reviewed")

    values = {
        'status': status,
        'reviewed_by': reviewer_id,
        'reviewed_at': datetime.now().isoformat(timespec='seconds'),
    }
    store.update('employee_requests', values, {'id': request_id})
    store.insert('notifications', {
        'user_id': row['user_id'],
        'title': f"Request {status}",
        'message': f"Your request \"{row['title']}\" was {status}.",
        'type': 'request',
    })
    logger.info("Request %s %s by %s", request_id, status, reviewer_id)
    row.update(values)
    return row
