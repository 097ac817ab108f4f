"""Helper functions"""
import secrets
from datetime import datetime
from flask import jsonify, request
from flask_login import current_user
from coopledger import db
from coopledger.models import ActivityLog

AS_OF_FORMATS = ('%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d')

def parse_as_of(value):
    """Parse an ``as_of`` query value into a datetime; None when absent.

    Raises ValueError for anything that is not an ISO date or date-time.
    """
    if not value:
        return None
    for fmt in AS_OF_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f'Invalid as_of value: {value}')

def request_now():
    """Evaluation clock for schedule views: ``?as_of=`` or the current local time"""
    return parse_as_of(request.args.get('as_of')) or datetime.now()

def form_error_response(form, status=400):
    return jsonify({'error': form.errors}), status

def error_response(message, status=400):
    return jsonify({'error': message}), status

def log_activity(action, description, entity_type=None, entity_id=None):
    """Add an audit row for the current user; committed with the caller's transaction"""
    log = ActivityLog(
        user_id=current_user.id if current_user.is_authenticated else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        ip_address=request.remote_addr,
        user_agent=request.user_agent.string
    )
    db.session.add(log)
    return log

def format_currency(amount, currency_symbol='₱'):
    """Format amount as currency"""
    if amount is None:
        return f"{currency_symbol} 0.00"
    return f"{currency_symbol} {amount:,.2f}"

def generate_password():
    """Random 12-character password for resets"""
    return secrets.token_urlsafe(9)
