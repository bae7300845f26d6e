"""
Security Utilities for Public APIs

Provides rate limiting, honeypot validation, and input validation
for the booking endpoints that allow guest access.
"""

import re
import frappe
from frappe import _
from frappe.utils import cint

from salon_scheduling.salon_scheduling.scheduling.exceptions import SchedulingPreconditionError
from salon_scheduling.salon_scheduling.scheduling.timeutils import time_to_minutes


MAX_DURATION_MINUTES = 24 * 60


# ===================
# Rate Limiting
# ===================

def check_rate_limit(action: str, limit: int = 10, seconds: int = 60) -> None:
    """
    Check rate limit for an action by IP address.

    Uses Frappe's cache (Redis) to track request counts per IP.

    Args:
        action: Identifier for the action being rate limited
        limit: Maximum number of requests allowed
        seconds: Time window in seconds

    Raises:
        frappe.TooManyRequestsError: If rate limit exceeded
    """
    ip = get_client_ip()
    cache_key = f"rate_limit:salon_scheduling:{action}:{ip}"

    current = cint(frappe.cache.get_value(cache_key) or 0)

    if current >= limit:
        frappe.log_error(
            title=_("Rate Limit Exceeded"),
            message=f"IP: {ip}, Action: {action}, Limit: {limit}/{seconds}s"
        )
        frappe.throw(
            _("Too many requests. Please wait a moment and try again."),
            frappe.TooManyRequestsError
        )

    frappe.cache.set_value(cache_key, current + 1, expires_in_sec=seconds)


def get_client_ip() -> str:
    """
    Get the real client IP address, handling proxies.

    Returns:
        str: Client IP address
    """
    if not getattr(frappe.local, "request", None):
        return 'unknown'

    # X-Forwarded-For can contain multiple IPs, take the first one
    forwarded_for = frappe.request.headers.get('X-Forwarded-For', '')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()

    real_ip = frappe.request.headers.get('X-Real-IP', '')
    if real_ip:
        return real_ip.strip()

    return frappe.request.remote_addr or 'unknown'


# ===================
# Honeypot Validation
# ===================

def check_honeypot(honeypot_value: str = None) -> None:
    """
    Check honeypot field to detect bot submissions.

    Raises:
        frappe.ValidationError: If honeypot is filled (bot detected)
    """
    if honeypot_value:
        ip = get_client_ip()
        frappe.log_error(
            title=_("Bot Detected (Honeypot)"),
            message=f"IP: {ip}, Honeypot value: {honeypot_value[:100]}"
        )
        # Generic error to not reveal detection
        frappe.throw(_("Invalid request"), frappe.ValidationError)


# ===================
# Input Validation
# ===================

def sanitize_string(value: str, max_length: int = 500) -> str:
    """
    General string sanitization.

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        str: Sanitized string, or None for empty input
    """
    if not value:
        return None

    value = str(value).strip()

    if len(value) > max_length:
        value = value[:max_length]

    # Remove null bytes and other control characters
    value = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', value)

    return value or None


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """
    Validate date string format (YYYY-MM-DD).

    Raises:
        frappe.ValidationError: If date format is invalid
    """
    if not date_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    date_str = str(date_str).strip()

    if not re.match(r'^\d{4}-\d{2}-\d{2}$', date_str):
        frappe.throw(_(f"Invalid {field_name} format. Use YYYY-MM-DD"), frappe.ValidationError)

    return date_str


def validate_time_string(time_str: str, field_name: str = "time") -> str:
    """
    Validate a wall-clock time (HH:MM, 24h).

    Returns:
        str: Validated time string

    Raises:
        frappe.ValidationError: If time format is invalid
    """
    if not time_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    time_str = str(time_str).strip()

    try:
        time_to_minutes(time_str)
    except SchedulingPreconditionError:
        frappe.throw(_(f"Invalid {field_name} format. Use HH:MM"), frappe.ValidationError)

    return time_str


def validate_duration(duration, field_name: str = "duration") -> int:
    """
    Validate a duration in minutes (positive, at most one day).

    Returns:
        int: Duration in minutes

    Raises:
        frappe.ValidationError: If the duration is missing or out of range
    """
    if duration in (None, ""):
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    if not re.match(r'^\d+$', str(duration).strip()):
        frappe.throw(_(f"Invalid {field_name}. Use whole minutes"), frappe.ValidationError)

    minutes = cint(duration)
    if minutes <= 0 or minutes > MAX_DURATION_MINUTES:
        frappe.throw(_(f"{field_name} must be between 1 and {MAX_DURATION_MINUTES} minutes"), frappe.ValidationError)

    return minutes


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name (ID).

    Raises:
        frappe.ValidationError: If name is invalid
    """
    if not name:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > 140:
        frappe.throw(_(f"{field_name} is too long"), frappe.ValidationError)

    # Block obvious injection attempts
    dangerous_patterns = [
        r'<script', r'javascript:', r'onclick', r'onerror',
        r'SELECT\s+', r'INSERT\s+', r'UPDATE\s+', r'DELETE\s+',
        r'DROP\s+', r'UNION\s+', r'--', r';'
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)

    return name


def validate_optional_docname(name: str, field_name: str = "name") -> str:
    """validate_docname for optional parameters: empty -> None."""
    if not name:
        return None
    return validate_docname(name, field_name)
