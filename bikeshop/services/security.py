"""
Security helpers: input cleaning for customer records, the login throttle
and the audit trail written to ``logs/security.log``.
"""
import re
from collections import defaultdict
from datetime import datetime, timedelta
from functools import wraps

from flask import current_app, has_request_context, jsonify, request


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def is_valid_email(email):
    """True for a plausible ``name@domain.tld`` address"""
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email))


def sanitize_input(value, max_length=None):
    """Strip whitespace and control characters (newlines and tabs survive) and cut to ``max_length``."""
    if not isinstance(value, str):
        return value

    value = ''.join(c for c in value if ord(c) >= 32 or c in '\n\t\r').strip()
    if max_length and len(value) > max_length:
        value = value[:max_length]
    return value


def phone_digits(phone):
    """Digits of a stored phone number, as used in ``wa.me`` links."""
    return ''.join(ch for ch in (phone or '') if ch.isdigit())


class RateLimiter:
    """
    Sliding-window attempt counter kept in process memory.

    ``attempts`` maps an identifier (client IP) to the timestamps of its
    attempts inside the window.
    """

    def __init__(self):
        self.attempts = defaultdict(list)

    def _prune(self, identifier, window_seconds, now):
        cutoff = now - timedelta(seconds=window_seconds)
        self.attempts[identifier] = [ts for ts in self.attempts[identifier] if ts > cutoff]
        return self.attempts[identifier]

    def hit(self, identifier, max_attempts=5, window_seconds=300):
        """
        Register an attempt.

        Returns:
            (allowed, retry_after_seconds)
        """
        now = datetime.utcnow()
        recent = self._prune(identifier, window_seconds, now)

        if len(recent) >= max_attempts:
            retry_after = recent[0] + timedelta(seconds=window_seconds) - now
            return False, max(0, int(retry_after.total_seconds()))

        recent.append(now)
        return True, 0

    def reset(self, identifier):
        self.attempts.pop(identifier, None)


rate_limiter = RateLimiter()


def rate_limit(max_attempts=5, window_seconds=300, key_func=None):
    """
    Throttle a view per client.

    A blocked call answers 429 JSON with a ``Retry-After`` header and is
    written to the audit trail.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identifier = key_func() if key_func else request.remote_addr
            allowed, retry_after = rate_limiter.hit(identifier, max_attempts, window_seconds)

            if not allowed:
                log_security_event('rate_limited', ip_address=request.remote_addr, details=f.__name__)
                response = jsonify({
                    'success': False,
                    'message': 'Too many attempts. Please try again later.',
                    'retry_after': retry_after,
                })
                response.headers['Retry-After'] = str(retry_after)
                return response, 429

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def log_security_event(event_type, user_id=None, username=None, ip_address=None, details=None):
    """Write one audit entry (login, logout, permission_denied, rate_limited, ...)."""
    if not ip_address:
        ip_address = request.remote_addr if has_request_context() else 'unknown'

    audit_message = {
        'timestamp': datetime.utcnow().isoformat(),
        'event_type': event_type,
        'user_id': user_id,
        'username': username,
        'ip_address': ip_address,
        'details': details,
    }

    if hasattr(current_app, 'security_logger'):
        current_app.security_logger.info(str(audit_message))
    else:
        current_app.logger.warning(f"Security event: {audit_message}")
