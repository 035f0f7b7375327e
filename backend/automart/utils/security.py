"""Input validation, sanitisation and a small in-memory rate limiter."""

from __future__ import annotations

import hmac
import math
import re
import secrets
import threading
import time
from typing import Callable, Iterable

from markupsafe import Markup


class ValidationPatterns:
    EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    PHONE = re.compile(r"^\+?[\d\s\-\(\)]{10,}$")
    PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
    NAME = re.compile(r"^[a-zA-Z\s'-]{2,50}$")
    COMPANY = re.compile(r"^[a-zA-Z0-9\s&.,'-]{2,100}$")
    URL = re.compile(
        r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
    )
    SOCIAL_HANDLE = re.compile(r"^@?[a-zA-Z0-9_]{1,30}$")


class SecurityError(Exception):
    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code


class RateLimitedError(SecurityError):
    def __init__(self, message: str, remaining_seconds: float):
        super().__init__(message, "RATE_LIMITED")
        self.remaining_seconds = max(0.0, float(remaining_seconds))

    @property
    def remaining_minutes(self) -> int:
        return max(1, math.ceil(self.remaining_seconds / 60))


# -------------------------
# Sanitisation
# -------------------------

ALLOWED_HTML_TAGS = ("p", "br", "strong", "em", "ul", "ol", "li")

_DANGEROUS_BLOCKS = re.compile(r"<(script|style|iframe|object|embed|svg)[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"</?\s*([a-zA-Z][a-zA-Z0-9]*)[^>]*?(/?)>")


def sanitize_text(value) -> str:
    if not isinstance(value, str):
        return ""
    stripped = _DANGEROUS_BLOCKS.sub("", value.strip())
    return Markup(stripped).striptags()


def sanitize_html(value) -> str:
    if not isinstance(value, str):
        return ""
    cleaned = _DANGEROUS_BLOCKS.sub("", value.strip())

    def _keep_allowed(m: re.Match) -> str:
        tag = m.group(1).lower()
        if tag not in ALLOWED_HTML_TAGS:
            return ""
        closing = m.group(0).startswith("</")
        if closing:
            return f"</{tag}>"
        return f"<{tag}>"

    return _TAG.sub(_keep_allowed, cleaned)


def sanitize_email(value) -> str:
    sanitized = sanitize_text(value).lower()
    if not ValidationPatterns.EMAIL.match(sanitized):
        raise SecurityError("Invalid email format", "INVALID_EMAIL")
    return sanitized


def sanitize_phone(value) -> str:
    sanitized = re.sub(r"[^\d+\-() ]", "", sanitize_text(value))
    if not ValidationPatterns.PHONE.match(sanitized):
        raise SecurityError("Invalid phone format", "INVALID_PHONE")
    return sanitized


def sanitize_url(value) -> str:
    sanitized = sanitize_text(value)
    if sanitized and not ValidationPatterns.URL.match(sanitized):
        raise SecurityError("Invalid URL format", "INVALID_URL")
    return sanitized


def sanitize_social_handle(value) -> str:
    sanitized = sanitize_text(value)
    if sanitized and not ValidationPatterns.SOCIAL_HANDLE.match(sanitized):
        raise SecurityError("Invalid social handle format", "INVALID_SOCIAL_HANDLE")
    return sanitized


# -------------------------
# Validation
# -------------------------

COMMON_PASSWORDS = ("password", "123456", "qwerty", "admin", "letmein")


def validate_password(password: str) -> tuple[bool, list[str]]:
    errors: list[str] = []
    password = password or ""

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not re.search(r"[@$!%*?&]", password):
        errors.append("Password must contain at least one special character (@$!%*?&)")

    lowered = password.lower()
    if any(common in lowered for common in COMMON_PASSWORDS):
        errors.append("Password contains common words or patterns")

    return len(errors) == 0, errors


def validate_form_input(field: str, value, required: bool = True) -> str | None:
    """Return an error message for one form field, or None when it is valid."""
    text = value if isinstance(value, str) else ("" if value is None else str(value))
    if required and not text.strip():
        return f"{field} is required"
    if not text:
        return None

    key = field.lower()
    try:
        if key in ("email", "client_email"):
            sanitize_email(text)
        elif key in ("phone", "client_phone"):
            sanitize_phone(text)
        elif key in ("name", "full_name", "fullname", "client_name"):
            if not ValidationPatterns.NAME.match(text):
                return "Name contains invalid characters"
        elif key in ("company", "company_name"):
            if not ValidationPatterns.COMPANY.match(text):
                return "Company name contains invalid characters"
        elif key in ("website_url", "url", "avatar_url"):
            sanitize_url(text)
        elif key in ("instagram_handle", "twitter_handle", "linkedin_profile", "facebook_page"):
            sanitize_social_handle(text)
        elif len(text) > 1000:
            return f"{field} is too long (maximum 1000 characters)"
    except SecurityError as e:
        return e.message
    return None


def validate_fields(data: dict, required: Iterable[str] = (), optional: Iterable[str] = ()) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field in required:
        msg = validate_form_input(field, data.get(field), required=True)
        if msg:
            errors[field] = msg
    for field in optional:
        msg = validate_form_input(field, data.get(field), required=False)
        if msg:
            errors[field] = msg
    return errors


# -------------------------
# Rate limiting
# -------------------------

class RateLimiter:
    """Fixed-window attempt counter keyed by an arbitrary identifier.

    State lives in process memory and is lost on restart.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_exceeded: Callable[[str, int], None] | None = None,
    ):
        self.max_attempts = int(max_attempts)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._on_exceeded = on_exceeded
        self._attempts: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _live_record(self, identifier: str):
        record = self._attempts.get(identifier)
        if record and self._clock() > record[1]:
            del self._attempts[identifier]
            return None
        return record

    def is_blocked(self, identifier: str) -> bool:
        with self._lock:
            record = self._live_record(identifier)
            return bool(record) and record[0] >= self.max_attempts

    def record_attempt(self, identifier: str) -> bool:
        with self._lock:
            record = self._live_record(identifier)
            if not record:
                self._attempts[identifier] = (1, self._clock() + self.window_seconds)
                count = 1
            else:
                count = record[0] + 1
                self._attempts[identifier] = (count, record[1])
        blocked = count >= self.max_attempts
        if blocked and count == self.max_attempts and self._on_exceeded:
            self._on_exceeded(identifier, count)
        return blocked

    def attempts(self, identifier: str) -> int:
        with self._lock:
            record = self._live_record(identifier)
            return record[0] if record else 0

    def remaining_seconds(self, identifier: str) -> float:
        with self._lock:
            record = self._live_record(identifier)
            if not record:
                return 0.0
            return max(0.0, record[1] - self._clock())

    def check(self, identifier: str, message: str = "Too many attempts") -> None:
        if self.is_blocked(identifier):
            remaining = self.remaining_seconds(identifier)
            minutes = max(1, math.ceil(remaining / 60))
            raise RateLimitedError(f"{message}. Try again in {minutes} minutes.", remaining)

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier, None)


# -------------------------
# Headers / CSRF
# -------------------------

def security_headers() -> dict[str, str]:
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline';",
    }


def generate_csrf_token() -> str:
    return secrets.token_hex(32)


def validate_csrf_token(token: str, stored_token: str) -> bool:
    if not token or not stored_token or len(token) != len(stored_token):
        return False
    return hmac.compare_digest(token, stored_token)
