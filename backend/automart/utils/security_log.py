from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import requests

RISK_SCORES = {
    "SIGNIN_FAILED": 3,
    "SIGNUP_FAILED": 2,
    "RATE_LIMIT_EXCEEDED": 8,
    "MULTIPLE_FAILED_ATTEMPTS": 9,
    "SUSPICIOUS_ACTIVITY": 7,
    "UNAUTHORIZED_ACCESS": 10,
    "DATA_BREACH_ATTEMPT": 10,
}

HIGH_RISK_EVENTS = ("RATE_LIMIT_EXCEEDED", "MULTIPLE_FAILED_ATTEMPTS", "SUSPICIOUS_ACTIVITY")


def calculate_risk_score(event: str, details: dict | None) -> int:
    score = RISK_SCORES.get(event or "", 1)
    details = details or {}

    try:
        attempts = int(details.get("attempts") or 0)
    except (TypeError, ValueError):
        attempts = 0
    if attempts > 3:
        score += min(attempts - 3, 5)

    if details.get("newLocation"):
        score += 2

    return min(score, 10)


def alert_level(score: int) -> str:
    if score >= 8:
        return "high"
    if score >= 5:
        return "medium"
    return "low"


def build_envelope(event: str, details: dict | None, *, user_agent: str = "", url: str = "", session_id: str = "") -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "details": dict(details or {}),
        "user_agent": user_agent or "",
        "url": url or "",
        "session_id": session_id or "anonymous",
    }


class SecurityBeacon:
    """Best-effort forwarder for security events. Never raises."""

    def __init__(self, url: str = "", timeout: float = 3.0, logger: logging.Logger | None = None):
        self.url = (url or "").strip()
        self.timeout = float(timeout)
        self.logger = logger or logging.getLogger("automart.security")

    def emit(self, event: str, details: dict | None = None, **context: Any) -> dict:
        envelope = build_envelope(event, details, **context)
        self.logger.warning("Security event %s: %s", event, envelope["details"])

        if not self.url:
            return envelope

        try:
            resp = requests.post(self.url, json=envelope, timeout=self.timeout)
            if resp.status_code >= 400:
                self.logger.warning("Security log endpoint returned %s for %s", resp.status_code, event)
        except requests.RequestException as e:
            self.logger.warning("Failed to log security event %s: %s", event, e)
        return envelope
