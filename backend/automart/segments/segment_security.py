from __future__ import annotations

import json

from flask import Blueprint, current_app, jsonify, request

from automart.auth import admin_required
from automart.extensions import db
from automart.models import SecurityLog
from automart.utils.security_log import alert_level, calculate_risk_score

security_bp = Blueprint("security_bp", __name__, url_prefix="/api")


def _client_ip() -> str:
    forwarded = (request.headers.get("X-Forwarded-For") or "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr or "unknown"


@security_bp.post("/security-log")
def ingest_security_event():
    envelope = request.get_json(silent=True) or {}
    event = (envelope.get("event") or "").strip() if isinstance(envelope.get("event"), str) else ""
    timestamp = envelope.get("timestamp")
    if not event or not timestamp:
        return jsonify({"message": "Missing required fields"}), 400

    details = envelope.get("details") if isinstance(envelope.get("details"), dict) else {}
    score = calculate_risk_score(event, details)
    level = alert_level(score)
    ip = _client_ip()

    row = SecurityLog(
        event=event[:64],
        event_timestamp=str(timestamp)[:64],
        details=json.dumps(details, default=str),
        user_agent=str(envelope.get("user_agent") or "")[:500],
        url=str(envelope.get("url") or "")[:500],
        session_id=str(envelope.get("session_id") or "anonymous")[:128],
        client_ip=ip[:64],
        risk_score=score,
        alert_level=level,
    )
    try:
        db.session.add(row)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("failed to store security event %s", event)
        return jsonify({"message": "Failed to log security event", "error": str(e)}), 500

    if level == "high":
        current_app.logger.warning("HIGH RISK SECURITY EVENT %s from %s (score %s): %s", event, ip, score, details)

    return jsonify({"ok": True, "risk_score": score, "alert_level": level}), 200


@security_bp.get("/admin/security-logs")
@admin_required
def list_security_logs():
    q = SecurityLog.query
    level = (request.args.get("alert_level") or "").strip().lower()
    if level:
        q = q.filter_by(alert_level=level)
    rows = q.order_by(SecurityLog.created_at.desc(), SecurityLog.id.desc()).limit(200).all()
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200
