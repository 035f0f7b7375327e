from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from automart.auth import admin_required
from automart.extensions import db
from automart.models import CustomRequest
from automart.models.custom_request import REQUEST_PRIORITIES, REQUEST_STATUSES
from automart.utils.money import parse_amount
from automart.utils.security import sanitize_text

custom_requests_bp = Blueprint("custom_requests_bp", __name__, url_prefix="/api")


@custom_requests_bp.post("/custom-requests")
@login_required
def create_request():
    payload = request.get_json(silent=True) or {}
    title = sanitize_text(payload.get("title"))
    description = sanitize_text(payload.get("description"))
    if not title or not description:
        return jsonify({"message": "title and description are required"}), 400

    priority = str(payload.get("priority") or "medium").strip().lower()
    if priority not in REQUEST_PRIORITIES:
        return jsonify({"message": "Invalid priority"}), 400

    r = CustomRequest(
        user_id=int(current_user.id),
        title=title[:200],
        description=description,
        requirements=sanitize_text(payload.get("requirements")) or None,
        budget_range=sanitize_text(payload.get("budget_range"))[:64] or None,
        priority=priority,
        status="pending",
    )
    try:
        db.session.add(r)
        db.session.commit()
        return jsonify({"ok": True, "request": r.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("create custom request failed")
        return jsonify({"message": "Failed to create request", "error": str(e)}), 500


@custom_requests_bp.get("/custom-requests")
@login_required
def my_requests():
    rows = (
        CustomRequest.query.filter_by(user_id=int(current_user.id))
        .order_by(CustomRequest.created_at.desc(), CustomRequest.id.desc())
        .all()
    )
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@custom_requests_bp.delete("/custom-requests/<int:request_id>")
@login_required
def delete_request(request_id: int):
    r = db.session.get(CustomRequest, request_id)
    if not r or int(r.user_id) != int(current_user.id):
        return jsonify({"message": "Not found"}), 404
    db.session.delete(r)
    db.session.commit()
    return jsonify({"ok": True}), 200


@custom_requests_bp.get("/admin/custom-requests")
@admin_required
def admin_list_requests():
    q = CustomRequest.query
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(CustomRequest.created_at.desc(), CustomRequest.id.desc()).limit(500).all()
    return jsonify({"ok": True, "items": [r.to_dict() for r in rows]}), 200


@custom_requests_bp.put("/admin/custom-requests/<int:request_id>")
@admin_required
def admin_update_request(request_id: int):
    r = db.session.get(CustomRequest, request_id)
    if not r:
        return jsonify({"message": "Not found"}), 404

    payload = request.get_json(silent=True) or {}
    if "status" in payload:
        status = str(payload.get("status") or "").strip().lower()
        if status not in REQUEST_STATUSES:
            return jsonify({"message": "Invalid status"}), 400
        r.status = status
    if "admin_notes" in payload:
        r.admin_notes = sanitize_text(payload.get("admin_notes")) or None
    if "estimated_cost" in payload:
        raw = payload.get("estimated_cost")
        r.estimated_cost = parse_amount(raw) if raw not in (None, "") else None
    if "estimated_delivery" in payload:
        r.estimated_delivery = sanitize_text(payload.get("estimated_delivery"))[:64] or None
    r.updated_at = datetime.utcnow()

    try:
        db.session.commit()
        return jsonify({"ok": True, "request": r.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("update custom request %s failed", request_id)
        return jsonify({"message": "Failed to update", "error": str(e)}), 500
