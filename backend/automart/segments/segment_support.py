from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from automart.auth import admin_required
from automart.extensions import db
from automart.models import SupportMessage, SupportTicket
from automart.models.support import TICKET_CATEGORIES, TICKET_PRIORITIES, TICKET_STATUSES
from automart.utils.security import sanitize_text

support_bp = Blueprint("support_bp", __name__, url_prefix="/api")


def _thread(t: SupportTicket) -> dict:
    messages = (
        SupportMessage.query.filter_by(ticket_id=t.id)
        .order_by(SupportMessage.created_at.asc(), SupportMessage.id.asc())
        .all()
    )
    return {"ok": True, "ticket": t.to_dict(), "messages": [m.to_dict() for m in messages]}


def _post_message(t: SupportTicket, text: str, is_admin: bool):
    msg = SupportMessage(ticket_id=t.id, user_id=int(current_user.id), is_admin=is_admin, message=text)
    t.updated_at = datetime.utcnow()
    try:
        db.session.add(msg)
        db.session.commit()
        return jsonify({"ok": True, "message": msg.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("support message on ticket %s failed", t.id)
        return jsonify({"message": "Failed to send message", "error": str(e)}), 500


@support_bp.get("/support/tickets")
@login_required
def list_tickets():
    rows = (
        SupportTicket.query.filter_by(user_id=int(current_user.id))
        .order_by(SupportTicket.created_at.desc())
        .limit(200)
        .all()
    )
    return jsonify({"ok": True, "items": [t.to_dict() for t in rows]}), 200


@support_bp.post("/support/tickets")
@login_required
def create_ticket():
    payload = request.get_json(silent=True) or {}
    subject = sanitize_text(payload.get("subject"))
    description = sanitize_text(payload.get("description"))
    category = str(payload.get("category") or "").strip().lower()
    priority = str(payload.get("priority") or "medium").strip().lower()

    if not subject or not description or not category:
        return jsonify({"message": "subject, description and category are required"}), 400
    if category not in TICKET_CATEGORIES:
        return jsonify({"message": "Invalid category"}), 400
    if priority not in TICKET_PRIORITIES:
        return jsonify({"message": "Invalid priority"}), 400

    t = SupportTicket(
        user_id=int(current_user.id),
        subject=subject[:140],
        description=description,
        category=category,
        priority=priority,
        status="open",
    )
    try:
        db.session.add(t)
        db.session.commit()
        return jsonify({"ok": True, "ticket": t.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("create ticket failed")
        return jsonify({"message": "Failed to create ticket", "error": str(e)}), 500


@support_bp.get("/support/tickets/<int:ticket_id>")
@login_required
def get_ticket(ticket_id: int):
    t = db.session.get(SupportTicket, ticket_id)
    if not t or int(t.user_id) != int(current_user.id):
        return jsonify({"message": "Not found"}), 404
    return jsonify(_thread(t)), 200


@support_bp.post("/support/tickets/<int:ticket_id>/messages")
@login_required
def post_message(ticket_id: int):
    t = db.session.get(SupportTicket, ticket_id)
    if not t or int(t.user_id) != int(current_user.id):
        return jsonify({"message": "Not found"}), 404
    text = sanitize_text((request.get_json(silent=True) or {}).get("message"))
    if not text:
        return jsonify({"message": "message is required"}), 400
    return _post_message(t, text, is_admin=False)


@support_bp.get("/admin/support/tickets")
@admin_required
def admin_list_tickets():
    q = SupportTicket.query
    status = (request.args.get("status") or "").strip().lower()
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(SupportTicket.created_at.desc()).limit(500).all()
    return jsonify({"ok": True, "items": [t.to_dict() for t in rows]}), 200


@support_bp.get("/admin/support/tickets/<int:ticket_id>")
@admin_required
def admin_get_ticket(ticket_id: int):
    t = db.session.get(SupportTicket, ticket_id)
    if not t:
        return jsonify({"message": "Not found"}), 404
    return jsonify(_thread(t)), 200


@support_bp.post("/admin/support/tickets/<int:ticket_id>/messages")
@admin_required
def admin_reply(ticket_id: int):
    t = db.session.get(SupportTicket, ticket_id)
    if not t:
        return jsonify({"message": "Not found"}), 404
    text = sanitize_text((request.get_json(silent=True) or {}).get("message"))
    if not text:
        return jsonify({"message": "message is required"}), 400
    return _post_message(t, text, is_admin=True)


@support_bp.post("/admin/support/tickets/<int:ticket_id>/status")
@admin_required
def admin_update_status(ticket_id: int):
    payload = request.get_json(silent=True) or {}
    status = str(payload.get("status") or "").strip().lower()
    if status not in TICKET_STATUSES:
        return jsonify({"message": "Invalid status"}), 400

    t = db.session.get(SupportTicket, ticket_id)
    if not t:
        return jsonify({"message": "Not found"}), 404

    t.status = status
    t.updated_at = datetime.utcnow()

    try:
        db.session.commit()
        return jsonify({"ok": True, "ticket": t.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("ticket %s status update failed", ticket_id)
        return jsonify({"message": "Failed to update", "error": str(e)}), 500
