from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from automart.auth import admin_required
from automart.context import get_context
from automart.extensions import db
from automart.models import AuditLog, Automation, Order, OrderEvent
from automart.models.audit_log import ORDER_STATUS_CHANGED
from automart.services import order_status as st
from automart.services.ledger import ensure_order_ledger, split_ledger, sync_ledger_statuses
from automart.utils.money import Money, parse_price
from automart.utils.security import sanitize_phone, sanitize_social_handle, sanitize_text, sanitize_url, validate_fields

orders_bp = Blueprint("orders_bp", __name__, url_prefix="/api")

PAYMENT_FORMATS = ("fixed", "recurring")
SOCIAL_FIELDS = ("instagram_handle", "facebook_page", "twitter_handle", "linkedin_profile")


@orders_bp.before_app_request
def _ensure_tables_once():
    if current_app.config.get("_AUTOMART_TABLES_READY"):
        return
    try:
        db.create_all()
    except Exception:
        current_app.logger.exception("create_all failed")
    current_app.config["_AUTOMART_TABLES_READY"] = True


def _event(order: Order, event: str, actor_id: int | None = None, from_status=None, to_status=None, note: str | None = None) -> None:
    db.session.add(OrderEvent(
        order_id=int(order.id),
        actor_user_id=actor_id,
        event=event,
        from_status=from_status,
        to_status=to_status,
        note=(note or "")[:250] or None,
    ))


def _publish_order(order: Order, event: str = "UPDATE") -> None:
    get_context().realtime.publish("orders", event, order.to_dict(), filter_columns=("user_id",))


def _can_view(order: Order) -> bool:
    return current_user.is_admin or int(order.user_id) == int(current_user.id)


def _ledger_view(order: Order) -> dict:
    ctx = get_context()
    rows = ensure_order_ledger(order, ctx.fee_schedule, ctx.realtime)
    view = split_ledger(rows)
    view["generated"] = bool(rows)
    return view


def _parse_order_form(data: dict):
    errors = validate_fields(
        data,
        required=("client_name", "client_email", "client_phone", "company_name", "industry", "project_description", "meeting_date"),
        optional=("website_url",) + SOCIAL_FIELDS,
    )
    description = sanitize_text(data.get("project_description"))
    if "project_description" not in errors and len(description) < 10:
        errors["project_description"] = "Project description must be at least 10 characters"

    payment_format = str(data.get("payment_format") or "fixed").strip().lower()
    if payment_format not in PAYMENT_FORMATS:
        errors["payment_format"] = "Payment format must be fixed or recurring"

    try:
        automation_id = int(data.get("automation_id"))
    except (TypeError, ValueError):
        automation_id = None
        errors["automation_id"] = "automation_id is required"

    return errors, automation_id, payment_format, description


@orders_bp.post("/orders")
@login_required
def create_order():
    data = request.get_json(silent=True) or {}
    errors, automation_id, payment_format, description = _parse_order_form(data)
    if errors:
        return jsonify({"message": next(iter(errors.values())), "errors": errors}), 400

    automation = db.session.get(Automation, automation_id)
    if not automation or not automation.visible_to(current_user.id, current_user.is_admin):
        return jsonify({"message": "Automation not found"}), 404

    price_text = data.get("agreed_price")
    if price_text in (None, ""):
        agreed = Money(float(automation.suggested_price or 0.0))
    else:
        agreed = parse_price(price_text)

    now = datetime.utcnow()
    order = Order(
        user_id=int(current_user.id),
        client_name=sanitize_text(data.get("client_name")),
        client_email=sanitize_text(data.get("client_email")).lower(),
        client_phone=sanitize_phone(data.get("client_phone")),
        company_name=sanitize_text(data.get("company_name")),
        industry=sanitize_text(data.get("industry")),
        website_url=sanitize_url(data.get("website_url")) or None,
        automation_id=int(automation.id),
        automation_title=automation.title,
        automation_category=", ".join(str(c) for c in automation.category) or None,
        automation_cost=float(automation.cost or 0.0),
        payment_format=payment_format,
        project_description=description,
        special_requirements=sanitize_text(data.get("special_requirements")) or None,
        status=st.ORDER_CREATED,
        meeting_date=sanitize_text(data.get("meeting_date"))[:200],
        created_at=now,
        updated_at=now,
    )
    for field in SOCIAL_FIELDS:
        setattr(order, field, sanitize_social_handle(data.get(field)) or None)
    order.automation_price = Money(float(automation.suggested_price or 0.0))
    order.agreed_price = agreed

    try:
        db.session.add(order)
        db.session.flush()
        _event(order, "order_created", int(current_user.id), to_status=st.ORDER_CREATED)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("create order failed")
        return jsonify({"message": "Failed to create order", "error": str(e)}), 500

    _publish_order(order, "INSERT")
    return jsonify({"ok": True, "order": order.to_dict()}), 201


@orders_bp.get("/orders")
@login_required
def my_orders():
    q = Order.query.filter_by(user_id=int(current_user.id))
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).limit(200).all()
    return jsonify({"ok": True, "items": [o.to_dict() for o in rows]}), 200


@orders_bp.get("/orders/statuses")
def statuses():
    policy = get_context().status_policy
    return jsonify({"ok": True, "policy": policy.mode, "items": st.describe_statuses()}), 200


@orders_bp.get("/orders/<int:order_id>")
@login_required
def get_order(order_id: int):
    order = db.session.get(Order, order_id)
    if not order or not _can_view(order):
        return jsonify({"message": "Not found"}), 404

    events = OrderEvent.query.filter_by(order_id=order.id).order_by(OrderEvent.created_at.asc(), OrderEvent.id.asc()).all()
    payload = {
        "ok": True,
        "order": order.to_dict(),
        "transactions": _ledger_view(order),
        "timeline": [e.to_dict() for e in events],
    }
    if current_user.is_admin:
        payload["status_options"] = get_context().status_policy.options_for(order.status)
    return jsonify(payload), 200


@orders_bp.get("/orders/<int:order_id>/transactions")
@login_required
def order_transactions(order_id: int):
    order = db.session.get(Order, order_id)
    if not order or not _can_view(order):
        return jsonify({"message": "Not found"}), 404
    return jsonify({"ok": True, "order_id": int(order.id), **_ledger_view(order)}), 200


@orders_bp.get("/admin/orders")
@admin_required
def admin_list_orders():
    q = Order.query
    status = (request.args.get("status") or "").strip()
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).limit(500).all()
    return jsonify({"ok": True, "items": [o.to_dict() for o in rows]}), 200


@orders_bp.post("/admin/orders/<int:order_id>/status")
@admin_required
def admin_update_status(order_id: int):
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({"message": "Not found"}), 404

    payload = request.get_json(silent=True) or {}
    target = str(payload.get("status") or "").strip()
    note = sanitize_text(payload.get("note"))
    if not st.is_known_status(target):
        return jsonify({"message": f"Unknown status: {target or '(empty)'}"}), 400

    ctx = get_context()
    try:
        ctx.status_policy.check(order.status, target)
    except st.InvalidTransition as e:
        return jsonify({"message": e.message, "allowed": ctx.status_policy.options_for(order.status)}), 409

    previous = order.status
    if previous == target and not note:
        return jsonify({"ok": True, "order": order.to_dict(), "changed": False}), 200

    now = datetime.utcnow()
    order.status = target
    order.updated_at = now
    if target == st.ORDER_COMPLETED_SUCCESSFULLY and order.actual_completion_date is None:
        order.actual_completion_date = now

    try:
        _event(order, "status_changed", int(current_user.id), previous, target, note)
        db.session.add(AuditLog.entry(
            ORDER_STATUS_CHANGED, "order", order.id, current_user.id,
            **{"from": previous, "to": target, "note": note, "policy": ctx.status_policy.mode},
        ))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("status update failed for order %s", order_id)
        return jsonify({"message": "Failed to update status", "error": str(e)}), 500

    # The ledger exists from the first post-review status onward.
    ensure_order_ledger(order, ctx.fee_schedule, ctx.realtime)
    sync_ledger_statuses(order, ctx.realtime)

    current_app.logger.info("order %s status %s -> %s by %s", order.id, previous, target, current_user.id)
    _publish_order(order)
    return jsonify({"ok": True, "order": order.to_dict(), "changed": previous != target}), 200


@orders_bp.post("/admin/orders/<int:order_id>/notes")
@admin_required
def admin_update_notes(order_id: int):
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({"message": "Not found"}), 404

    payload = request.get_json(silent=True) or {}
    if "admin_notes" in payload:
        order.admin_notes = sanitize_text(payload.get("admin_notes")) or None
    if "estimated_completion_date" in payload:
        order.estimated_completion_date = sanitize_text(payload.get("estimated_completion_date"))[:32] or None
    order.updated_at = datetime.utcnow()

    try:
        _event(order, "notes_updated", int(current_user.id))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("notes update failed for order %s", order_id)
        return jsonify({"message": "Failed to update order", "error": str(e)}), 500

    _publish_order(order)
    return jsonify({"ok": True, "order": order.to_dict()}), 200
