from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from automart.auth import admin_required
from automart.extensions import db
from automart.models import Automation, UserAutomation
from automart.services.marketplace import SORT_KEYS, browse, category_counts
from automart.utils.money import parse_amount
from automart.utils.security import sanitize_html, sanitize_text

automations_bp = Blueprint("automations_bp", __name__, url_prefix="/api")

DUPLICATE_MESSAGE = "This automation is already in your list"
LIST_FIELDS = ("category", "platforms", "features", "requirements")


def _truthy(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _visible_catalog() -> list[Automation]:
    rows = Automation.query.order_by(Automation.created_at.desc(), Automation.id.desc()).all()
    return [a for a in rows if a.visible_to(current_user.id, current_user.is_admin)]


def _my_automation_ids() -> set[int]:
    rows = UserAutomation.query.filter_by(user_id=int(current_user.id), is_active=True).all()
    return {int(r.automation_id) for r in rows}


@automations_bp.get("/automations")
@login_required
def list_automations():
    sort_by = (request.args.get("sort") or "newest").strip()
    if sort_by not in SORT_KEYS:
        sort_by = "newest"

    catalog = _visible_catalog()
    items = browse(
        catalog,
        category=request.args.get("category") or "all",
        search=request.args.get("search") or "",
        available_only=_truthy(request.args.get("available_only")),
        sort_by=sort_by,
    )
    mine = _my_automation_ids()
    out = []
    for a in items:
        d = a.to_dict()
        d["in_my_list"] = int(a.id) in mine
        out.append(d)
    return jsonify({"ok": True, "items": out, "categories": category_counts(catalog)}), 200


@automations_bp.get("/automations/<int:automation_id>")
@login_required
def get_automation(automation_id: int):
    a = db.session.get(Automation, automation_id)
    if not a or not a.visible_to(current_user.id, current_user.is_admin):
        return jsonify({"message": "Not found"}), 404
    d = a.to_dict()
    d["in_my_list"] = int(a.id) in _my_automation_ids()
    return jsonify({"ok": True, "automation": d}), 200


@automations_bp.post("/automations/<int:automation_id>/add")
@login_required
def add_to_my_list(automation_id: int):
    a = db.session.get(Automation, automation_id)
    if not a:
        return jsonify({"message": "Not found"}), 404
    if not a.visible_to(current_user.id, current_user.is_admin):
        return jsonify({"message": "This automation is exclusive to another user"}), 403

    row = UserAutomation(
        user_id=int(current_user.id),
        automation_id=int(a.id),
        is_active=True,
        automation_title=a.title,
        automation_cost=float(a.cost or 0.0),
        automation_suggested_price=float(a.suggested_price or 0.0),
        automation_category=", ".join(str(c) for c in a.category) or None,
    )
    try:
        db.session.add(row)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"message": DUPLICATE_MESSAGE}), 409
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("add automation %s failed", automation_id)
        return jsonify({"message": "Failed to add automation", "error": str(e)}), 500

    return jsonify({"ok": True, "item": row.to_dict()}), 201


@automations_bp.delete("/automations/<int:automation_id>/remove")
@login_required
def remove_from_my_list(automation_id: int):
    row = UserAutomation.query.filter_by(user_id=int(current_user.id), automation_id=int(automation_id)).first()
    if not row:
        return jsonify({"message": "Not found"}), 404
    try:
        db.session.delete(row)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("remove automation %s failed", automation_id)
        return jsonify({"message": "Failed to remove automation", "error": str(e)}), 500
    return jsonify({"ok": True}), 200


@automations_bp.get("/my-automations")
@login_required
def my_automations():
    rows = (
        UserAutomation.query.filter_by(user_id=int(current_user.id))
        .order_by(UserAutomation.added_at.desc(), UserAutomation.id.desc())
        .all()
    )
    items = []
    for row in rows:
        d = row.to_dict()
        a = db.session.get(Automation, row.automation_id)
        d["automation"] = a.to_dict() if a else None
        items.append(d)
    return jsonify({"ok": True, "items": items}), 200


# -------------------------
# Admin catalog management
# -------------------------

def _apply_fields(a: Automation, payload: dict) -> dict:
    errors = {}
    if "title" in payload:
        title = sanitize_text(payload.get("title"))
        if not title:
            errors["title"] = "title is required"
        a.title = title[:200]
    if "description" in payload:
        a.description = sanitize_html(payload.get("description")) or None
    for field in LIST_FIELDS:
        if field in payload:
            value = payload.get(field)
            if isinstance(value, str):
                value = sanitize_text(value)
            elif isinstance(value, list):
                value = [sanitize_text(str(v)) for v in value if str(v).strip()]
            setattr(a, field, value)
    if "media" in payload:
        a.media = payload.get("media")
    for field in ("cost", "suggested_price", "rating"):
        if field in payload:
            value = parse_amount(payload.get(field))
            if value < 0:
                errors[field] = f"{field} must not be negative"
            setattr(a, field, value)
    if "reviews_count" in payload:
        try:
            a.reviews_count = max(0, int(payload.get("reviews_count") or 0))
        except (TypeError, ValueError):
            errors["reviews_count"] = "reviews_count must be a whole number"
    for field in ("complexity", "setup_time"):
        if field in payload:
            setattr(a, field, sanitize_text(payload.get(field))[:64] or None)
    if "status" in payload:
        status = str(payload.get("status") or "").strip().capitalize()
        if status not in ("Active", "Inactive"):
            errors["status"] = "status must be Active or Inactive"
        a.status = status
    if "assigned_user_id" in payload:
        raw = payload.get("assigned_user_id")
        try:
            a.assigned_user_id = int(raw) if raw not in (None, "") else None
        except (TypeError, ValueError):
            errors["assigned_user_id"] = "assigned_user_id must be a user id"
    a.recompute_economics()
    return errors


@automations_bp.post("/admin/automations")
@admin_required
def admin_create_automation():
    payload = request.get_json(silent=True) or {}
    if not sanitize_text(payload.get("title")):
        return jsonify({"message": "title is required", "errors": {"title": "title is required"}}), 400

    a = Automation(status="Active")
    errors = _apply_fields(a, payload)
    if errors:
        db.session.rollback()
        return jsonify({"message": next(iter(errors.values())), "errors": errors}), 400

    try:
        db.session.add(a)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("create automation failed")
        return jsonify({"message": "Failed to create automation", "error": str(e)}), 500
    return jsonify({"ok": True, "automation": a.to_dict()}), 201


@automations_bp.put("/admin/automations/<int:automation_id>")
@admin_required
def admin_update_automation(automation_id: int):
    a = db.session.get(Automation, automation_id)
    if not a:
        return jsonify({"message": "Not found"}), 404

    payload = request.get_json(silent=True) or {}
    errors = _apply_fields(a, payload)
    if errors:
        db.session.rollback()
        return jsonify({"message": next(iter(errors.values())), "errors": errors}), 400

    a.updated_at = datetime.utcnow()
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("update automation %s failed", automation_id)
        return jsonify({"message": "Failed to update automation", "error": str(e)}), 500
    return jsonify({"ok": True, "automation": a.to_dict()}), 200


@automations_bp.post("/admin/automations/<int:automation_id>/toggle")
@admin_required
def admin_toggle_automation(automation_id: int):
    a = db.session.get(Automation, automation_id)
    if not a:
        return jsonify({"message": "Not found"}), 404
    a.status = "Inactive" if a.is_active else "Active"
    a.updated_at = datetime.utcnow()
    db.session.commit()
    return jsonify({"ok": True, "automation": a.to_dict()}), 200


@automations_bp.delete("/admin/automations/<int:automation_id>")
@admin_required
def admin_delete_automation(automation_id: int):
    a = db.session.get(Automation, automation_id)
    if not a:
        return jsonify({"message": "Not found"}), 404
    if a.is_active:
        return jsonify({"message": "Deactivate the automation before deleting it"}), 400

    try:
        UserAutomation.query.filter_by(automation_id=int(a.id)).delete()
        db.session.delete(a)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"message": "Automation has orders and cannot be deleted"}), 409
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("delete automation %s failed", automation_id)
        return jsonify({"message": "Failed to delete automation", "error": str(e)}), 500
    return jsonify({"ok": True}), 200
