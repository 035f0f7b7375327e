from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from automart.extensions import db
from automart.models import Profile
from automart.utils.security import sanitize_phone, sanitize_text, sanitize_url, validate_fields

profile_bp = Blueprint("profile_bp", __name__, url_prefix="/api")

EDITABLE = ("full_name", "phone", "company", "bio", "avatar_url")


def _get_or_create_profile() -> Profile:
    p = Profile.query.filter_by(user_id=int(current_user.id)).first()
    if p:
        return p
    p = Profile(user_id=int(current_user.id), email=current_user.email)
    try:
        db.session.add(p)
        db.session.commit()
        return p
    except IntegrityError:
        db.session.rollback()
        return Profile.query.filter_by(user_id=int(current_user.id)).first()


@profile_bp.get("/profile")
@login_required
def get_profile():
    return jsonify({"ok": True, "profile": _get_or_create_profile().to_dict()}), 200


@profile_bp.put("/profile")
@login_required
def update_profile():
    payload = request.get_json(silent=True) or {}
    errors = validate_fields(payload, optional=[f for f in ("full_name", "phone", "company", "avatar_url") if f in payload])
    if errors:
        return jsonify({"message": next(iter(errors.values())), "errors": errors}), 400

    p = _get_or_create_profile()
    if "full_name" in payload:
        p.full_name = sanitize_text(payload.get("full_name"))[:120] or None
    if "phone" in payload:
        p.phone = sanitize_phone(payload.get("phone")) if payload.get("phone") else None
    if "company" in payload:
        p.company = sanitize_text(payload.get("company"))[:120] or None
    if "bio" in payload:
        p.bio = sanitize_text(payload.get("bio"))[:1000] or None
    if "avatar_url" in payload:
        p.avatar_url = sanitize_url(payload.get("avatar_url")) or None
    p.updated_at = datetime.utcnow()

    try:
        db.session.commit()
        return jsonify({"ok": True, "profile": p.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("profile update failed for user %s", current_user.id)
        return jsonify({"message": "Failed to update profile", "error": str(e)}), 500
