from __future__ import annotations

from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from automart.context import get_context
from automart.extensions import db, login_manager
from automart.models import Profile, User
from automart.utils.jwt_utils import create_access_token, user_id_from_header
from automart.utils.security import SecurityError, RateLimitedError, sanitize_email, validate_password
from automart.utils.wallets import get_or_create_wallet

api_auth = Blueprint("api_auth", __name__, url_prefix="/api/auth")


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    """Let @login_required work with ``Authorization: Bearer <jwt>``."""
    user_id = user_id_from_header(req.headers.get("Authorization", ""))
    if user_id is None:
        return None
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify({"message": "Unauthorized"}), 401


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"message": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def _limiter_key(prefix: str) -> str:
    return f"{prefix}_{request.headers.get('User-Agent', 'unknown')}"


def _session_id() -> str:
    return request.headers.get("X-Session-Id") or "anonymous"


def _rate_limited(e: RateLimitedError):
    return jsonify({"message": e.message, "code": e.code, "retry_after_seconds": int(e.remaining_seconds)}), 429


@api_auth.post("/register")
def register():
    ctx = get_context()
    key = _limiter_key("signup")
    try:
        ctx.auth_limiter.check(key, "Too many signup attempts")
    except RateLimitedError as e:
        return _rate_limited(e)

    data = request.get_json(silent=True) or {}
    password = data.get("password") or ""
    try:
        email = sanitize_email(data.get("email"))
    except SecurityError as e:
        ctx.auth_limiter.record_attempt(key)
        return jsonify({"message": e.message, "code": e.code}), 400

    ok, errors = validate_password(password)
    if not ok:
        ctx.auth_limiter.record_attempt(key)
        ctx.beacon.emit("SIGNUP_FAILED", {"email": email, "reason": "weak_password"}, user_agent=request.headers.get("User-Agent", ""), url=request.url, session_id=_session_id())
        return jsonify({"message": errors[0], "errors": errors}), 400

    if User.query.filter_by(email=email).first():
        ctx.auth_limiter.record_attempt(key)
        return jsonify({"message": "An account with this email already exists"}), 409

    user = User(email=email, role="user")
    user.set_password(password)
    try:
        db.session.add(user)
        db.session.flush()
        db.session.add(Profile(user_id=user.id, email=email, full_name=(data.get("full_name") or "").strip()[:120] or None))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"message": "An account with this email already exists"}), 409

    get_or_create_wallet(int(user.id))
    ctx.auth_limiter.reset(key)
    current_app.logger.info("user registered id=%s", user.id)
    return jsonify({"token": create_access_token(user.id), "user": user.to_dict()}), 201


@api_auth.post("/login")
def login():
    ctx = get_context()
    key = _limiter_key("signin")
    try:
        ctx.auth_limiter.check(key, "Too many sign-in attempts")
    except RateLimitedError as e:
        return _rate_limited(e)

    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"message": "email and password required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        ctx.auth_limiter.record_attempt(key)
        ctx.beacon.emit(
            "SIGNIN_FAILED",
            {"email": email, "attempts": ctx.auth_limiter.attempts(key)},
            user_agent=request.headers.get("User-Agent", ""),
            url=request.url,
            session_id=_session_id(),
        )
        return jsonify({"message": "Invalid email or password"}), 401

    ctx.auth_limiter.reset(key)
    return jsonify({"token": create_access_token(user.id), "user": user.to_dict()}), 200


@api_auth.get("/me")
@login_required
def me():
    return jsonify({"user": current_user.to_dict()}), 200
