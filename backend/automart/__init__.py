import logging
import os
import subprocess

import click
from flask import Flask, jsonify, request
from sqlalchemy import text

from automart.config import CONFIGS
from automart.context import EXTENSION_KEY, MarketplaceContext, get_context
from automart.extensions import db, migrate, cors, login_manager, socketio
from automart.utils.security import security_headers

__version__ = "0.1.0"


def _check_production(app: Flask) -> None:
    secret = (app.config.get("SECRET_KEY") or "").strip()
    if not secret or len(secret) < 16:
        raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
    if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
        raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")


def _cors_origins(app: Flask) -> list:
    raw = (app.config.get("CORS_ORIGINS") or "").strip()
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if app.config["ENV"] in ("prod", "production"):
        return origins
    return origins or ["*"]


def create_app(config_object=None):
    app = Flask(__name__)

    if config_object is None:
        env = (os.getenv("AUTOMART_ENV", "dev") or "dev").strip().lower()
        config_object = CONFIGS.get(env, CONFIGS["dev"])
    app.config.from_object(config_object)
    env = app.config["ENV"]

    # Production safety checks
    if env in ("prod", "production"):
        _check_production(app)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Ensure instance dir exists for SQLite paths
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(app.config["INSTANCE_DIR"], exist_ok=True)

    origins = _cors_origins(app)
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    emitter = None
    if app.config.get("SOCKETIO_ENABLED"):
        from automart.realtime.socket import emit_change
        socketio.init_app(app, cors_allowed_origins=origins)
        emitter = emit_change

    app.extensions[EXTENSION_KEY] = MarketplaceContext.from_app(app, emitter=emitter)

    # Register API routes
    from automart.auth import api_auth
    from automart.segments.segment_analytics import analytics_bp
    from automart.segments.segment_automations import automations_bp
    from automart.segments.segment_custom_requests import custom_requests_bp
    from automart.segments.segment_orders import orders_bp
    from automart.segments.segment_profile import profile_bp
    from automart.segments.segment_security import security_bp
    from automart.segments.segment_support import support_bp
    from automart.segments.segment_wallets import wallets_bp

    app.register_blueprint(api_auth)
    app.register_blueprint(automations_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(wallets_bp)
    app.register_blueprint(custom_requests_bp)
    app.register_blueprint(support_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(security_bp)

    @app.before_request
    def _api_rate_limit():
        if not request.path.startswith("/api/") or request.path == "/api/health":
            return None
        limiter = get_context().api_limiter
        key = f"api_{request.headers.get('X-Forwarded-For', request.remote_addr or 'unknown').split(',')[0].strip()}"
        if limiter.is_blocked(key):
            return jsonify({
                "message": "Too many requests",
                "code": "RATE_LIMITED",
                "retry_after_seconds": int(limiter.remaining_seconds(key)),
            }), 429
        limiter.record_attempt(key)
        return None

    @app.after_request
    def _security_headers(response):
        for name, value in security_headers().items():
            response.headers.setdefault(name, value)
        return response

    # Health check
    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except Exception:
            app.logger.exception("health check database query failed")
            db_state = "fail"
        return jsonify({
            "ok": True,
            "service": "automart-backend",
            "env": env,
            "db": db_state,
        })

    @app.get("/api/version")
    def version():
        def _get_alembic_head() -> str:
            try:
                from alembic.script import ScriptDirectory
                migrations_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "migrations"))
                heads = ScriptDirectory(migrations_dir).get_heads()
                return heads[0] if heads else "unknown"
            except Exception:
                return "unknown"

        def _get_git_sha() -> str:
            try:
                repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
                out = subprocess.check_output(["git", "rev-parse", "HEAD"], cwd=repo_root, stderr=subprocess.DEVNULL)
                return out.decode().strip()
            except Exception:
                return "unknown"

        return jsonify({
            "ok": True,
            "version": __version__,
            "alembic_head": _get_alembic_head(),
            "git_sha": _get_git_sha(),
        })

    @app.cli.command("reconcile-wallets")
    @click.option("--limit", default=500, show_default=True, help="Maximum wallets to check.")
    def reconcile_wallets_command(limit):
        """Report wallets whose figures disagree with their transactions."""
        from automart.jobs.wallet_reconciler import reconcile_wallets
        result = reconcile_wallets(limit=limit)
        click.echo(f"checked={result['checked']} anomalies={result['anomalies']}")

    return app
