from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from automart.models import Order, UserAutomation
from automart.services.analytics import summarize_orders
from automart.utils.wallets import get_or_create_wallet

analytics_bp = Blueprint("analytics_bp", __name__, url_prefix="/api")


@analytics_bp.get("/analytics")
@login_required
def my_analytics():
    uid = int(current_user.id)
    orders = Order.query.filter_by(user_id=uid).order_by(Order.created_at.asc()).all()
    summary = summarize_orders(orders)

    w = get_or_create_wallet(uid)
    summary["wallet"] = {
        "balance": float(w.balance or 0.0),
        "total_earned": float(w.total_earned or 0.0),
        "available_for_withdrawal": float(w.available_for_withdrawal or 0.0),
    }
    summary["active_automations"] = UserAutomation.query.filter_by(user_id=uid, is_active=True).count()
    return jsonify({"ok": True, "analytics": summary}), 200
