from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from automart.extensions import db
from automart.models import AuditLog, Transaction, Wallet
from automart.models.audit_log import WALLET_ANOMALY
from automart.utils.wallets import DEPOSIT, ORDER_EARNING, WITHDRAWAL


def _sum(user_id: int, types, statuses) -> float:
    total = db.session.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(
        Transaction.user_id == int(user_id),
        Transaction.type.in_(list(types)),
        Transaction.status.in_(list(statuses)),
    ).scalar() or 0.0
    return float(total)


def expected_figures(user_id: int) -> dict:
    """Wallet figures implied by the user's transactions.

    Completed deposits, earnings and withdrawals move ``balance``. Only
    earnings and not-yet-rejected withdrawals move ``available_for_withdrawal``.
    """
    balance = _sum(user_id, (DEPOSIT, ORDER_EARNING, WITHDRAWAL), ("completed",))
    available = _sum(user_id, (ORDER_EARNING,), ("completed",)) + _sum(user_id, (WITHDRAWAL,), ("pending", "completed"))
    return {"balance": round(balance, 2), "available_for_withdrawal": round(available, 2)}


def reconcile_wallets(*, limit: int = 500, tolerance: float = 0.01) -> dict:
    """Detect wallet anomalies (transactions vs stored figures).

    This does NOT auto-correct wallets. Each anomaly becomes an AuditLog row.
    """
    checked = 0
    anomalies = 0
    now = datetime.utcnow()

    wallets = Wallet.query.order_by(Wallet.id.asc()).limit(int(limit)).all()

    for w in wallets:
        checked += 1
        try:
            expected = expected_figures(int(w.user_id))
            stored_balance = float(w.balance or 0.0)
            stored_available = float(w.available_for_withdrawal or 0.0)

            issues = []
            if abs(expected["balance"] - stored_balance) > float(tolerance):
                issues.append("balance_mismatch")
            if abs(expected["available_for_withdrawal"] - stored_available) > float(tolerance):
                issues.append("available_mismatch")
            if stored_available < -0.0001:
                issues.append("negative_available")
            if stored_available - stored_balance > float(tolerance):
                issues.append("available_exceeds_balance")

            if not issues:
                continue

            anomalies += 1
            meta = {
                "issues": issues,
                "wallet_id": int(w.id),
                "user_id": int(w.user_id),
                "expected_balance": expected["balance"],
                "stored_balance": round(stored_balance, 2),
                "expected_available": expected["available_for_withdrawal"],
                "stored_available": round(stored_available, 2),
                "at": now.isoformat(),
            }
            db.session.add(AuditLog.entry(WALLET_ANOMALY, "wallet", w.id, created_at=now, **meta))
            db.session.commit()
            current_app.logger.warning("wallet %s anomalies: %s", w.id, ", ".join(issues))
        except Exception:
            db.session.rollback()
            current_app.logger.exception("wallet reconcile failed for wallet %s", w.id)

    return {"checked": checked, "anomalies": anomalies}
