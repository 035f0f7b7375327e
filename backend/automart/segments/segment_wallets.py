from __future__ import annotations


from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from automart.auth import admin_required
from automart.context import get_context
from automart.extensions import db
from automart.models import AuditLog, Transaction
from automart.models.audit_log import WITHDRAWAL_COMPLETED, WITHDRAWAL_REJECTED
from automart.utils.idempotency import lookup_response, release, store_response
from automart.utils.wallets import (
    DEPOSIT_METHODS,
    WalletError,
    complete_withdrawal,
    deposit,
    deposit_quote,
    get_or_create_wallet,
    reject_withdrawal,
    request_withdrawal,
)

wallets_bp = Blueprint("wallets_bp", __name__, url_prefix="/api")


def _wallet_error(e: WalletError):
    return jsonify({"message": e.message, "code": e.code}), e.status


def _idempotent(route: str, payload: dict, handler):
    """Run ``handler`` once per Idempotency-Key; replay the stored response afterwards."""
    hit = lookup_response(int(current_user.id), route, payload)
    if hit and hit[0] in ("hit", "conflict"):
        return jsonify(hit[1]), hit[2]

    body, status = handler()
    if hit:
        if status < 500:
            store_response(hit[1], body, status)
        else:
            release(hit[1])
    return jsonify(body), status


@wallets_bp.get("/wallet")
@login_required
def my_wallet():
    w = get_or_create_wallet(int(current_user.id))
    return jsonify({"ok": True, "wallet": w.to_dict()}), 200


@wallets_bp.get("/wallet/transactions")
@login_required
def my_transactions():
    q = Transaction.query.filter_by(user_id=int(current_user.id))
    txn_type = (request.args.get("type") or "").strip()
    status = (request.args.get("status") or "").strip()
    if txn_type:
        q = q.filter_by(type=txn_type)
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Transaction.created_at.desc(), Transaction.id.desc()).limit(200).all()
    return jsonify({"ok": True, "items": [t.to_dict() for t in rows]}), 200


@wallets_bp.get("/wallet/deposit-methods")
def deposit_methods():
    return jsonify({"ok": True, "items": [m.to_dict() for m in DEPOSIT_METHODS.values()]}), 200


@wallets_bp.post("/wallet/deposit/quote")
@login_required
def quote():
    payload = request.get_json(silent=True) or {}
    try:
        q = deposit_quote(payload.get("method"), payload.get("amount"), get_context().deposit_fee_policy)
    except WalletError as e:
        return _wallet_error(e)
    return jsonify({"ok": True, "quote": q}), 200


@wallets_bp.post("/wallet/deposit")
@login_required
def make_deposit():
    payload = request.get_json(silent=True) or {}
    ctx = get_context()

    def _run():
        try:
            txn, w, q = deposit(int(current_user.id), payload.get("method"), payload.get("amount"), ctx.deposit_fee_policy, ctx.realtime)
        except WalletError as e:
            return {"message": e.message, "code": e.code}, e.status
        except Exception as e:
            current_app.logger.exception("deposit failed for user %s", current_user.id)
            return {"message": "Deposit failed", "error": str(e)}, 500
        return {"ok": True, "transaction": txn.to_dict(), "wallet": w.to_dict(), "quote": q}, 201

    return _idempotent("/api/wallet/deposit", payload, _run)


@wallets_bp.post("/wallet/withdraw")
@login_required
def withdraw():
    payload = request.get_json(silent=True) or {}
    ctx = get_context()

    def _run():
        try:
            txn, w = request_withdrawal(int(current_user.id), payload.get("amount"), ctx.withdrawal_minimum, ctx.realtime)
        except WalletError as e:
            return {"message": e.message, "code": e.code}, e.status
        except Exception as e:
            current_app.logger.exception("withdrawal failed for user %s", current_user.id)
            return {"message": "Withdrawal failed", "error": str(e)}, 500
        return {"ok": True, "transaction": txn.to_dict(), "wallet": w.to_dict()}, 201

    return _idempotent("/api/wallet/withdraw", payload, _run)


@wallets_bp.get("/admin/withdrawals")
@admin_required
def admin_withdrawals():
    status = (request.args.get("status") or "pending").strip()
    rows = (
        Transaction.query.filter_by(type="withdrawal", status=status)
        .order_by(Transaction.created_at.asc(), Transaction.id.asc())
        .limit(500)
        .all()
    )
    return jsonify({"ok": True, "items": [t.to_dict() for t in rows]}), 200


def _settle(txn_id: int, action: str, fn):
    try:
        txn, w = fn(txn_id, get_context().realtime)
    except WalletError as e:
        return _wallet_error(e)
    except Exception as e:
        current_app.logger.exception("%s failed for transaction %s", action, txn_id)
        return jsonify({"message": "Failed to update withdrawal", "error": str(e)}), 500

    db.session.add(AuditLog.entry(
        action, "transaction", txn.id, current_user.id,
        user_id=int(txn.user_id), amount=float(txn.amount),
    ))
    db.session.commit()
    return jsonify({"ok": True, "transaction": txn.to_dict(), "wallet": w.to_dict()}), 200


@wallets_bp.post("/admin/withdrawals/<int:txn_id>/complete")
@admin_required
def admin_complete_withdrawal(txn_id: int):
    return _settle(txn_id, WITHDRAWAL_COMPLETED, complete_withdrawal)


@wallets_bp.post("/admin/withdrawals/<int:txn_id>/reject")
@admin_required
def admin_reject_withdrawal(txn_id: int):
    return _settle(txn_id, WITHDRAWAL_REJECTED, reject_withdrawal)


@wallets_bp.post("/admin/wallets/reconcile")
@admin_required
def admin_reconcile():
    from automart.jobs.wallet_reconciler import reconcile_wallets

    payload = request.get_json(silent=True) or {}
    try:
        limit = int(payload.get("limit") or 500)
    except (TypeError, ValueError):
        limit = 500
    return jsonify({"ok": True, **reconcile_wallets(limit=limit)}), 200
