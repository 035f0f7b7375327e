from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from automart.extensions import db
from automart.models import Transaction, Wallet
from automart.utils.money import parse_amount, round_money

COSMETIC = "cosmetic"
DEDUCT = "deduct"
DEPOSIT_FEE_POLICIES = (COSMETIC, DEDUCT)

DEPOSIT = "deposit"
WITHDRAWAL = "withdrawal"
ORDER_EARNING = "order_earning"


class WalletError(Exception):
    def __init__(self, message: str, code: str = "WALLET_ERROR", status: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


@dataclass(frozen=True)
class DepositMethod:
    key: str
    name: str
    fee_percent: float
    fee_fixed: float
    min_amount: float
    max_amount: float
    processing_time: str

    def fee_for(self, amount: float) -> float:
        return round_money(amount * self.fee_percent / 100.0 + self.fee_fixed)

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "name": self.name,
            "fee_percent": self.fee_percent,
            "fee_fixed": self.fee_fixed,
            "min_amount": self.min_amount,
            "max_amount": self.max_amount,
            "processing_time": self.processing_time,
        }


DEPOSIT_METHODS = {
    "credit_card": DepositMethod("credit_card", "Credit/Debit Card", 2.9, 0.30, 1.0, 50000.0, "Instant"),
    "paypal": DepositMethod("paypal", "PayPal", 3.49, 0.49, 1.0, 10000.0, "Instant"),
    "bank_transfer": DepositMethod("bank_transfer", "Bank Transfer", 0.0, 1.00, 10.0, 100000.0, "1-3 business days"),
}


def get_or_create_wallet(user_id: int) -> Wallet:
    w = Wallet.query.filter_by(user_id=user_id).first()
    if w:
        return w
    w = Wallet(user_id=user_id, balance=0.0, total_earned=0.0, total_withdrawn=0.0, available_for_withdrawal=0.0, currency="USD")
    try:
        db.session.add(w)
        db.session.commit()
        return w
    except IntegrityError:
        db.session.rollback()
        w = Wallet.query.filter_by(user_id=user_id).first()
        if w:
            return w
        raise


def lock_wallet(user_id: int) -> Wallet:
    """Load the wallet row under SELECT ... FOR UPDATE, creating it first if needed."""
    get_or_create_wallet(int(user_id))
    return (
        Wallet.query.filter_by(user_id=int(user_id))
        .with_for_update()
        .populate_existing()
        .one()
    )


def deposit_quote(method: str, amount, policy: str = COSMETIC) -> dict:
    """Fee breakdown for a simulated deposit. Raises WalletError on bad input."""
    m = DEPOSIT_METHODS.get((method or "").strip())
    if m is None:
        raise WalletError("Unknown deposit method", "INVALID_METHOD")

    amt = round_money(parse_amount(amount))
    if amt <= 0:
        raise WalletError("Enter a valid amount", "INVALID_AMOUNT")
    if amt < m.min_amount or amt > m.max_amount:
        raise WalletError(
            f"Amount must be between ${m.min_amount:,.2f} and ${m.max_amount:,.2f} for {m.name}",
            "AMOUNT_OUT_OF_RANGE",
        )

    fee = m.fee_for(amt)
    credited = amt if policy == COSMETIC else round_money(amt - fee)
    return {
        "method": m.key,
        "amount": amt,
        "fee": fee,
        "total_charge": round_money(amt + fee),
        "credited": credited,
        "policy": policy,
    }


def _publish(realtime, txn: Transaction, wallet: Wallet, event: str = "INSERT") -> None:
    if realtime is None:
        return
    realtime.publish("transactions", event, txn.to_dict())
    realtime.publish("wallets", "UPDATE", wallet.to_dict())


def deposit(user_id: int, method: str, amount, policy: str = COSMETIC, realtime=None) -> tuple[Transaction, Wallet, dict]:
    quote = deposit_quote(method, amount, policy)
    w = lock_wallet(int(user_id))
    now = datetime.utcnow()

    txn = Transaction(
        user_id=int(user_id),
        type=DEPOSIT,
        amount=quote["credited"],
        status="completed",
        description=f"Deposit via {DEPOSIT_METHODS[quote['method']].name} (fee ${quote['fee']:,.2f})",
        created_at=now,
        updated_at=now,
    )
    w.balance = round_money(float(w.balance or 0.0) + quote["credited"])
    w.total_earned = round_money(float(w.total_earned or 0.0) + quote["credited"])
    w.updated_at = now

    try:
        db.session.add(txn)
        db.session.add(w)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("deposit user=%s method=%s amount=%.2f credited=%.2f", user_id, quote["method"], quote["amount"], quote["credited"])
    _publish(realtime, txn, w)
    return txn, w, quote


def parse_withdrawal_amount(amount, minimum: float = 10.0) -> float:
    amt = round_money(parse_amount(amount))
    if amt <= 0:
        raise WalletError("Enter a valid amount", "INVALID_AMOUNT")
    if amt < float(minimum):
        raise WalletError(f"Minimum withdrawal amount is ${float(minimum):,.2f}", "BELOW_MINIMUM")
    return amt


def request_withdrawal(user_id: int, amount, minimum: float = 10.0, realtime=None) -> tuple[Transaction, Wallet]:
    """Reserve funds for a withdrawal.

    The amount is validated before the wallet is loaded. On success a pending
    negative ``withdrawal`` transaction is written and
    ``available_for_withdrawal`` is reduced in the same commit; ``balance``
    only moves when an admin completes the withdrawal.
    """
    amt = parse_withdrawal_amount(amount, minimum)

    w = lock_wallet(int(user_id))
    available = float(w.available_for_withdrawal or 0.0)
    if amt > available:
        raise WalletError("Insufficient funds available for withdrawal", "INSUFFICIENT_FUNDS")

    now = datetime.utcnow()
    txn = Transaction(
        user_id=int(user_id),
        type=WITHDRAWAL,
        amount=-amt,
        status="pending",
        description="Withdrawal request",
        created_at=now,
        updated_at=now,
    )
    w.available_for_withdrawal = round_money(available - amt)
    w.updated_at = now

    try:
        db.session.add(txn)
        db.session.add(w)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("withdrawal requested user=%s amount=%.2f", user_id, amt)
    _publish(realtime, txn, w)
    return txn, w


def _pending_withdrawal(txn_id: int) -> Transaction:
    txn = db.session.get(Transaction, int(txn_id), with_for_update=True, populate_existing=True)
    if txn is None or txn.type != WITHDRAWAL:
        raise WalletError("Withdrawal not found", "NOT_FOUND", 404)
    if txn.status != "pending":
        raise WalletError(f"Withdrawal is already {txn.status}", "ALREADY_SETTLED", 409)
    return txn


def complete_withdrawal(txn_id: int, realtime=None) -> tuple[Transaction, Wallet]:
    txn = _pending_withdrawal(txn_id)
    w = lock_wallet(int(txn.user_id))
    amt = abs(float(txn.amount or 0.0))
    now = datetime.utcnow()

    txn.status = "completed"
    txn.updated_at = now
    w.balance = round_money(float(w.balance or 0.0) - amt)
    w.total_withdrawn = round_money(float(w.total_withdrawn or 0.0) + amt)
    w.updated_at = now

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    _publish(realtime, txn, w, "UPDATE")
    return txn, w


def reject_withdrawal(txn_id: int, realtime=None) -> tuple[Transaction, Wallet]:
    txn = _pending_withdrawal(txn_id)
    w = lock_wallet(int(txn.user_id))
    amt = abs(float(txn.amount or 0.0))
    now = datetime.utcnow()

    txn.status = "cancelled"
    txn.updated_at = now
    w.available_for_withdrawal = round_money(float(w.available_for_withdrawal or 0.0) + amt)
    w.updated_at = now

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    _publish(realtime, txn, w, "UPDATE")
    return txn, w


def credit_order_earning(order, payment_line, realtime=None) -> Transaction | None:
    """Credit a completed order's net earning to the reseller's wallet, once."""
    reference = f"order:{int(order.id)}:earning"
    existing = Transaction.query.filter_by(reference=reference).first()
    if existing:
        return existing

    amt = round_money(float(payment_line.amount or 0.0))
    if amt <= 0:
        current_app.logger.warning("order %s completed with non-positive net earning %.2f; nothing credited", order.id, amt)
        return None

    w = lock_wallet(int(order.user_id))
    now = datetime.utcnow()
    txn = Transaction(
        user_id=int(order.user_id),
        order_id=int(order.id),
        type=ORDER_EARNING,
        amount=amt,
        status="completed",
        description=f"Earnings for order #{int(order.id)} ({order.automation_title})",
        reference=reference,
        created_at=now,
        updated_at=now,
    )
    w.balance = round_money(float(w.balance or 0.0) + amt)
    w.total_earned = round_money(float(w.total_earned or 0.0) + amt)
    w.available_for_withdrawal = round_money(float(w.available_for_withdrawal or 0.0) + amt)
    w.updated_at = now

    try:
        db.session.add(txn)
        db.session.add(w)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return Transaction.query.filter_by(reference=reference).first()

    _publish(realtime, txn, w)
    return txn
