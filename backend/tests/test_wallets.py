from types import SimpleNamespace

import pytest
from sqlalchemy import text

from automart.extensions import db
from automart.jobs.wallet_reconciler import expected_figures, reconcile_wallets
from automart.models import AuditLog, Transaction, Wallet
from automart.services.realtime import RealtimeHub
from automart.utils.wallets import (
    COSMETIC,
    DEDUCT,
    WalletError,
    complete_withdrawal,
    credit_order_earning,
    deposit,
    deposit_quote,
    get_or_create_wallet,
    reject_withdrawal,
    request_withdrawal,
)


@pytest.fixture
def fund(make_automation, make_order):
    """Give a user withdrawable funds the way a completed order does."""

    def _fund(user, amount):
        order = make_order(user, make_automation(), status="order_completed_successfully")
        credit_order_earning(order, SimpleNamespace(amount=amount))
        return Wallet.query.filter_by(user_id=user.id).one()

    return _fund


class TestDepositQuote:
    def test_credit_card_fee(self):
        q = deposit_quote("credit_card", 100)
        assert q["fee"] == 3.20
        assert q["total_charge"] == 103.20
        assert q["credited"] == 100.0

    def test_deduct_policy_credits_net(self):
        assert deposit_quote("credit_card", "100", DEDUCT)["credited"] == 96.80

    def test_bank_transfer_minimum(self):
        with pytest.raises(WalletError) as exc:
            deposit_quote("bank_transfer", 5)
        assert exc.value.code == "AMOUNT_OUT_OF_RANGE"

    def test_paypal_maximum(self):
        with pytest.raises(WalletError) as exc:
            deposit_quote("paypal", "$10,000.01")
        assert exc.value.code == "AMOUNT_OUT_OF_RANGE"

    def test_unknown_method(self):
        with pytest.raises(WalletError) as exc:
            deposit_quote("crypto", 100)
        assert exc.value.code == "INVALID_METHOD"

    def test_garbage_amount(self):
        with pytest.raises(WalletError) as exc:
            deposit_quote("paypal", "lots")
        assert exc.value.code == "INVALID_AMOUNT"


class TestDeposit:
    def test_cosmetic_deposit_credits_full_amount(self, user):
        txn, wallet, quote = deposit(user.id, "credit_card", 100, COSMETIC)
        assert wallet.balance == 100.0
        assert wallet.available_for_withdrawal == 0.0
        assert txn.type == "deposit"
        assert txn.status == "completed"
        assert txn.amount == 100.0
        assert quote["fee"] == 3.20

    def test_deduct_deposit_credits_net(self, user):
        _, wallet, _ = deposit(user.id, "credit_card", 100, DEDUCT)
        assert wallet.balance == 96.80

    def test_publishes_transaction_and_wallet(self, user):
        hub = RealtimeHub()
        tables = []
        hub.subscribe("transactions", lambda p: tables.append(p["table"]), f"user_id=eq.{user.id}")
        hub.subscribe("wallets", lambda p: tables.append(p["table"]), f"user_id=eq.{user.id}")
        deposit(user.id, "paypal", 50, realtime=hub)
        assert tables == ["transactions", "wallets"]


class TestWithdrawal:
    def test_below_minimum_rejected_before_touching_wallet(self, user):
        with pytest.raises(WalletError) as exc:
            request_withdrawal(user.id, "5")
        assert exc.value.code == "BELOW_MINIMUM"
        assert Wallet.query.count() == 0
        assert Transaction.query.count() == 0

    def test_insufficient_funds(self, user, fund):
        fund(user, 50.0)
        with pytest.raises(WalletError) as exc:
            request_withdrawal(user.id, 60)
        assert exc.value.code == "INSUFFICIENT_FUNDS"

    def test_check_uses_current_row_not_session_copy(self, user, fund):
        wallet = fund(user, 300.0)
        db.session.execute(
            text("UPDATE wallets SET available_for_withdrawal = 50 WHERE id = :id"), {"id": wallet.id}
        )
        assert wallet.available_for_withdrawal == 300.0

        with pytest.raises(WalletError) as exc:
            request_withdrawal(user.id, 200)
        assert exc.value.code == "INSUFFICIENT_FUNDS"
        assert Transaction.query.filter_by(type="withdrawal").count() == 0

    def test_deposits_are_not_withdrawable(self, user):
        deposit(user.id, "credit_card", 500)
        with pytest.raises(WalletError) as exc:
            request_withdrawal(user.id, 100)
        assert exc.value.code == "INSUFFICIENT_FUNDS"

    def test_request_reserves_available_only(self, user, fund):
        fund(user, 200.0)
        txn, wallet = request_withdrawal(user.id, "$120")
        assert txn.amount == -120.0
        assert txn.status == "pending"
        assert wallet.available_for_withdrawal == 80.0
        assert wallet.balance == 200.0

    def test_complete_moves_balance(self, user, fund):
        fund(user, 200.0)
        txn, _ = request_withdrawal(user.id, 120)
        txn, wallet = complete_withdrawal(txn.id)
        assert txn.status == "completed"
        assert wallet.balance == 80.0
        assert wallet.total_withdrawn == 120.0
        assert wallet.available_for_withdrawal == 80.0

    def test_reject_restores_available(self, user, fund):
        fund(user, 200.0)
        txn, _ = request_withdrawal(user.id, 120)
        txn, wallet = reject_withdrawal(txn.id)
        assert txn.status == "cancelled"
        assert wallet.available_for_withdrawal == 200.0
        assert wallet.balance == 200.0

    def test_settling_twice_conflicts(self, user, fund):
        fund(user, 200.0)
        txn, _ = request_withdrawal(user.id, 50)
        complete_withdrawal(txn.id)
        with pytest.raises(WalletError) as exc:
            reject_withdrawal(txn.id)
        assert exc.value.status == 409

    def test_unknown_withdrawal(self, app):
        with pytest.raises(WalletError) as exc:
            complete_withdrawal(999)
        assert exc.value.status == 404


class TestOrderEarning:
    def test_credit_is_idempotent(self, user, make_automation, make_order):
        order = make_order(user, make_automation())
        first = credit_order_earning(order, SimpleNamespace(amount=635.0))
        second = credit_order_earning(order, SimpleNamespace(amount=635.0))
        assert first.id == second.id
        assert first.reference == f"order:{order.id}:earning"
        assert first.order_id == order.id
        assert Wallet.query.filter_by(user_id=user.id).one().balance == 635.0

    def test_non_positive_earning_not_credited(self, user, make_automation, make_order):
        order = make_order(user, make_automation())
        assert credit_order_earning(order, SimpleNamespace(amount=-325.0)) is None
        assert Transaction.query.count() == 0


class TestReconcile:
    def test_consistent_wallets_pass(self, user, fund):
        fund(user, 300.0)
        deposit(user.id, "paypal", 40)
        txn, _ = request_withdrawal(user.id, 100)
        complete_withdrawal(txn.id)
        assert expected_figures(user.id) == {"balance": 240.0, "available_for_withdrawal": 200.0}
        assert reconcile_wallets() == {"checked": 1, "anomalies": 0}
        assert AuditLog.query.count() == 0

    def test_tampered_wallet_flagged(self, user, make_user, fund):
        fund(user, 100.0)
        get_or_create_wallet(make_user().id)
        wallet = Wallet.query.filter_by(user_id=user.id).one()
        wallet.balance = 20.0
        db.session.commit()

        assert reconcile_wallets() == {"checked": 2, "anomalies": 1}
        log = AuditLog.query.filter_by(action="wallet_anomaly").one()
        meta = log.meta_dict()
        assert set(meta["issues"]) == {"balance_mismatch", "available_exceeds_balance"}
        assert meta["expected_balance"] == 100.0


class TestAuditEntry:
    def test_entry_serialises_meta(self):
        log = AuditLog.entry("withdrawal_rejected", "transaction", "7", actor_user_id=3, amount=-50.0)
        assert (log.action, log.target_id, log.actor_user_id) == ("withdrawal_rejected", 7, 3)
        assert log.meta_dict() == {"amount": -50.0}

    def test_meta_dict_tolerates_legacy_rows(self):
        assert AuditLog(action="x").meta_dict() == {}
        assert AuditLog(action="x", meta="not json").meta_dict() == {"raw": "not json"}
        assert AuditLog(action="x", meta="[1]").meta_dict() == {"value": [1]}
