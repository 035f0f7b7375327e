from datetime import datetime, timedelta
from unittest import mock

import pytest

from automart.extensions import db
from automart.models import LedgerGeneration, OrderTransaction, Transaction, Wallet
from automart.services import order_status as st
from automart.services.ledger import (
    FeeSchedule,
    build_ledger_lines,
    ensure_order_ledger,
    generate_order_transactions,
    split_ledger,
    sync_ledger_statuses,
)
from automart.services.realtime import RealtimeHub


def amounts(lines):
    return {line.transaction_type: line.amount for line in lines}


class TestBuildLedgerLines:
    def test_fixed_order(self):
        now = datetime(2024, 3, 1, 12, 0)
        lines = build_ledger_lines(1000, 200, "fixed", now=now)
        assert amounts(lines) == {
            "automation_cost": -200.0,
            "meeting_fee": -50.0,
            "setup_fee": -75.0,
            "service_fee": -40.0,
            "payment": 635.0,
        }
        payment = lines[-1]
        assert payment.transaction_type == "payment"
        assert payment.due_date == now + timedelta(days=30)
        assert all(line.status == "pending" for line in lines)

    def test_recurring_adds_follow_up(self):
        got = amounts(build_ledger_lines(1000, 200, "recurring"))
        assert got["follow_up_fee"] == -25.0
        assert got["payment"] == 610.0

    def test_zero_cost_has_no_cost_line(self):
        got = amounts(build_ledger_lines(500, 0, "fixed"))
        assert "automation_cost" not in got
        assert got["service_fee"] == -25.0
        assert got["payment"] == 350.0

    def test_service_fee_never_positive_when_selling_below_cost(self):
        got = amounts(build_ledger_lines(100, 300, "fixed"))
        assert got["service_fee"] == 0.0
        assert got["payment"] == -325.0

    def test_custom_schedule(self):
        schedule = FeeSchedule(meeting_fee=10, setup_fee=0, follow_up_fee=5, service_fee_rate=0.1, payment_due_days=7)
        lines = build_ledger_lines(1000, 200, "recurring", schedule)
        got = amounts(lines)
        assert got["service_fee"] == -80.0
        assert got["payment"] == 1000 - 200 - 10 - 0 - 5 - 80
        assert lines[-2].description == "Service fee (10% of margin)"


class TestEnsureLedger:
    def test_pre_ledger_status_generates_nothing(self, user, make_automation, make_order):
        order = make_order(user, make_automation(), status=st.REQUEST_UNDER_REVIEW)
        assert ensure_order_ledger(order) == []
        assert OrderTransaction.query.count() == 0

    def test_generated_once(self, user, make_automation, make_order):
        order = make_order(user, make_automation(), status=st.REQUEST_APPROVED)
        first = ensure_order_ledger(order)
        second = ensure_order_ledger(order)
        assert len(first) == 5
        assert [r.id for r in first] == [r.id for r in second]
        assert OrderTransaction.query.filter_by(order_id=order.id).count() == 5
        assert LedgerGeneration.query.filter_by(order_id=order.id).count() == 1

    def test_second_generation_returns_false(self, user, make_automation, make_order):
        order = make_order(user, make_automation(), status=st.MEETING_SCHEDULED)
        assert generate_order_transactions(order) is True
        assert generate_order_transactions(order) is False

    def test_concurrent_generation_loses_on_unique_marker(self, user, make_automation, make_order):
        order = make_order(user, make_automation(), status=st.MEETING_SCHEDULED)
        db.session.add(LedgerGeneration(order_id=order.id))
        db.session.commit()

        with mock.patch("automart.services.ledger._already_generated", return_value=False):
            assert generate_order_transactions(order) is False
        assert OrderTransaction.query.count() == 0
        assert LedgerGeneration.query.filter_by(order_id=order.id).count() == 1

    def test_uses_catalog_cost(self, user, make_automation, make_order):
        automation = make_automation(cost=300.0)
        order = make_order(user, automation, agreed=1000.0, status=st.REQUEST_APPROVED)
        order.automation_cost = 999.0
        db.session.commit()
        rows = ensure_order_ledger(order)
        cost = next(r for r in rows if r.transaction_type == "automation_cost")
        assert cost.amount == -300.0

    def test_publishes_inserts(self, app, user, make_automation, make_order):
        hub = RealtimeHub()
        seen = []
        hub.subscribe("order_transactions", seen.append)
        order = make_order(user, make_automation(), status=st.REQUEST_APPROVED)
        ensure_order_ledger(order, realtime=hub)
        assert len(seen) == 5
        assert {p["event"] for p in seen} == {"INSERT"}


class TestSyncLedgerStatuses:
    @pytest.fixture
    def order(self, user, make_automation, make_order):
        order = make_order(user, make_automation(), status=st.REQUEST_APPROVED)
        ensure_order_ledger(order)
        return order

    def _statuses(self, order):
        return {r.transaction_type: r.status for r in OrderTransaction.query.filter_by(order_id=order.id)}

    def test_non_settling_status_changes_nothing(self, order):
        order.status = st.TESTING_IN_PROGRESS
        assert sync_ledger_statuses(order) == []

    def test_payment_completed_settles_deductions_only(self, order):
        order.status = st.PAYMENT_COMPLETED
        changed = sync_ledger_statuses(order)
        assert len(changed) == 4
        statuses = self._statuses(order)
        assert statuses.pop("payment") == "pending"
        assert set(statuses.values()) == {"completed"}

    def test_completion_credits_wallet_once(self, order, user):
        order.status = st.ORDER_COMPLETED_SUCCESSFULLY
        sync_ledger_statuses(order)
        assert set(self._statuses(order).values()) == {"completed"}

        wallet = Wallet.query.filter_by(user_id=user.id).one()
        assert wallet.balance == 635.0
        assert wallet.available_for_withdrawal == 635.0
        assert wallet.total_earned == 635.0

        assert sync_ledger_statuses(order) == []
        assert Transaction.query.filter_by(type="order_earning").count() == 1

    def test_cancel_cancels_pending_lines(self, order):
        order.status = st.PAYMENT_COMPLETED
        sync_ledger_statuses(order)
        order.status = st.ORDER_CANCELLED_CLIENT
        changed = sync_ledger_statuses(order)
        assert [r.transaction_type for r in changed] == ["payment"]
        assert self._statuses(order)["payment"] == "cancelled"
        assert self._statuses(order)["setup_fee"] == "completed"


def test_split_ledger():
    rows = [
        {"transaction_type": "meeting_fee", "amount": -50.0},
        {"transaction_type": "service_fee", "amount": -40.0},
        {"transaction_type": "payment", "amount": 635.0},
    ]
    out = split_ledger(rows)
    assert len(out["earnings"]) == 1
    assert len(out["deductions"]) == 2
    assert out["total_deductions"] == -90.0
    assert out["formatted_total_deductions"] == "-$90.00"
    assert out["net_total"] == 635.0
    assert out["formatted_net_total"] == "+$635.00"
    assert out["deductions"][0]["formatted_amount"] == "-$50.00"
