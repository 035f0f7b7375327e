"""Per-order fee schedule and transaction ledger.

An order's ledger is generated at most once. The ``order_ledger_generations``
row is inserted in the same commit as the lines; its unique ``order_id`` makes
a concurrent second generation fail with an IntegrityError, which we treat as
"someone else already did it".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from automart.extensions import db
from automart.models import Automation, LedgerGeneration, Order, OrderTransaction
from automart.services import order_status as st
from automart.utils.money import format_signed_amount, round_money
from automart.utils.wallets import credit_order_earning

PAYMENT = "payment"
AUTOMATION_COST = "automation_cost"
MEETING_FEE = "meeting_fee"
SETUP_FEE = "setup_fee"
FOLLOW_UP_FEE = "follow_up_fee"
SERVICE_FEE = "service_fee"

# Statuses after which the platform's own deductions are considered settled.
_SETTLE_DEDUCTIONS = frozenset({
    st.PAYMENT_COMPLETED,
    st.VENDOR_PAYMENT_PENDING,
    st.VENDOR_PAYMENT_COMPLETED,
})


@dataclass(frozen=True)
class FeeSchedule:
    meeting_fee: float = 50.0
    setup_fee: float = 75.0
    follow_up_fee: float = 25.0
    service_fee_rate: float = 0.05
    payment_due_days: int = 30


@dataclass(frozen=True)
class LedgerLine:
    transaction_type: str
    amount: float
    description: str
    due_date: datetime | None = None
    status: str = "pending"


def build_ledger_lines(selling_price, automation_cost, payment_format: str, schedule: FeeSchedule | None = None, now: datetime | None = None) -> list[LedgerLine]:
    """Compute the ledger lines for an order without touching the database.

    Deductions are negative. The final ``payment`` line is the reseller's net
    earning (selling price plus every deduction) and may be negative.
    """
    schedule = schedule or FeeSchedule()
    now = now or datetime.utcnow()
    selling = round_money(float(selling_price or 0.0))
    cost = round_money(float(automation_cost or 0.0))

    lines: list[LedgerLine] = []
    if cost > 0:
        lines.append(LedgerLine(AUTOMATION_COST, -cost, "Automation cost"))
    lines.append(LedgerLine(MEETING_FEE, -round_money(schedule.meeting_fee), "Meeting fee"))
    lines.append(LedgerLine(SETUP_FEE, -round_money(schedule.setup_fee), "Setup fee"))
    if (payment_format or "").strip().lower() == "recurring":
        lines.append(LedgerLine(FOLLOW_UP_FEE, -round_money(schedule.follow_up_fee), "Follow-up fee"))

    margin = max(selling - cost, 0.0)
    service = round_money(margin * float(schedule.service_fee_rate))
    lines.append(LedgerLine(SERVICE_FEE, -service, f"Service fee ({schedule.service_fee_rate * 100:g}% of margin)"))

    net = round_money(selling + sum(line.amount for line in lines))
    lines.append(LedgerLine(PAYMENT, net, "Client payment (net earnings)", due_date=now + timedelta(days=int(schedule.payment_due_days))))
    return lines


def _order_cost(order: Order) -> float:
    automation = db.session.get(Automation, order.automation_id) if order.automation_id else None
    if automation is not None and automation.cost is not None:
        return float(automation.cost)
    return float(order.automation_cost or 0.0)


def _ledger_rows(order_id: int) -> list[OrderTransaction]:
    return (
        OrderTransaction.query.filter_by(order_id=int(order_id))
        .order_by(OrderTransaction.created_at.asc(), OrderTransaction.id.asc())
        .all()
    )


def _publish(realtime, event: str, rows) -> None:
    if realtime is None:
        return
    for row in rows:
        realtime.publish("order_transactions", event, row.to_dict())


def _already_generated(order_id: int) -> bool:
    return LedgerGeneration.query.filter_by(order_id=int(order_id)).first() is not None


def generate_order_transactions(order: Order, schedule: FeeSchedule | None = None, realtime=None) -> bool:
    """Insert the order's ledger once. Returns False if it already existed."""
    if _already_generated(order.id):
        return False

    now = datetime.utcnow()
    selling = float(order.agreed_price_amount or 0.0)
    cost = _order_cost(order)
    lines = build_ledger_lines(selling, cost, order.payment_format, schedule, now)

    marker = LedgerGeneration(
        order_id=int(order.id),
        selling_price=round_money(selling),
        automation_cost=round_money(cost),
        payment_format=order.payment_format or "fixed",
        created_at=now,
    )
    rows = [
        OrderTransaction(
            order_id=int(order.id),
            user_id=int(order.user_id),
            transaction_type=line.transaction_type,
            amount=line.amount,
            status=line.status,
            description=line.description,
            due_date=line.due_date,
            created_at=now,
            updated_at=now,
        )
        for line in lines
    ]

    try:
        db.session.add(marker)
        db.session.add_all(rows)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("ledger for order %s already generated by a concurrent request", order.id)
        return False

    _publish(realtime, "INSERT", rows)
    return True


def ensure_order_ledger(order: Order, schedule: FeeSchedule | None = None, realtime=None) -> list[OrderTransaction]:
    if not st.requires_ledger(order.status):
        return []
    generate_order_transactions(order, schedule, realtime)
    return _ledger_rows(int(order.id))


def sync_ledger_statuses(order: Order, realtime=None) -> list[OrderTransaction]:
    """Move pending ledger lines along with the order status. Returns changed rows."""
    status = order.status
    if status in _SETTLE_DEDUCTIONS:
        target, only_deductions = "completed", True
    elif status == st.ORDER_COMPLETED_SUCCESSFULLY:
        target, only_deductions = "completed", False
    elif status in st.CANCELLED_STATUSES:
        target, only_deductions = "cancelled", False
    else:
        return []

    now = datetime.utcnow()
    changed = []
    for row in _ledger_rows(int(order.id)):
        if row.status != "pending":
            continue
        if only_deductions and row.is_payment:
            continue
        row.status = target
        row.updated_at = now
        if target == "completed":
            row.completed_at = now
        changed.append(row)

    if not changed:
        return []

    db.session.commit()
    _publish(realtime, "UPDATE", changed)

    if status == st.ORDER_COMPLETED_SUCCESSFULLY:
        payment = next((r for r in changed if r.is_payment), None)
        if payment is not None:
            credit_order_earning(order, payment, realtime=realtime)

    return changed


def split_ledger(rows) -> dict:
    earnings = []
    deductions = []
    for row in rows:
        item = row.to_dict() if hasattr(row, "to_dict") else dict(row)
        item.setdefault("formatted_amount", format_signed_amount(item.get("amount")))
        if item.get("transaction_type") == PAYMENT:
            earnings.append(item)
        else:
            deductions.append(item)

    deducted = round_money(sum(float(i.get("amount") or 0.0) for i in deductions))
    payment_total = round_money(sum(float(i.get("amount") or 0.0) for i in earnings))
    return {
        "earnings": earnings,
        "deductions": deductions,
        "total_deductions": deducted,
        "formatted_total_deductions": format_signed_amount(deducted),
        "net_total": payment_total,
        "formatted_net_total": format_signed_amount(payment_total),
    }
