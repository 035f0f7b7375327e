from datetime import datetime

from automart.extensions import db
from automart.utils.money import format_signed_amount


class OrderTransaction(db.Model):
    __tablename__ = "order_transactions"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # payment | automation_cost | meeting_fee | setup_fee | follow_up_fee | service_fee
    transaction_type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)  # negative for deductions
    status = db.Column(db.String(16), nullable=False, default="pending")  # pending|completed|cancelled
    description = db.Column(db.String(240), nullable=True)

    due_date = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def is_payment(self) -> bool:
        return self.transaction_type == "payment"

    def to_dict(self):
        return {
            "id": int(self.id),
            "order_id": int(self.order_id),
            "user_id": int(self.user_id),
            "transaction_type": self.transaction_type,
            "amount": float(self.amount or 0.0),
            "formatted_amount": format_signed_amount(self.amount),
            "status": self.status,
            "description": self.description or "",
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class LedgerGeneration(db.Model):
    """One row per order whose ledger has been generated; the unique order_id is the idempotency guard."""

    __tablename__ = "order_ledger_generations"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True, index=True)

    selling_price = db.Column(db.Float, nullable=False, default=0.0)
    automation_cost = db.Column(db.Float, nullable=False, default=0.0)
    payment_format = db.Column(db.String(16), nullable=False, default="fixed")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
