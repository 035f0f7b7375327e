from datetime import datetime

from automart.extensions import db
from automart.utils.money import format_signed_amount


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    type = db.Column(db.String(32), nullable=False)  # deposit|withdrawal|order_earning
    amount = db.Column(db.Float, nullable=False, default=0.0)  # signed
    status = db.Column(db.String(16), nullable=False, default="pending")  # pending|completed|cancelled
    description = db.Column(db.String(240), nullable=True)

    reference = db.Column(db.String(160), nullable=True, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "user_id": int(self.user_id),
            "order_id": int(self.order_id) if self.order_id is not None else None,
            "type": self.type,
            "amount": float(self.amount or 0.0),
            "formatted_amount": format_signed_amount(self.amount),
            "status": self.status,
            "description": self.description or "",
            "reference": self.reference or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
