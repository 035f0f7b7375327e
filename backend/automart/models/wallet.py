from datetime import datetime

from automart.extensions import db


class Wallet(db.Model):
    __tablename__ = "wallets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)

    balance = db.Column(db.Float, nullable=False, default=0.0)
    total_earned = db.Column(db.Float, nullable=False, default=0.0)
    total_withdrawn = db.Column(db.Float, nullable=False, default=0.0)
    available_for_withdrawal = db.Column(db.Float, nullable=False, default=0.0)

    currency = db.Column(db.String(8), nullable=False, default="USD")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "user_id": int(self.user_id),
            "balance": float(self.balance or 0.0),
            "total_earned": float(self.total_earned or 0.0),
            "total_withdrawn": float(self.total_withdrawn or 0.0),
            "available_for_withdrawal": float(self.available_for_withdrawal or 0.0),
            "currency": self.currency or "USD",
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
