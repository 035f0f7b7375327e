import json
from datetime import datetime

from automart.extensions import db


ORDER_STATUS_CHANGED = "order_status_changed"
WITHDRAWAL_COMPLETED = "withdrawal_completed"
WITHDRAWAL_REJECTED = "withdrawal_rejected"
WALLET_ANOMALY = "wallet_anomaly"


class AuditLog(db.Model):
    """Admin decisions and reconciler findings. `meta` holds a JSON object."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    actor_user_id = db.Column(db.Integer, nullable=True)
    action = db.Column(db.String(64), nullable=False)
    target_type = db.Column(db.String(64), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    meta = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @classmethod
    def entry(cls, action: str, target_type: str, target_id: int, actor_user_id=None, created_at=None, **meta):
        """Build (not add) a row for `action` on one order, transaction or wallet."""
        return cls(
            actor_user_id=int(actor_user_id) if actor_user_id else None,
            action=action,
            target_type=target_type,
            target_id=int(target_id),
            meta=json.dumps(meta, default=str) if meta else None,
            created_at=created_at or datetime.utcnow(),
        )

    def meta_dict(self) -> dict:
        if not self.meta:
            return {}
        try:
            data = json.loads(self.meta)
        except ValueError:
            return {"raw": self.meta}
        return data if isinstance(data, dict) else {"value": data}

    def to_dict(self):
        return {
            "id": int(self.id),
            "actor_user_id": int(self.actor_user_id) if self.actor_user_id else None,
            "action": self.action,
            "target_type": self.target_type or "",
            "target_id": int(self.target_id) if self.target_id else None,
            "meta": self.meta_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
