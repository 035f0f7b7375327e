from datetime import datetime

from automart.extensions import db

REQUEST_STATUSES = ("pending", "reviewing", "quoted", "approved", "in_progress", "completed", "rejected")
REQUEST_PRIORITIES = ("low", "medium", "high", "urgent")


class CustomRequest(db.Model):
    __tablename__ = "custom_requests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    requirements = db.Column(db.Text, nullable=True)
    budget_range = db.Column(db.String(64), nullable=True)

    priority = db.Column(db.String(16), nullable=False, default="medium")
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    admin_notes = db.Column(db.Text, nullable=True)
    estimated_cost = db.Column(db.Float, nullable=True)
    estimated_delivery = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "user_id": int(self.user_id),
            "title": self.title,
            "description": self.description,
            "requirements": self.requirements or "",
            "budget_range": self.budget_range or "",
            "priority": self.priority,
            "status": self.status,
            "admin_notes": self.admin_notes or "",
            "estimated_cost": float(self.estimated_cost) if self.estimated_cost is not None else None,
            "estimated_delivery": self.estimated_delivery or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
