import json
from datetime import datetime

from automart.extensions import db


def _load_list(raw) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return [str(raw)]
    if isinstance(value, list):
        return value
    return [value]


def _dump_list(value) -> str:
    if value is None:
        return "[]"
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",") if v.strip()]
    return json.dumps(list(value))


class Automation(db.Model):
    __tablename__ = "automations"

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # JSON lists stored as text
    category_json = db.Column(db.Text, nullable=False, default="[]")
    platforms_json = db.Column(db.Text, nullable=False, default="[]")
    features_json = db.Column(db.Text, nullable=False, default="[]")
    requirements_json = db.Column(db.Text, nullable=False, default="[]")
    media_json = db.Column(db.Text, nullable=True)

    cost = db.Column(db.Float, nullable=False, default=0.0)
    suggested_price = db.Column(db.Float, nullable=False, default=0.0)
    profit = db.Column(db.Float, nullable=False, default=0.0)
    margin = db.Column(db.Float, nullable=False, default=0.0)

    rating = db.Column(db.Float, nullable=False, default=0.0)
    reviews_count = db.Column(db.Integer, nullable=False, default=0)
    complexity = db.Column(db.String(32), nullable=True)
    setup_time = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="Active", index=True)  # Active|Inactive

    # Exclusive automations are visible to a single user
    assigned_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def category(self) -> list:
        return _load_list(self.category_json)

    @category.setter
    def category(self, value) -> None:
        self.category_json = _dump_list(value)

    @property
    def platforms(self) -> list:
        return _load_list(self.platforms_json)

    @platforms.setter
    def platforms(self, value) -> None:
        self.platforms_json = _dump_list(value)

    @property
    def features(self) -> list:
        return _load_list(self.features_json)

    @features.setter
    def features(self, value) -> None:
        self.features_json = _dump_list(value)

    @property
    def requirements(self) -> list:
        return _load_list(self.requirements_json)

    @requirements.setter
    def requirements(self, value) -> None:
        self.requirements_json = _dump_list(value)

    @property
    def media(self):
        if not self.media_json:
            return None
        try:
            return json.loads(self.media_json)
        except (TypeError, ValueError):
            return None

    @media.setter
    def media(self, value) -> None:
        self.media_json = json.dumps(value) if value is not None else None

    @property
    def is_active(self) -> bool:
        return (self.status or "").strip().lower() == "active"

    @property
    def is_exclusive(self) -> bool:
        return self.assigned_user_id is not None

    def recompute_economics(self) -> None:
        cost = float(self.cost or 0.0)
        price = float(self.suggested_price or 0.0)
        self.profit = round(price - cost, 2)
        self.margin = round((self.profit / price) * 100.0, 1) if price > 0 else 0.0

    def visible_to(self, user_id: int | None, is_admin: bool = False) -> bool:
        if is_admin or self.assigned_user_id is None:
            return True
        return user_id is not None and int(self.assigned_user_id) == int(user_id)

    def to_dict(self) -> dict:
        return {
            "id": int(self.id),
            "title": self.title,
            "description": self.description or "",
            "category": self.category,
            "platforms": self.platforms,
            "features": self.features,
            "requirements": self.requirements,
            "media": self.media,
            "cost": float(self.cost or 0.0),
            "suggested_price": float(self.suggested_price or 0.0),
            "profit": float(self.profit or 0.0),
            "margin": float(self.margin or 0.0),
            "rating": float(self.rating or 0.0),
            "reviews_count": int(self.reviews_count or 0),
            "complexity": self.complexity or "",
            "setup_time": self.setup_time or "",
            "status": self.status,
            "is_active": self.is_active,
            "assigned_user_id": int(self.assigned_user_id) if self.assigned_user_id is not None else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class UserAutomation(db.Model):
    __tablename__ = "user_automations"
    __table_args__ = (
        db.UniqueConstraint("user_id", "automation_id", name="uq_user_automations_user_automation"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    automation_id = db.Column(db.Integer, db.ForeignKey("automations.id"), nullable=False, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Snapshot at add-time
    automation_title = db.Column(db.String(200), nullable=False, default="")
    automation_cost = db.Column(db.Float, nullable=False, default=0.0)
    automation_suggested_price = db.Column(db.Float, nullable=False, default=0.0)
    automation_category = db.Column(db.String(120), nullable=True)

    added_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": int(self.id),
            "user_id": int(self.user_id),
            "automation_id": int(self.automation_id),
            "is_active": bool(self.is_active),
            "automation_title": self.automation_title,
            "automation_cost": float(self.automation_cost or 0.0),
            "automation_suggested_price": float(self.automation_suggested_price or 0.0),
            "automation_category": self.automation_category or "",
            "added_at": self.added_at.isoformat() if self.added_at else None,
        }
