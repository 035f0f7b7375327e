from datetime import datetime

from automart.extensions import db
from automart.utils.money import Money, format_money


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Client
    client_name = db.Column(db.String(120), nullable=False)
    client_email = db.Column(db.String(255), nullable=False)
    client_phone = db.Column(db.String(32), nullable=False)
    company_name = db.Column(db.String(120), nullable=False)
    industry = db.Column(db.String(120), nullable=False)
    website_url = db.Column(db.String(500), nullable=True)
    instagram_handle = db.Column(db.String(64), nullable=True)
    facebook_page = db.Column(db.String(64), nullable=True)
    twitter_handle = db.Column(db.String(64), nullable=True)
    linkedin_profile = db.Column(db.String(64), nullable=True)

    # Commercial terms (snapshot of the catalog item at order time)
    automation_id = db.Column(db.Integer, db.ForeignKey("automations.id"), nullable=False, index=True)
    automation_title = db.Column(db.String(200), nullable=False)
    automation_category = db.Column(db.String(120), nullable=True)
    automation_cost = db.Column(db.Float, nullable=False, default=0.0)
    automation_price_amount = db.Column(db.Float, nullable=False, default=0.0)
    automation_price_currency = db.Column(db.String(8), nullable=False, default="USD")
    automation_price_period = db.Column(db.String(16), nullable=False, default="one_time")

    agreed_price_amount = db.Column(db.Float, nullable=False, default=0.0)
    agreed_price_currency = db.Column(db.String(8), nullable=False, default="USD")
    agreed_price_period = db.Column(db.String(16), nullable=False, default="one_time")

    payment_format = db.Column(db.String(16), nullable=False, default="fixed")  # fixed|recurring

    project_description = db.Column(db.Text, nullable=False, default="")
    special_requirements = db.Column(db.Text, nullable=True)

    # Workflow
    status = db.Column(db.String(40), nullable=False, default="order_created", index=True)
    admin_notes = db.Column(db.Text, nullable=True)
    meeting_date = db.Column(db.String(200), nullable=False, default="")  # free text / scheduling link
    estimated_completion_date = db.Column(db.String(32), nullable=True)
    actual_completion_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def agreed_price(self) -> Money:
        return Money(float(self.agreed_price_amount or 0.0), self.agreed_price_currency or "USD", self.agreed_price_period or "one_time")

    @agreed_price.setter
    def agreed_price(self, money: Money) -> None:
        self.agreed_price_amount = round(float(money.amount), 2)
        self.agreed_price_currency = money.currency
        self.agreed_price_period = money.period

    @property
    def automation_price(self) -> Money:
        return Money(float(self.automation_price_amount or 0.0), self.automation_price_currency or "USD", self.automation_price_period or "one_time")

    @automation_price.setter
    def automation_price(self, money: Money) -> None:
        self.automation_price_amount = round(float(money.amount), 2)
        self.automation_price_currency = money.currency
        self.automation_price_period = money.period

    def to_dict(self) -> dict:
        return {
            "id": int(self.id),
            "user_id": int(self.user_id),
            "client_name": self.client_name,
            "client_email": self.client_email,
            "client_phone": self.client_phone,
            "company_name": self.company_name,
            "industry": self.industry,
            "website_url": self.website_url or "",
            "instagram_handle": self.instagram_handle or "",
            "facebook_page": self.facebook_page or "",
            "twitter_handle": self.twitter_handle or "",
            "linkedin_profile": self.linkedin_profile or "",
            "automation_id": int(self.automation_id),
            "automation_title": self.automation_title,
            "automation_category": self.automation_category or "",
            "automation_cost": float(self.automation_cost or 0.0),
            "automation_price": format_money(self.automation_price),
            "automation_price_detail": self.automation_price.to_dict(),
            "agreed_price": format_money(self.agreed_price),
            "agreed_price_detail": self.agreed_price.to_dict(),
            "payment_format": self.payment_format,
            "project_description": self.project_description or "",
            "special_requirements": self.special_requirements or "",
            "status": self.status,
            "admin_notes": self.admin_notes or "",
            "meeting_date": self.meeting_date or "",
            "estimated_completion_date": self.estimated_completion_date,
            "actual_completion_date": self.actual_completion_date.isoformat() if self.actual_completion_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
