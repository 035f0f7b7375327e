"""
Shared fixtures for the Automart API tests.

- ``app`` runs on TestingConfig (in-memory SQLite, Socket.IO disabled) with
  the schema created up front and the app context pushed for the test.
- ``make_user`` / ``make_automation`` / ``make_order`` build rows directly.
- ``auth_headers`` turns a user into ``Authorization: Bearer`` headers.
"""

import pytest
from flask import g

from automart import create_app
from automart.config import TestingConfig
from automart.context import get_context
from automart.extensions import db
from automart.models import Automation, Order, User
from automart.utils.jwt_utils import create_access_token
from automart.utils.money import Money

STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def app():
    app = create_app(TestingConfig)

    # Requests reuse the pushed app context, so g would keep the previous caller.
    @app.before_request
    def _forget_cached_user():
        g.pop("_login_user", None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    return get_context(app)


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(email=None, role="user", password=STRONG_PASSWORD):
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def user(make_user):
    return make_user(email="reseller@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin")


@pytest.fixture
def make_automation(app):
    def _make(title="Email Drip Campaign", cost=200.0, suggested_price=1000.0, category=("Email Marketing",), platforms=("Zapier",), **extra):
        a = Automation(
            title=title,
            description=extra.pop("description", f"{title} automation"),
            cost=cost,
            suggested_price=suggested_price,
            status=extra.pop("status", "Active"),
            **extra,
        )
        a.category = list(category)
        a.platforms = list(platforms)
        a.features = ["Scheduling"]
        a.recompute_economics()
        db.session.add(a)
        db.session.commit()
        return a

    return _make


@pytest.fixture
def make_order(app):
    def _make(user, automation, agreed=1000.0, status="order_created", payment_format="fixed"):
        order = Order(
            user_id=user.id,
            client_name="Jane Client",
            client_email="jane@client.com",
            client_phone="+1 555 123 4567",
            company_name="Client Co",
            industry="Retail",
            automation_id=automation.id,
            automation_title=automation.title,
            automation_category=", ".join(automation.category),
            automation_cost=float(automation.cost),
            payment_format=payment_format,
            project_description="Automate onboarding emails for new customers",
            meeting_date="Next Tuesday 10am",
            status=status,
        )
        order.automation_price = Money(float(automation.suggested_price))
        order.agreed_price = Money(float(agreed))
        db.session.add(order)
        db.session.commit()
        return order

    return _make


@pytest.fixture
def order_payload():
    def _payload(automation_id, **overrides):
        data = {
            "automation_id": automation_id,
            "client_name": "Jane Client",
            "client_email": "jane@client.com",
            "client_phone": "+1 555 123 4567",
            "company_name": "Client Co",
            "industry": "Retail",
            "project_description": "Automate onboarding emails for new customers",
            "meeting_date": "Next Tuesday 10am",
            "payment_format": "fixed",
            "agreed_price": "$1,200",
        }
        data.update(overrides)
        return data

    return _payload
