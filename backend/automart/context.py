"""Per-application services, built once by ``create_app``.

Handlers reach them through :func:`get_context` instead of module globals, so
each app (and each test app) gets its own rate limiter state, realtime
subscribers and policies.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from automart.services.ledger import FeeSchedule
from automart.services.order_status import OrderStatusPolicy
from automart.services.realtime import RealtimeHub
from automart.utils.security import RateLimiter
from automart.utils.security_log import SecurityBeacon
from automart.utils.wallets import DEPOSIT_FEE_POLICIES

EXTENSION_KEY = "automart"


@dataclass
class MarketplaceContext:
    status_policy: OrderStatusPolicy
    fee_schedule: FeeSchedule
    realtime: RealtimeHub
    auth_limiter: RateLimiter
    api_limiter: RateLimiter
    beacon: SecurityBeacon
    deposit_fee_policy: str
    withdrawal_minimum: float

    @classmethod
    def from_app(cls, app: Flask, emitter=None) -> "MarketplaceContext":
        cfg = app.config
        beacon = SecurityBeacon(
            url=cfg.get("SECURITY_LOG_URL", ""),
            timeout=cfg.get("SECURITY_LOG_TIMEOUT_SECONDS", 3.0),
            logger=app.logger,
        )

        def _limit_exceeded(identifier: str, attempts: int) -> None:
            beacon.emit("RATE_LIMIT_EXCEEDED", {"identifier": identifier, "attempts": attempts})

        deposit_policy = (cfg.get("DEPOSIT_FEE_POLICY") or "cosmetic").strip().lower()
        if deposit_policy not in DEPOSIT_FEE_POLICIES:
            raise RuntimeError(f"DEPOSIT_FEE_POLICY must be one of {', '.join(DEPOSIT_FEE_POLICIES)}")

        return cls(
            status_policy=OrderStatusPolicy(cfg.get("ORDER_STATUS_POLICY", "permissive")),
            fee_schedule=FeeSchedule(
                meeting_fee=float(cfg.get("MEETING_FEE", 50.0)),
                setup_fee=float(cfg.get("SETUP_FEE", 75.0)),
                follow_up_fee=float(cfg.get("FOLLOW_UP_FEE", 25.0)),
                service_fee_rate=float(cfg.get("SERVICE_FEE_RATE", 0.05)),
                payment_due_days=int(cfg.get("PAYMENT_DUE_DAYS", 30)),
            ),
            realtime=RealtimeHub(emitter=emitter, logger=app.logger),
            auth_limiter=RateLimiter(
                cfg.get("AUTH_RATE_LIMIT_ATTEMPTS", 5),
                cfg.get("AUTH_RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
                on_exceeded=_limit_exceeded,
            ),
            api_limiter=RateLimiter(
                cfg.get("API_RATE_LIMIT_REQUESTS", 100),
                cfg.get("API_RATE_LIMIT_WINDOW_SECONDS", 60),
            ),
            beacon=beacon,
            deposit_fee_policy=deposit_policy,
            withdrawal_minimum=float(cfg.get("WITHDRAWAL_MINIMUM", 10.0)),
        )


def get_context(app: Flask | None = None) -> MarketplaceContext:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
