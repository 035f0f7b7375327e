from __future__ import annotations

import calendar
from collections import Counter, OrderedDict
from typing import Any, Iterable

from automart.services.order_status import ORDER_COMPLETED_SUCCESSFULLY
from automart.utils.money import round_money

TOP_AUTOMATIONS = 5


def _get(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _revenue(order: Any) -> float:
    amount = _get(order, "agreed_price_amount")
    if amount is None:
        detail = _get(order, "agreed_price_detail") or {}
        amount = detail.get("amount", 0.0)
    try:
        return float(amount or 0.0)
    except (TypeError, ValueError):
        return 0.0


def summarize_orders(orders: Iterable[Any]) -> dict:
    """Reduce a user's orders into the dashboard analytics payload."""
    monthly: "OrderedDict[str, dict]" = OrderedDict(
        (calendar.month_abbr[m], {"month": calendar.month_abbr[m], "orders": 0, "revenue": 0.0}) for m in range(1, 13)
    )
    categories: Counter = Counter()
    sales: dict[str, dict] = {}

    total_orders = 0
    total_revenue = 0.0
    completed = 0

    for order in orders:
        total_orders += 1
        revenue = _revenue(order)
        total_revenue += revenue

        created = _get(order, "created_at")
        if created is not None and hasattr(created, "month"):
            bucket = monthly[calendar.month_abbr[created.month]]
            bucket["orders"] += 1
            bucket["revenue"] = round_money(bucket["revenue"] + revenue)

        category = _get(order, "automation_category") or "Uncategorized"
        categories[category] += 1

        title = _get(order, "automation_title") or "Unknown"
        entry = sales.setdefault(title, {"title": title, "sales": 0, "revenue": 0.0})
        entry["sales"] += 1
        entry["revenue"] = round_money(entry["revenue"] + revenue)

        if _get(order, "status") == ORDER_COMPLETED_SUCCESSFULLY:
            completed += 1

    top = sorted(sales.values(), key=lambda e: (e["sales"], e["revenue"]), reverse=True)[:TOP_AUTOMATIONS]

    return {
        "monthly": list(monthly.values()),
        "categories": [{"name": name, "value": count} for name, count in categories.most_common()],
        "top_automations": top,
        "total_orders": total_orders,
        "total_revenue": round_money(total_revenue),
        "average_order_value": round_money(total_revenue / total_orders) if total_orders else 0.0,
        "completed_orders": completed,
    }
