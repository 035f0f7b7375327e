from datetime import datetime

from automart.services.analytics import summarize_orders


def order(title, category, amount, month, status="order_created"):
    return {
        "automation_title": title,
        "automation_category": category,
        "agreed_price_amount": amount,
        "created_at": datetime(2024, month, 10),
        "status": status,
    }


def test_empty():
    summary = summarize_orders([])
    assert summary["total_orders"] == 0
    assert summary["average_order_value"] == 0.0
    assert len(summary["monthly"]) == 12
    assert summary["monthly"][0] == {"month": "Jan", "orders": 0, "revenue": 0.0}
    assert summary["categories"] == []
    assert summary["top_automations"] == []


def test_buckets_and_totals():
    orders = [
        order("Drip", "Email Marketing", 1000, 1, "order_completed_successfully"),
        order("Drip", "Email Marketing", 1200, 1),
        order("Scoring", "Sales", 800, 3),
    ]
    summary = summarize_orders(orders)
    assert summary["total_orders"] == 3
    assert summary["total_revenue"] == 3000.0
    assert summary["average_order_value"] == 1000.0
    assert summary["completed_orders"] == 1
    assert summary["monthly"][0] == {"month": "Jan", "orders": 2, "revenue": 2200.0}
    assert summary["monthly"][2]["orders"] == 1
    assert summary["categories"] == [{"name": "Email Marketing", "value": 2}, {"name": "Sales", "value": 1}]


def test_top_automations_ranked_by_sales_then_revenue():
    orders = [order(f"A{i}", "X", 100 * i, 5) for i in range(1, 7)]
    orders.append(order("A1", "X", 100, 6))
    top = summarize_orders(orders)["top_automations"]
    assert len(top) == 5
    assert top[0] == {"title": "A1", "sales": 2, "revenue": 200.0}
    assert [t["title"] for t in top[1:]] == ["A6", "A5", "A4", "A3"]


def test_serialized_orders_use_price_detail():
    summary = summarize_orders([{"agreed_price_detail": {"amount": 450.0}, "created_at": "2024-01-01"}])
    assert summary["total_revenue"] == 450.0
    assert summary["categories"] == [{"name": "Uncategorized", "value": 1}]
    assert sum(m["orders"] for m in summary["monthly"]) == 0
