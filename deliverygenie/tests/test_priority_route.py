# tests/test_priority_route.py
from fastapi.testclient import TestClient

from deliverygenie.main import app

client = TestClient(app)

ORDER_TIME = "2026-10-18T12:00:00Z"

def order_payload(order_id, category, price, expiration_hours, priority, window_end):
    return {
        "order_id": order_id,
        "customer_name": "Customer",
        "customer_address": "Somewhere 1",
        "customer_priority": priority,
        "order_time": ORDER_TIME,
        "delivery_window_end": window_end,
        "products": [{
            "product_id": f"{order_id}-P1", "name": "item", "category": category,
            "price": price, "quantity": 1, "expiration_hours": expiration_hours,
        }],
    }

def test_health():
    assert client.get("/health").json() == {"ok": True}

def test_missing_orders_is_rejected():
    r = client.post("/api/orders/calculate-priority", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid request: orders array required"}

def test_non_list_orders_is_rejected():
    r = client.post("/api/orders/calculate-priority", json={"orders": {"order_id": "X"}})
    assert r.status_code == 400

def test_ranks_orders_and_summarizes():
    medicine = order_payload("ORD-MED", "medicine", 120, 17520, "standard", "2026-10-18T15:20:00Z")
    hot = order_payload("ORD-HOT", "hot_food", 65, 3, "urgent", "2026-10-18T12:25:00Z")

    r = client.post("/api/orders/calculate-priority", json={"orders": [medicine, hot]})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["total_orders"] == 2
    assert [o["order_id"] for o in body["orders"]] == ["ORD-HOT", "ORD-MED"]
    assert [o["suggested_delivery_order"] for o in body["orders"]] == [1, 2]
    top = body["orders"][0]
    assert top["priority_score"] == 89.0
    assert top["priority_class"] == "critical"
    assert top["minutes_until_deadline"] == 25
    assert set(top["breakdown"]) == {
        "temperature", "expiration", "customer_priority", "value", "delivery_window", "fragility",
    }
    assert body["summary"] == {"critical": 1, "high": 0, "medium": 1, "low": 0, "avg_score": 68.75}

def test_explicit_now_moves_the_deadline():
    hot = order_payload("ORD-HOT", "hot_food", 65, 3, "urgent", "2026-10-18T12:25:00Z")
    r = client.post("/api/orders/calculate-priority",
                    json={"orders": [hot], "now": "2026-10-18T12:40:00Z"})
    scored = r.json()["orders"][0]
    assert scored["minutes_until_deadline"] == -15
    assert "overdue" in scored["flags"]

def test_empty_batch():
    r = client.post("/api/orders/calculate-priority", json={"orders": []})
    assert r.status_code == 200
    assert r.json()["total_orders"] == 0
    assert r.json()["summary"]["avg_score"] == 0.0

def test_order_without_products_is_scored():
    o = order_payload("ORD-EMPTY", "snack", 1, 1, "standard", "2026-10-18T16:00:00Z")
    o["products"] = []
    r = client.post("/api/orders/calculate-priority", json={"orders": [o]})
    assert r.status_code == 200
    assert r.json()["orders"][0]["flags"] == ["no_products"]

def test_non_numeric_price_is_a_server_error():
    o = order_payload("ORD-BAD", "snack", "cheap", 10, "standard", "2026-10-18T13:00:00Z")
    r = client.post("/api/orders/calculate-priority", json={"orders": [o]})
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}

def test_nan_price_is_a_server_error():
    o = order_payload("ORD-NAN", "snack", "NaN", 10, "standard", "2026-10-18T13:00:00Z")
    r = client.post("/api/orders/calculate-priority", json={"orders": [o]})
    assert r.status_code == 500
