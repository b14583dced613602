# services/feed.py
from datetime import datetime, timedelta
from typing import List

import requests
from pydantic import TypeAdapter, ValidationError

from ..config import settings
from ..schemas import Order, Product
from ..utils.logging import logger

class OrderFeedError(RuntimeError):
    pass

_orders_adapter = TypeAdapter(List[Order])

def fetch_orders() -> List[Order]:
    """
    GET the upstream order feed. Accepts a bare JSON list or {"orders": [...]}.
    Raises OrderFeedError on transport errors, non-2xx, non-JSON or bad payloads.
    """
    url = (settings.ORDERS_FEED_URL or "").strip()
    if not url:
        raise OrderFeedError("ORDERS_FEED_URL is not configured")

    headers = {
        "Accept": "application/json",
        "User-Agent": "deliverygenie/1.0 (+requests)",
    }
    if settings.ORDERS_FEED_TOKEN:
        headers["Authorization"] = f"Bearer {settings.ORDERS_FEED_TOKEN}"

    try:
        r = requests.get(url, headers=headers, timeout=settings.ORDERS_FEED_TIMEOUT)
    except requests.RequestException as e:
        raise OrderFeedError(f"Order feed request failed: {e}") from e

    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        snippet = (r.text or "")[:1000]
        logger.error("Order feed HTTP %s\nURL: %s\nBody:\n%s", r.status_code, r.url, snippet)
        raise OrderFeedError(f"Order feed returned HTTP {r.status_code}") from e

    ct = (r.headers.get("Content-Type") or "").lower()
    if "application/json" not in ct:
        raise OrderFeedError(f"Non-JSON response ({ct or 'no content-type'}) from {r.url}")
    try:
        data = r.json()
    except ValueError as e:
        raise OrderFeedError(f"Invalid JSON from {r.url}") from e

    items = data.get("orders") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise OrderFeedError("Order feed payload has no orders list")
    try:
        orders = _orders_adapter.validate_python(items)
    except ValidationError as e:
        raise OrderFeedError(f"Order feed payload is malformed: {e.error_count()} error(s)") from e

    logger.info("Fetched %d orders from %s", len(orders), url)
    return orders

def sample_orders(now: datetime) -> List[Order]:
    """Built-in demo orders, with delivery windows relative to `now`."""
    def window(minutes: int) -> datetime:
        return now + timedelta(minutes=minutes)

    return [
        Order(
            order_id="ORD001", customer_name="Somchai Jaidee",
            customer_address="Eton Dormitory, 5th floor, room 501",
            delivery_latitude=13.9660, delivery_longitude=100.5970,
            customer_priority="urgent", order_time=now, delivery_window_end=window(25),
            products=[
                Product(product_id="P001", name="Basil pork rice box", category="hot_food",
                        price=65, quantity=1, expiration_hours=3),
                Product(product_id="P002", name="Drinking water", category="beverage",
                        price=10, quantity=2, expiration_hours=8760),
            ],
        ),
        Order(
            order_id="ORD002", customer_name="Somying Raksuay",
            customer_address="Lumpini Dormitory, building A, 3rd floor",
            delivery_latitude=13.9680, delivery_longitude=100.5980,
            customer_priority="urgent", order_time=now, delivery_window_end=window(30),
            products=[
                Product(product_id="P003", name="Vanilla ice cream", category="frozen",
                        price=89, quantity=2, expiration_hours=720),
                Product(product_id="P004", name="Cola", category="beverage",
                        price=20, quantity=1, expiration_hours=8760),
            ],
        ),
        Order(
            order_id="ORD003", customer_name="Wichai Mungkung",
            customer_address="Rangsit Center, SC building, room 210",
            delivery_latitude=13.9640, delivery_longitude=100.5960,
            customer_priority="high", order_time=now, delivery_window_end=window(45),
            products=[
                Product(product_id="P005", name="Tuna egg sandwich", category="chilled",
                        price=45, quantity=2, expiration_hours=8),
                Product(product_id="P006", name="Iced coffee", category="beverage",
                        price=40, quantity=1, expiration_hours=24),
            ],
        ),
        Order(
            order_id="ORD004", customer_name="Nida Suksan",
            customer_address="Thammasat Hospital, outpatient building",
            delivery_latitude=13.9700, delivery_longitude=100.5930,
            customer_priority="high", order_time=now, delivery_window_end=window(60),
            products=[
                Product(product_id="P007", name="Paracetamol", category="medicine",
                        price=120, quantity=1, expiration_hours=17520),
                Product(product_id="P008", name="Electrolyte drink", category="beverage",
                        price=15, quantity=3, expiration_hours=8760),
            ],
        ),
        Order(
            order_id="ORD005", customer_name="Prayut Yuyen",
            customer_address="Rangsit Market, shop 42",
            delivery_latitude=13.9620, delivery_longitude=100.5920,
            customer_priority="standard", order_time=now, delivery_window_end=window(120),
            products=[
                Product(product_id="P009", name="Instant noodles", category="snack",
                        price=25, quantity=5, expiration_hours=4380),
                Product(product_id="P010", name="Drinking water 6-pack", category="beverage",
                        price=60, quantity=1, expiration_hours=8760),
            ],
        ),
    ]

def load_orders(now: datetime) -> List[Order]:
    if settings.ORDERS_FEED_URL:
        return fetch_orders()
    return sample_orders(now)
