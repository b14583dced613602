from __future__ import annotations
import math
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

class Category(str, Enum):
    HOT_FOOD = "hot_food"
    FROZEN = "frozen"
    CHILLED = "chilled"
    BEVERAGE = "beverage"
    SNACK = "snack"
    DAILY_GOODS = "daily_goods"
    MEDICINE = "medicine"

class CustomerPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    STANDARD = "standard"
    ECONOMY = "economy"

class PriorityClass(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

def as_utc(value: datetime) -> datetime:
    """Naive timestamps are read as UTC so every instant compares."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

# ----------------------------
# Orders as supplied by callers
# ----------------------------
class Product(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    product_id: str
    name: str
    # unknown categories are scored with the fallback, not rejected
    category: str
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    expiration_hours: float = Field(ge=0)

class Order(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    order_id: str
    customer_name: str
    customer_address: str
    delivery_latitude: Optional[float] = None
    delivery_longitude: Optional[float] = None
    customer_priority: str
    order_time: datetime
    delivery_window_end: datetime
    products: Tuple[Product, ...] = ()

    @field_validator("order_time", "delivery_window_end")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def _finite_total_value(self):
        if not math.isfinite(sum(p.price * p.quantity for p in self.products)):
            raise ValueError("order total value overflows")
        return self

# ----------------------------
# Scorer output
# ----------------------------
class ScoreBreakdown(BaseModel):
    """Weighted contribution of each component to the final score."""
    model_config = ConfigDict(frozen=True)

    temperature: float
    expiration: float
    customer_priority: float
    value: float
    delivery_window: float
    fragility: float

    def total(self) -> float:
        return (self.temperature + self.expiration + self.customer_priority
                + self.value + self.delivery_window + self.fragility)

class ScoredOrder(Order):
    priority_score: float
    priority_class: PriorityClass
    breakdown: ScoreBreakdown
    highest_temp_requirement: str
    total_value: float
    earliest_expiration: Optional[float]
    minutes_until_deadline: int
    flags: List[str] = Field(default_factory=list)
    suggested_delivery_order: Optional[int] = None

# ----------------------------
# Batch endpoint
# ----------------------------
class PrioritySummary(BaseModel):
    critical: int
    high: int
    medium: int
    low: int
    avg_score: float

class PriorityResponse(BaseModel):
    success: bool = True
    total_orders: int
    orders: List[ScoredOrder]
    summary: PrioritySummary

# ----------------------------
# Dashboard
# ----------------------------
class TimeRemaining(BaseModel):
    text: str
    urgent: bool

class DashboardRow(BaseModel):
    order: ScoredOrder
    time_remaining: TimeRemaining

class DashboardSummary(BaseModel):
    total: int
    critical: int
    high: int
    total_value: float

class DashboardView(BaseModel):
    current_time: datetime
    refreshed_at: datetime
    summary: DashboardSummary
    orders: List[DashboardRow]
