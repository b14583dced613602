"""
Driver dashboard data-loader.

Orders are pulled and ranked once per data refresh. Rendering a view only
recomputes the clock-dependent "time remaining" labels, never the scores.
"""
from __future__ import annotations
import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..config import settings
from ..schemas import (
    DashboardRow, DashboardSummary, DashboardView, Order, PriorityClass,
    ScoredOrder, TimeRemaining, as_utc,
)
from ..utils.logging import logger
from .feed import load_orders
from .scoring import rank_orders

def time_remaining(delivery_window_end: datetime, current_time: datetime) -> TimeRemaining:
    minutes = math.floor((as_utc(delivery_window_end) - as_utc(current_time)).total_seconds() / 60)
    if minutes <= 0:
        return TimeRemaining(text="overdue!", urgent=True)
    if minutes <= 15:
        return TimeRemaining(text=f"{minutes} min", urgent=True)
    if minutes <= 60:
        return TimeRemaining(text=f"{minutes} min", urgent=False)
    return TimeRemaining(text=f"{minutes // 60} h {minutes % 60} min", urgent=False)

def summarize_dashboard(ranked: List[ScoredOrder]) -> DashboardSummary:
    return DashboardSummary(
        total=len(ranked),
        critical=sum(1 for o in ranked if o.priority_class == PriorityClass.CRITICAL),
        high=sum(1 for o in ranked if o.priority_class == PriorityClass.HIGH),
        total_value=sum(o.total_value for o in ranked),
    )

def render(ranked: List[ScoredOrder], refreshed_at: datetime, current_time: datetime) -> DashboardView:
    return DashboardView(
        current_time=current_time,
        refreshed_at=refreshed_at,
        summary=summarize_dashboard(ranked),
        orders=[
            DashboardRow(order=o, time_remaining=time_remaining(o.delivery_window_end, current_time))
            for o in ranked
        ],
    )

class DashboardState:
    """Holds the last ranked snapshot. Safe to share between request threads."""

    def __init__(
        self,
        loader: Callable[[datetime], List[Order]] = load_orders,
        refresh_seconds: Optional[int] = None,
    ):
        self._loader = loader
        self._refresh_seconds = (settings.DASHBOARD_REFRESH_SECONDS
                                 if refresh_seconds is None else refresh_seconds)
        self._lock = threading.Lock()
        # one load at a time, so concurrent stale views hit the feed once
        self._refresh_lock = threading.Lock()
        self._ranked: List[ScoredOrder] = []
        self._refreshed_at: Optional[datetime] = None

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at

    def _stale(self, current_time: datetime) -> bool:
        if self._refreshed_at is None:
            return True
        if self._refresh_seconds <= 0:
            return False
        return current_time - self._refreshed_at >= timedelta(seconds=self._refresh_seconds)

    def refresh(self, now: Optional[datetime] = None) -> List[ScoredOrder]:
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        with self._refresh_lock:
            return self._reload(now)

    def _reload(self, now: datetime) -> List[ScoredOrder]:
        ranked = rank_orders(self._loader(now), now)
        with self._lock:
            # a snapshot never replaces a newer one
            if self._refreshed_at is not None and now < self._refreshed_at:
                logger.info("Dashboard refresh for %s skipped, snapshot from %s is newer",
                            now, self._refreshed_at)
                return self._ranked
            self._ranked = ranked
            self._refreshed_at = now
        logger.info("Dashboard refreshed: %d orders ranked", len(ranked))
        return ranked

    def view(self, current_time: Optional[datetime] = None) -> DashboardView:
        current_time = as_utc(current_time) if current_time is not None else datetime.now(timezone.utc)
        if self._stale(current_time):
            with self._refresh_lock:
                if self._stale(current_time):
                    self._reload(current_time)
        with self._lock:
            ranked, refreshed_at = self._ranked, self._refreshed_at
        return render(ranked, refreshed_at, current_time)

dashboard_state = DashboardState()
