from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter

from ..schemas import Order, PriorityResponse
from ..services.scoring import rank_orders, summarize
from ..utils.logging import logger

router = APIRouter(prefix="/api/orders", tags=["priority"])

_now_adapter = TypeAdapter(Optional[datetime])

@router.post("/calculate-priority", response_model=PriorityResponse)
async def calculate_priority(request: Request):
    """
    Body: {"orders": [Order, ...], "now": optional ISO-8601}
    Scores every order against `now` (each order's own order_time when omitted)
    and returns them ranked, most urgent first.
    """
    try:
        body = await request.json()
        orders = body.get("orders") if isinstance(body, dict) else None
        if not isinstance(orders, list):
            return JSONResponse(status_code=400,
                                content={"error": "Invalid request: orders array required"})

        now = _now_adapter.validate_python(body.get("now"))
        parsed = [Order.model_validate(o) for o in orders]
        ranked = rank_orders(parsed, now)

        for s in ranked:
            if s.flags:
                logger.warning("Order %s scored with flags %s", s.order_id, s.flags)
        summary = summarize(ranked)
        logger.info("Ranked %d orders (avg score %s)", len(ranked), summary.avg_score)

        return PriorityResponse(total_orders=len(ranked), orders=ranked, summary=summary)
    except Exception:
        logger.exception("Error calculating priorities")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
