from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..schemas import DashboardView
from ..services.dashboard import dashboard_state
from ..services.feed import OrderFeedError
from ..utils.logging import logger

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("", response_model=DashboardView)
def dashboard():
    try:
        return dashboard_state.view()
    except OrderFeedError:
        logger.exception("Dashboard load failed")
        return JSONResponse(status_code=502, content={"error": "Order feed unavailable"})

@router.post("/refresh", response_model=DashboardView)
def refresh_dashboard():
    try:
        dashboard_state.refresh()
        return dashboard_state.view()
    except OrderFeedError:
        logger.exception("Dashboard refresh failed")
        return JSONResponse(status_code=502, content={"error": "Order feed unavailable"})
