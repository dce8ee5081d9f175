"""Analytics router - admin dashboard metrics"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ..scheduling.clock import Clock, get_clock
from .service import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Analytics"])


def get_analytics_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> AnalyticsService:
    """Dependency injection for AnalyticsService"""
    return AnalyticsService(db, clock)


@router.get("/dashboard-metrics")
async def get_dashboard_metrics(
    current_admin: User = Depends(get_current_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return {"success": True, "metrics": service.get_dashboard_metrics()}


__all__ = ["router"]
