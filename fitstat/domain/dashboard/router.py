"""Dashboard router - Admin analytics endpoints"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ..classes.schemas import ClassResponse
from .schemas import DashboardStatsResponse, RecentActivity
from .service import DashboardService

logger = logging.getLogger(__name__)

# Every dashboard route is admin-only
router = APIRouter(
    prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(require_admin)]
)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_dashboard_stats()


@router.get("/analytics")
async def get_advanced_analytics(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_advanced_analytics()


@router.get("/user-engagement")
async def get_user_engagement(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_user_engagement()


@router.get("/revenue/category")
async def get_revenue_by_category(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_revenue_by_category()


@router.get("/trainer-performance")
async def get_trainer_performance(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_trainer_performance()


@router.get("/popular-slots")
async def get_popular_slots(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_popular_slots()


@router.get("/system-health")
async def get_system_health(service: DashboardService = Depends(get_dashboard_service)):
    return service.get_system_health()


@router.get("/recent-activity", response_model=RecentActivity)
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_recent_activity(limit)


@router.get("/top-classes", response_model=list[ClassResponse])
async def get_top_classes(
    limit: int = Query(5, ge=1, le=20),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_top_classes(limit)


__all__ = [
    "router",
    "get_dashboard_service",
]
