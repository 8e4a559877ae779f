"""Dashboard response schemas"""

from typing import Any

from pydantic import BaseModel

from ..classes.schemas import ClassResponse
from ..payments.schemas import PaymentResponse
from ..users.schemas import UserResponse


class RecentActivity(BaseModel):
    transactions: list[PaymentResponse]
    users: list[UserResponse]


class DashboardInsights(BaseModel):
    top_classes: list[ClassResponse]
    monthly_revenue: list[dict[str, Any]]
    user_growth: list[dict[str, Any]]


class DashboardStatsResponse(BaseModel):
    overview: dict[str, Any]
    recent_activity: RecentActivity
    insights: DashboardInsights
