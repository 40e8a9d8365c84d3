from decimal import Decimal

from pydantic import BaseModel


class DashboardStats(BaseModel):
    active_jobs: int
    monthly_revenue: Decimal
    active_technicians: int
    customer_satisfaction: float
