from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import Customer, Invoice, Job, Technician
from .repository import as_utc, quantize_money
from .tenancy import TenantContext


ACTIVE_JOB_STATUSES = ("scheduled", "in_progress")


def dashboard_stats(db: Session, tenant: TenantContext, now: Optional[datetime] = None) -> dict:
    tz = pytz.timezone(settings.tz_default)
    now = (now or datetime.now(tz)).astimezone(tz)

    active_jobs = (
        db.query(Job)
        .join(Customer, Customer.id == Job.customer_id)
        .filter(Customer.company_id == tenant.company_id, Job.status.in_(ACTIVE_JOB_STATUSES))
        .count()
    )

    paid = (
        db.query(Invoice.total, Invoice.paid_date)
        .join(Customer, Customer.id == Invoice.customer_id)
        .filter(Customer.company_id == tenant.company_id, Invoice.status == "paid")
        .all()
    )
    revenue = Decimal("0.00")
    for total, paid_date in paid:
        if paid_date is None:
            continue
        local = as_utc(paid_date).astimezone(tz)
        if (local.year, local.month) == (now.year, now.month):
            revenue += total or Decimal("0.00")

    active_technicians = (
        db.query(Technician)
        .filter(Technician.company_id == tenant.company_id, Technician.status == "active")
        .count()
    )

    return {
        "active_jobs": active_jobs,
        "monthly_revenue": quantize_money(revenue),
        "active_technicians": active_technicians,
        "customer_satisfaction": settings.customer_satisfaction,
    }
