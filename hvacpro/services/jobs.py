"""
Service calls.

Jobs have no company column; they belong to a tenant through their
customer, so every query here joins customers.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytz
import structlog

from ..config import settings
from ..errors import NotFoundError
from ..models.models import Customer, Job, Technician
from .repository import TenantRepository, as_utc, utcnow


log = structlog.get_logger(__name__)


def local_day_bounds(day: date, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day in the business timezone."""
    tz = pytz.timezone(tz_name or settings.tz_default)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_today(tz_name: Optional[str] = None) -> date:
    tz = pytz.timezone(tz_name or settings.tz_default)
    return datetime.now(tz).date()


def customer_address(customer: Customer) -> Optional[str]:
    parts = [customer.address, customer.city, customer.state, customer.zip_code]
    joined = ", ".join(p for p in parts if p)
    return joined or None


class JobRepository(TenantRepository):
    model = Job
    entity_type = "job"
    label = "Job"
    scope = "customer"

    default_order = Job.created_at.desc()

    def today(self) -> List[Job]:
        start, end = local_day_bounds(local_today())
        return (
            self.scoped_query()
            .filter(Job.scheduled_date >= start, Job.scheduled_date < end)
            .order_by(Job.scheduled_date.asc(), Job.id.asc())
            .all()
        )

    def by_customer(self, customer_id: int) -> List[Job]:
        self.owned_customer(customer_id)
        return self.list(customer_id=customer_id)

    def by_technician(self, technician_id: int) -> List[Job]:
        tech = self.db.get(Technician, technician_id)
        if tech is None or tech.company_id != self.company_id:
            raise NotFoundError("Technician not found")
        return self.list(technician_id=technician_id)

    # ---------- status stamping ----------
    def _stamp(self, data: Dict[str, Any], started_at: Optional[datetime], actual_duration: Optional[int]) -> None:
        status = data.get("status")
        now = utcnow()
        if status == "in_progress":
            data["started_at"] = now
        elif status == "completed":
            if data.get("completed_date") is None:
                data["completed_date"] = now
            started = as_utc(started_at)
            if actual_duration is None and data.get("actual_duration") is None and started is not None:
                minutes = int((as_utc(data["completed_date"]) - started).total_seconds() // 60)
                data["actual_duration"] = max(minutes, 0)

    def prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        customer = self.require_customer(data.get("customer_id"))
        self.require_technician(data.get("technician_id"))
        if not data.get("address"):
            data["address"] = customer_address(customer)
        self._stamp(data, started_at=None, actual_duration=None)
        return data

    def prepare_update(self, row: Job, data: Dict[str, Any]) -> Dict[str, Any]:
        if "customer_id" in data:
            self.require_customer(data["customer_id"])
        if "technician_id" in data:
            self.require_technician(data["technician_id"])
        # Only a change of status stamps; repeating the current status is a no-op
        if "status" in data and data["status"] != row.status:
            self._stamp(data, started_at=row.started_at, actual_duration=row.actual_duration)
            log.info("job_status_changed", id=row.id, old=row.status, new=data["status"])
        return data

    def optimize_route(self, technician_id: int, day: date) -> Dict[str, Any]:
        """Day's stops for a technician in scheduled order.

        No distance optimisation is performed; the order is the schedule.
        """
        self.require_technician(technician_id)
        start, end = local_day_bounds(day)
        jobs = (
            self.scoped_query()
            .filter(
                Job.technician_id == technician_id,
                Job.scheduled_date >= start,
                Job.scheduled_date < end,
                Job.status != "cancelled",
            )
            .order_by(Job.scheduled_date.asc(), Job.id.asc())
            .all()
        )
        stops = []
        for job in jobs:
            address = job.address or customer_address(job.customer)
            if not address:
                continue
            stops.append(
                {
                    "job_id": job.id,
                    "customer_id": job.customer_id,
                    "address": address,
                    "scheduled_date": as_utc(job.scheduled_date),
                }
            )
        return {
            "technician_id": technician_id,
            "date": day,
            "total_jobs": len(jobs),
            "waypoints": [s["address"] for s in stops],
            "stops": stops,
        }
