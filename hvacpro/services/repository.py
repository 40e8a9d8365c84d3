"""
Tenant-scoped repository base.

A repository is bound to one TenantContext; every read filters by the
context's company (directly, or through the customers table for entities
whose tenancy is transitive) and every write takes company_id from the
context, never from the payload.
"""
import enum
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.models import Customer, Job, Technician
from .audit import record_audit
from .tenancy import TenantContext, assert_ownership


log = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_utc(dt: datetime) -> datetime:
    """Naive input is taken as UTC; aware input is converted."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _plain(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return to_utc(value)
    return value


def plain_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Unwrap enums and pin datetimes to UTC before they reach the ORM."""
    return {k: _plain(v) for k, v in data.items()}


class TenantRepository:
    model = None
    entity_type = "entity"
    label = "Entity"
    # "direct": model has company_id; "customer": tenancy goes through customer_id
    scope = "direct"
    immutable_keys = ("id", "company_id")
    default_order = None

    def __init__(self, db: Session, tenant: TenantContext):
        self.db = db
        self.tenant = tenant

    @property
    def company_id(self) -> int:
        return self.tenant.company_id

    # ---------- queries ----------
    def scoped_query(self) -> Query:
        query = self.db.query(self.model)
        if self.scope == "direct":
            return query.filter(self.model.company_id == self.company_id)
        return query.join(Customer, Customer.id == self.model.customer_id).filter(
            Customer.company_id == self.company_id
        )

    def list(self, **filters) -> List[Any]:
        query = self.scoped_query()
        for name, value in filters.items():
            if value is None:
                continue
            if isinstance(value, enum.Enum):
                value = value.value
            query = query.filter(getattr(self.model, name) == value)
        order = self.default_order if self.default_order is not None else self.model.id.asc()
        return query.order_by(order).all()

    def find(self, entity_id: int):
        """Owned row or None; rows of other tenants are indistinguishable from missing ones."""
        row = self.db.get(self.model, entity_id)
        if row is None:
            return None
        try:
            assert_ownership(self.db, row, self.company_id)
        except AuthorizationError:
            return None
        return row

    def get(self, entity_id: int):
        row = self.find(entity_id)
        if row is None:
            raise NotFoundError(f"{self.label} not found")
        return row

    # ---------- parent checks ----------
    def owned_customer(self, customer_id: int) -> Customer:
        """Path-parameter lookup: a foreign customer is reported as missing."""
        customer = self.db.get(Customer, customer_id)
        if customer is None or customer.company_id != self.company_id:
            raise NotFoundError("Customer not found")
        return customer

    def require_customer(self, customer_id: Optional[int], field: str = "customer_id") -> Customer:
        customer = self.db.get(Customer, customer_id) if customer_id is not None else None
        if customer is None or customer.company_id != self.company_id:
            raise ValidationError("Invalid customer for this business", fields={field: "Invalid customer for this business"})
        return customer

    def require_technician(self, technician_id: Optional[int], field: str = "technician_id") -> Optional[Technician]:
        if technician_id is None:
            return None
        tech = self.db.get(Technician, technician_id)
        if tech is None or tech.company_id != self.company_id:
            raise ValidationError("Invalid technician for this business", fields={field: "Invalid technician for this business"})
        return tech

    def require_job(self, job_id: Optional[int], field: str = "job_id") -> Optional[Job]:
        if job_id is None:
            return None
        job = self.db.get(Job, job_id)
        customer = self.db.get(Customer, job.customer_id) if job is not None else None
        if customer is None or customer.company_id != self.company_id:
            raise ValidationError("Invalid job for this business", fields={field: "Invalid job for this business"})
        return job

    # ---------- hooks ----------
    def prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if self.scope == "direct":
            data["company_id"] = self.company_id
        return data

    def prepare_update(self, row, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def after_write(self, row) -> None:
        pass

    # ---------- writes ----------
    def _conflict(self, exc: IntegrityError, message: str):
        self.db.rollback()
        log.info("write_conflict", entity=self.entity_type, error=str(exc.orig))
        raise ConflictError(message) from exc

    def flush(self, conflict_message: Optional[str] = None) -> None:
        try:
            self.db.flush()
        except IntegrityError as exc:
            self._conflict(exc, conflict_message or f"{self.label} already exists")

    def commit(self, conflict_message: Optional[str] = None) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self._conflict(exc, conflict_message or f"{self.label} already exists")

    def audit(self, row, action: str, changes: Optional[Dict] = None) -> None:
        record_audit(
            self.db,
            entity_type=self.entity_type,
            entity_id=row.id,
            action=action,
            company_id=self.company_id,
            actor_id=self.tenant.user_id,
            changes=changes,
        )

    def reject_key_changes(self, row, data: Dict[str, Any]) -> None:
        fields = {}
        for key in self.immutable_keys:
            if key not in data:
                continue
            value = data.pop(key)
            if value is None:
                continue
            current = self.company_id if key == "company_id" else getattr(row, key, None)
            if value != current:
                fields[key] = f"{key} cannot be changed"
        if fields:
            raise ValidationError("Invalid data", fields=fields)

    def reject_nulls(self, data: Dict[str, Any], model=None) -> None:
        columns = (model or self.model).__table__.columns
        fields = {
            key: "Field is required"
            for key, value in data.items()
            if value is None and key in columns and not columns[key].nullable
        }
        if fields:
            raise ValidationError("Invalid data", fields=fields)

    def create(self, payload: BaseModel):
        data = plain_values(payload.model_dump())
        for key in self.immutable_keys:
            data.pop(key, None)
        data = self.prepare_create(data)
        row = self.model(**data)
        self.db.add(row)
        self.flush()
        self.after_write(row)
        self.audit(row, "CREATE", changes=data)
        self.commit()
        self.db.refresh(row)
        log.info(f"{self.entity_type}_created", id=row.id, company_id=self.company_id)
        return row

    def update(self, entity_id: int, payload: BaseModel):
        row = self.get(entity_id)
        data = plain_values(payload.model_dump(exclude_unset=True))
        self.reject_key_changes(row, data)
        self.reject_nulls(data)
        data = self.prepare_update(row, data)
        changes = {}
        for key, value in data.items():
            old = getattr(row, key)
            if old != value:
                changes[key] = {"old": old, "new": value}
            setattr(row, key, value)
        self.flush()
        self.after_write(row)
        if changes:
            self.audit(row, "UPDATE", changes=changes)
        self.commit()
        self.db.refresh(row)
        log.info(f"{self.entity_type}_updated", id=row.id, company_id=self.company_id, fields=sorted(changes))
        return row

    def delete(self, entity_id: int) -> bool:
        row = self.find(entity_id)
        if row is None:
            return False
        self.audit(row, "DELETE")
        self.db.delete(row)
        self.db.commit()
        log.info(f"{self.entity_type}_deleted", id=entity_id, company_id=self.company_id)
        return True
