from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


def money(nullable: bool = True, default=None):
    return mapped_column(Numeric(10, 2, asdecimal=True), nullable=nullable, default=default)


# SQLite reuses the highest deleted rowid without AUTOINCREMENT
SQLITE_AUTOINCREMENT = {"sqlite_autoincrement": True}


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = int_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(50))
    zip_code: Mapped[Optional[str]] = mapped_column(String(20))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    settings: Mapped[Optional[dict]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)  # admin|owner|dispatcher|technician
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    memberships = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")


class UserRole(Base):
    """Membership edge between a user and the company whose data they may access."""

    __tablename__ = "user_roles"

    id: Mapped[int] = int_pk()
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)  # owner|admin|dispatcher|technician
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="memberships")


class UserSession(Base):
    __tablename__ = "sessions"

    sid: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(50))
    zip_code: Mapped[Optional[str]] = mapped_column(String(20))
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 8))
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(11, 8))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    jobs = relationship("Job", back_populates="customer", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="customer", cascade="all, delete-orphan")
    equipment = relationship("Equipment", back_populates="customer", cascade="all, delete-orphan")


class Technician(Base):
    __tablename__ = "technicians"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    specialties: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")  # active|inactive|off
    hourly_rate: Mapped[Optional[Decimal]] = money()


class Job(Base):
    """Service call. Tenancy is derived through the customer; there is no company_id here."""

    __tablename__ = "jobs"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    technician_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("technicians.id", ondelete="SET NULL"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    estimated_duration: Mapped[Optional[int]] = mapped_column(Integer)  # minutes
    actual_duration: Mapped[Optional[int]] = mapped_column(Integer)  # minutes
    address: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    customer = relationship("Customer", back_populates="jobs")
    technician = relationship("Technician")


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    job_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"))
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")  # draft|sent|paid|overdue
    subtotal: Mapped[Decimal] = money(nullable=False, default=Decimal("0.00"))
    tax: Mapped[Decimal] = money(nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = money(nullable=False, default=Decimal("0.00"))
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    paid_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    customer = relationship("Customer", back_populates="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    invoice_id: Mapped[int] = mapped_column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = money(nullable=False)
    total: Mapped[Decimal] = money(nullable=False)

    invoice = relationship("Invoice", back_populates="items")


class InventoryItem(Base):
    __tablename__ = "inventory"
    __table_args__ = (UniqueConstraint("company_id", "sku", name="uq_inventory_company_sku"), SQLITE_AUTOINCREMENT)

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Optional[Decimal]] = money()
    supplier: Mapped[Optional[str]] = mapped_column(String(255))


class Equipment(Base):
    __tablename__ = "equipment"
    __table_args__ = SQLITE_AUTOINCREMENT

    id: Mapped[int] = int_pk()
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False)  # AC, Heater, Duct, etc.
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    model: Mapped[Optional[str]] = mapped_column(String(100))
    serial_number: Mapped[Optional[str]] = mapped_column(String(100))
    install_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    next_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    customer = relationship("Customer", back_populates="equipment")


class GlobalPricebook(Base):
    """Read-only catalog seed shared by every tenant."""

    __tablename__ = "global_pricebook"

    id: Mapped[int] = int_pk()
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tech_notes: Mapped[Optional[str]] = mapped_column(Text)
    customer_description: Mapped[Optional[str]] = mapped_column(Text)
    standard_price: Mapped[Decimal] = money(nullable=False)
    membership_price: Mapped[Optional[Decimal]] = money()
    after_hours_price: Mapped[Optional[Decimal]] = money()
    est_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    equipment_type: Mapped[Optional[str]] = mapped_column(String(100))
    parts_kit: Mapped[Optional[str]] = mapped_column(String(255))
    warranty_code: Mapped[Optional[str]] = mapped_column(String(50))


class CompanyPricebook(Base):
    """Per-tenant copy of the global catalog, materialized on first read."""

    __tablename__ = "company_pricebook"
    __table_args__ = (UniqueConstraint("company_id", "sku", name="uq_company_pricebook_sku"), SQLITE_AUTOINCREMENT)

    id: Mapped[int] = int_pk()
    company_id: Mapped[int] = mapped_column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tech_notes: Mapped[Optional[str]] = mapped_column(Text)
    customer_description: Mapped[Optional[str]] = mapped_column(Text)
    standard_price: Mapped[Decimal] = money(nullable=False)
    membership_price: Mapped[Optional[Decimal]] = money()
    after_hours_price: Mapped[Optional[Decimal]] = money()
    est_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    equipment_type: Mapped[Optional[str]] = mapped_column(String(100))
    parts_kit: Mapped[Optional[str]] = mapped_column(String(255))
    warranty_code: Mapped[Optional[str]] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = int_pk()
    company_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # customer|job|invoice|...
    entity_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # CREATE|UPDATE|DELETE
    actor_id: Mapped[Optional[int]] = mapped_column(Integer)
    changes_json: Mapped[Optional[dict]] = mapped_column(JSON)
    timestamp_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    integrity_hash: Mapped[Optional[str]] = mapped_column(String(128))
