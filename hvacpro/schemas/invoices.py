import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import Money, NonNegativeMoney, TenantKeys, empty_to_none


class InvoiceStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    paid = "paid"
    overdue = "overdue"


class InvoiceItemBase(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: int = Field(ge=1)
    unit_price: NonNegativeMoney


class InvoiceItemCreate(InvoiceItemBase):
    pass


class InvoiceItemUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    quantity: Optional[int] = Field(default=None, ge=1)
    unit_price: Optional[NonNegativeMoney] = None


class InvoiceItemResponse(InvoiceItemBase):
    id: int
    invoice_id: int
    total: Money

    class Config:
        from_attributes = True


class InvoiceBase(BaseModel):
    customer_id: int
    job_id: Optional[int] = None
    status: InvoiceStatus = InvoiceStatus.draft
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None

    @field_validator('due_date', 'paid_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class InvoiceCreate(InvoiceBase):
    invoice_number: Optional[str] = Field(default=None, max_length=50)
    subtotal: Optional[NonNegativeMoney] = None
    tax: Optional[NonNegativeMoney] = None
    total: Optional[NonNegativeMoney] = None
    items: List[InvoiceItemCreate] = Field(default_factory=list)

    @field_validator('invoice_number', mode='before')
    @classmethod
    def blank_number(cls, v):
        return empty_to_none(v)


class InvoiceUpdate(TenantKeys):
    customer_id: Optional[int] = None
    job_id: Optional[int] = None
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    status: Optional[InvoiceStatus] = None
    subtotal: Optional[NonNegativeMoney] = None
    tax: Optional[NonNegativeMoney] = None
    total: Optional[NonNegativeMoney] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None

    @field_validator('due_date', 'paid_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class InvoiceResponse(InvoiceBase):
    id: int
    invoice_number: str
    subtotal: Money
    tax: Money
    total: Money
    created_at: Optional[datetime] = None
    items: List[InvoiceItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True
