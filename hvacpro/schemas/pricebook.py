from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .common import Money, NonNegativeMoney


class PricebookEntry(BaseModel):
    id: int
    sku: str
    category: str
    task_name: str
    tech_notes: Optional[str] = None
    customer_description: Optional[str] = None
    standard_price: Money
    membership_price: Optional[Money] = None
    after_hours_price: Optional[Money] = None
    est_hours: Optional[Decimal] = None
    equipment_type: Optional[str] = None
    parts_kit: Optional[str] = None
    warranty_code: Optional[str] = None

    class Config:
        from_attributes = True


class CompanyPricebookEntry(PricebookEntry):
    company_id: int
    is_active: bool = True


class CompanyPricebookUpdate(BaseModel):
    task_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    customer_description: Optional[str] = None
    tech_notes: Optional[str] = None
    standard_price: Optional[NonNegativeMoney] = None
    membership_price: Optional[NonNegativeMoney] = None
    after_hours_price: Optional[NonNegativeMoney] = None
    est_hours: Optional[Decimal] = Field(default=None, ge=0, max_digits=5, decimal_places=2)
    is_active: Optional[bool] = None
