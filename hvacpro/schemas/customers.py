from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import TenantKeys, empty_to_none


class CustomerBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    notes: Optional[str] = None

    @field_validator('email', 'phone', 'address', 'city', 'state', 'zip_code', 'notes', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(TenantKeys):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    notes: Optional[str] = None

    @field_validator('email', 'phone', 'address', 'city', 'state', 'zip_code', 'notes', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class CustomerResponse(CustomerBase):
    id: int
    company_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
