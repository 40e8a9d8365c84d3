from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import TenantKeys, empty_to_none


class EquipmentBase(BaseModel):
    customer_id: int
    type: str = Field(min_length=1, max_length=100)
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    install_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    next_service_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator('brand', 'model', 'serial_number', 'notes', 'install_date', 'last_service_date', 'next_service_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(TenantKeys):
    customer_id: Optional[int] = None
    type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    install_date: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    next_service_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator('brand', 'model', 'serial_number', 'notes', 'install_date', 'last_service_date', 'next_service_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)


class EquipmentResponse(EquipmentBase):
    id: int

    class Config:
        from_attributes = True
