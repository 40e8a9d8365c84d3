from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import NonNegativeMoney, TenantKeys, empty_to_none


class InventoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    sku: str = Field(min_length=1, max_length=100)
    category: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    min_quantity: int = Field(default=0, ge=0)
    unit_price: Optional[NonNegativeMoney] = None
    supplier: Optional[str] = None

    @field_validator('description', 'category', 'supplier', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator('sku', mode='before')
    @classmethod
    def normalize_sku(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class InventoryCreate(InventoryBase):
    pass


class InventoryUpdate(TenantKeys):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    min_quantity: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[NonNegativeMoney] = None
    supplier: Optional[str] = None

    @field_validator('sku', mode='before')
    @classmethod
    def normalize_sku(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class InventoryResponse(InventoryBase):
    id: int
    company_id: int

    class Config:
        from_attributes = True


class StockAdjustment(BaseModel):
    delta: int
    reason: Optional[str] = None
