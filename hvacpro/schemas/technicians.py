import enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import NonNegativeMoney, TenantKeys, empty_to_none


class TechnicianStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    off = "off"


def _clean_specialties(v):
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    return sorted({str(s).strip() for s in v if str(s).strip()})


class TechnicianBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    status: TechnicianStatus = TechnicianStatus.active
    hourly_rate: Optional[NonNegativeMoney] = None
    user_id: Optional[int] = None

    @field_validator('email', 'phone', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator('specialties', mode='before')
    @classmethod
    def specialties_as_set(cls, v):
        return _clean_specialties(v)


class TechnicianCreate(TechnicianBase):
    pass


class TechnicianUpdate(TenantKeys):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    specialties: Optional[List[str]] = None
    status: Optional[TechnicianStatus] = None
    hourly_rate: Optional[NonNegativeMoney] = None
    user_id: Optional[int] = None

    @field_validator('specialties', mode='before')
    @classmethod
    def specialties_as_set(cls, v):
        if v is None:
            return None
        return _clean_specialties(v)


class TechnicianResponse(TechnicianBase):
    id: int
    company_id: int

    class Config:
        from_attributes = True
