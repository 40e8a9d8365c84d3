import enum
from datetime import date as date_type, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import TenantKeys, empty_to_none


class JobStatus(str, enum.Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class JobPriority(str, enum.Enum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


# The dashboard forms speak medium/emergency
PRIORITY_ALIASES = {"medium": "normal", "emergency": "urgent"}


def normalize_priority(v):
    if isinstance(v, str):
        v = v.strip().lower()
        return PRIORITY_ALIASES.get(v, v)
    return v


class JobBase(BaseModel):
    customer_id: int
    technician_id: Optional[int] = None
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: JobStatus = JobStatus.scheduled
    priority: JobPriority = JobPriority.normal
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    actual_duration: Optional[int] = Field(default=None, ge=0)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('description', 'address', 'notes', 'scheduled_date', 'completed_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator('priority', mode='before')
    @classmethod
    def priority_alias(cls, v):
        return normalize_priority(v)


class JobCreate(JobBase):
    pass


class JobUpdate(TenantKeys):
    customer_id: Optional[int] = None
    technician_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[JobStatus] = None
    priority: Optional[JobPriority] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    estimated_duration: Optional[int] = Field(default=None, ge=0)
    actual_duration: Optional[int] = Field(default=None, ge=0)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('description', 'address', 'notes', 'scheduled_date', 'completed_date', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return empty_to_none(v)

    @field_validator('priority', mode='before')
    @classmethod
    def priority_alias(cls, v):
        return normalize_priority(v)


class JobResponse(JobBase):
    id: int
    started_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RouteOptimizeRequest(BaseModel):
    technician_id: int
    date: date_type


class RouteStop(BaseModel):
    job_id: int
    customer_id: int
    address: str
    scheduled_date: Optional[datetime] = None


class RouteResponse(BaseModel):
    technician_id: int
    date: date_type
    total_jobs: int
    waypoints: list[str]
    stops: list[RouteStop]
