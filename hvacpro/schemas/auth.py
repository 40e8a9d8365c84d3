import enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserRoleName(str, enum.Enum):
    admin = "admin"
    owner = "owner"
    dispatcher = "dispatcher"
    technician = "technician"


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: int
    username: str
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class MeResponse(UserResponse):
    company_id: Optional[int] = None
    company_role: Optional[str] = None


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    email: EmailStr
    role: UserRoleName = UserRoleName.technician


class BusinessResponse(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True
