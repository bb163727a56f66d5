"""User schemas for login responses and user administration."""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

UserRole = Literal["admin", "manager", "coordinator", "installer", "accountant"]


class UserRead(BaseModel):
    id: str
    email: EmailStr
    name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    department: Optional[str] = None
    status: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserCreateRequest(BaseModel):
    email: EmailStr
    name: str
    phone: str
    role: UserRole
    password: Optional[str] = None
    departments: Optional[List[str]] = None
    status: Optional[str] = None
    join_date: Optional[date] = None
    tenant_id: Optional[str] = None


class UserCreateResponse(BaseModel):
    success: bool
    user: UserRead


class UserDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")


class LinkToTenantRequest(BaseModel):
    user_id: str
    tenant_id: str
    role: UserRole


class LinkToTenantResponse(BaseModel):
    success: bool
    message: str
    action: Literal["created", "updated"]


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    designation: Optional[str] = None
    bio: Optional[str] = None
    join_date: Optional[date] = Field(default=None, alias="joinDate")


class ActionResult(BaseModel):
    success: bool
    message: Optional[str] = None


class CheckEmailRequest(BaseModel):
    email: str


class CheckEmailResponse(BaseModel):
    exists: bool
