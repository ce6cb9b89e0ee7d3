from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from src.models.enums import SubscriptionStatus, UserRole, UserStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    phone: str | None = Field(default=None, max_length=20)
    organization_name: str = Field(min_length=1, max_length=255)
    organization_slug: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class UserResponse(CamelModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    status: UserStatus
    phone: str | None = None
    last_login_at: datetime | None = None
    email_verified_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    organization_id: UUID


class OrganizationResponse(CamelModel):
    id: UUID
    name: str
    slug: str
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    subscription_status: SubscriptionStatus
    trial_ends_at: datetime | None = None
    subscription_ends_at: datetime | None = None
    is_active: bool
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserResponse
    organization: OrganizationResponse
    access_token: str
    refresh_token: str
    expires_in: int
