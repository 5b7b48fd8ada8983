from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    subscription_tier: int = Field(0, ge=0, le=100)
    subscription_status: str = "free"
    admin_override: bool = False


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    subscription_tier: int | None = Field(None, ge=0, le=100)
    subscription_status: str | None = None
    admin_override: bool | None = None


class UserRead(BaseModel):
    id: str
    name: str
    email: str
    email_verified_at: datetime | None = None
    subscription_tier: int
    subscription_status: str
    subscription_expires_at: datetime | None = None
    admin_override: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
