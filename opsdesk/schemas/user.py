from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime

ProfileRole = Literal["admin", "seller", "sdr", "member"]

class ProfileBase(BaseModel):
    email: EmailStr
    full_name: str = Field(..., max_length=255)
    role: ProfileRole = "member"
    is_superuser: bool = False

class ProfileCreate(ProfileBase):
    password: str = Field(..., min_length=6)

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=255)
    role: Optional[ProfileRole] = None
    is_active: Optional[bool] = None
    is_superuser: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6)

class Profile(ProfileBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ProfileNested(BaseModel):
    """A simplified Profile schema for nesting within sales and commissions."""
    id: int
    full_name: str
    email: Optional[EmailStr] = None

    class Config:
        from_attributes = True
