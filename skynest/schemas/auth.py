from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class RegisterPayload(BaseModel):
    """
    Schema for guest self-registration.
    """

    first_name: str = Field(..., min_length=1, max_length=100, description="Given name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Family name")
    email: EmailStr = Field(..., description="Login email, unique among guests")
    password: str = Field(..., description="Plain-text password (min 8 characters)")
    phone: Optional[str] = Field(None, max_length=50, description="Contact phone")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")


class LoginPayload(BaseModel):
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Account password")


class StaffLoginPayload(BaseModel):
    employee_id: str = Field(..., min_length=1, description="Staff employee ID")
    password: str = Field(..., min_length=1, description="Account password")
    branch_id: Optional[int] = Field(None, description="Branch the staff member is signing in to")


class ChangePasswordPayload(BaseModel):
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., description="New password (min 8 characters)")


class ProfileUpdatePayload(BaseModel):
    """
    Schema for editing the signed-in user's own profile.

    Which fields apply depends on the caller's role; omitted fields are kept.
    """

    first_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Given name")
    last_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Family name")
    phone: Optional[str] = Field(None, max_length=50, description="Contact phone (guests and staff)")
    address: Optional[str] = Field(None, max_length=500, description="Postal address (guests)")
    position: Optional[str] = Field(None, max_length=100, description="Job title (staff)")
