from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from skynest.models.enums import Priority, Role, WorkStatus


class GuestMaintenancePayload(BaseModel):
    """
    Schema for a guest reporting an issue with the room of one of their bookings.
    """

    booking_id: int = Field(..., description="Confirmed or checked-in booking")
    issue_description: str = Field(..., min_length=1, max_length=2000, description="What is wrong")
    priority: Priority = Field(Priority.NORMAL, description="How urgent the issue is")


class StaffMaintenancePayload(BaseModel):
    room_id: int = Field(..., description="Affected room")
    issue_description: str = Field(..., min_length=1, max_length=2000, description="What is wrong")
    priority: Priority = Field(Priority.NORMAL, description="How urgent the issue is")


class WorkStatusPayload(BaseModel):
    """
    Schema for moving a maintenance log or service request to a new status.
    """

    status: WorkStatus = Field(..., description="Target status")
    notes: Optional[str] = Field(None, max_length=4000, description="Progress or resolution notes")


class CompletionPayload(BaseModel):
    resolution_notes: str = Field(..., min_length=1, max_length=4000, description="What was done")


class AssignPayload(BaseModel):
    staff_id: int = Field(..., description="Staff member to assign")


class RejectPayload(BaseModel):
    rejection_reason: str = Field(..., min_length=1, max_length=1000, description="Why it was rejected")


class ServiceRequestPayload(BaseModel):
    service_id: int = Field(..., description="Catalog service")
    quantity: int = Field(1, gt=0, description="Units requested")
    priority: Priority = Field(Priority.NORMAL, description="Urgency")
    notes: Optional[str] = Field(None, max_length=1000, description="Instructions for staff")


class ServicePayload(BaseModel):
    """
    Schema for adding a service to the catalog.
    """

    name: str = Field(..., min_length=1, max_length=150, description="Service name")
    category: str = Field(..., min_length=1, max_length=100, description="Grouping used in reports")
    description: Optional[str] = Field(None, description="Description")
    price: Decimal = Field(..., ge=0, description="Price per unit")
    unit: str = Field("item", max_length=50, description="Billing unit")
    is_active: bool = Field(True, description="Whether guests can order it")


class ServiceUpdatePayload(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150, description="Service name")
    category: Optional[str] = Field(None, min_length=1, max_length=100, description="Category")
    description: Optional[str] = Field(None, description="Description")
    price: Optional[Decimal] = Field(None, ge=0, description="Price per unit")
    unit: Optional[str] = Field(None, max_length=50, description="Billing unit")
    is_active: Optional[bool] = Field(None, description="Whether guests can order it")


class ReviewPayload(BaseModel):
    booking_id: int = Field(..., description="Checked-out booking being reviewed")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    title: Optional[str] = Field(None, max_length=200, description="Headline")
    comment: Optional[str] = Field(None, max_length=4000, description="Review text")


class UserCreatePayload(BaseModel):
    """
    Schema for an admin creating an account of any role.

    employee_id and branch_id are required when role is staff.
    """

    role: Role = Field(..., description="guest, staff or admin")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., description="Initial password (min 8 characters)")
    first_name: str = Field(..., min_length=1, max_length=100, description="Given name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Family name")
    phone: Optional[str] = Field(None, max_length=50, description="Contact phone")
    address: Optional[str] = Field(None, max_length=500, description="Guest address")
    employee_id: Optional[str] = Field(None, max_length=50, description="Staff employee ID")
    branch_id: Optional[int] = Field(None, description="Staff branch")
    position: Optional[str] = Field(None, max_length=100, description="Staff position")
    access_level: Optional[str] = Field(None, max_length=50, description="Admin access level")


class UserStatusPayload(BaseModel):
    is_active: bool = Field(..., description="Activate (true) or deactivate (false)")
