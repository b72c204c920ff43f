from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from skynest.models.enums import RoomStatus


class BranchPayload(BaseModel):
    """
    Schema for creating a branch.
    """

    name: str = Field(..., min_length=1, max_length=150, description="Branch name")
    location: str = Field(..., min_length=1, max_length=150, description="City or area")
    address: Optional[str] = Field(None, max_length=500, description="Street address")
    phone: Optional[str] = Field(None, max_length=50, description="Front desk phone")
    email: Optional[EmailStr] = Field(None, description="Branch contact email (unique)")
    description: Optional[str] = Field(None, description="Marketing description")
    is_active: bool = Field(True, description="Whether guests can see the branch")


class BranchUpdatePayload(BaseModel):
    """
    Schema for updating a branch. All fields are optional.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=150, description="Branch name")
    location: Optional[str] = Field(None, min_length=1, max_length=150, description="City or area")
    address: Optional[str] = Field(None, max_length=500, description="Street address")
    phone: Optional[str] = Field(None, max_length=50, description="Front desk phone")
    email: Optional[EmailStr] = Field(None, description="Branch contact email (unique)")
    description: Optional[str] = Field(None, description="Marketing description")
    is_active: Optional[bool] = Field(None, description="Whether guests can see the branch")


class RoomImagePayload(BaseModel):
    url: str = Field(..., min_length=1, max_length=500, description="Image URL")
    alt_text: Optional[str] = Field(None, max_length=200, description="Alternative text")


class RoomTypePayload(BaseModel):
    """
    Schema for creating a room type with its amenities and ordered images.
    """

    branch_id: int = Field(..., description="Owning branch")
    name: str = Field(..., min_length=1, max_length=100, description="Room type name")
    description: Optional[str] = Field(None, description="Description")
    base_price: Decimal = Field(..., gt=0, description="Price per night")
    capacity: int = Field(..., ge=1, description="Maximum guests")
    bed_type: Optional[str] = Field(None, max_length=50, description="Bed configuration")
    size_sqm: Optional[int] = Field(None, gt=0, description="Floor area in square metres")
    amenity_ids: list[int] = Field(default_factory=list, description="Amenities to attach")
    images: list[RoomImagePayload] = Field(default_factory=list, description="Images in display order")


class RoomTypeUpdatePayload(BaseModel):
    """
    Schema for updating a room type. Lists, when given, replace the stored ones.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Room type name")
    description: Optional[str] = Field(None, description="Description")
    base_price: Optional[Decimal] = Field(None, gt=0, description="Price per night")
    capacity: Optional[int] = Field(None, ge=1, description="Maximum guests")
    bed_type: Optional[str] = Field(None, max_length=50, description="Bed configuration")
    size_sqm: Optional[int] = Field(None, gt=0, description="Floor area in square metres")
    is_active: Optional[bool] = Field(None, description="Whether the type is bookable")
    amenity_ids: Optional[list[int]] = Field(None, description="Replacement amenity list")
    images: Optional[list[RoomImagePayload]] = Field(None, description="Replacement image list")


class AmenityPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Amenity name (unique)")
    icon: Optional[str] = Field(None, max_length=100, description="Icon identifier")


class RoomPayload(BaseModel):
    branch_id: int = Field(..., description="Owning branch")
    room_type_id: int = Field(..., description="Room type (must belong to the branch)")
    room_number: str = Field(..., min_length=1, max_length=20, description="Number, unique per branch")
    floor: int = Field(1, description="Floor")
    status: RoomStatus = Field(RoomStatus.AVAILABLE, description="Initial status")


class RoomUpdatePayload(BaseModel):
    room_type_id: Optional[int] = Field(None, description="Room type (must belong to the branch)")
    room_number: Optional[str] = Field(None, min_length=1, max_length=20, description="Room number")
    floor: Optional[int] = Field(None, description="Floor")
    status: Optional[RoomStatus] = Field(None, description="Housekeeping status")


class RoomStatusPayload(BaseModel):
    status: RoomStatus = Field(..., description="New housekeeping status")
