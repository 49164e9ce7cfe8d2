"""Property listing schemas - condominiums and units"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_choice

UNIT_STATUSES = ["available", "rented", "reserved", "inactive"]


class CondominiumCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    zone: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CondominiumUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    zone: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CondominiumResponse(BaseModel):
    id: int
    name: str
    zone: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    unitCount: int = 0


class UnitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    condominiumId: Optional[int] = None
    description: Optional[str] = None
    zone: Optional[str] = None
    bedrooms: int = Field(1, ge=0)
    bathrooms: float = Field(1, ge=0)
    areaSqm: Optional[float] = Field(None, ge=0)
    monthlyRent: Optional[float] = Field(None, ge=0)
    currency: str = "MXN"
    amenities: Optional[list[str]] = None
    status: str = "available"
    isPublished: bool = False
    ownerId: Optional[int] = None
    tenantId: Optional[int] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, UNIT_STATUSES, "status")


class UnitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    condominiumId: Optional[int] = None
    description: Optional[str] = None
    zone: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    areaSqm: Optional[float] = Field(None, ge=0)
    monthlyRent: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    amenities: Optional[list[str]] = None
    status: Optional[str] = None
    isPublished: Optional[bool] = None
    ownerId: Optional[int] = None
    tenantId: Optional[int] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, UNIT_STATUSES, "status")


class UnitResponse(BaseModel):
    id: int
    publicId: str
    name: str
    condominiumId: Optional[int] = None
    condominiumName: Optional[str] = None
    description: Optional[str] = None
    zone: Optional[str] = None
    bedrooms: int
    bathrooms: float
    areaSqm: Optional[float] = None
    monthlyRent: Optional[float] = None
    currency: str
    amenities: Optional[list[str]] = None
    status: str
    isPublished: bool
    ownerId: Optional[int] = None
    tenantId: Optional[int] = None
    createdAt: Optional[datetime] = None


class PublicUnitResponse(BaseModel):
    """Listing card for public search; no owner / tenant data"""

    publicId: str
    name: str
    condominiumName: Optional[str] = None
    description: Optional[str] = None
    zone: Optional[str] = None
    bedrooms: int
    bathrooms: float
    areaSqm: Optional[float] = None
    monthlyRent: Optional[float] = None
    currency: str
    amenities: Optional[list[str]] = None


class OwnerUnitResponse(UnitResponse):
    openTickets: int = 0
