"""External agency schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...auth import AGENCY_MEMBER_ROLES
from ...shared.validators import validate_choice, validate_email, validate_phone


class AgencyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    description: Optional[str] = None
    operatingZones: Optional[list[str]] = None

    @field_validator("contactEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("contactPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AgencyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    description: Optional[str] = None
    operatingZones: Optional[list[str]] = None
    isActive: Optional[bool] = None

    @field_validator("contactEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("contactPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AgencyResponse(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    description: Optional[str] = None
    operatingZones: Optional[list[str]] = None
    isActive: bool
    createdAt: Optional[datetime] = None


class AgencySettings(BaseModel):
    maintenanceCommissionPercent: float
    defaultAdminFeePercent: float
    standardCommissionRate: float
    notificationEmail: Optional[str] = None


class AgencySettingsUpdate(BaseModel):
    maintenanceCommissionPercent: Optional[float] = Field(None, ge=0, le=100)
    defaultAdminFeePercent: Optional[float] = Field(None, ge=0, le=100)
    standardCommissionRate: Optional[float] = Field(None, ge=0, le=100)
    notificationEmail: Optional[str] = None

    @field_validator("notificationEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class TeamMemberCreate(BaseModel):
    email: str
    fullName: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    role: str = "external_agency_seller"
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return validate_choice(v, AGENCY_MEMBER_ROLES, "role")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class TeamMemberResponse(BaseModel):
    id: int
    email: str
    fullName: Optional[str] = None
    phone: Optional[str] = None
    role: str
    isActive: bool
    createdAt: Optional[datetime] = None
