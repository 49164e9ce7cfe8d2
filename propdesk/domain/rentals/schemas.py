"""Rental contract schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_choice

RENTAL_STATUSES = ["draft", "active", "completed", "cancelled"]


class RentalContractCreate(BaseModel):
    unitId: int
    tenantId: int
    sellerId: Optional[int] = None
    monthlyRent: Optional[float] = Field(None, ge=0)
    leaseMonths: int = Field(..., ge=1, le=120)
    leaseStartDate: date
    depositAmount: Optional[float] = Field(None, ge=0)
    hasReferral: bool = False
    referralPercent: float = Field(20, ge=0, le=100)
    currency: Optional[str] = None
    notes: Optional[str] = None


class RentalContractUpdate(BaseModel):
    tenantId: Optional[int] = None
    sellerId: Optional[int] = None
    monthlyRent: Optional[float] = Field(None, ge=0)
    leaseMonths: Optional[int] = Field(None, ge=1, le=120)
    leaseStartDate: Optional[date] = None
    depositAmount: Optional[float] = Field(None, ge=0)
    hasReferral: Optional[bool] = None
    referralPercent: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class RentalStatusChange(BaseModel):
    status: str
    reason: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, RENTAL_STATUSES, "status")


class RentalContractResponse(BaseModel):
    id: int
    agencyId: int
    unitId: int
    unitName: Optional[str] = None
    tenantId: int
    tenantName: Optional[str] = None
    ownerId: Optional[int] = None
    sellerId: Optional[int] = None
    sellerName: Optional[str] = None
    status: str
    monthlyRent: float
    currency: str
    leaseMonths: int
    leaseStartDate: date
    leaseEndDate: date
    depositAmount: Optional[float] = None
    hasReferral: bool
    notes: Optional[str] = None
    isVacationRental: bool
    totalCommissionMonths: float
    totalCommissionAmount: float
    sellerCommissionPercent: float
    referralCommissionPercent: float
    agencyCommissionPercent: float
    sellerCommissionAmount: float
    referralCommissionAmount: float
    agencyCommissionAmount: float
    activatedAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    cancelledAt: Optional[datetime] = None
    cancellationReason: Optional[str] = None
    createdAt: Optional[datetime] = None


class SellerCommissionSummary(BaseModel):
    period: dict
    sellerId: Optional[int] = None
    contracts: int
    totalCommission: float
    sellerCommission: float
    referralCommission: float
    agencyCommission: float
