"""Commission domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RentalCommissionRequest(BaseModel):
    monthlyRent: float = Field(..., ge=0)
    leaseDurationMonths: int = Field(..., ge=0)
    hasReferral: bool = False
    referralPercent: float = 20.0


class MaintenanceChargeRequest(BaseModel):
    actualCost: float = Field(..., ge=0)
    commissionPercent: Optional[float] = Field(None, ge=0, le=100)


class MaintenanceChargeResponse(BaseModel):
    actualCost: float
    commissionPercent: float
    commission: float
    totalCharge: float


class CommissionConfigCreate(BaseModel):
    commissionPercent: float = Field(..., ge=0, le=100)
    unitId: Optional[int] = None
    userId: Optional[int] = None
    fixedFee: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class CommissionConfigUpdate(BaseModel):
    commissionPercent: Optional[float] = Field(None, ge=0, le=100)
    fixedFee: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class CommissionConfigResponse(BaseModel):
    id: int
    agencyId: int
    unitId: Optional[int] = None
    userId: Optional[int] = None
    commissionPercent: float
    fixedFee: Optional[float] = None
    notes: Optional[str] = None
    scope: str
    createdAt: Optional[datetime] = None


class CommissionRateResponse(BaseModel):
    commissionPercent: float
    fixedFee: Optional[float] = None
    source: str  # unit, user, agency_config, agency_setting, default
    configId: Optional[int] = None
