"""Maintenance ticket schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_choice
from .workflow import PHOTO_PHASES, TICKET_CATEGORIES, TICKET_PRIORITIES, TICKET_STATUSES


class TicketCreate(BaseModel):
    unitId: Optional[int] = None  # Tenants default to the unit they rent
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = "maintenance"
    priority: str = "medium"
    assignedToId: Optional[int] = None
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    estimatedCost: Optional[float] = Field(None, ge=0)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_choice(v, TICKET_CATEGORIES, "category")

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return validate_choice(v, TICKET_PRIORITIES, "priority")


class TicketUpdateFields(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    estimatedCost: Optional[float] = Field(None, ge=0)
    actualCost: Optional[float] = Field(None, ge=0)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_choice(v, TICKET_CATEGORIES, "category")

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return validate_choice(v, TICKET_PRIORITIES, "priority")


class TicketStatusChange(BaseModel):
    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, TICKET_STATUSES, "status")


class TicketAssign(BaseModel):
    assignedToId: Optional[int] = None  # None unassigns
    notes: Optional[str] = None


class TicketComment(BaseModel):
    notes: str = Field(..., min_length=1, max_length=5000)


class TicketPhotoCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=1000, pattern=r"^https?://")
    phase: str = "before"
    caption: Optional[str] = Field(None, max_length=500)

    @field_validator("phase")
    @classmethod
    def check_phase(cls, v):
        return validate_choice(v, PHOTO_PHASES, "phase")


class TicketMarkPaid(BaseModel):
    isPaid: bool = True


class TicketResponse(BaseModel):
    id: int
    agencyId: int
    unitId: int
    unitName: Optional[str] = None
    condominiumId: Optional[int] = None
    condominiumName: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: str
    priority: str
    status: str
    reportedById: Optional[int] = None
    reportedByName: Optional[str] = None
    assignedToId: Optional[int] = None
    assignedToName: Optional[str] = None
    scheduledDate: Optional[datetime] = None
    scheduledTime: Optional[str] = None
    estimatedCost: Optional[float] = None
    actualCost: Optional[float] = None
    commissionPercent: Optional[float] = None
    commission: float = 0
    totalCharge: float = 0
    isPaid: bool
    paidAt: Optional[datetime] = None
    resolvedAt: Optional[datetime] = None
    closedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class TicketUpdateResponse(BaseModel):
    id: int
    type: str
    notes: Optional[str] = None
    oldStatus: Optional[str] = None
    newStatus: Optional[str] = None
    authorId: Optional[int] = None
    authorName: Optional[str] = None
    createdAt: Optional[datetime] = None


class TicketPhotoResponse(BaseModel):
    id: int
    url: str
    phase: str
    caption: Optional[str] = None
    uploadedById: Optional[int] = None
    createdAt: Optional[datetime] = None


class BiweeklyStatsResponse(BaseModel):
    period: dict
    category: Optional[str] = None
    total: int
    open: int
    resolved: int
    actualCost: float
    commission: float
    totalCharge: float
    paidTotal: float
