"""Quotation schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_choice, validate_email
from ..tickets.workflow import TICKET_CATEGORIES, TICKET_PRIORITIES

QUOTATION_STATUSES = ["draft", "sent", "approved", "rejected", "converted_to_ticket"]


class QuotationServiceItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: float = Field(1, gt=0)
    unitPrice: float = Field(..., ge=0)


class QuotationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    unitId: Optional[int] = None
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    notes: Optional[str] = None
    services: list[QuotationServiceItem] = Field(..., min_length=1)
    adminFeePercentage: Optional[float] = Field(None, ge=0, le=100)
    currency: str = "MXN"

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class QuotationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    unitId: Optional[int] = None
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    notes: Optional[str] = None
    services: Optional[list[QuotationServiceItem]] = Field(None, min_length=1)
    adminFeePercentage: Optional[float] = Field(None, ge=0, le=100)
    currency: Optional[str] = None

    @field_validator("clientEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class QuotationStatusChange(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return validate_choice(v, QUOTATION_STATUSES, "status")


class QuotationClientResponse(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class QuotationConvert(BaseModel):
    category: str = "maintenance"
    priority: str = "medium"

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_choice(v, TICKET_CATEGORIES, "category")

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return validate_choice(v, TICKET_PRIORITIES, "priority")


class QuotationResponse(BaseModel):
    id: int
    publicId: str
    agencyId: int
    unitId: Optional[int] = None
    unitName: Optional[str] = None
    ticketId: Optional[int] = None
    title: str
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    notes: Optional[str] = None
    services: list[dict]
    subtotal: float
    adminFeePercentage: float
    adminFee: float
    total: float
    currency: str
    status: str
    sentAt: Optional[datetime] = None
    respondedAt: Optional[datetime] = None
    clientResponseNotes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PublicQuotationResponse(BaseModel):
    """What the client sees on the public approval page"""

    publicId: str
    agencyName: Optional[str] = None
    title: str
    clientName: Optional[str] = None
    notes: Optional[str] = None
    services: list[dict]
    subtotal: float
    adminFeePercentage: float
    adminFee: float
    total: float
    currency: str
    status: str
    sentAt: Optional[datetime] = None
    respondedAt: Optional[datetime] = None


class QuotationSendResponse(BaseModel):
    quotation: QuotationResponse
    emailSent: bool
