"""Quotation router - agency quotation management and the public client page"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_ADMIN_ROLES, EXTERNAL_SELLER_ROLES, require_roles
from ...database import get_db
from ...models import ExternalAgency, User
from ...models_quotation import Quotation
from ...rate_limiter import create_rate_limiter
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, page_params
from ..tickets.router import to_response as to_ticket_response
from .schemas import (
    PublicQuotationResponse,
    QuotationClientResponse,
    QuotationConvert,
    QuotationCreate,
    QuotationResponse,
    QuotationSendResponse,
    QuotationStatusChange,
    QuotationUpdate,
)
from .service import QuotationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotations", tags=["Quotations"])

public_response_limiter = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="quotation_response")


def get_quotation_service(db: Session = Depends(get_db)) -> QuotationService:
    """Dependency injection for QuotationService"""
    return QuotationService(db)


def to_response(quotation: Quotation) -> QuotationResponse:
    return QuotationResponse(
        id=quotation.id,
        publicId=quotation.public_id,
        agencyId=quotation.agency_id,
        unitId=quotation.unit_id,
        unitName=quotation.unit.name if quotation.unit else None,
        ticketId=quotation.ticket_id,
        title=quotation.title,
        clientName=quotation.client_name,
        clientEmail=quotation.client_email,
        notes=quotation.notes,
        services=quotation.services or [],
        subtotal=quotation.subtotal,
        adminFeePercentage=quotation.admin_fee_percentage,
        adminFee=quotation.admin_fee,
        total=quotation.total,
        currency=quotation.currency,
        status=quotation.status,
        sentAt=quotation.sent_at,
        respondedAt=quotation.responded_at,
        clientResponseNotes=quotation.client_response_notes,
        createdAt=quotation.created_at,
        updatedAt=quotation.updated_at,
    )


def to_public_response(quotation: Quotation, db: Session) -> PublicQuotationResponse:
    agency = db.query(ExternalAgency).filter(ExternalAgency.id == quotation.agency_id).first()
    return PublicQuotationResponse(
        publicId=quotation.public_id,
        agencyName=agency.name if agency else None,
        title=quotation.title,
        clientName=quotation.client_name,
        notes=quotation.notes,
        services=quotation.services or [],
        subtotal=quotation.subtotal,
        adminFeePercentage=quotation.admin_fee_percentage,
        adminFee=quotation.admin_fee,
        total=quotation.total,
        currency=quotation.currency,
        status=quotation.status,
        sentAt=quotation.sent_at,
        respondedAt=quotation.responded_at,
    )


# ============================================================================
# PUBLIC CLIENT PAGE
# ============================================================================


@router.get("/public/{public_id}", response_model=PublicQuotationResponse)
async def get_public_quotation(
    public_id: str,
    db: Session = Depends(get_db),
    service: QuotationService = Depends(get_quotation_service),
):
    return to_public_response(service.get_public(public_id), db)


@router.post("/public/{public_id}/approve", response_model=PublicQuotationResponse)
async def approve_public_quotation(
    public_id: str,
    data: Optional[QuotationClientResponse] = None,
    _: None = Depends(public_response_limiter),
    db: Session = Depends(get_db),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.respond(public_id, approve=True, notes=data.notes if data else None)
    return to_public_response(quotation, db)


@router.post("/public/{public_id}/reject", response_model=PublicQuotationResponse)
async def reject_public_quotation(
    public_id: str,
    data: Optional[QuotationClientResponse] = None,
    _: None = Depends(public_response_limiter),
    db: Session = Depends(get_db),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.respond(public_id, approve=False, notes=data.notes if data else None)
    return to_public_response(quotation, db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("")
async def list_quotations(
    params: PageParams = Depends(page_params),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    result = service.list_quotations(current_user, params, status=status, search=search)
    result["data"] = [to_response(q) for q in result["data"]]
    return result


@router.post("", response_model=QuotationResponse, status_code=201)
async def create_quotation(
    data: QuotationCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    return to_response(service.create_quotation(data, current_user))


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    quotation_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    return to_response(service.get_quotation(quotation_id, current_user))


@router.patch("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: int,
    data: QuotationUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    return to_response(service.update_quotation(quotation_id, data, current_user))


@router.delete("/{quotation_id}", response_model=MessageResponse)
async def delete_quotation(
    quotation_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.delete_quotation(quotation_id, current_user)


# ============================================================================
# WORKFLOW
# ============================================================================


@router.patch("/{quotation_id}/status", response_model=QuotationResponse)
async def change_quotation_status(
    quotation_id: int,
    data: QuotationStatusChange,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    return to_response(service.change_status(quotation_id, data.status, current_user))


@router.post("/{quotation_id}/send", response_model=QuotationSendResponse)
async def send_quotation(
    quotation_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    """Email the client a link to review the quotation"""
    quotation, email_sent = await service.send_quotation(quotation_id, current_user)
    return QuotationSendResponse(quotation=to_response(quotation), emailSent=email_sent)


@router.post("/{quotation_id}/convert")
async def convert_quotation_to_ticket(
    quotation_id: int,
    data: Optional[QuotationConvert] = None,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation, ticket = service.convert_to_ticket(quotation_id, data or QuotationConvert(), current_user)
    return {"quotation": to_response(quotation), "ticket": to_ticket_response(ticket)}


__all__ = [
    "router",
    "get_public_quotation",
    "approve_public_quotation",
    "reject_public_quotation",
    "list_quotations",
    "create_quotation",
    "get_quotation",
    "update_quotation",
    "delete_quotation",
    "change_quotation_status",
    "send_quotation",
    "convert_quotation_to_ticket",
]
