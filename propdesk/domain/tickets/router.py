"""Ticket router - maintenance / cleaning ticket endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_ADMIN_ROLES, EXTERNAL_STAFF_ROLES, require_roles
from ...database import get_db
from ...models import User
from ...models_ticket import MaintenanceTicket
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, page_params
from ...shared.periods import BiweeklyPeriod
from .schemas import (
    BiweeklyStatsResponse,
    TicketAssign,
    TicketComment,
    TicketCreate,
    TicketMarkPaid,
    TicketPhotoCreate,
    TicketPhotoResponse,
    TicketResponse,
    TicketStatusChange,
    TicketUpdateFields,
    TicketUpdateResponse,
)
from .service import TicketService, display_name, ticket_charge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["Maintenance Tickets"])

TICKET_ROLES = [*EXTERNAL_STAFF_ROLES, "tenant"]


def get_ticket_service(db: Session = Depends(get_db)) -> TicketService:
    """Dependency injection for TicketService"""
    return TicketService(db)


def to_response(ticket: MaintenanceTicket) -> TicketResponse:
    commission, total_charge = ticket_charge(ticket)
    return TicketResponse(
        id=ticket.id,
        agencyId=ticket.agency_id,
        unitId=ticket.unit_id,
        unitName=ticket.unit.name if ticket.unit else None,
        condominiumId=ticket.condominium_id,
        condominiumName=ticket.condominium.name if ticket.condominium else None,
        title=ticket.title,
        description=ticket.description,
        category=ticket.category,
        priority=ticket.priority,
        status=ticket.status,
        reportedById=ticket.reported_by_id,
        reportedByName=display_name(ticket.reported_by),
        assignedToId=ticket.assigned_to_id,
        assignedToName=display_name(ticket.assigned_to),
        scheduledDate=ticket.scheduled_date,
        scheduledTime=ticket.scheduled_time,
        estimatedCost=ticket.estimated_cost,
        actualCost=ticket.actual_cost,
        commissionPercent=ticket.commission_percent,
        commission=commission,
        totalCharge=total_charge,
        isPaid=ticket.is_paid,
        paidAt=ticket.paid_at,
        resolvedAt=ticket.resolved_at,
        closedAt=ticket.closed_at,
        createdAt=ticket.created_at,
        updatedAt=ticket.updated_at,
    )


def to_update_response(entry) -> TicketUpdateResponse:
    return TicketUpdateResponse(
        id=entry.id,
        type=entry.type,
        notes=entry.notes,
        oldStatus=entry.old_status,
        newStatus=entry.new_status,
        authorId=entry.author_id,
        authorName=display_name(entry.author),
        createdAt=entry.created_at,
    )


def to_photo_response(photo) -> TicketPhotoResponse:
    return TicketPhotoResponse(
        id=photo.id,
        url=photo.url,
        phase=photo.phase,
        caption=photo.caption,
        uploadedById=photo.uploaded_by_id,
        createdAt=photo.created_at,
    )


# ============================================================================
# REPORTING
# ============================================================================


@router.get("/stats/biweekly", response_model=BiweeklyStatsResponse)
async def get_biweekly_stats(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    period: Optional[int] = Query(None),
    category: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    """Ticket counts and cost / commission totals for a 1st-15th or 16th-end period (default: current)"""
    try:
        biweekly = BiweeklyPeriod.from_query(year, month, period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return service.biweekly_stats(current_user, biweekly, category)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("")
async def list_tickets(
    params: PageParams = Depends(page_params),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    condominiumId: Optional[int] = Query(None),
    unitId: Optional[int] = Query(None),
    assignedToId: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    """Paginated tickets; sort by created, priority, status or scheduled"""
    result = service.list_tickets(
        current_user,
        params,
        status=status,
        priority=priority,
        category=category,
        condominium_id=condominiumId,
        unit_id=unitId,
        assigned_to_id=assignedToId,
        search=search,
    )
    result["data"] = [to_response(t) for t in result["data"]]
    return result


@router.post("", response_model=TicketResponse, status_code=201)
async def create_ticket(
    data: TicketCreate,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.create_ticket(data, current_user)
    return to_response(ticket)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: int,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return to_response(service.get_ticket(ticket_id, current_user))


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    data: TicketUpdateFields,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return to_response(service.update_ticket(ticket_id, data, current_user))


@router.delete("/{ticket_id}", response_model=MessageResponse)
async def delete_ticket(
    ticket_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return service.delete_ticket(ticket_id, current_user)


# ============================================================================
# WORKFLOW
# ============================================================================


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def change_ticket_status(
    ticket_id: int,
    data: TicketStatusChange,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.change_status(ticket_id, data, current_user)
    return to_response(ticket)


@router.patch("/{ticket_id}/assign", response_model=TicketResponse)
async def assign_ticket(
    ticket_id: int,
    data: TicketAssign,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.assign_ticket(ticket_id, data, current_user)
    return to_response(ticket)


@router.patch("/{ticket_id}/paid", response_model=TicketResponse)
async def mark_ticket_paid(
    ticket_id: int,
    data: TicketMarkPaid,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    ticket = await service.mark_paid(ticket_id, data.isPaid, current_user)
    return to_response(ticket)


# ============================================================================
# TIMELINE & PHOTOS
# ============================================================================


@router.get("/{ticket_id}/updates", response_model=list[TicketUpdateResponse])
async def get_ticket_updates(
    ticket_id: int,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return [to_update_response(u) for u in service.get_updates(ticket_id, current_user)]


@router.post("/{ticket_id}/comments", response_model=TicketUpdateResponse, status_code=201)
async def add_ticket_comment(
    ticket_id: int,
    data: TicketComment,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    entry = await service.add_comment(ticket_id, data.notes, current_user)
    return to_update_response(entry)


@router.get("/{ticket_id}/photos", response_model=list[TicketPhotoResponse])
async def get_ticket_photos(
    ticket_id: int,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return [to_photo_response(p) for p in service.get_photos(ticket_id, current_user)]


@router.post("/{ticket_id}/photos", response_model=TicketPhotoResponse, status_code=201)
async def add_ticket_photo(
    ticket_id: int,
    data: TicketPhotoCreate,
    current_user: User = Depends(require_roles(*TICKET_ROLES)),
    service: TicketService = Depends(get_ticket_service),
):
    return to_photo_response(service.add_photo(ticket_id, data, current_user))


__all__ = [
    "router",
    "get_biweekly_stats",
    "list_tickets",
    "create_ticket",
    "get_ticket",
    "update_ticket",
    "delete_ticket",
    "change_ticket_status",
    "assign_ticket",
    "mark_ticket_paid",
    "get_ticket_updates",
    "add_ticket_comment",
    "get_ticket_photos",
    "add_ticket_photo",
    "to_response",
]
