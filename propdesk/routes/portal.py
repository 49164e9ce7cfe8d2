"""Owner and tenant portal routes"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_roles
from ..database import get_db
from ..models import User
from ..domain.properties.router import to_unit_response
from ..domain.properties.schemas import OwnerUnitResponse
from ..domain.properties.service import PropertyService
from ..domain.rentals.router import to_response as to_rental_response
from ..domain.rentals.schemas import RentalContractResponse
from ..domain.rentals.service import RentalService
from ..domain.tickets.router import to_response as to_ticket_response
from ..domain.tickets.schemas import TicketCreate, TicketResponse
from ..domain.tickets.service import TicketService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portal", tags=["Portal"])


@router.get("/owner/units", response_model=list[OwnerUnitResponse])
async def get_owner_units(
    current_user: User = Depends(require_roles("owner")),
    db: Session = Depends(get_db),
):
    """Units owned by the current user with their open ticket counts"""
    rows = PropertyService(db).list_owner_units(current_user)
    return [
        OwnerUnitResponse(**to_unit_response(unit).model_dump(), openTickets=open_count)
        for unit, open_count in rows
    ]


@router.get("/leases", response_model=list[RentalContractResponse])
async def get_tenant_leases(
    current_user: User = Depends(require_roles("tenant")),
    db: Session = Depends(get_db),
):
    """Active and past leases signed by the current tenant"""
    return [to_rental_response(c) for c in RentalService(db).tenant_leases(current_user)]

@router.get("/maintenance", response_model=list[TicketResponse])
async def get_tenant_tickets(
    current_user: User = Depends(require_roles("tenant")),
    db: Session = Depends(get_db),
):
    tickets = TicketService(db).list_reported_tickets(current_user)
    return [to_ticket_response(t) for t in tickets]


@router.post("/maintenance", response_model=TicketResponse, status_code=201)
async def create_tenant_ticket(
    data: TicketCreate,
    current_user: User = Depends(require_roles("tenant")),
    db: Session = Depends(get_db),
):
    """Tenants report issues for the unit they rent"""
    ticket = await TicketService(db).create_ticket(data, current_user)
    return to_ticket_response(ticket)
