"""Rental contract router - lease registration, activation and seller commissions"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_SELLER_ROLES, require_roles
from ...database import get_db
from ...models import User
from ...models_rental import RentalContract
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, page_params
from ...shared.periods import BiweeklyPeriod
from ..tickets.service import display_name
from .schemas import (
    RentalContractCreate,
    RentalContractResponse,
    RentalContractUpdate,
    RentalStatusChange,
    SellerCommissionSummary,
)
from .service import RentalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rentals", tags=["Rentals"])


def get_rental_service(db: Session = Depends(get_db)) -> RentalService:
    """Dependency injection for RentalService"""
    return RentalService(db)


def to_response(contract: RentalContract) -> RentalContractResponse:
    return RentalContractResponse(
        id=contract.id,
        agencyId=contract.agency_id,
        unitId=contract.unit_id,
        unitName=contract.unit.name if contract.unit else None,
        tenantId=contract.tenant_id,
        tenantName=display_name(contract.tenant),
        ownerId=contract.owner_id,
        sellerId=contract.seller_id,
        sellerName=display_name(contract.seller),
        status=contract.status,
        monthlyRent=contract.monthly_rent,
        currency=contract.currency,
        leaseMonths=contract.lease_months,
        leaseStartDate=contract.lease_start_date,
        leaseEndDate=contract.lease_end_date,
        depositAmount=contract.deposit_amount,
        hasReferral=contract.has_referral,
        notes=contract.notes,
        isVacationRental=contract.is_vacation_rental,
        totalCommissionMonths=contract.total_commission_months,
        totalCommissionAmount=contract.total_commission_amount,
        sellerCommissionPercent=contract.seller_commission_percent,
        referralCommissionPercent=contract.referral_commission_percent,
        agencyCommissionPercent=contract.agency_commission_percent,
        sellerCommissionAmount=contract.seller_commission_amount,
        referralCommissionAmount=contract.referral_commission_amount,
        agencyCommissionAmount=contract.agency_commission_amount,
        activatedAt=contract.activated_at,
        completedAt=contract.completed_at,
        cancelledAt=contract.cancelled_at,
        cancellationReason=contract.cancellation_reason,
        createdAt=contract.created_at,
    )


# ============================================================================
# REPORTING
# ============================================================================


@router.get("/commissions/summary", response_model=SellerCommissionSummary)
async def get_commission_summary(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    period: Optional[int] = Query(None),
    sellerId: Optional[int] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    """Lease commissions for a biweekly period (default: current); sellers always get their own"""
    try:
        biweekly = BiweeklyPeriod.from_query(year, month, period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return service.commission_summary(current_user, biweekly, sellerId)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("")
async def list_rental_contracts(
    params: PageParams = Depends(page_params),
    status: Optional[str] = Query(None),
    unitId: Optional[int] = Query(None),
    sellerId: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    result = service.list_contracts(
        current_user, params, status=status, unit_id=unitId, seller_id=sellerId, search=search
    )
    result["data"] = [to_response(c) for c in result["data"]]
    return result


@router.post("", response_model=RentalContractResponse, status_code=201)
async def create_rental_contract(
    data: RentalContractCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    return to_response(service.create_contract(data, current_user))


@router.get("/{contract_id}", response_model=RentalContractResponse)
async def get_rental_contract(
    contract_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    return to_response(service.get_contract(contract_id, current_user))


@router.patch("/{contract_id}", response_model=RentalContractResponse)
async def update_rental_contract(
    contract_id: int,
    data: RentalContractUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    return to_response(service.update_contract(contract_id, data, current_user))


@router.delete("/{contract_id}", response_model=MessageResponse)
async def delete_rental_contract(
    contract_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    return service.delete_contract(contract_id, current_user)


# ============================================================================
# WORKFLOW
# ============================================================================


@router.patch("/{contract_id}/status", response_model=RentalContractResponse)
async def change_rental_status(
    contract_id: int,
    data: RentalStatusChange,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: RentalService = Depends(get_rental_service),
):
    contract = await service.change_status(contract_id, data.status, current_user, reason=data.reason)
    return to_response(contract)


__all__ = [
    "router",
    "get_commission_summary",
    "list_rental_contracts",
    "create_rental_contract",
    "get_rental_contract",
    "update_rental_contract",
    "delete_rental_contract",
    "change_rental_status",
]
