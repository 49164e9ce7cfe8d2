"""Commission router - calculators and per-agency commission configuration"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_ADMIN_ROLES, EXTERNAL_STAFF_ROLES, get_user_agency_id, require_roles
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from .schemas import (
    CommissionConfigCreate,
    CommissionConfigResponse,
    CommissionConfigUpdate,
    CommissionRateResponse,
    MaintenanceChargeRequest,
    MaintenanceChargeResponse,
    RentalCommissionRequest,
)
from .service import CommissionService, config_scope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions", tags=["Commissions"])


def get_commission_service(db: Session = Depends(get_db)) -> CommissionService:
    """Dependency injection for CommissionService"""
    return CommissionService(db)


def to_response(config) -> CommissionConfigResponse:
    return CommissionConfigResponse(
        id=config.id,
        agencyId=config.agency_id,
        unitId=config.unit_id,
        userId=config.user_id,
        commissionPercent=config.commission_percent,
        fixedFee=config.fixed_fee,
        notes=config.notes,
        scope=config_scope(config),
        createdAt=config.created_at,
    )


# ============================================================================
# CALCULATORS
# ============================================================================


@router.post("/calculate")
async def calculate_rental_commission(
    data: RentalCommissionRequest,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    """Seller / referral / agency split for a lease"""
    return service.calculate_rental(data)


@router.post("/maintenance-charge", response_model=MaintenanceChargeResponse)
async def calculate_maintenance_charge(
    data: MaintenanceChargeRequest,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    """Commission and total charge for maintenance work; defaults to the agency percent"""
    return service.calculate_maintenance(data, current_user)


@router.get("/rate", response_model=CommissionRateResponse)
async def get_commission_rate(
    unitId: Optional[int] = Query(None),
    userId: Optional[int] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    return service.resolve_rate(get_user_agency_id(current_user), unit_id=unitId, user_id=userId)


# ============================================================================
# CONFIGS
# ============================================================================


@router.get("/configs", response_model=list[CommissionConfigResponse])
async def list_commission_configs(
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    return [to_response(c) for c in service.list_configs(current_user)]


@router.post("/configs", response_model=CommissionConfigResponse, status_code=201)
async def create_commission_config(
    data: CommissionConfigCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    return to_response(service.create_config(data, current_user))


@router.patch("/configs/{config_id}", response_model=CommissionConfigResponse)
async def update_commission_config(
    config_id: int,
    data: CommissionConfigUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    return to_response(service.update_config(config_id, data, current_user))


@router.delete("/configs/{config_id}", response_model=MessageResponse)
async def delete_commission_config(
    config_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: CommissionService = Depends(get_commission_service),
):
    return service.delete_config(config_id, current_user)


__all__ = [
    "router",
    "calculate_rental_commission",
    "calculate_maintenance_charge",
    "get_commission_rate",
    "list_commission_configs",
    "create_commission_config",
    "update_commission_config",
    "delete_commission_config",
]
