"""Property router - condominiums, units and public listing search"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_ADMIN_ROLES, EXTERNAL_SELLER_ROLES, EXTERNAL_STAFF_ROLES, require_roles
from ...database import get_db
from ...models import User
from ...models_property import Unit
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, page_params
from .schemas import (
    CondominiumCreate,
    CondominiumResponse,
    CondominiumUpdate,
    PublicUnitResponse,
    UnitCreate,
    UnitResponse,
    UnitUpdate,
)
from .service import PropertyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/properties", tags=["Properties"])


def get_property_service(db: Session = Depends(get_db)) -> PropertyService:
    """Dependency injection for PropertyService"""
    return PropertyService(db)


def to_unit_response(unit: Unit) -> UnitResponse:
    return UnitResponse(
        id=unit.id,
        publicId=unit.public_id,
        name=unit.name,
        condominiumId=unit.condominium_id,
        condominiumName=unit.condominium.name if unit.condominium else None,
        description=unit.description,
        zone=unit.zone,
        bedrooms=unit.bedrooms,
        bathrooms=unit.bathrooms,
        areaSqm=unit.area_sqm,
        monthlyRent=unit.monthly_rent,
        currency=unit.currency,
        amenities=unit.amenities,
        status=unit.status,
        isPublished=unit.is_published,
        ownerId=unit.owner_id,
        tenantId=unit.tenant_id,
        createdAt=unit.created_at,
    )


def to_public_unit(unit: Unit) -> PublicUnitResponse:
    return PublicUnitResponse(
        publicId=unit.public_id,
        name=unit.name,
        condominiumName=unit.condominium.name if unit.condominium else None,
        description=unit.description,
        zone=unit.zone,
        bedrooms=unit.bedrooms,
        bathrooms=unit.bathrooms,
        areaSqm=unit.area_sqm,
        monthlyRent=unit.monthly_rent,
        currency=unit.currency,
        amenities=unit.amenities,
    )


# ============================================================================
# PUBLIC SEARCH
# ============================================================================


@router.get("/search")
async def search_properties(
    params: PageParams = Depends(page_params),
    zone: Optional[str] = Query(None),
    condominiumId: Optional[int] = Query(None),
    minRent: Optional[float] = Query(None, ge=0),
    maxRent: Optional[float] = Query(None, ge=0),
    bedrooms: Optional[int] = Query(None, ge=0),
    q: Optional[str] = Query(None, max_length=100),
    agencyId: Optional[int] = Query(None),
    service: PropertyService = Depends(get_property_service),
):
    """Published, available units; sort by rent, created or bedrooms"""
    result = service.search_units(
        params,
        zone=zone,
        condominium_id=condominiumId,
        min_rent=minRent,
        max_rent=maxRent,
        bedrooms=bedrooms,
        q=q,
        agency_id=agencyId,
    )
    result["data"] = [to_public_unit(u) for u in result["data"]]
    return result


@router.get("/public/condominiums")
async def list_public_condominiums(
    agencyId: Optional[int] = Query(None),
    service: PropertyService = Depends(get_property_service),
):
    return service.list_public_condominiums(agencyId)


@router.get("/public/units/{public_id}", response_model=PublicUnitResponse)
async def get_public_unit(public_id: str, service: PropertyService = Depends(get_property_service)):
    return to_public_unit(service.get_public_unit(public_id))


# ============================================================================
# CONDOMINIUMS
# ============================================================================


@router.get("/condominiums", response_model=list[CondominiumResponse])
async def list_condominiums(
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return service.list_condominiums(current_user)


@router.post("/condominiums", response_model=CondominiumResponse, status_code=201)
async def create_condominium(
    data: CondominiumCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return service.create_condominium(data, current_user)


@router.patch("/condominiums/{condominium_id}", response_model=CondominiumResponse)
async def update_condominium(
    condominium_id: int,
    data: CondominiumUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return service.update_condominium(condominium_id, data, current_user)


@router.delete("/condominiums/{condominium_id}", response_model=MessageResponse)
async def delete_condominium(
    condominium_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return service.delete_condominium(condominium_id, current_user)


# ============================================================================
# UNITS
# ============================================================================


@router.get("/units")
async def list_units(
    params: PageParams = Depends(page_params),
    status: Optional[str] = Query(None),
    condominiumId: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    result = service.list_units(current_user, params, status=status, condominium_id=condominiumId, search=search)
    result["data"] = [to_unit_response(u) for u in result["data"]]
    return result


@router.post("/units", response_model=UnitResponse, status_code=201)
async def create_unit(
    data: UnitCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return to_unit_response(service.create_unit(data, current_user))


@router.get("/units/{unit_id}", response_model=UnitResponse)
async def get_unit(
    unit_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return to_unit_response(service.get_unit(unit_id, current_user))


@router.patch("/units/{unit_id}", response_model=UnitResponse)
async def update_unit(
    unit_id: int,
    data: UnitUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_SELLER_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return to_unit_response(service.update_unit(unit_id, data, current_user))


@router.delete("/units/{unit_id}", response_model=MessageResponse)
async def delete_unit(
    unit_id: int,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: PropertyService = Depends(get_property_service),
):
    return service.delete_unit(unit_id, current_user)


__all__ = [
    "router",
    "search_properties",
    "list_public_condominiums",
    "get_public_unit",
    "list_condominiums",
    "create_condominium",
    "update_condominium",
    "delete_condominium",
    "list_units",
    "create_unit",
    "get_unit",
    "update_unit",
    "delete_unit",
    "to_unit_response",
]
