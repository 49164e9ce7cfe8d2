"""External agency router - own agency endpoints and platform-admin management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import (
    EXTERNAL_ADMIN_ROLES,
    EXTERNAL_STAFF_ROLES,
    PLATFORM_ADMIN_ROLES,
    require_roles,
)
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, page_params
from .schemas import (
    AgencyCreate,
    AgencyResponse,
    AgencySettings,
    AgencySettingsUpdate,
    AgencyUpdate,
    TeamMemberCreate,
    TeamMemberResponse,
)
from .service import AgencyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["External Agencies"])


def get_agency_service(db: Session = Depends(get_db)) -> AgencyService:
    """Dependency injection for AgencyService"""
    return AgencyService(db)


def to_response(agency) -> AgencyResponse:
    return AgencyResponse(
        id=agency.id,
        name=agency.name,
        slug=agency.slug,
        contactName=agency.contact_name,
        contactEmail=agency.contact_email,
        contactPhone=agency.contact_phone,
        description=agency.description,
        operatingZones=agency.operating_zones,
        isActive=agency.is_active,
        createdAt=agency.created_at,
    )


def to_member_response(member: User) -> TeamMemberResponse:
    return TeamMemberResponse(
        id=member.id,
        email=member.email,
        fullName=member.full_name,
        phone=member.phone,
        role=member.role,
        isActive=member.is_active,
        createdAt=member.created_at,
    )


# ============================================================================
# OWN AGENCY
# ============================================================================


@router.get("/external/agency", response_model=AgencyResponse)
async def get_my_agency(
    current_user: User = Depends(require_roles(*EXTERNAL_STAFF_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return to_response(service.get_own_agency(current_user))


@router.patch("/external/agency", response_model=AgencyResponse)
async def update_my_agency(
    data: AgencyUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return to_response(service.update_own_agency(data, current_user))


@router.get("/external/agency/settings", response_model=AgencySettings)
async def get_agency_settings(
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return service.get_settings(current_user)


@router.patch("/external/agency/settings", response_model=AgencySettings)
async def update_agency_settings(
    data: AgencySettingsUpdate,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return service.update_settings(data, current_user)


@router.get("/external/agency/team", response_model=list[TeamMemberResponse])
async def get_agency_team(
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return [to_member_response(m) for m in service.get_team(current_user)]


@router.post("/external/agency/team", response_model=TeamMemberResponse, status_code=201)
async def add_agency_team_member(
    data: TeamMemberCreate,
    current_user: User = Depends(require_roles(*EXTERNAL_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    member = await service.add_team_member(data, current_user)
    return to_member_response(member)


# ============================================================================
# PLATFORM ADMIN
# ============================================================================


@router.get("/admin/agencies")
async def list_agencies(
    params: PageParams = Depends(page_params),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    result = service.list_agencies(params, active=active, search=search)
    result["data"] = [to_response(a) for a in result["data"]]
    return result


@router.post("/admin/agencies", response_model=AgencyResponse, status_code=201)
async def create_agency(
    data: AgencyCreate,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return to_response(service.create_agency(data, current_user))


@router.get("/admin/agencies/{agency_id}", response_model=AgencyResponse)
async def get_agency(
    agency_id: int,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return to_response(service.get_agency_by_id(agency_id))


@router.patch("/admin/agencies/{agency_id}", response_model=AgencyResponse)
async def admin_update_agency(
    agency_id: int,
    data: AgencyUpdate,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return to_response(service.admin_update_agency(agency_id, data))


@router.delete("/admin/agencies/{agency_id}", response_model=MessageResponse)
async def deactivate_agency(
    agency_id: int,
    current_user: User = Depends(require_roles(*PLATFORM_ADMIN_ROLES)),
    service: AgencyService = Depends(get_agency_service),
):
    return service.deactivate_agency(agency_id, current_user)


__all__ = [
    "router",
    "get_my_agency",
    "update_my_agency",
    "get_agency_settings",
    "update_agency_settings",
    "get_agency_team",
    "add_agency_team_member",
    "list_agencies",
    "create_agency",
    "get_agency",
    "admin_update_agency",
    "deactivate_agency",
]
