"""External agency service - agency profile, settings and team management"""

import logging
import re
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import get_user_agency_id
from ...cache import invalidate_condominium_cache
from ...config import (
    DEFAULT_ADMIN_FEE_PERCENT,
    DEFAULT_MAINTENANCE_COMMISSION_PERCENT,
    DEFAULT_RENTAL_COMMISSION_PERCENT,
)
from ...email_service import send_team_invite_email
from ...models import ExternalAgency, User
from ...security_utils import hash_password
from ...shared.pagination import PageParams, paginate
from .repository import AgencyRepository
from .schemas import AgencyCreate, AgencySettingsUpdate, AgencyUpdate, TeamMemberCreate

logger = logging.getLogger(__name__)

AGENCY_SORT_COLUMNS = {
    "created": ExternalAgency.created_at,
    "name": ExternalAgency.name,
}


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "agency"


def agency_settings(agency: ExternalAgency) -> dict:
    """Effective settings with platform defaults filled in"""
    return {
        "maintenanceCommissionPercent": (
            agency.maintenance_commission_percent
            if agency.maintenance_commission_percent is not None
            else DEFAULT_MAINTENANCE_COMMISSION_PERCENT
        ),
        "defaultAdminFeePercent": (
            agency.default_admin_fee_percent
            if agency.default_admin_fee_percent is not None
            else DEFAULT_ADMIN_FEE_PERCENT
        ),
        "standardCommissionRate": (
            agency.standard_commission_rate
            if agency.standard_commission_rate is not None
            else DEFAULT_RENTAL_COMMISSION_PERCENT
        ),
        "notificationEmail": agency.notification_email,
    }


class AgencyService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AgencyRepository()

    # ===== PLATFORM ADMIN =====

    def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug, suffix = base, 2
        while self.repo.slug_exists(self.db, slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def create_agency(self, data: AgencyCreate, admin: User) -> ExternalAgency:
        agency = self.repo.create(
            self.db,
            name=data.name.strip(),
            slug=self._unique_slug(data.name),
            contact_name=data.contactName,
            contact_email=data.contactEmail,
            contact_phone=data.contactPhone,
            description=data.description,
            operating_zones=data.operatingZones,
        )
        logger.info(f"✅ Agency {agency.id} '{agency.name}' created by {admin.email}")
        return agency

    def list_agencies(self, params: PageParams, active: Optional[bool] = None, search: Optional[str] = None) -> dict:
        query = self.repo.list_query(self.db, active=active, search=search)
        return paginate(query, params, AGENCY_SORT_COLUMNS, "created", tiebreaker=ExternalAgency.id.desc())

    def get_agency_by_id(self, agency_id: int) -> ExternalAgency:
        agency = self.repo.get_by_id(self.db, agency_id)
        if not agency:
            raise HTTPException(status_code=404, detail="Agency not found")
        return agency

    def admin_update_agency(self, agency_id: int, data: AgencyUpdate) -> ExternalAgency:
        agency = self.get_agency_by_id(agency_id)
        return self._apply_update(agency, data, allow_active=True)

    def deactivate_agency(self, agency_id: int, admin: User) -> dict:
        agency = self.get_agency_by_id(agency_id)
        agency.is_active = False
        self.db.commit()
        invalidate_condominium_cache()
        logger.info(f"🚫 Agency {agency.id} deactivated by {admin.email}")
        return {"message": "Agency deactivated"}

    # ===== OWN AGENCY =====

    def get_own_agency(self, user: User) -> ExternalAgency:
        return self.get_agency_by_id(get_user_agency_id(user))

    def update_own_agency(self, data: AgencyUpdate, user: User) -> ExternalAgency:
        return self._apply_update(self.get_own_agency(user), data, allow_active=False)

    def _apply_update(self, agency: ExternalAgency, data: AgencyUpdate, allow_active: bool) -> ExternalAgency:
        updates = {
            "name": data.name.strip() if data.name else None,
            "contact_name": data.contactName,
            "contact_email": data.contactEmail,
            "contact_phone": data.contactPhone,
            "description": data.description,
            "operating_zones": data.operatingZones,
        }
        was_active = agency.is_active
        if allow_active:
            updates["is_active"] = data.isActive
        agency = self.repo.update(self.db, agency, **updates)
        # public condominium list only shows active agencies
        if agency.is_active != was_active:
            invalidate_condominium_cache()
        return agency

    def get_settings(self, user: User) -> dict:
        return agency_settings(self.get_own_agency(user))

    def update_settings(self, data: AgencySettingsUpdate, user: User) -> dict:
        agency = self.get_own_agency(user)
        self.repo.update(
            self.db,
            agency,
            maintenance_commission_percent=data.maintenanceCommissionPercent,
            default_admin_fee_percent=data.defaultAdminFeePercent,
            standard_commission_rate=data.standardCommissionRate,
            notification_email=data.notificationEmail,
        )
        logger.info(f"⚙️ Agency {agency.id} settings updated by {user.email}")
        return agency_settings(agency)

    # ===== TEAM =====

    def get_team(self, user: User) -> list[User]:
        return self.repo.get_team(self.db, get_user_agency_id(user))

    async def add_team_member(self, data: TeamMemberCreate, user: User) -> User:
        agency = self.get_own_agency(user)

        if self.repo.email_exists(self.db, data.email):
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        member = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            full_name=data.fullName,
            phone=data.phone,
            role=data.role,
            external_agency_id=agency.id,
        )
        self.db.add(member)
        self.db.commit()
        self.db.refresh(member)
        logger.info(f"👤 {data.role} {member.email} added to agency {agency.id} by {user.email}")

        try:
            await send_team_invite_email(member.email, member.full_name, agency.name, member.role)
        except Exception as e:
            logger.error(f"❌ Failed to send team invite to {member.email}: {e}")

        return member
