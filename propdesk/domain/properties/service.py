"""Property service - agency-scoped listings, public search and owner views"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...auth import get_user_agency_id
from ...cache import cache, condominiums_cache_key, invalidate_condominium_cache
from ...models import User
from ...models_property import Condominium, Unit
from ...shared.pagination import PageParams, paginate
from ...utils.sanitization import sanitize_string
from .repository import PropertyRepository
from .schemas import CondominiumCreate, CondominiumUpdate, UnitCreate, UnitUpdate

logger = logging.getLogger(__name__)

CONDOMINIUM_CACHE_TTL = 600

UNIT_SORT_COLUMNS = {
    "created": Unit.created_at,
    "rent": Unit.monthly_rent,
    "bedrooms": Unit.bedrooms,
    "name": Unit.name,
}

SEARCH_SORT_COLUMNS = {
    "created": Unit.created_at,
    "rent": Unit.monthly_rent,
    "bedrooms": Unit.bedrooms,
}


def condominium_dict(condominium: Condominium, unit_count: int = 0) -> dict:
    return {
        "id": condominium.id,
        "name": condominium.name,
        "zone": condominium.zone,
        "address": condominium.address,
        "latitude": condominium.latitude,
        "longitude": condominium.longitude,
        "unitCount": unit_count,
    }


class PropertyService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PropertyRepository()

    # ===== CONDOMINIUMS =====

    def list_condominiums(self, user: User) -> list[dict]:
        rows = self.repo.list_condominiums(self.db, get_user_agency_id(user))
        return [condominium_dict(c, count) for c, count in rows]

    def list_public_condominiums(self, agency_id: Optional[int] = None) -> list[dict]:
        """Public filter list for search; cached because every search page loads it"""
        key = condominiums_cache_key(agency_id)
        cached = cache.get(key)
        if cached is not None:
            return cached

        condominiums = [
            {"id": c.id, "name": c.name, "zone": c.zone}
            for c in self.repo.list_public_condominiums(self.db, agency_id)
        ]
        cache.set(key, condominiums, ttl=CONDOMINIUM_CACHE_TTL)
        return condominiums

    def get_condominium(self, condominium_id: int, user: User) -> Condominium:
        condominium = self.repo.get_condominium(self.db, condominium_id, get_user_agency_id(user))
        if not condominium:
            raise HTTPException(status_code=404, detail="Condominium not found")
        return condominium

    def create_condominium(self, data: CondominiumCreate, user: User) -> dict:
        condominium = Condominium(
            agency_id=get_user_agency_id(user),
            name=data.name.strip(),
            zone=data.zone,
            address=data.address,
            latitude=data.latitude,
            longitude=data.longitude,
        )
        self.db.add(condominium)
        self.db.commit()
        self.db.refresh(condominium)
        invalidate_condominium_cache()
        logger.info(f"🏢 Condominium {condominium.id} '{condominium.name}' created by {user.email}")
        return condominium_dict(condominium)

    def update_condominium(self, condominium_id: int, data: CondominiumUpdate, user: User) -> dict:
        condominium = self.get_condominium(condominium_id, user)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(condominium, field, value)
        self.db.commit()
        self.db.refresh(condominium)
        invalidate_condominium_cache()
        return condominium_dict(condominium, self.repo.count_units(self.db, condominium.id))

    def delete_condominium(self, condominium_id: int, user: User) -> dict:
        condominium = self.get_condominium(condominium_id, user)
        if self.repo.count_units(self.db, condominium.id):
            raise HTTPException(status_code=400, detail="Cannot delete a condominium that still has units")
        self.db.delete(condominium)
        self.db.commit()
        invalidate_condominium_cache()
        return {"message": "Condominium deleted"}

    # ===== UNITS =====

    def list_units(
        self,
        user: User,
        params: PageParams,
        status: Optional[str] = None,
        condominium_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> dict:
        query = self.repo.units_query(self.db, get_user_agency_id(user))
        if status:
            query = query.filter(Unit.status == status)
        if condominium_id:
            query = query.filter(Unit.condominium_id == condominium_id)
        if search:
            query = query.filter(Unit.name.ilike(f"%{search}%"))
        return paginate(query, params, UNIT_SORT_COLUMNS, "created", tiebreaker=Unit.id.desc())

    def get_unit(self, unit_id: int, user: User) -> Unit:
        unit = self.repo.get_unit(self.db, unit_id, get_user_agency_id(user))
        if not unit:
            raise HTTPException(status_code=404, detail="Unit not found")
        return unit

    def _check_people(self, owner_id: Optional[int], tenant_id: Optional[int]) -> None:
        for user_id, label in ((owner_id, "Owner"), (tenant_id, "Tenant")):
            if user_id is not None and not self.db.query(User.id).filter(User.id == user_id).first():
                raise HTTPException(status_code=404, detail=f"{label} user not found")

    def create_unit(self, data: UnitCreate, user: User) -> Unit:
        agency_id = get_user_agency_id(user)
        zone = data.zone
        if data.condominiumId is not None:
            condominium = self.repo.get_condominium(self.db, data.condominiumId, agency_id)
            if not condominium:
                raise HTTPException(status_code=404, detail="Condominium not found")
            zone = zone or condominium.zone
        self._check_people(data.ownerId, data.tenantId)

        unit = Unit(
            agency_id=agency_id,
            condominium_id=data.condominiumId,
            owner_id=data.ownerId,
            tenant_id=data.tenantId,
            name=data.name.strip(),
            description=sanitize_string(data.description),
            zone=zone,
            bedrooms=data.bedrooms,
            bathrooms=data.bathrooms,
            area_sqm=data.areaSqm,
            monthly_rent=data.monthlyRent,
            currency=data.currency,
            amenities=data.amenities,
            status=data.status,
            is_published=data.isPublished,
        )
        self.db.add(unit)
        self.db.commit()
        self.db.refresh(unit)
        if unit.is_published:
            invalidate_condominium_cache()
        logger.info(f"🏠 Unit {unit.id} '{unit.name}' created in agency {agency_id}")
        return unit

    def update_unit(self, unit_id: int, data: UnitUpdate, user: User) -> Unit:
        unit = self.get_unit(unit_id, user)
        if data.condominiumId is not None:
            if not self.repo.get_condominium(self.db, data.condominiumId, unit.agency_id):
                raise HTTPException(status_code=404, detail="Condominium not found")
        self._check_people(data.ownerId, data.tenantId)

        updates = {
            "name": data.name,
            "condominium_id": data.condominiumId,
            "description": sanitize_string(data.description),
            "zone": data.zone,
            "bedrooms": data.bedrooms,
            "bathrooms": data.bathrooms,
            "area_sqm": data.areaSqm,
            "monthly_rent": data.monthlyRent,
            "currency": data.currency,
            "amenities": data.amenities,
            "status": data.status,
            "is_published": data.isPublished,
            "owner_id": data.ownerId,
            "tenant_id": data.tenantId,
        }
        for key, value in updates.items():
            if value is not None:
                setattr(unit, key, value)
        self.db.commit()
        self.db.refresh(unit)
        invalidate_condominium_cache()
        return unit

    def delete_unit(self, unit_id: int, user: User) -> dict:
        unit = self.get_unit(unit_id, user)
        if self.repo.count_tickets(self.db, unit.id):
            raise HTTPException(
                status_code=400,
                detail="Unit has maintenance history; set its status to inactive instead",
            )
        self.db.delete(unit)
        self.db.commit()
        invalidate_condominium_cache()
        return {"message": "Unit deleted"}

    # ===== PUBLIC SEARCH =====

    def search_units(
        self,
        params: PageParams,
        zone: Optional[str] = None,
        condominium_id: Optional[int] = None,
        min_rent: Optional[float] = None,
        max_rent: Optional[float] = None,
        bedrooms: Optional[int] = None,
        q: Optional[str] = None,
        agency_id: Optional[int] = None,
    ) -> dict:
        if min_rent is not None and max_rent is not None and min_rent > max_rent:
            raise HTTPException(status_code=400, detail="minRent cannot be greater than maxRent")

        query = self.repo.search_query(self.db)
        if agency_id:
            query = query.filter(Unit.agency_id == agency_id)
        if zone:
            query = query.filter(Unit.zone.ilike(zone))
        if condominium_id:
            query = query.filter(Unit.condominium_id == condominium_id)
        if min_rent is not None:
            query = query.filter(Unit.monthly_rent >= min_rent)
        if max_rent is not None:
            query = query.filter(Unit.monthly_rent <= max_rent)
        if bedrooms is not None:
            query = query.filter(Unit.bedrooms >= bedrooms)
        if q:
            pattern = f"%{q}%"
            query = query.filter(or_(Unit.name.ilike(pattern), Unit.description.ilike(pattern), Unit.zone.ilike(pattern)))

        return paginate(query, params, SEARCH_SORT_COLUMNS, "created", tiebreaker=Unit.id.desc())

    def get_public_unit(self, public_id: str) -> Unit:
        unit = self.repo.get_public_unit(self.db, public_id)
        if not unit:
            raise HTTPException(status_code=404, detail="Listing not found")
        return unit

    # ===== OWNER PORTAL =====

    def list_owner_units(self, owner: User) -> list[tuple[Unit, int]]:
        return self.repo.owner_units_with_open_tickets(self.db, owner.id)
