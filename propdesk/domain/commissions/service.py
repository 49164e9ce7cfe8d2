"""Commission service - rate resolution and commission configs"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import get_user_agency_id
from ...config import DEFAULT_MAINTENANCE_COMMISSION_PERCENT, DEFAULT_RENTAL_COMMISSION_PERCENT
from ...models import ExternalAgency, User
from ...models_commission import CommissionConfig
from ...models_property import Unit
from ...services.commission_calculator import calculate_maintenance_charge, calculate_rental_commissions
from .repository import CommissionRepository
from .schemas import CommissionConfigCreate, CommissionConfigUpdate, MaintenanceChargeRequest, RentalCommissionRequest

logger = logging.getLogger(__name__)


def config_scope(config: CommissionConfig) -> str:
    if config.unit_id is not None:
        return "unit"
    if config.user_id is not None:
        return "user"
    return "agency"


def agency_maintenance_percent(agency: Optional[ExternalAgency]) -> float:
    if agency and agency.maintenance_commission_percent is not None:
        return agency.maintenance_commission_percent
    return DEFAULT_MAINTENANCE_COMMISSION_PERCENT


class CommissionService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CommissionRepository()

    # ===== CALCULATIONS =====

    def calculate_rental(self, data: RentalCommissionRequest) -> dict:
        try:
            return calculate_rental_commissions(
                monthly_rent=data.monthlyRent,
                lease_months=data.leaseDurationMonths,
                has_referral=data.hasReferral,
                referral_percent=data.referralPercent,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    def calculate_maintenance(self, data: MaintenanceChargeRequest, user: User) -> dict:
        percent = data.commissionPercent
        if percent is None:
            percent = agency_maintenance_percent(user.agency)
        commission, total_charge = calculate_maintenance_charge(data.actualCost, percent)
        return {
            "actualCost": data.actualCost,
            "commissionPercent": percent,
            "commission": commission,
            "totalCharge": total_charge,
        }

    def resolve_rate(self, agency_id: int, unit_id: Optional[int] = None, user_id: Optional[int] = None) -> dict:
        """
        Effective rental commission rate.
        Precedence: unit override > user override > agency default config >
        agency standard rate setting > platform default.
        """
        if unit_id is not None:
            config = (
                self.db.query(CommissionConfig)
                .filter(CommissionConfig.agency_id == agency_id, CommissionConfig.unit_id == unit_id)
                .order_by(CommissionConfig.id.desc())
                .first()
            )
            if config:
                return self._rate(config, "unit")

        if user_id is not None:
            config = (
                self.db.query(CommissionConfig)
                .filter(
                    CommissionConfig.agency_id == agency_id,
                    CommissionConfig.unit_id.is_(None),
                    CommissionConfig.user_id == user_id,
                )
                .first()
            )
            if config:
                return self._rate(config, "user")

        config = self.repo.find_scoped(self.db, agency_id)
        if config:
            return self._rate(config, "agency_config")

        agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == agency_id).first()
        if agency and agency.standard_commission_rate is not None:
            return {"commissionPercent": agency.standard_commission_rate, "fixedFee": None, "source": "agency_setting", "configId": None}

        return {"commissionPercent": DEFAULT_RENTAL_COMMISSION_PERCENT, "fixedFee": None, "source": "default", "configId": None}

    @staticmethod
    def _rate(config: CommissionConfig, source: str) -> dict:
        return {
            "commissionPercent": config.commission_percent,
            "fixedFee": config.fixed_fee,
            "source": source,
            "configId": config.id,
        }

    # ===== CONFIG CRUD =====

    def list_configs(self, user: User) -> list[CommissionConfig]:
        return self.repo.list_configs(self.db, get_user_agency_id(user))

    def get_config(self, config_id: int, user: User) -> CommissionConfig:
        config = self.repo.get_config(self.db, config_id, get_user_agency_id(user))
        if not config:
            raise HTTPException(status_code=404, detail="Commission config not found")
        return config

    def create_config(self, data: CommissionConfigCreate, user: User) -> CommissionConfig:
        agency_id = get_user_agency_id(user)

        if data.unitId is not None:
            unit = self.db.query(Unit).filter(Unit.id == data.unitId, Unit.agency_id == agency_id).first()
            if not unit:
                raise HTTPException(status_code=404, detail="Unit not found")
        if data.userId is not None:
            member = (
                self.db.query(User)
                .filter(User.id == data.userId, User.external_agency_id == agency_id)
                .first()
            )
            if not member:
                raise HTTPException(status_code=404, detail="User not found in this agency")

        if self.repo.find_scoped(self.db, agency_id, data.unitId, data.userId):
            raise HTTPException(status_code=409, detail="A commission config already exists for this scope")

        config = self.repo.create_config(
            self.db,
            agency_id=agency_id,
            unit_id=data.unitId,
            user_id=data.userId,
            commission_percent=data.commissionPercent,
            fixed_fee=data.fixedFee,
            notes=data.notes,
            created_by_id=user.id,
        )
        logger.info(f"✅ Commission config {config.id} ({config_scope(config)}) created for agency {agency_id}")
        return config

    def update_config(self, config_id: int, data: CommissionConfigUpdate, user: User) -> CommissionConfig:
        config = self.get_config(config_id, user)
        return self.repo.update_config(
            self.db,
            config,
            commission_percent=data.commissionPercent,
            fixed_fee=data.fixedFee,
            notes=data.notes,
        )

    def delete_config(self, config_id: int, user: User) -> dict:
        config = self.get_config(config_id, user)
        self.repo.delete_config(self.db, config)
        return {"message": "Commission config deleted"}
