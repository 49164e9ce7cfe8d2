"""Rental contract service - leases, unit occupancy and the seller commission split"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...auth import EXTERNAL_SELLER_ROLES, get_user_agency_id
from ...models import User
from ...models_property import Unit
from ...models_rental import RentalContract
from ...services import notification_service
from ...services.commission_calculator import DEFAULT_REFERRAL_PERCENT, calculate_rental_commissions, round_money
from ...shared.pagination import PageParams, paginate
from ...shared.periods import BiweeklyPeriod
from ...utils.sanitization import sanitize_string
from ..tickets.workflow import is_admin
from .repository import RentalRepository
from .schemas import RentalContractCreate, RentalContractUpdate

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = {
    "draft": ["active", "cancelled"],
    "active": ["completed", "cancelled"],
    "completed": [],
    "cancelled": [],
}

RENTAL_SORT_COLUMNS = {
    "created": RentalContract.created_at,
    "start": RentalContract.lease_start_date,
    "rent": RentalContract.monthly_rent,
    "commission": RentalContract.total_commission_amount,
}


def validate_status_transition(current_status: str, new_status: str) -> tuple[bool, str]:
    if current_status == new_status:
        return True, ""
    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        return False, f"Cannot transition from {current_status} to {new_status}"
    return True, ""


def lease_end_date(start: date, lease_months: int) -> date:
    """Last day of the lease: a 12 month lease from Jan 1 ends Dec 31"""
    return start + relativedelta(months=lease_months) - timedelta(days=1)


def commission_fields(monthly_rent: float, lease_months: int, has_referral: bool, referral_percent: float) -> dict:
    """Commission split mapped onto RentalContract columns"""
    split = calculate_rental_commissions(monthly_rent, lease_months, has_referral, referral_percent)
    return {
        "total_commission_months": split["totalCommissionMonths"],
        "total_commission_amount": split["totalCommissionAmount"],
        "seller_commission_percent": split["sellerCommissionPercent"],
        "referral_commission_percent": split["referralCommissionPercent"],
        "agency_commission_percent": split["agencyCommissionPercent"],
        "seller_commission_amount": split["sellerCommissionAmount"],
        "referral_commission_amount": split["referralCommissionAmount"],
        "agency_commission_amount": split["agencyCommissionAmount"],
        "is_vacation_rental": split["isVacationRental"],
    }


def release_unit(db: Session, contract: RentalContract) -> None:
    """Put a unit back on the market once its lease stops being active"""
    unit = db.query(Unit).filter(Unit.id == contract.unit_id).first()
    if not unit:
        return
    if unit.tenant_id == contract.tenant_id:
        unit.tenant_id = None
    if unit.status == "rented":
        unit.status = "available"


class RentalService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = RentalRepository()

    # ===== CORE CRUD OPERATIONS =====

    def list_contracts(
        self,
        user: User,
        params: PageParams,
        status: Optional[str] = None,
        unit_id: Optional[int] = None,
        seller_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> dict:
        query = self.repo.list_query(self.db, get_user_agency_id(user))
        # sellers only see the leases they closed
        if not is_admin(user):
            seller_id = user.id
        if seller_id:
            query = query.filter(RentalContract.seller_id == seller_id)
        if status:
            query = query.filter(RentalContract.status == status)
        if unit_id:
            query = query.filter(RentalContract.unit_id == unit_id)
        if search:
            pattern = f"%{search}%"
            query = query.join(Unit, Unit.id == RentalContract.unit_id).filter(
                or_(Unit.name.ilike(pattern), RentalContract.notes.ilike(pattern))
            )
        return paginate(query, params, RENTAL_SORT_COLUMNS, "created", tiebreaker=RentalContract.id.desc())

    def get_contract(self, contract_id: int, user: User) -> RentalContract:
        contract = self.repo.get_by_id(self.db, contract_id, get_user_agency_id(user))
        if not contract or (not is_admin(user) and contract.seller_id != user.id):
            raise HTTPException(status_code=404, detail="Rental contract not found")
        return contract

    def _get_unit(self, unit_id: int, agency_id: int) -> Unit:
        unit = self.db.query(Unit).filter(Unit.id == unit_id, Unit.agency_id == agency_id).first()
        if not unit:
            raise HTTPException(status_code=404, detail="Unit not found")
        return unit

    def _check_tenant(self, tenant_id: int) -> User:
        tenant = self.db.query(User).filter(User.id == tenant_id, User.is_active.is_(True)).first()
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant not found")
        if tenant.role != "tenant":
            raise HTTPException(status_code=400, detail="Leases can only be signed by tenant accounts")
        return tenant

    def _resolve_seller(self, seller_id: Optional[int], agency_id: int, user: User) -> Optional[int]:
        if seller_id is None:
            return None if is_admin(user) else user.id
        if not is_admin(user) and seller_id != user.id:
            raise HTTPException(status_code=403, detail="Sellers can only register their own leases")
        seller = (
            self.db.query(User)
            .filter(User.id == seller_id, User.external_agency_id == agency_id, User.role.in_(EXTERNAL_SELLER_ROLES))
            .first()
        )
        if not seller:
            raise HTTPException(status_code=404, detail="Seller not found in this agency")
        return seller.id

    def create_contract(self, data: RentalContractCreate, user: User) -> RentalContract:
        agency_id = get_user_agency_id(user)
        unit = self._get_unit(data.unitId, agency_id)
        self._check_tenant(data.tenantId)
        seller_id = self._resolve_seller(data.sellerId, agency_id, user)

        monthly_rent = data.monthlyRent if data.monthlyRent is not None else unit.monthly_rent
        if monthly_rent is None:
            raise HTTPException(status_code=400, detail="Monthly rent is required when the unit has no listed rent")

        contract = self.repo.create(
            self.db,
            agency_id=agency_id,
            unit_id=unit.id,
            tenant_id=data.tenantId,
            owner_id=unit.owner_id,
            seller_id=seller_id,
            created_by_id=user.id,
            status="draft",
            monthly_rent=round_money(monthly_rent),
            currency=data.currency or unit.currency,
            lease_months=data.leaseMonths,
            lease_start_date=data.leaseStartDate,
            lease_end_date=lease_end_date(data.leaseStartDate, data.leaseMonths),
            deposit_amount=round_money(data.depositAmount) if data.depositAmount is not None else None,
            has_referral=data.hasReferral,
            notes=sanitize_string(data.notes),
            **commission_fields(monthly_rent, data.leaseMonths, data.hasReferral, data.referralPercent),
        )
        logger.info(
            f"📝 Rental contract {contract.id} drafted for unit {unit.id} by {user.email}: "
            f"{contract.lease_months} months, commission {contract.total_commission_amount} {contract.currency}"
        )
        return contract

    def update_contract(self, contract_id: int, data: RentalContractUpdate, user: User) -> RentalContract:
        """Edit lease terms while the contract is a draft; the commission split is recomputed"""
        contract = self.get_contract(contract_id, user)
        if contract.status != "draft":
            raise HTTPException(status_code=400, detail=f"Rental contracts cannot be edited once {contract.status}")

        if data.tenantId is not None:
            self._check_tenant(data.tenantId)
            contract.tenant_id = data.tenantId
        if data.sellerId is not None:
            contract.seller_id = self._resolve_seller(data.sellerId, contract.agency_id, user)
        if data.monthlyRent is not None:
            contract.monthly_rent = round_money(data.monthlyRent)
        if data.leaseMonths is not None:
            contract.lease_months = data.leaseMonths
        if data.leaseStartDate is not None:
            contract.lease_start_date = data.leaseStartDate
        if data.depositAmount is not None:
            contract.deposit_amount = round_money(data.depositAmount)
        if data.hasReferral is not None:
            contract.has_referral = data.hasReferral
        if data.notes is not None:
            contract.notes = sanitize_string(data.notes)

        if data.referralPercent is not None:
            referral_percent = data.referralPercent
        elif contract.referral_commission_percent:
            referral_percent = contract.referral_commission_percent
        else:
            referral_percent = DEFAULT_REFERRAL_PERCENT

        contract.lease_end_date = lease_end_date(contract.lease_start_date, contract.lease_months)
        fields = commission_fields(contract.monthly_rent, contract.lease_months, contract.has_referral, referral_percent)
        for key, value in fields.items():
            setattr(contract, key, value)

        self.db.commit()
        self.db.refresh(contract)
        return contract

    def delete_contract(self, contract_id: int, user: User) -> dict:
        contract = self.get_contract(contract_id, user)
        if contract.status != "draft":
            raise HTTPException(status_code=400, detail="Only draft rental contracts can be deleted")
        self.repo.delete(self.db, contract)
        logger.info(f"🗑️ Rental contract {contract_id} deleted by {user.email}")
        return {"message": "Rental contract deleted"}

    # ===== WORKFLOW =====

    async def change_status(self, contract_id: int, new_status: str, user: User, reason: Optional[str] = None) -> RentalContract:
        """
        Move a lease through draft → active → completed (or cancelled).

        Activating marks the unit rented to the contract's tenant; completing or
        cancelling an active lease puts the unit back to available.
        """
        contract = self.get_contract(contract_id, user)
        if not is_admin(user):
            raise HTTPException(status_code=403, detail="Only agency admins can change the status of a lease")

        old_status = contract.status
        if old_status == new_status:
            return contract

        is_valid, error = validate_status_transition(old_status, new_status)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error)

        now = datetime.utcnow()
        if new_status == "active":
            unit = self.db.query(Unit).filter(Unit.id == contract.unit_id).first()
            if unit.status == "inactive":
                raise HTTPException(status_code=400, detail="Cannot lease an inactive unit")
            if self.repo.get_active_for_unit(self.db, contract.unit_id, exclude_id=contract.id):
                raise HTTPException(status_code=409, detail="Unit already has an active lease")
            unit.status = "rented"
            unit.tenant_id = contract.tenant_id
            contract.activated_at = now
        elif old_status == "active":
            release_unit(self.db, contract)

        if new_status == "completed":
            contract.completed_at = now
        elif new_status == "cancelled":
            contract.cancelled_at = now
            contract.cancellation_reason = sanitize_string(reason)

        contract.status = new_status
        self.db.commit()
        self.db.refresh(contract)
        logger.info(f"✅ Rental contract {contract.id} transitioned: {old_status} → {new_status} by {user.email}")

        await notification_service.notify_contract_status(
            self.db, [contract.seller_id, contract.tenant_id], contract, actor=user
        )
        return contract

    # ===== PORTAL & REPORTING =====

    def tenant_leases(self, user: User) -> list[RentalContract]:
        return self.repo.list_for_tenant(self.db, user.id)

    def commission_summary(self, user: User, period: BiweeklyPeriod, seller_id: Optional[int] = None) -> dict:
        """Commission earned on leases activated inside a biweekly period"""
        if not is_admin(user):
            seller_id = user.id
        contracts = self.repo.activated_between(
            self.db, get_user_agency_id(user), period.start_datetime, period.end_datetime_exclusive, seller_id
        )
        return {
            "period": period.to_dict(),
            "sellerId": seller_id,
            "contracts": len(contracts),
            "totalCommission": round_money(sum(c.total_commission_amount for c in contracts)),
            "sellerCommission": round_money(sum(c.seller_commission_amount for c in contracts)),
            "referralCommission": round_money(sum(c.referral_commission_amount for c in contracts)),
            "agencyCommission": round_money(sum(c.agency_commission_amount for c in contracts)),
        }
