"""Quotation service - priced service proposals sent to clients for approval"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...auth import get_user_agency_id
from ...config import DEFAULT_ADMIN_FEE_PERCENT
from ...email_service import send_quotation_email
from ...models import ExternalAgency, User
from ...models_property import Unit
from ...models_quotation import Quotation
from ...services import notification_service
from ...services.commission_calculator import round_money
from ...shared.pagination import PageParams, paginate
from ...utils.sanitization import sanitize_string
from ..commissions.service import agency_maintenance_percent
from ..tickets.repository import TicketRepository
from .repository import QuotationRepository
from .schemas import QuotationConvert, QuotationCreate, QuotationServiceItem, QuotationUpdate

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = {
    "draft": ["sent", "approved", "rejected"],
    "sent": ["approved", "rejected", "draft"],
    "approved": ["converted_to_ticket", "rejected"],
    "rejected": ["draft"],
    "converted_to_ticket": [],
}
EDITABLE_STATUSES = ["draft", "sent"]

QUOTATION_SORT_COLUMNS = {
    "created": Quotation.created_at,
    "total": Quotation.total,
    "status": Quotation.status,
    "title": Quotation.title,
}


def validate_status_transition(current_status: str, new_status: str) -> tuple[bool, str]:
    if current_status == new_status:
        return True, ""
    if new_status not in VALID_TRANSITIONS.get(current_status, []):
        return False, f"Cannot transition from {current_status} to {new_status}"
    return True, ""


def service_lines(items: list[QuotationServiceItem]) -> list[dict]:
    return [
        {
            "name": sanitize_string(item.name),
            "description": sanitize_string(item.description),
            "quantity": item.quantity,
            "unitPrice": item.unitPrice,
        }
        for item in items
    ]


def compute_totals(services: list[dict], admin_fee_percentage: float) -> dict:
    """
    Price a quotation. Line subtotal = quantity x unit price; admin fee is a
    percent of the sum. Client-supplied subtotals are never trusted.
    """
    lines = [
        {
            "name": line["name"],
            "description": line.get("description"),
            "quantity": line["quantity"],
            "unitPrice": round_money(line["unitPrice"]),
            "subtotal": round_money(line["quantity"] * line["unitPrice"]),
        }
        for line in services
    ]
    subtotal = round_money(sum(line["subtotal"] for line in lines))
    admin_fee = round_money(subtotal * admin_fee_percentage / 100)
    return {
        "services": lines,
        "subtotal": subtotal,
        "admin_fee_percentage": admin_fee_percentage,
        "admin_fee": admin_fee,
        "total": round_money(subtotal + admin_fee),
    }


class QuotationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = QuotationRepository()

    # ===== CORE CRUD OPERATIONS =====

    def list_quotations(self, user: User, params: PageParams, status: Optional[str] = None, search: Optional[str] = None) -> dict:
        query = self.repo.list_query(self.db, get_user_agency_id(user))
        if status:
            query = query.filter(Quotation.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Quotation.title.ilike(pattern), Quotation.client_name.ilike(pattern)))
        return paginate(query, params, QUOTATION_SORT_COLUMNS, "created", tiebreaker=Quotation.id.desc())

    def get_quotation(self, quotation_id: int, user: User) -> Quotation:
        quotation = self.repo.get_by_id(self.db, quotation_id, get_user_agency_id(user))
        if not quotation:
            raise HTTPException(status_code=404, detail="Quotation not found")
        return quotation

    def _check_unit(self, unit_id: Optional[int], agency_id: int) -> None:
        if unit_id is None:
            return
        if not self.db.query(Unit.id).filter(Unit.id == unit_id, Unit.agency_id == agency_id).first():
            raise HTTPException(status_code=404, detail="Unit not found")

    def create_quotation(self, data: QuotationCreate, user: User) -> Quotation:
        agency_id = get_user_agency_id(user)
        self._check_unit(data.unitId, agency_id)

        fee_percentage = data.adminFeePercentage
        if fee_percentage is None:
            agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == agency_id).first()
            fee_percentage = (
                agency.default_admin_fee_percent
                if agency and agency.default_admin_fee_percent is not None
                else DEFAULT_ADMIN_FEE_PERCENT
            )

        quotation = self.repo.create(
            self.db,
            agency_id=agency_id,
            unit_id=data.unitId,
            created_by_id=user.id,
            title=sanitize_string(data.title),
            client_name=sanitize_string(data.clientName),
            client_email=data.clientEmail,
            notes=sanitize_string(data.notes),
            currency=data.currency,
            status="draft",
            **compute_totals(service_lines(data.services), fee_percentage),
        )
        logger.info(f"🧾 Quotation {quotation.id} created by {user.email}: total {quotation.total} {quotation.currency}")
        return quotation

    def update_quotation(self, quotation_id: int, data: QuotationUpdate, user: User) -> Quotation:
        quotation = self.get_quotation(quotation_id, user)
        if quotation.status not in EDITABLE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Quotations cannot be edited once {quotation.status}")

        if data.unitId is not None:
            self._check_unit(data.unitId, quotation.agency_id)
            quotation.unit_id = data.unitId
        if data.title is not None:
            quotation.title = sanitize_string(data.title)
        if data.clientName is not None:
            quotation.client_name = sanitize_string(data.clientName)
        if data.clientEmail is not None:
            quotation.client_email = data.clientEmail
        if data.notes is not None:
            quotation.notes = sanitize_string(data.notes)
        if data.currency is not None:
            quotation.currency = data.currency

        if data.services is not None or data.adminFeePercentage is not None:
            services = service_lines(data.services) if data.services is not None else quotation.services
            fee_percentage = (
                data.adminFeePercentage if data.adminFeePercentage is not None else quotation.admin_fee_percentage
            )
            for key, value in compute_totals(services, fee_percentage).items():
                setattr(quotation, key, value)

        self.db.commit()
        self.db.refresh(quotation)
        return quotation

    def delete_quotation(self, quotation_id: int, user: User) -> dict:
        quotation = self.get_quotation(quotation_id, user)
        if quotation.status != "draft":
            raise HTTPException(status_code=400, detail="Only draft quotations can be deleted")
        self.repo.delete(self.db, quotation)
        return {"message": "Quotation deleted"}

    # ===== WORKFLOW =====

    def _transition(self, quotation: Quotation, new_status: str) -> bool:
        """Apply a status change; returns False for a same-status no-op"""
        if quotation.status == new_status:
            return False
        is_valid, error = validate_status_transition(quotation.status, new_status)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error)
        old_status = quotation.status
        quotation.status = new_status
        if new_status == "sent":
            quotation.sent_at = datetime.utcnow()
        elif new_status in ("approved", "rejected"):
            quotation.responded_at = datetime.utcnow()
        logger.info(f"✅ Quotation {quotation.id} transitioned: {old_status} → {new_status}")
        return True

    def change_status(self, quotation_id: int, new_status: str, user: User) -> Quotation:
        if new_status == "converted_to_ticket":
            raise HTTPException(status_code=400, detail="Use the convert endpoint to create a ticket")
        quotation = self.get_quotation(quotation_id, user)
        if self._transition(quotation, new_status):
            self.db.commit()
            self.db.refresh(quotation)
        return quotation

    async def send_quotation(self, quotation_id: int, user: User) -> tuple[Quotation, bool]:
        """Email the public approval link and mark the quotation sent"""
        quotation = self.get_quotation(quotation_id, user)
        if not quotation.client_email:
            raise HTTPException(status_code=400, detail="Quotation has no client email")
        if quotation.status not in EDITABLE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot send a quotation that is {quotation.status}")

        self._transition(quotation, "sent")
        quotation.sent_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(quotation)

        agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == quotation.agency_id).first()
        email_sent = False
        try:
            await send_quotation_email(
                to=quotation.client_email,
                client_name=quotation.client_name or "",
                agency_name=agency.name if agency else "PropDesk",
                quotation_title=quotation.title,
                public_id=quotation.public_id,
                services=quotation.services,
                subtotal=quotation.subtotal,
                admin_fee=quotation.admin_fee,
                total=quotation.total,
                currency=quotation.currency,
            )
            email_sent = True
        except Exception as e:
            logger.error(f"❌ Failed to email quotation {quotation.id} to {quotation.client_email}: {e}")

        return quotation, email_sent

    def convert_to_ticket(self, quotation_id: int, data: QuotationConvert, user: User):
        """Turn an approved quotation into an open maintenance ticket"""
        quotation = self.get_quotation(quotation_id, user)
        if quotation.status != "approved":
            raise HTTPException(status_code=400, detail="Only approved quotations can be converted to tickets")
        if quotation.unit_id is None:
            raise HTTPException(status_code=400, detail="Quotation must be linked to a unit to create a ticket")

        unit = self.db.query(Unit).filter(Unit.id == quotation.unit_id).first()
        agency = self.db.query(ExternalAgency).filter(ExternalAgency.id == quotation.agency_id).first()
        description = "\n".join(
            f"- {line['name']} x{line['quantity']}: ${line['subtotal']:,.2f}" for line in quotation.services
        )

        ticket_repo = TicketRepository()
        ticket = ticket_repo.create(
            self.db,
            agency_id=quotation.agency_id,
            unit_id=unit.id,
            condominium_id=unit.condominium_id,
            reported_by_id=user.id,
            title=quotation.title,
            description=f"{quotation.notes}\n\n{description}" if quotation.notes else description,
            category=data.category,
            priority=data.priority,
            status="open",
            estimated_cost=quotation.total,
            commission_percent=agency_maintenance_percent(agency),
        )
        ticket_repo.add_update(
            self.db, ticket.id, "created", author_id=user.id, new_status="open", notes=f"Created from quotation #{quotation.id}"
        )
        self._transition(quotation, "converted_to_ticket")
        quotation.ticket_id = ticket.id
        self.db.commit()
        self.db.refresh(quotation)
        logger.info(f"🔁 Quotation {quotation.id} converted to ticket {ticket.id}")
        return quotation, ticket

    # ===== PUBLIC (client) =====

    def get_public(self, public_id: str) -> Quotation:
        quotation = self.repo.get_by_public_id(self.db, public_id)
        if not quotation or quotation.status == "draft":
            raise HTTPException(status_code=404, detail="Quotation not found")
        return quotation

    async def respond(self, public_id: str, approve: bool, notes: Optional[str] = None) -> Quotation:
        quotation = self.get_public(public_id)
        if quotation.status != "sent":
            raise HTTPException(status_code=400, detail=f"This quotation is already {quotation.status.replace('_', ' ')}")

        self._transition(quotation, "approved" if approve else "rejected")
        quotation.client_response_notes = sanitize_string(notes)
        self.db.commit()
        self.db.refresh(quotation)

        if quotation.created_by_id:
            await notification_service.notify_quotation_status(self.db, quotation.created_by_id, quotation)
        return quotation
