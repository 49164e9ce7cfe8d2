"""
Service quotation model
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_public_id


class Quotation(Base):
    """Service line items × quantity × unit price + admin fee, sent to a client"""

    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    ticket_id = Column(Integer, ForeignKey("maintenance_tickets.id"), nullable=True)

    title = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # [{"name": "...", "description": "...", "quantity": 2, "unitPrice": 150.0, "subtotal": 300.0}]
    services = Column(JSON, nullable=False, default=list)
    subtotal = Column(Float, default=0, nullable=False)
    admin_fee_percentage = Column(Float, default=15, nullable=False)
    admin_fee = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)
    currency = Column(String(10), default="MXN", nullable=False)

    # draft → sent → approved → converted_to_ticket; rejected may go back to draft
    status = Column(String(50), default="draft", nullable=False, index=True)
    sent_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    client_response_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit")
    ticket = relationship("MaintenanceTicket")
