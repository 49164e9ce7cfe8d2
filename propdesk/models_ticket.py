"""
Maintenance / cleaning ticket models
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class MaintenanceTicket(Base):
    """Work item for a unit, tracked through a fixed status vocabulary"""

    __tablename__ = "maintenance_tickets"

    id = Column(Integer, primary_key=True, index=True)
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False, index=True)
    condominium_id = Column(Integer, ForeignKey("condominiums.id"), nullable=True, index=True)
    reported_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # maintenance, cleaning, plumbing, electrical, appliances, pest_control, other
    category = Column(String(50), default="maintenance", nullable=False, index=True)
    # low, medium, high, urgent
    priority = Column(String(20), default="medium", nullable=False, index=True)
    # open → in_progress → resolved → closed, on_hold from any non-terminal state
    status = Column(String(50), default="open", nullable=False, index=True)

    scheduled_date = Column(DateTime, nullable=True)
    scheduled_time = Column(String(10), nullable=True)  # HH:MM

    estimated_cost = Column(Float, nullable=True)
    actual_cost = Column(Float, nullable=True)
    # Snapshot of the agency percent when the ticket was created
    commission_percent = Column(Float, nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    resolved_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit", back_populates="tickets")
    condominium = relationship("Condominium")
    reported_by = relationship("User", foreign_keys=[reported_by_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    updates = relationship(
        "TicketUpdate",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketUpdate.id",
    )
    photos = relationship("TicketPhoto", back_populates="ticket", cascade="all, delete-orphan")


class TicketUpdate(Base):
    """Timeline entry: created, status_change, assignment, comment, cost_update, photo, payment"""

    __tablename__ = "ticket_updates"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("maintenance_tickets.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    type = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    ticket = relationship("MaintenanceTicket", back_populates="updates")
    author = relationship("User")


class TicketPhoto(Base):
    __tablename__ = "ticket_photos"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("maintenance_tickets.id"), nullable=False, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    url = Column(String(1000), nullable=False)
    phase = Column(String(20), default="before", nullable=False)  # before, during, after
    caption = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    ticket = relationship("MaintenanceTicket", back_populates="photos")
