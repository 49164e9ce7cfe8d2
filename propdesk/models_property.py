"""
Listing models: condominiums and the rentable units inside them
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_public_id


class Condominium(Base):
    __tablename__ = "condominiums"

    id = Column(Integer, primary_key=True, index=True)
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    zone = Column(String(255), nullable=True, index=True)
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    agency = relationship("ExternalAgency", back_populates="condominiums")
    units = relationship("Unit", back_populates="condominium")


class Unit(Base):
    """A rentable unit. Published + available units show up in public search."""

    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    condominium_id = Column(Integer, ForeignKey("condominiums.id"), nullable=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    name = Column(String(255), nullable=False)  # e.g. "Torre A - 302"
    description = Column(Text, nullable=True)
    zone = Column(String(255), nullable=True, index=True)
    bedrooms = Column(Integer, default=1, nullable=False)
    bathrooms = Column(Float, default=1, nullable=False)
    area_sqm = Column(Float, nullable=True)
    monthly_rent = Column(Float, nullable=True)
    currency = Column(String(10), default="MXN", nullable=False)
    amenities = Column(JSON, nullable=True)  # ["pool", "gym"]

    # Status: available → reserved → rented; inactive hides the unit
    status = Column(String(50), default="available", nullable=False, index=True)
    is_published = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    condominium = relationship("Condominium", back_populates="units")
    owner = relationship("User", foreign_keys=[owner_id])
    tenant = relationship("User", foreign_keys=[tenant_id])
    tickets = relationship("MaintenanceTicket", back_populates="unit")
