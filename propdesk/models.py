import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class ExternalAgency(Base):
    """Third-party brokerage tenant. Every agency-scoped row carries agency_id."""

    __tablename__ = "external_agencies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Settings
    maintenance_commission_percent = Column(Float, nullable=True)  # Charged on ticket actual cost
    default_admin_fee_percent = Column(Float, nullable=True)  # Default for new quotations
    standard_commission_rate = Column(Float, nullable=True)  # Rental commission percent
    notification_email = Column(String(255), nullable=True)
    operating_zones = Column(JSON, nullable=True)  # e.g. ["Aldea Zama", "Centro"]

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="agency")
    condominiums = relationship("Condominium", back_populates="agency")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    # master, admin, admin_jr, external_agency_admin, external_agency_seller,
    # external_agency_maintenance, owner, tenant
    role = Column(String(50), nullable=False, default="tenant", index=True)
    external_agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    agency = relationship("ExternalAgency", back_populates="users")
    notification_preferences = relationship(
        "NotificationPreference", back_populates="user", uselist=False
    )
