"""
Leasing models: rental contracts with their commission split
"""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class RentalContract(Base):
    """
    A lease on a unit closed by an agency seller.

    The commission split is computed when the contract is created and again on
    every edit of its terms, then frozen once the contract is active.
    """

    __tablename__ = "rental_contracts"

    id = Column(Integer, primary_key=True, index=True)
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Status: draft → active → completed; draft/active may be cancelled
    status = Column(String(50), default="draft", nullable=False, index=True)

    # Lease terms
    monthly_rent = Column(Float, nullable=False)
    currency = Column(String(10), default="MXN", nullable=False)
    lease_months = Column(Integer, nullable=False)
    lease_start_date = Column(Date, nullable=False)
    lease_end_date = Column(Date, nullable=False)
    deposit_amount = Column(Float, nullable=True)
    has_referral = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)

    # Commission split
    total_commission_months = Column(Float, default=0, nullable=False)
    total_commission_amount = Column(Float, default=0, nullable=False)
    seller_commission_percent = Column(Float, default=50, nullable=False)
    referral_commission_percent = Column(Float, default=0, nullable=False)
    agency_commission_percent = Column(Float, default=50, nullable=False)
    seller_commission_amount = Column(Float, default=0, nullable=False)
    referral_commission_amount = Column(Float, default=0, nullable=False)
    agency_commission_amount = Column(Float, default=0, nullable=False)
    is_vacation_rental = Column(Boolean, default=False, nullable=False)

    activated_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit")
    tenant = relationship("User", foreign_keys=[tenant_id])
    seller = relationship("User", foreign_keys=[seller_id])
