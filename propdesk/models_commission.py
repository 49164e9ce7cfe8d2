from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.sql import func

from .database import Base


class CommissionConfig(Base):
    """
    Rental commission configuration for an agency.
    A row with neither unit_id nor user_id is the agency default; rows with
    unit_id or user_id override it for that unit / seller.
    """

    __tablename__ = "commission_configs"

    id = Column(Integer, primary_key=True, index=True)
    agency_id = Column(Integer, ForeignKey("external_agencies.id"), nullable=False, index=True)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    commission_percent = Column(Float, nullable=False)
    fixed_fee = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
