"""
Append-only activity logs: check-ins and payments
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Numeric, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, enum_values


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CHECK = "check"
    CARD = "card"
    OTHER = "other"


class CheckIn(Base):
    """
    One visit. Rows are never updated or deleted in the normal flow, and repeat
    check-ins for the same member are recorded as separate rows.
    """
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    checked_in_by = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    member = relationship("Member")


class Payment(Base):
    """Recorded payment or donation (append-only)"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    family_group_id = Column(Integer, ForeignKey("family_groups.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=enum_values),
        nullable=False,
    )
    payment_date = Column(Date, nullable=False)
    recorded_by = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    member = relationship("Member")
