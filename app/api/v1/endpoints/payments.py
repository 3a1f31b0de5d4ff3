"""
Payment API Endpoints - treasurer view of dues and donations
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
import logging

from app.db.session import get_db
from app.models import Payment, Staff
from app.schemas.payment import PaymentCreate, PaymentResponse
from app.api.dependencies import require_roles
from app.core.permissions import PAYMENT_VIEW_ROLES, PAYMENT_CREATE_ROLES
from app.services.member_service import member_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[PaymentResponse])
async def list_payments(
    member_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*PAYMENT_VIEW_ROLES))
):
    query = select(Payment).where(Payment.organization_id == current_staff.organization_id)
    if member_id is not None:
        query = query.where(Payment.member_id == member_id)

    result = await db.execute(
        query.order_by(Payment.payment_date.desc(), Payment.id.desc()).offset(skip).limit(limit)
    )
    return [PaymentResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*PAYMENT_CREATE_ROLES))
):
    """Log a payment against a member of this organization"""
    member = await member_service.get_member(db, current_staff.organization_id, payment_data.member_id)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )

    payment = Payment(
        organization_id=current_staff.organization_id,
        member_id=member.id,
        family_group_id=member.family_group_id,
        amount=payment_data.amount,
        payment_method=payment_data.payment_method,
        payment_date=payment_data.payment_date,
        recorded_by=current_staff.id,
        notes=payment_data.notes,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)

    logger.info(f"Recorded payment {payment.id} of {payment.amount} for member {member.id}")
    return PaymentResponse.model_validate(payment)
