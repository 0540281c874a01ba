"""
Group Transfer Router - move a student between groups with current-month credit
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from services import transfers as transfer_service
from services.audit import audit_from_request
from services.money import to_major, bp_to_percent
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional

router = APIRouter(prefix="/group-transfers", tags=["Group Transfers"])


class TransferRequest(BaseModel):
    student_id: int
    from_group_id: int
    to_group_id: int
    reason: Optional[str] = None
    discount_percentage: Decimal = Decimal("0")


@router.post("")
def create_transfer(data: TransferRequest, request: Request, db: Session = Depends(get_db)):
    result = transfer_service.transfer(
        db,
        student_id=data.student_id,
        from_group_id=data.from_group_id,
        to_group_id=data.to_group_id,
        reason=data.reason,
        discount_percentage=data.discount_percentage,
        audit=audit_from_request(request),
    )
    return {
        "message": result.message,
        "transfer_id": result.transfer_id,
        "credited_month": result.credited_month,
        "paid_amount": to_major(result.paid_amount),
        "credited_amount": to_major(result.credited_amount),
        "uncredited_amount": to_major(result.uncredited_amount),
        "source_group_debt": to_major(result.source_group_debt),
        "credit_payment_id": result.credit_payment_id,
    }


@router.get("")
def get_transfers(student_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Transfer history, optionally for one student"""
    return [
        {
            "id": t.id,
            "student_id": t.student_id,
            "from_group_id": t.from_group_id,
            "from_group_name": t.from_group.name if t.from_group else "-",
            "to_group_id": t.to_group_id,
            "to_group_name": t.to_group.name if t.to_group else "-",
            "reason": t.reason,
            "discount_percentage": bp_to_percent(t.discount_bp),
            "credited_month": t.credited_month,
            "credited_amount": to_major(t.credited_amount),
            "source_debt": to_major(t.source_debt),
            "transferred_by": t.transferred_by,
            "created_at": str(t.created_at) if t.created_at else None,
        }
        for t in transfer_service.transfer_history(db, student_id)
    ]
