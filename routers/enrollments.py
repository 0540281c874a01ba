from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from services import enrollments as enrollment_service
from services.audit import audit_from_request
from services.money import bp_to_percent
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional
import datetime

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


class EnrollRequest(BaseModel):
    student_id: int
    group_id: int
    discount_percentage: Decimal = Decimal("0")
    enrolled_at: Optional[datetime.date] = None


class DiscountRequest(BaseModel):
    student_id: int
    group_id: int
    discount_percentage: Decimal


def enrollment_out(e):
    return {
        "id": e.id,
        "student_id": e.student_id,
        "group_id": e.group_id,
        "discount_percentage": bp_to_percent(e.discount_bp),
        "enrolled_at": str(e.enrolled_at),
        "ended_at": str(e.ended_at) if e.ended_at else None,
        "end_reason": e.end_reason,
    }


@router.post("")
def enroll_student(data: EnrollRequest, request: Request, db: Session = Depends(get_db)):
    enrollment = enrollment_service.enroll(
        db, data.student_id, data.group_id,
        discount_percentage=data.discount_percentage,
        enrolled_at=data.enrolled_at,
        audit=audit_from_request(request),
    )
    return enrollment_out(enrollment)


@router.delete("")
def unenroll_student(student_id: int, group_id: int, request: Request, db: Session = Depends(get_db)):
    """Close the active enrollment; its payments stay on record"""
    enrollment = enrollment_service.unenroll(db, student_id, group_id, audit=audit_from_request(request))
    return enrollment_out(enrollment)


@router.put("/discount")
def change_discount(data: DiscountRequest, request: Request, db: Session = Depends(get_db)):
    enrollment = enrollment_service.change_discount(
        db, data.student_id, data.group_id, data.discount_percentage,
        audit=audit_from_request(request),
    )
    return enrollment_out(enrollment)
