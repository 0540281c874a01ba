"""
Salary Slips Router - salary preview and slip lifecycle (pending -> paid, soft delete)
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from services import salary as salary_service
from services.audit import audit_from_request
from services.money import to_major, to_minor, bp_to_percent
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional
import datetime

router = APIRouter(prefix="/salary-slips", tags=["Salary Slips"])

# --- SCHEMAS ---
class SalarySlipCreate(BaseModel):
    teacher_id: int
    period_start: datetime.date
    period_end: datetime.date
    base_amount: Optional[Decimal] = None  # empty = pre-fill from preview
    bonus: Decimal = Decimal("0")
    deduction: Decimal = Decimal("0")
    status: str = "pending"
    notes: Optional[str] = None


class SalarySlipUpdate(BaseModel):
    status: str
    paid_at: Optional[datetime.date] = None


def slip_out(s):
    return {
        "id": s.id,
        "teacher_id": s.teacher_id,
        "teacher_name": s.teacher.full_name if s.teacher else "-",
        "period_start": str(s.period_start),
        "period_end": str(s.period_end),
        "base_amount": to_major(s.base_amount),
        "bonus": to_major(s.bonus),
        "deduction": to_major(s.deduction),
        "total_amount": to_major(s.total_amount),
        "status": s.status,
        "paid_at": str(s.paid_at) if s.paid_at else None,
        "notes": s.notes,
    }


# --- 1. PREVIEW (must be before /{slip_id}) ---
@router.get("/preview")
def salary_preview(teacher_id: int, month: str, db: Session = Depends(get_db)):
    """Advisory base amount for a teacher and month"""
    p = salary_service.preview(db, teacher_id, month)
    return {
        "teacher_id": p.teacher_id,
        "month": p.month,
        "salary_type": p.salary_type,
        "salary_percentage": bp_to_percent(p.salary_percentage),
        "collected_amount": to_major(p.collected_amount),
        "base_amount": to_major(p.base_amount),
    }


# --- 2. SLIPS ---
@router.get("")
def get_salary_slips(teacher_id: Optional[int] = None, db: Session = Depends(get_db)):
    return [slip_out(s) for s in salary_service.list_slips(db, teacher_id)]


@router.post("")
def create_salary_slip(data: SalarySlipCreate, request: Request, db: Session = Depends(get_db)):
    slip = salary_service.create_slip(
        db,
        teacher_id=data.teacher_id,
        period_start=data.period_start,
        period_end=data.period_end,
        base_amount=to_minor(data.base_amount, "base_amount") if data.base_amount is not None else None,
        bonus=to_minor(data.bonus, "bonus"),
        deduction=to_minor(data.deduction, "deduction"),
        status=data.status,
        notes=data.notes,
        audit=audit_from_request(request),
    )
    return {
        "id": slip.id,
        "base_amount": to_major(slip.base_amount),
        "total_amount": to_major(slip.total_amount),
    }


@router.put("/{slip_id}")
def update_salary_slip(slip_id: int, data: SalarySlipUpdate, request: Request, db: Session = Depends(get_db)):
    slip = salary_service.update_slip_status(
        db, slip_id, data.status, data.paid_at, audit=audit_from_request(request)
    )
    return slip_out(slip)


@router.delete("/{slip_id}")
def delete_salary_slip(slip_id: int, request: Request, db: Session = Depends(get_db)):
    """Soft delete - the slip stays for audit but leaves listings and totals"""
    salary_service.delete_slip(db, slip_id, audit=audit_from_request(request))
    return {"ok": True}
