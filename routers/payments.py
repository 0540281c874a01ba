"""
Payments Router - record tuition payments and print receipts
Allocation itself lives in services.payments; this layer only converts units.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from database import get_db
from services import payments as payment_service
from services.audit import audit_from_request
from services.money import to_major, to_minor, amount_in_words
from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional
import datetime

router = APIRouter(prefix="/payments", tags=["Payments"])

# =====================
# PYDANTIC SCHEMAS
# =====================

class PaymentCreate(BaseModel):
    student_id: int
    group_id: int
    amount: Decimal
    months: List[str]
    payment_date: Optional[datetime.date] = None
    method: str = "cash"
    notes: Optional[str] = None


class PaymentPreview(BaseModel):
    student_id: int
    group_id: int
    amount: Decimal
    months: List[str]


# =====================
# HELPER FUNCTIONS
# =====================

def months_out(payment):
    return [{"month": m.month, "amount": to_major(m.amount_applied)} for m in payment.months_covered]


def payment_out(p):
    return {
        "id": p.id,
        "invoice_no": p.invoice_no,
        "student_id": p.student_id,
        "group_id": p.group_id,
        "amount": to_major(p.amount),
        "payment_date": str(p.payment_date),
        "method": p.method,
        "notes": p.notes,
        "is_transfer_credit": bool(p.is_transfer_credit),
        "months_covered": months_out(p),
    }


# =====================
# PAYMENT APIs
# =====================

@router.post("")
def create_payment(data: PaymentCreate, request: Request, db: Session = Depends(get_db)):
    """Record a payment and split it across the selected months"""
    payment = payment_service.record_payment(
        db,
        student_id=data.student_id,
        group_id=data.group_id,
        amount=to_minor(data.amount),
        months=data.months,
        payment_date=data.payment_date,
        method=data.method,
        notes=data.notes,
        audit=audit_from_request(request),
    )
    return {
        "id": payment.id,
        "invoice_no": payment.invoice_no,
        "amount": to_major(payment.amount),
        "months_covered": months_out(payment),
    }


@router.post("/preview")
def preview_payment(data: PaymentPreview, db: Session = Depends(get_db)):
    """Show how a payment would be split without saving anything"""
    result = payment_service.preview_allocation(
        db, data.student_id, data.group_id, to_minor(data.amount), data.months
    )
    return {
        "amount": to_major(result["amount"]),
        "total_remaining": to_major(result["total_remaining"]),
        "months": [
            {"month": d.month, "remaining_debt": to_major(d.remaining_debt)}
            for d in result["debts"]
        ],
        "months_covered": [{"month": m, "amount": to_major(a)} for m, a in result["months_covered"]],
    }


@router.get("")
def get_payments(student_id: Optional[int] = None, group_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Payment history, newest first, with the month split of each payment"""
    return [payment_out(p) for p in payment_service.list_payments(db, student_id, group_id)]


@router.get("/{payment_id}")
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return payment_out(payment_service.get_payment(db, payment_id))


# =====================
# RECEIPT API
# =====================

@router.get("/{payment_id}/receipt")
def get_receipt(payment_id: int, db: Session = Depends(get_db)):
    """Get receipt details for printing"""
    payment = payment_service.get_payment(db, payment_id)
    student = payment.student

    items = [
        {"sno": idx, "month": m.month, "amount": to_major(m.amount_applied)}
        for idx, m in enumerate(payment.months_covered, start=1)
    ]

    return {
        "invoice_no": payment.invoice_no,
        "date": str(payment.payment_date),
        "student": {
            "id": payment.student_id,
            "name": student.full_name if student else "-",
        },
        "group": {
            "id": payment.group_id,
            "name": payment.group.name if payment.group else "-",
        },
        "items": items,
        "amount": to_major(payment.amount),
        "method": payment.method,
        "notes": payment.notes,
        "amount_in_words": amount_in_words(payment.amount),
    }
