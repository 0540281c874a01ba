"""
Student Debt Router - read-only debt previews for one or many months
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from database import get_db
from services.debt import debt_for_months
from services.money import to_major, bp_to_percent
from services.months import current_month, month_range, parse_month, parse_month_list
from typing import List, Optional

router = APIRouter(prefix="/student-debt", tags=["Student Debt"])


def debt_out(d):
    return {
        "month": d.month,
        "monthly_debt": to_major(d.monthly_rate),
        "paid_amount": to_major(d.paid_amount),
        "remaining_debt": to_major(d.remaining_debt),
    }


@router.get("")
def get_student_debt(student_id: int, group_id: int, month: Optional[str] = None, db: Session = Depends(get_db)):
    """Debt of one student in one group for one month (defaults to the current month)"""
    month = parse_month(month) if month else current_month()
    enrollment, debts = debt_for_months(db, student_id, group_id, [month])

    return {
        "student_id": student_id,
        "group_id": group_id,
        "group_price": to_major(enrollment.group.price),
        "discount_percentage": bp_to_percent(enrollment.discount_bp),
        **debt_out(debts[0]),
    }


@router.get("/months")
def get_student_debt_months(
    student_id: int,
    group_id: int,
    months: Optional[List[str]] = Query(None),
    from_month: Optional[str] = None,
    to_month: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Batched debt for several months, read in a single snapshot.
    Pass repeated ?months=YYYY-MM or a from_month/to_month range.
    """
    if months:
        selected = parse_month_list(months)
    else:
        start = from_month or current_month()
        selected = month_range(start, to_month or start)

    enrollment, debts = debt_for_months(db, student_id, group_id, selected)

    return {
        "student_id": student_id,
        "group_id": group_id,
        "group_price": to_major(enrollment.group.price),
        "discount_percentage": bp_to_percent(enrollment.discount_bp),
        "months": [debt_out(d) for d in debts],
        "total_remaining": to_major(sum(d.remaining_debt for d in debts)),
    }
