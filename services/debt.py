"""
Monthly Debt Calculator

debt() is the single pure computation every screen, preview and mutation
goes through. The loaders below only gather its inputs from the database.
"""
from typing import Iterable, List, NamedTuple, Optional
from sqlalchemy.orm import Session, joinedload

from models.enrollments import Enrollment
from models.fee_models import Payment, PaymentMonth
from services.errors import NotFoundError
from services.money import discounted_rate
from services.months import month_of, month_range


class EnrollmentTerms(NamedTuple):
    student_id: int
    group_id: int
    price: int  # minor units
    discount_bp: int

    @property
    def monthly_rate(self) -> int:
        return discounted_rate(self.price, self.discount_bp)


class Allocation(NamedTuple):
    student_id: int
    group_id: int
    month: str
    amount_applied: int


class MonthlyDebt(NamedTuple):
    month: str
    monthly_rate: int
    paid_amount: int
    remaining_debt: int


def debt(terms: EnrollmentTerms, allocations: Iterable[Allocation], month: str) -> MonthlyDebt:
    """Debt of one (student, group) ledger for one month. Pure."""
    monthly_rate = terms.monthly_rate
    paid = sum(
        a.amount_applied
        for a in allocations
        if a.month == month and a.student_id == terms.student_id and a.group_id == terms.group_id
    )
    return MonthlyDebt(
        month=month,
        monthly_rate=monthly_rate,
        paid_amount=paid,
        remaining_debt=max(0, monthly_rate - paid),
    )


# =====================
# DATABASE LOADERS
# =====================

def get_active_enrollment(db: Session, student_id: int, group_id: int, lock: bool = False) -> Enrollment:
    query = db.query(Enrollment).filter(
        Enrollment.student_id == student_id,
        Enrollment.group_id == group_id,
        Enrollment.ended_at.is_(None),
    )
    if lock:
        query = query.with_for_update()
    else:
        query = query.options(joinedload(Enrollment.group))
    enrollment = query.first()
    if not enrollment:
        raise NotFoundError(f"Student {student_id} has no active enrollment in group {group_id}")
    return enrollment


def terms_for(enrollment: Enrollment) -> EnrollmentTerms:
    return EnrollmentTerms(
        student_id=enrollment.student_id,
        group_id=enrollment.group_id,
        price=enrollment.group.price or 0,
        discount_bp=enrollment.discount_bp or 0,
    )


def load_allocations(db: Session, student_id: int, group_id: int,
                     months: Optional[List[str]] = None) -> List[Allocation]:
    query = db.query(
        Payment.student_id, Payment.group_id, PaymentMonth.month, PaymentMonth.amount_applied
    ).join(PaymentMonth, PaymentMonth.payment_id == Payment.id).filter(
        Payment.student_id == student_id,
        Payment.group_id == group_id,
    )
    if months:
        query = query.filter(PaymentMonth.month.in_(months))
    return [Allocation(*row) for row in query.all()]


def debt_for_months(db: Session, student_id: int, group_id: int, months: List[str], lock: bool = False):
    """Evaluate debt() for several months of the active enrollment in one snapshot."""
    enrollment = get_active_enrollment(db, student_id, group_id, lock=lock)
    terms = terms_for(enrollment)
    allocations = load_allocations(db, student_id, group_id, months)
    return enrollment, [debt(terms, allocations, m) for m in months]


def debt_since_enrollment(db: Session, enrollment: Enrollment, until_month: str) -> List[MonthlyDebt]:
    """Every month from the enrollment month through until_month that still has debt."""
    start = month_of(enrollment.enrolled_at)
    if start > until_month:
        return []
    months = month_range(start, until_month)
    terms = terms_for(enrollment)
    allocations = load_allocations(db, enrollment.student_id, enrollment.group_id, months)
    debts = [debt(terms, allocations, m) for m in months]
    return [d for d in debts if d.remaining_debt > 0]
