"""
Payment Allocator - validates an incoming payment against the remaining debt
of the selected months and splits it greedily, oldest month first.
"""
import datetime
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload

import config
from models.fee_models import Payment, PaymentMonth, InvoiceCounter
from services.audit import AuditContext, SYSTEM, record_audit
from services.debt import MonthlyDebt, debt_for_months
from services.errors import DebtExceededError, NotFoundError, ValidationError
from services.locking import bump_version, run_in_transaction
from services.money import to_major
from services.months import parse_month_list

logger = logging.getLogger(__name__)

TRANSFER_METHOD = "transfer"


def allocate(amount: int, debts: List[MonthlyDebt], epsilon: Optional[int] = None) -> Tuple[int, List[Tuple[str, int]]]:
    """
    Split amount across debts (ascending by month).

    Returns the amount actually allocated (an amount within epsilon above the
    total is clamped to the total) and the non-zero (month, applied) pairs.
    """
    if epsilon is None:
        epsilon = config.PAYMENT_EPSILON_MINOR
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    total_remaining = sum(d.remaining_debt for d in debts)
    if total_remaining <= 0 or amount > total_remaining + epsilon:
        raise DebtExceededError(
            f"Amount exceeds the remaining debt ({to_major(total_remaining)}) for the selected months",
            max_amount=total_remaining,
        )
    amount = min(amount, total_remaining)

    split = []
    left = amount
    for d in debts:
        if left == 0:
            break
        applied = min(d.remaining_debt, left)
        if applied > 0:
            split.append((d.month, applied))
            left -= applied
    return amount, split


def generate_invoice_number(db: Session, day: datetime.date) -> str:
    """Generate unique invoice number: INV-2026-0001"""
    counter = db.query(InvoiceCounter).filter(InvoiceCounter.year == day.year).with_for_update().first()

    if not counter:
        counter = InvoiceCounter(year=day.year, last_number=0)
        db.add(counter)

    counter.last_number = (counter.last_number or 0) + 1
    db.flush()

    return f"{config.INVOICE_PREFIX}-{day.year}-{str(counter.last_number).zfill(4)}"


def _validate_payment_input(amount, months, method):
    if not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if not method or not method.strip():
        raise ValidationError("Payment method is required")
    if method.strip() == TRANSFER_METHOD:
        raise ValidationError("Transfer credits are created by group transfers only")
    return parse_month_list(months)


def _debt_snapshot(debts, split=None):
    applied = dict(split or [])
    return {d.month: d.remaining_debt - applied.get(d.month, 0) for d in debts}


# =====================
# RECORD PAYMENT
# =====================

def record_payment(db: Session, student_id: int, group_id: int, amount: int, months: List[str],
                   payment_date: Optional[datetime.date] = None, method: str = "cash",
                   notes: Optional[str] = None, audit: AuditContext = SYSTEM) -> Payment:
    """Validate, allocate and persist a payment; retried against fresh data on conflict."""
    months = _validate_payment_input(amount, months, method)
    payment_date = payment_date or datetime.date.today()
    return run_in_transaction(
        db, _record_payment, student_id, group_id, amount, months,
        payment_date, method.strip(), notes, audit,
    )


def _record_payment(db, student_id, group_id, amount, months, payment_date, method, notes, audit):
    enrollment, debts = debt_for_months(db, student_id, group_id, months, lock=True)

    try:
        allocated, split = allocate(amount, debts)
    except DebtExceededError as exc:
        logger.warning(
            "Rejected payment of %s for student %s group %s: max allowed %s",
            amount, student_id, group_id, exc.max_amount,
        )
        raise

    payment = Payment(
        invoice_no=generate_invoice_number(db, payment_date),
        student_id=student_id,
        group_id=group_id,
        amount=allocated,
        payment_date=payment_date,
        method=method,
        notes=notes,
        created_by=audit.actor,
    )
    payment.months_covered = [PaymentMonth(month=m, amount_applied=a) for m, a in split]
    db.add(payment)
    bump_version(enrollment)
    db.flush()

    record_audit(db, audit, "create", "payment", payment.id, old_values={
        "remaining_debt": _debt_snapshot(debts),
    }, new_values={
        "student_id": student_id,
        "group_id": group_id,
        "amount": allocated,
        "invoice_no": payment.invoice_no,
        "method": method,
        "months_covered": [{"month": m, "amount_applied": a} for m, a in split],
        "remaining_debt": _debt_snapshot(debts, split),
    })

    logger.info(
        "Payment %s recorded: student %s group %s amount %s split %s",
        payment.invoice_no, student_id, group_id, allocated, split,
    )
    return payment


def preview_allocation(db: Session, student_id: int, group_id: int, amount: int, months: List[str]):
    """What record_payment would persist right now. Writes nothing."""
    months = parse_month_list(months)
    _, debts = debt_for_months(db, student_id, group_id, months)
    allocated, split = allocate(amount, debts)
    return {
        "amount": allocated,
        "total_remaining": sum(d.remaining_debt for d in debts),
        "debts": debts,
        "months_covered": split,
    }


def create_transfer_credit(db: Session, student_id: int, group_id: int, month: str, amount: int,
                           day: datetime.date, note: str, audit: AuditContext) -> Payment:
    """Synthetic payment settling part of a month in a new group after a transfer."""
    credit = Payment(
        invoice_no=generate_invoice_number(db, day),
        student_id=student_id,
        group_id=group_id,
        amount=amount,
        payment_date=day,
        method=TRANSFER_METHOD,
        notes=note,
        is_transfer_credit=True,
        created_by=audit.actor,
    )
    credit.months_covered = [PaymentMonth(month=month, amount_applied=amount)]
    db.add(credit)
    db.flush()
    return credit


# =====================
# QUERIES
# =====================

def get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).options(selectinload(Payment.months_covered)).filter(
        Payment.id == payment_id
    ).first()
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")
    return payment


def list_payments(db: Session, student_id: Optional[int] = None, group_id: Optional[int] = None, limit: int = 200):
    query = db.query(Payment).options(selectinload(Payment.months_covered))
    if student_id:
        query = query.filter(Payment.student_id == student_id)
    if group_id:
        query = query.filter(Payment.group_id == group_id)
    return query.order_by(Payment.id.desc()).limit(limit).all()
