"""
Salary Basis Calculator and salary slips.

A preview is advisory. A slip stores whatever base amount was submitted and
its amounts never change afterwards; only the pending -> paid status moves.
"""
import datetime
import logging
from typing import NamedTuple, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.fee_models import Payment, PaymentMonth
from models.masters import Group, Teacher, SALARY_FIXED, SALARY_PER_STUDENT
from models.salary import SalarySlip, SLIP_PAID, SLIP_PENDING
from services.audit import AuditContext, SYSTEM, record_audit
from services.errors import NotFoundError, ValidationError
from services.locking import run_in_transaction
from services.money import apply_bp
from services.months import month_of, parse_month

logger = logging.getLogger(__name__)


class SalaryPreview(NamedTuple):
    teacher_id: int
    month: str
    salary_type: str
    salary_percentage: int  # basis points, 0 for fixed
    collected_amount: int
    base_amount: int


def teacher_share(collected: int, percentage_bp: int) -> int:
    """Percentage model: the teacher's part of a collection, half-up to the minor unit."""
    if collected <= 0 or percentage_bp <= 0:
        return 0
    return apply_bp(collected, percentage_bp)


def get_teacher(db: Session, teacher_id: int) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()
    if not teacher:
        raise NotFoundError(f"Teacher {teacher_id} not found")
    return teacher


def collected_for_teacher(db: Session, teacher_id: int, month: str) -> int:
    """Amounts applied to month across the teacher's groups, transfer credits included."""
    total = db.query(func.coalesce(func.sum(PaymentMonth.amount_applied), 0)).join(
        Payment, PaymentMonth.payment_id == Payment.id
    ).join(
        Group, Payment.group_id == Group.id
    ).filter(
        Group.teacher_id == teacher_id,
        PaymentMonth.month == month,
    ).scalar()
    return int(total or 0)


def preview(db: Session, teacher_id: int, month: str) -> SalaryPreview:
    month = parse_month(month)
    teacher = get_teacher(db, teacher_id)

    if teacher.salary_type == SALARY_PER_STUDENT:
        percentage = teacher.salary_percentage or 0
        collected = collected_for_teacher(db, teacher_id, month)
        base = teacher_share(collected, percentage)
    else:
        percentage = 0
        collected = 0
        base = teacher.salary_amount or 0

    return SalaryPreview(
        teacher_id=teacher_id,
        month=month,
        salary_type=teacher.salary_type or SALARY_FIXED,
        salary_percentage=percentage,
        collected_amount=collected,
        base_amount=base,
    )


# =====================
# SALARY SLIPS
# =====================

def _slip_values(slip):
    return {
        "teacher_id": slip.teacher_id,
        "period_start": str(slip.period_start),
        "period_end": str(slip.period_end),
        "base_amount": slip.base_amount,
        "bonus": slip.bonus,
        "deduction": slip.deduction,
        "total_amount": slip.total_amount,
        "status": slip.status,
    }


def create_slip(db: Session, teacher_id: int, period_start: datetime.date, period_end: datetime.date,
                base_amount: Optional[int] = None, bonus: int = 0, deduction: int = 0,
                status: str = SLIP_PENDING, notes: Optional[str] = None,
                audit: AuditContext = SYSTEM) -> SalarySlip:
    if period_start > period_end:
        raise ValidationError("period_start must not be after period_end")
    if status not in (SLIP_PENDING, SLIP_PAID):
        raise ValidationError(f"Invalid salary slip status '{status}'")
    for name, value in (("base_amount", base_amount), ("bonus", bonus), ("deduction", deduction)):
        if value is not None and value < 0:
            raise ValidationError(f"{name} must not be negative")
    return run_in_transaction(
        db, _create_slip, teacher_id, period_start, period_end,
        base_amount, bonus, deduction, status, notes, audit,
    )


def _create_slip(db, teacher_id, period_start, period_end, base_amount, bonus, deduction, status, notes, audit):
    get_teacher(db, teacher_id)

    duplicate = db.query(SalarySlip.id).filter(
        SalarySlip.teacher_id == teacher_id,
        SalarySlip.period_start == period_start,
        SalarySlip.period_end == period_end,
        SalarySlip.deleted_at.is_(None),
    ).first()
    if duplicate:
        raise ValidationError(f"A salary slip already exists for teacher {teacher_id} and this period")

    if base_amount is None:
        base_amount = preview(db, teacher_id, month_of(period_start)).base_amount

    slip = SalarySlip(
        teacher_id=teacher_id,
        period_start=period_start,
        period_end=period_end,
        base_amount=base_amount,
        bonus=bonus,
        deduction=deduction,
        total_amount=base_amount + bonus - deduction,
        status=status,
        paid_at=datetime.date.today() if status == SLIP_PAID else None,
        notes=notes,
        created_by=audit.actor,
    )
    db.add(slip)
    db.flush()

    record_audit(db, audit, "create", "salary_slip", slip.id, new_values=_slip_values(slip))
    logger.info("Salary slip %s created for teacher %s: total %s", slip.id, teacher_id, slip.total_amount)
    return slip


def get_slip(db: Session, slip_id: int) -> SalarySlip:
    slip = db.query(SalarySlip).filter(SalarySlip.id == slip_id, SalarySlip.deleted_at.is_(None)).first()
    if not slip:
        raise NotFoundError(f"Salary slip {slip_id} not found")
    return slip


def list_slips(db: Session, teacher_id: Optional[int] = None, limit: int = 200):
    query = db.query(SalarySlip).filter(SalarySlip.deleted_at.is_(None))
    if teacher_id:
        query = query.filter(SalarySlip.teacher_id == teacher_id)
    return query.order_by(SalarySlip.period_end.desc(), SalarySlip.id.desc()).limit(limit).all()


def update_slip_status(db: Session, slip_id: int, status: str, paid_at: Optional[datetime.date] = None,
                       audit: AuditContext = SYSTEM) -> SalarySlip:
    if status not in (SLIP_PENDING, SLIP_PAID):
        raise ValidationError(f"Invalid salary slip status '{status}'")
    return run_in_transaction(db, _update_slip_status, slip_id, status, paid_at, audit)


def _update_slip_status(db, slip_id, status, paid_at, audit):
    slip = get_slip(db, slip_id)
    if slip.status == SLIP_PAID and status != SLIP_PAID:
        raise ValidationError("A paid salary slip cannot go back to pending")

    old = {"status": slip.status, "paid_at": str(slip.paid_at) if slip.paid_at else None}
    slip.status = status
    if status == SLIP_PAID:
        slip.paid_at = paid_at or slip.paid_at or datetime.date.today()

    record_audit(db, audit, "update", "salary_slip", slip.id, old_values=old, new_values={
        "status": slip.status,
        "paid_at": str(slip.paid_at) if slip.paid_at else None,
    })
    return slip


def delete_slip(db: Session, slip_id: int, audit: AuditContext = SYSTEM) -> SalarySlip:
    return run_in_transaction(db, _delete_slip, slip_id, audit)


def _delete_slip(db, slip_id, audit):
    slip = get_slip(db, slip_id)
    slip.deleted_at = datetime.datetime.now(datetime.timezone.utc)
    record_audit(db, audit, "soft_delete", "salary_slip", slip.id,
                 old_values={"deleted_at": None},
                 new_values={"deleted_at": slip.deleted_at.isoformat()})
    logger.info("Salary slip %s soft-deleted", slip.id)
    return slip
