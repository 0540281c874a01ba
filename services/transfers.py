"""
Group Transfer Reconciler

Moves a student's enrollment to another group and credits what was already
paid for the current month in the old group, capped at the new group's
monthly rate. Everything happens in one transaction or not at all.
"""
import datetime
import logging
from typing import NamedTuple, Optional
from sqlalchemy.orm import Session, joinedload

from models.enrollments import Enrollment, GroupTransfer, END_TRANSFERRED
from models.masters import Group, GROUP_ACTIVE
from models.students import Student
from services.audit import AuditContext, SYSTEM, record_audit
from services.debt import EnrollmentTerms, debt, debt_since_enrollment, get_active_enrollment, load_allocations, terms_for
from services.errors import NotFoundError, TransferError, ValidationError
from services.locking import bump_version, run_in_transaction
from services.money import percent_to_bp
from services.months import current_month
from services.payments import create_transfer_credit

logger = logging.getLogger(__name__)


class TransferResult(NamedTuple):
    transfer_id: int
    credited_month: str
    paid_amount: int
    credited_amount: int
    uncredited_amount: int
    source_group_debt: int
    credit_payment_id: Optional[int]
    message: str


def transfer(db: Session, student_id: int, from_group_id: int, to_group_id: int,
             reason: Optional[str] = None, discount_percentage=0,
             audit: AuditContext = SYSTEM, today: Optional[datetime.date] = None) -> TransferResult:
    if from_group_id == to_group_id:
        raise ValidationError("Source and target groups must be different")
    discount_bp = percent_to_bp(discount_percentage)
    today = today or datetime.date.today()
    return run_in_transaction(
        db, _transfer, student_id, from_group_id, to_group_id, reason, discount_bp, audit, today,
    )


def _transfer(db, student_id, from_group_id, to_group_id, reason, discount_bp, audit, today):
    if not db.query(Student.id).filter(Student.id == student_id).first():
        raise NotFoundError(f"Student {student_id} not found")

    target = db.query(Group).filter(Group.id == to_group_id).with_for_update().first()
    if not target:
        raise TransferError(f"Target group {to_group_id} does not exist")
    if target.status != GROUP_ACTIVE:
        raise TransferError(f"Target group {target.name} is not active")

    try:
        source = get_active_enrollment(db, student_id, from_group_id, lock=True)
    except NotFoundError:
        raise TransferError("Student is not enrolled in the source group")

    already = db.query(Enrollment.id).filter(
        Enrollment.student_id == student_id,
        Enrollment.group_id == to_group_id,
        Enrollment.ended_at.is_(None),
    ).first()
    if already:
        raise TransferError("Student is already enrolled in the target group")

    month = current_month(today)

    # 1. What was paid this month in the source group, and what is still owed there
    source_terms = terms_for(source)
    paid_amount = debt(source_terms, load_allocations(db, student_id, from_group_id, [month]), month).paid_amount
    source_group_debt = sum(d.remaining_debt for d in debt_since_enrollment(db, source, month))

    # 2. Close the source enrollment
    source.ended_at = datetime.datetime.now(datetime.timezone.utc)
    source.end_reason = END_TRANSFERRED
    bump_version(source)
    db.flush()

    # 3. Open the destination enrollment
    destination = Enrollment(
        student_id=student_id,
        group_id=to_group_id,
        discount_bp=discount_bp,
        enrolled_at=today,
    )
    db.add(destination)
    db.flush()

    # 4. Credit the current month in the new group
    target_terms = EnrollmentTerms(student_id, to_group_id, target.price or 0, discount_bp)
    target_paid = debt(target_terms, load_allocations(db, student_id, to_group_id, [month]), month)
    credited = min(paid_amount, target_paid.remaining_debt)

    credit_payment = None
    if credited > 0:
        credit_payment = create_transfer_credit(
            db, student_id, to_group_id, month, credited, today,
            f"Transfer credit from group {from_group_id} for {month}", audit,
        )

    record = GroupTransfer(
        student_id=student_id,
        from_group_id=from_group_id,
        to_group_id=to_group_id,
        reason=reason,
        discount_bp=discount_bp,
        credited_month=month,
        credited_amount=credited,
        credit_payment_id=credit_payment.id if credit_payment else None,
        source_debt=source_group_debt,
        transferred_by=audit.actor,
    )
    db.add(record)
    db.flush()

    record_audit(db, audit, "transfer", "enrollment", destination.id, old_values={
        "enrollment_id": source.id,
        "group_id": from_group_id,
        "discount_bp": source_terms.discount_bp,
        "paid_amount": paid_amount,
    }, new_values={
        "enrollment_id": destination.id,
        "group_id": to_group_id,
        "discount_bp": discount_bp,
        "credited_month": month,
        "credited_amount": credited,
        "credit_payment_id": record.credit_payment_id,
        "transfer_id": record.id,
    })

    if credited > 0:
        message = "Student transferred. Current month payment credited to new group."
    else:
        message = "Student transferred successfully."
    if source_group_debt > 0:
        message += " Warning: student still has unpaid debt in the source group."

    logger.info(
        "Student %s transferred from group %s to %s: paid %s credited %s (source debt %s)",
        student_id, from_group_id, to_group_id, paid_amount, credited, source_group_debt,
    )
    return TransferResult(
        transfer_id=record.id,
        credited_month=month,
        paid_amount=paid_amount,
        credited_amount=credited,
        uncredited_amount=paid_amount - credited,
        source_group_debt=source_group_debt,
        credit_payment_id=record.credit_payment_id,
        message=message,
    )


def transfer_history(db: Session, student_id: Optional[int] = None, limit: int = 200):
    query = db.query(GroupTransfer).options(
        joinedload(GroupTransfer.from_group),
        joinedload(GroupTransfer.to_group),
    )
    if student_id:
        query = query.filter(GroupTransfer.student_id == student_id)
    return query.order_by(GroupTransfer.id.desc()).limit(limit).all()
