"""
Enrollment actions - open, close and re-price (student, group) ledgers.
"""
import datetime
import logging
from typing import Optional
from sqlalchemy.orm import Session

from models.enrollments import Enrollment, END_UNENROLLED
from models.masters import Group, GROUP_ACTIVE
from models.students import Student
from services.audit import AuditContext, SYSTEM, record_audit
from services.debt import get_active_enrollment
from services.errors import NotFoundError, ValidationError
from services.locking import bump_version, run_in_transaction
from services.money import percent_to_bp

logger = logging.getLogger(__name__)


def enroll(db: Session, student_id: int, group_id: int, discount_percentage=0,
           enrolled_at: Optional[datetime.date] = None, audit: AuditContext = SYSTEM) -> Enrollment:
    discount_bp = percent_to_bp(discount_percentage)
    return run_in_transaction(db, _enroll, student_id, group_id, discount_bp, enrolled_at, audit)


def _enroll(db, student_id, group_id, discount_bp, enrolled_at, audit):
    if not db.query(Student.id).filter(Student.id == student_id).first():
        raise NotFoundError(f"Student {student_id} not found")
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise NotFoundError(f"Group {group_id} not found")
    if group.status != GROUP_ACTIVE:
        raise ValidationError(f"Group {group.name} is not active")

    existing = db.query(Enrollment.id).filter(
        Enrollment.student_id == student_id,
        Enrollment.group_id == group_id,
        Enrollment.ended_at.is_(None),
    ).first()
    if existing:
        raise ValidationError("Student is already enrolled in this group")

    enrollment = Enrollment(
        student_id=student_id,
        group_id=group_id,
        discount_bp=discount_bp,
        enrolled_at=enrolled_at or datetime.date.today(),
    )
    db.add(enrollment)
    db.flush()

    record_audit(db, audit, "create", "enrollment", enrollment.id, new_values={
        "student_id": student_id,
        "group_id": group_id,
        "discount_bp": discount_bp,
        "enrolled_at": str(enrollment.enrolled_at),
    })
    logger.info("Student %s enrolled in group %s (discount %s bp)", student_id, group_id, discount_bp)
    return enrollment


def unenroll(db: Session, student_id: int, group_id: int, audit: AuditContext = SYSTEM) -> Enrollment:
    return run_in_transaction(db, _unenroll, student_id, group_id, audit)


def _unenroll(db, student_id, group_id, audit):
    enrollment = get_active_enrollment(db, student_id, group_id, lock=True)
    enrollment.ended_at = datetime.datetime.now(datetime.timezone.utc)
    enrollment.end_reason = END_UNENROLLED
    bump_version(enrollment)
    db.flush()

    record_audit(db, audit, "update", "enrollment", enrollment.id,
                 old_values={"ended_at": None},
                 new_values={"ended_at": enrollment.ended_at.isoformat(), "end_reason": END_UNENROLLED})
    logger.info("Student %s unenrolled from group %s", student_id, group_id)
    return enrollment


def change_discount(db: Session, student_id: int, group_id: int, discount_percentage,
                    audit: AuditContext = SYSTEM) -> Enrollment:
    discount_bp = percent_to_bp(discount_percentage)
    return run_in_transaction(db, _change_discount, student_id, group_id, discount_bp, audit)


def _change_discount(db, student_id, group_id, discount_bp, audit):
    enrollment = get_active_enrollment(db, student_id, group_id, lock=True)
    old_bp = enrollment.discount_bp
    enrollment.discount_bp = discount_bp
    bump_version(enrollment)
    db.flush()

    record_audit(db, audit, "update", "enrollment", enrollment.id,
                 old_values={"discount_bp": old_bp},
                 new_values={"discount_bp": discount_bp})
    logger.info("Discount for student %s in group %s changed %s -> %s bp", student_id, group_id, old_bp, discount_bp)
    return enrollment
