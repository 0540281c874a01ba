"""
Report Aggregator - monthly roll-up per active group and center-wide.
Read-only; built from the same debt() and teacher_share() used everywhere else.
"""
import logging
from collections import defaultdict
from sqlalchemy.orm import Session, joinedload

from models.enrollments import Enrollment
from models.fee_models import Payment, PaymentMonth
from models.masters import Group, GROUP_ACTIVE, SALARY_FIXED, SALARY_PER_STUDENT
from models.students import Student
from services.debt import Allocation, debt, terms_for
from services.money import div_half_up
from services.months import parse_month
from services.salary import teacher_share

logger = logging.getLogger(__name__)

SUMMED_FIELDS = (
    "student_count", "paid_student_count", "expected_amount", "collected_amount",
    "remaining_debt", "teacher_portion", "center_portion",
)


def payment_percentage(collected: int, expected: int) -> int:
    if expected <= 0:
        return 0
    return div_half_up(collected * 100, expected)


def _month_allocations(db: Session, month: str):
    rows = db.query(
        Payment.student_id, Payment.group_id, PaymentMonth.month, PaymentMonth.amount_applied
    ).join(PaymentMonth, PaymentMonth.payment_id == Payment.id).filter(
        PaymentMonth.month == month
    ).all()
    by_group = defaultdict(list)
    for row in rows:
        allocation = Allocation(*row)
        by_group[allocation.group_id].append(allocation)
    return by_group


def group_summary(group: Group, enrollments, allocations, month: str) -> dict:
    expected = 0
    collected = 0
    paid_students = 0
    for enrollment in enrollments:
        d = debt(terms_for(enrollment), allocations, month)
        expected += d.monthly_rate
        collected += d.paid_amount
        if d.paid_amount > 0:
            paid_students += 1

    teacher = group.teacher
    salary_type = teacher.salary_type if teacher else None
    teacher_portion = 0
    if teacher and salary_type == SALARY_PER_STUDENT:
        teacher_portion = teacher_share(collected, teacher.salary_percentage or 0)

    return {
        "group_id": group.id,
        "group_name": group.name,
        "teacher_id": group.teacher_id,
        "teacher_name": teacher.full_name if teacher else "Unassigned",
        "teacher_salary_type": salary_type or SALARY_FIXED,
        "student_count": len(enrollments),
        "paid_student_count": paid_students,
        "expected_amount": expected,
        "collected_amount": collected,
        "remaining_debt": max(0, expected - collected),
        "payment_percentage": payment_percentage(collected, expected),
        "teacher_portion": teacher_portion,
        "center_portion": collected - teacher_portion,
    }


def monthly(db: Session, month: str) -> dict:
    """Expected / collected / remaining / teacher and center portions for every active group."""
    month = parse_month(month)

    groups = db.query(Group).options(joinedload(Group.teacher)).filter(
        Group.status == GROUP_ACTIVE
    ).order_by(Group.name, Group.id).all()

    enrollments_by_group = defaultdict(list)
    active_enrollments = db.query(Enrollment).join(
        Student, Enrollment.student_id == Student.id
    ).options(joinedload(Enrollment.group)).filter(
        Enrollment.ended_at.is_(None),
        Student.status == "active",
    ).all()
    for enrollment in active_enrollments:
        enrollments_by_group[enrollment.group_id].append(enrollment)

    allocations = _month_allocations(db, month)

    report_groups = [
        group_summary(g, enrollments_by_group[g.id], allocations[g.id], month)
        for g in groups
    ]

    totals = {field: sum(g[field] for g in report_groups) for field in SUMMED_FIELDS}
    totals["payment_percentage"] = payment_percentage(totals["collected_amount"], totals["expected_amount"])

    logger.debug("Monthly report for %s: %s groups", month, len(report_groups))
    return {"month": month, "groups": report_groups, "totals": totals}
