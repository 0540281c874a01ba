from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, DateTime, Date, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import datetime

END_UNENROLLED = "unenrolled"
END_TRANSFERRED = "transferred"


# 1. ENROLLMENT - one ledger per (student, group)
class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)

    discount_bp = Column(Integer, default=0)  # 10000 = 100%
    enrolled_at = Column(Date, default=datetime.date.today)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    end_reason = Column(String(20), nullable=True)  # unenrolled, transferred

    # Bumped by every ledger mutation (see services.locking.bump_version);
    # a writer holding a stale copy fails the UPDATE ... WHERE version = ? check
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index(
            "uq_enrollment_active", "student_id", "group_id", unique=True,
            sqlite_where=text("ended_at IS NULL"),
            postgresql_where=text("ended_at IS NULL"),
        ),
    )
    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    student = relationship("models.students.Student")
    group = relationship("models.masters.Group")

    @property
    def is_active(self):
        return self.ended_at is None


# 2. GROUP TRANSFER - history of enrollment moves
class GroupTransfer(Base):
    __tablename__ = "group_transfers"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    from_group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)
    to_group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)
    reason = Column(String(500), nullable=True)

    discount_bp = Column(Integer, default=0)
    credited_month = Column(String(7), nullable=True)
    credited_amount = Column(BigInteger, default=0)
    credit_payment_id = Column(Integer, ForeignKey("payments.id"), nullable=True)
    source_debt = Column(BigInteger, default=0)

    transferred_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    from_group = relationship("models.masters.Group", foreign_keys=[from_group_id])
    to_group = relationship("models.masters.Group", foreign_keys=[to_group_id])
