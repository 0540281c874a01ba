from sqlalchemy import Column, Integer, String, BigInteger, Date, ForeignKey, DateTime, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

SLIP_PENDING = "pending"
SLIP_PAID = "paid"


class SalarySlip(Base):
    __tablename__ = "salary_slips"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    # Frozen at creation (minor units)
    base_amount = Column(BigInteger, default=0)
    bonus = Column(BigInteger, default=0)
    deduction = Column(BigInteger, default=0)
    total_amount = Column(BigInteger, default=0)  # base + bonus - deduction

    status = Column(String(20), default=SLIP_PENDING)  # pending, paid
    paid_at = Column(Date, nullable=True)
    notes = Column(String(500), nullable=True)

    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # One live slip per teacher and period; soft-deleted slips free the period
    __table_args__ = (
        Index(
            "uq_salary_slip_period", "teacher_id", "period_start", "period_end", unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    teacher = relationship("models.masters.Teacher")
