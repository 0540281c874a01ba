"""
Tuition Ledger Models - Append-only payments with per-month allocation
"""
from sqlalchemy import Column, Integer, String, BigInteger, Date, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
import datetime


# 1. PAYMENT - one physical (or transfer-credit) receipt of money
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    # Unique Invoice Number: INV-2026-0001
    invoice_no = Column(String(20), unique=True, nullable=False, index=True)

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)

    amount = Column(BigInteger, nullable=False)  # minor units, always > 0
    payment_date = Column(Date, default=datetime.date.today)
    method = Column(String(30), default="cash")  # cash, card, bank, transfer
    notes = Column(String(500), nullable=True)

    # Synthetic payment created by a group transfer (no new money received)
    is_transfer_credit = Column(Boolean, default=False)

    created_by = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    months_covered = relationship(
        "models.fee_models.PaymentMonth",
        back_populates="payment",
        order_by="PaymentMonth.month",
        cascade="all, delete-orphan",
    )
    student = relationship("models.students.Student")
    group = relationship("models.masters.Group")


# 2. PAYMENT MONTH - how a payment was split across months
class PaymentMonth(Base):
    __tablename__ = "payment_months"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, index=True)
    month = Column(String(7), nullable=False, index=True)  # YYYY-MM
    amount_applied = Column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("payment_id", "month", name="uq_payment_month"),
    )

    payment = relationship("models.fee_models.Payment", back_populates="months_covered")


# 3. INVOICE COUNTER - for generating unique invoice numbers per year
class InvoiceCounter(Base):
    __tablename__ = "invoice_counters"

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False, unique=True)  # e.g., 2026
    last_number = Column(Integer, default=0)
