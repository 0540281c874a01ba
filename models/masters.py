from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base

SALARY_FIXED = "fixed"
SALARY_PER_STUDENT = "per_student"

GROUP_ACTIVE = "active"
GROUP_STATUSES = ("active", "inactive", "completed")


# 1. TEACHER TABLE
class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), default="")

    # fixed: salary_amount is the monthly pay (minor units)
    # per_student: salary_percentage is the share of collections (basis points)
    salary_type = Column(String(20), default=SALARY_FIXED)
    salary_amount = Column(BigInteger, default=0)
    salary_percentage = Column(Integer, default=0)

    status = Column(String(20), default="active")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()


# 2. GROUP TABLE
class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    price = Column(BigInteger, nullable=False, default=0)  # monthly rate, minor units
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=True, index=True)
    status = Column(String(20), default=GROUP_ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    teacher = relationship("models.masters.Teacher")
