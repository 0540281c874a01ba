from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), default="")
    phone = Column(String(20), nullable=True)

    status = Column(String(20), default="active")  # active, inactive
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()
