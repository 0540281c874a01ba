import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.masters import Teacher, Group, SALARY_FIXED
from models.students import Student
from services.enrollments import enroll
from services.money import to_minor
from services.payments import record_payment


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class Factory:
    """Builds ledger fixtures. Prices and amounts are given in major units."""

    def __init__(self, db):
        self.db = db

    def teacher(self, salary_type=SALARY_FIXED, salary_amount=0, salary_percentage=0, name="Teacher"):
        teacher = Teacher(
            first_name=name,
            salary_type=salary_type,
            salary_amount=to_minor(salary_amount),
            salary_percentage=int(salary_percentage * 100),
        )
        self.db.add(teacher)
        self.db.commit()
        return teacher

    def group(self, price=500000, teacher=None, status="active", name=None):
        group = Group(
            name=name or f"Group {self.db.query(Group).count() + 1}",
            price=to_minor(price),
            teacher_id=teacher.id if teacher else None,
            status=status,
        )
        self.db.add(group)
        self.db.commit()
        return group

    def student(self, first_name="Student", status="active"):
        student = Student(first_name=first_name, last_name="Test", status=status)
        self.db.add(student)
        self.db.commit()
        return student

    def enroll(self, student, group, discount=0, enrolled_at=None):
        return enroll(self.db, student.id, group.id, discount_percentage=discount, enrolled_at=enrolled_at)

    def pay(self, student, group, amount, months, **kwargs):
        return record_payment(self.db, student.id, group.id, to_minor(amount), months, **kwargs)


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def make_factory():
    return Factory
