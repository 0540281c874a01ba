from database import SessionLocal, engine, Base
from models.masters import Teacher, Group, SALARY_FIXED, SALARY_PER_STUDENT
from models.students import Student
from models.enrollments import Enrollment
from models.fee_models import Payment, PaymentMonth, InvoiceCounter
from models.salary import SalarySlip
from models.system import AuditLog
from services.enrollments import enroll
from services.errors import ValidationError
from services.money import to_minor
import logging

logger = logging.getLogger("seed")

Base.metadata.create_all(bind=engine)


def seed_data(db):
    logger.info("Seeding demo data...")

    # 1. TEACHERS (salary_amount in minor units, salary_percentage in basis points)
    teachers = [
        {"first": "Aziza", "last": "Karimova", "type": SALARY_PER_STUDENT, "amount": 0, "pct": 3000},
        {"first": "John", "last": "Miller", "type": SALARY_FIXED, "amount": to_minor(4000000), "pct": 0},
    ]
    teacher_ids = {}
    for t in teachers:
        exists = db.query(Teacher).filter_by(first_name=t["first"], last_name=t["last"]).first()
        if not exists:
            exists = Teacher(first_name=t["first"], last_name=t["last"], salary_type=t["type"],
                             salary_amount=t["amount"], salary_percentage=t["pct"])
            db.add(exists)
            db.commit()
            logger.info("Added teacher %s", exists.full_name)
        teacher_ids[t["first"]] = exists.id

    # 2. GROUPS (price in major units here, stored as minor)
    groups = [
        {"name": "English A1", "price": 500000, "teacher": "Aziza"},
        {"name": "English B1", "price": 600000, "teacher": "Aziza"},
        {"name": "Math Olympiad", "price": 450000, "teacher": "John"},
    ]
    group_ids = {}
    for g in groups:
        exists = db.query(Group).filter_by(name=g["name"]).first()
        if not exists:
            exists = Group(name=g["name"], price=to_minor(g["price"]), teacher_id=teacher_ids[g["teacher"]])
            db.add(exists)
            db.commit()
            logger.info("Added group %s", exists.name)
        group_ids[g["name"]] = exists.id

    # 3. STUDENTS + ENROLLMENTS
    students = [
        ("Dilshod", "Rahimov", "English A1", 10),
        ("Malika", "Yusupova", "English A1", 0),
        ("Timur", "Saidov", "Math Olympiad", 0),
    ]
    for first, last, group_name, discount in students:
        student = db.query(Student).filter_by(first_name=first, last_name=last).first()
        if not student:
            student = Student(first_name=first, last_name=last)
            db.add(student)
            db.commit()
        try:
            enroll(db, student.id, group_ids[group_name], discount_percentage=discount)
            logger.info("Enrolled %s in %s", student.full_name, group_name)
        except ValidationError:
            logger.info("%s already enrolled in %s", student.full_name, group_name)

    logger.info("All demo data seeded")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    db = SessionLocal()
    try:
        seed_data(db)
    finally:
        db.close()
