import datetime

import pytest

from models.masters import SALARY_FIXED, SALARY_PER_STUDENT
from models.salary import SalarySlip
from models.system import AuditLog
from services import reports, salary, transfers
from services.errors import ValidationError
from services.money import to_minor

MARCH_START = datetime.date(2026, 3, 1)
MARCH_END = datetime.date(2026, 3, 31)


@pytest.fixture
def percent_teacher(factory):
    return factory.teacher(salary_type=SALARY_PER_STUDENT, salary_percentage=30, name="Aziza")


def test_teacher_share_rounds_half_up():
    assert salary.teacher_share(900000, 3000) == 270000
    assert salary.teacher_share(5, 5000) == 3
    assert salary.teacher_share(0, 3000) == 0


def test_percentage_preview(db, factory, percent_teacher):
    # Scenario D
    group_a = factory.group(price=500000, teacher=percent_teacher)
    group_b = factory.group(price=400000, teacher=percent_teacher)
    first, second = factory.student(first_name="A"), factory.student(first_name="B")
    factory.enroll(first, group_a)
    factory.enroll(second, group_b)
    factory.pay(first, group_a, 500000, ["2026-03"])
    factory.pay(second, group_b, 400000, ["2026-03"])

    p = salary.preview(db, percent_teacher.id, "2026-03")
    assert p.collected_amount == to_minor(900000)
    assert p.base_amount == to_minor(270000)
    assert p.salary_percentage == 3000


def test_fixed_salary_ignores_collections(db, factory):
    teacher = factory.teacher(salary_type=SALARY_FIXED, salary_amount=4000000)
    group = factory.group(teacher=teacher)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 500000, ["2026-03"])

    p = salary.preview(db, teacher.id, "2026-03")
    assert p.base_amount == to_minor(4000000)
    assert p.collected_amount == 0


def test_only_amounts_applied_to_the_month_count(db, factory, percent_teacher):
    group = factory.group(price=500000, teacher=percent_teacher)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 600000, ["2026-03", "2026-04"])

    assert salary.preview(db, percent_teacher.id, "2026-03").collected_amount == to_minor(500000)
    assert salary.preview(db, percent_teacher.id, "2026-04").collected_amount == to_minor(100000)


def test_transfer_credits_count_as_collections(db, factory, percent_teacher):
    source = factory.group(price=500000)
    target = factory.group(price=500000, teacher=percent_teacher)
    student = factory.student()
    factory.enroll(student, source, enrolled_at=MARCH_START)
    factory.pay(student, source, 300000, ["2026-03"])
    transfers.transfer(db, student.id, source.id, target.id, today=datetime.date(2026, 3, 20))

    p = salary.preview(db, percent_teacher.id, "2026-03")
    assert p.collected_amount == to_minor(300000)
    assert p.base_amount == to_minor(90000)

    # same figure the monthly report gives for the group
    group_row = reports.monthly(db, "2026-03")["groups"]
    assert [g["teacher_portion"] for g in group_row if g["group_id"] == target.id] == [p.base_amount]


def test_slip_amounts_are_frozen(db, factory, percent_teacher):
    group = factory.group(price=500000, teacher=percent_teacher)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 500000, ["2026-03"])

    slip = salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END,
                              base_amount=to_minor(100000), bonus=to_minor(5000), deduction=to_minor(2000))
    assert slip.total_amount == to_minor(103000)

    # later payments do not move a stored slip
    other = factory.student(first_name="Late")
    factory.enroll(other, group)
    factory.pay(other, group, 500000, ["2026-03"])
    db.expire_all()
    stored = db.query(SalarySlip).filter(SalarySlip.id == slip.id).one()
    assert stored.base_amount == to_minor(100000)
    assert stored.total_amount == to_minor(103000)


def test_empty_base_is_prefilled_from_preview(db, factory, percent_teacher):
    group = factory.group(price=500000, teacher=percent_teacher)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 500000, ["2026-03"])

    slip = salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END)
    assert slip.base_amount == to_minor(150000)
    assert slip.status == "pending"
    assert slip.paid_at is None


def test_duplicate_period_is_rejected(db, percent_teacher):
    salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=0)
    with pytest.raises(ValidationError):
        salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=0)


def test_invalid_period_and_amounts(db, percent_teacher):
    with pytest.raises(ValidationError):
        salary.create_slip(db, percent_teacher.id, MARCH_END, MARCH_START, base_amount=0)
    with pytest.raises(ValidationError):
        salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=0, bonus=-1)


def test_status_moves_forward_only(db, percent_teacher):
    slip = salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=to_minor(1000))
    paid = salary.update_slip_status(db, slip.id, "paid", datetime.date(2026, 4, 5))
    assert paid.status == "paid"
    assert paid.paid_at == datetime.date(2026, 4, 5)

    with pytest.raises(ValidationError):
        salary.update_slip_status(db, slip.id, "pending")


def test_soft_delete_hides_slip_and_frees_period(db, percent_teacher):
    slip = salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=0)
    salary.delete_slip(db, slip.id)

    assert salary.list_slips(db, percent_teacher.id) == []
    assert db.query(SalarySlip).count() == 1
    assert db.query(AuditLog).filter(AuditLog.action == "soft_delete").count() == 1
    salary.create_slip(db, percent_teacher.id, MARCH_START, MARCH_END, base_amount=0)


def test_salary_api(client, factory, percent_teacher):
    group = factory.group(price=500000, teacher=percent_teacher)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 500000, ["2026-03"])

    preview = client.get("/salary-slips/preview", params={"teacher_id": percent_teacher.id, "month": "2026-03"}).json()
    assert preview["collected_amount"] == 500000
    assert preview["base_amount"] == 150000
    assert preview["salary_percentage"] == 30

    res = client.post("/salary-slips", json={
        "teacher_id": percent_teacher.id, "period_start": "2026-03-01", "period_end": "2026-03-31",
        "bonus": "1000.50",
    })
    assert res.status_code == 200, res.text
    assert res.json()["base_amount"] == 150000
    assert res.json()["total_amount"] == 151000.5
    slip_id = res.json()["id"]

    res = client.put(f"/salary-slips/{slip_id}", json={"status": "paid"})
    assert res.json()["status"] == "paid"
    res = client.put(f"/salary-slips/{slip_id}", json={"status": "pending"})
    assert res.status_code == 422

    assert client.delete(f"/salary-slips/{slip_id}").json() == {"ok": True}
    assert client.get("/salary-slips", params={"teacher_id": percent_teacher.id}).json() == []
    assert client.delete(f"/salary-slips/{slip_id}").status_code == 404
