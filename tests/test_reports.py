from models.masters import SALARY_FIXED, SALARY_PER_STUDENT
from services import reports
from services.money import to_minor


def _by_name(report):
    return {g["group_name"]: g for g in report["groups"]}


def test_payment_percentage():
    assert reports.payment_percentage(0, 0) == 0
    assert reports.payment_percentage(1, 3) == 33
    assert reports.payment_percentage(1, 2) == 50
    assert reports.payment_percentage(2, 3) == 67


def test_monthly_report_per_group(db, factory):
    aziza = factory.teacher(salary_type=SALARY_PER_STUDENT, salary_percentage=30, name="Aziza")
    john = factory.teacher(salary_type=SALARY_FIXED, salary_amount=4000000, name="John")
    english = factory.group(price=500000, teacher=aziza, name="English")
    maths = factory.group(price=400000, teacher=john, name="Maths")

    s1, s2, s3 = factory.student("A"), factory.student("B"), factory.student("C")
    factory.enroll(s1, english, discount=10)
    factory.enroll(s2, english)
    factory.enroll(s3, maths)
    factory.pay(s1, english, 450000, ["2026-03"])
    factory.pay(s3, maths, 100000, ["2026-03"])

    report = reports.monthly(db, "2026-03")
    groups = _by_name(report)

    eng = groups["English"]
    assert eng["student_count"] == 2
    assert eng["paid_student_count"] == 1
    assert eng["expected_amount"] == to_minor(950000)
    assert eng["collected_amount"] == to_minor(450000)
    assert eng["remaining_debt"] == to_minor(500000)
    assert eng["payment_percentage"] == 47
    assert eng["teacher_portion"] == to_minor(135000)
    assert eng["center_portion"] == to_minor(315000)

    math = groups["Maths"]
    assert math["teacher_portion"] == 0
    assert math["center_portion"] == to_minor(100000)
    assert math["payment_percentage"] == 25

    totals = report["totals"]
    assert totals["student_count"] == 3
    assert totals["expected_amount"] == to_minor(1350000)
    assert totals["collected_amount"] == to_minor(550000)
    assert totals["teacher_portion"] + totals["center_portion"] == totals["collected_amount"]
    assert totals["payment_percentage"] == 41


def test_inactive_groups_and_students_are_left_out(db, factory):
    active = factory.group(name="Open")
    closed = factory.group(name="Closed")
    factory.enroll(factory.student("A"), active)
    factory.enroll(factory.student("B"), closed)
    factory.enroll(factory.student("Gone", status="inactive"), active)
    closed.status = "inactive"
    db.commit()

    report = reports.monthly(db, "2026-03")
    assert list(_by_name(report)) == ["Open"]
    assert report["groups"][0]["student_count"] == 1
    assert report["groups"][0]["teacher_name"] == "Unassigned"


def test_other_months_do_not_leak(db, factory):
    group = factory.group(price=500000)
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 600000, ["2026-03", "2026-04"])

    march = reports.monthly(db, "2026-03")["totals"]
    april = reports.monthly(db, "2026-04")["totals"]
    assert march["collected_amount"] == to_minor(500000)
    assert april["collected_amount"] == to_minor(100000)


def test_report_api(client, factory):
    group = factory.group(price=500000, name="English")
    student = factory.student()
    factory.enroll(student, group)
    factory.pay(student, group, 250000, ["2026-03"])

    body = client.get("/reports/monthly", params={"month": "2026-03"}).json()
    assert body["month"] == "2026-03"
    assert body["groups"][0]["collected_amount"] == 250000
    assert body["groups"][0]["payment_percentage"] == 50
    assert body["totals"]["remaining_debt"] == 250000

    assert client.get("/reports/monthly", params={"month": "March"}).status_code == 422
