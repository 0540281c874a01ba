from services.debt import Allocation, EnrollmentTerms, MonthlyDebt, debt


TERMS = EnrollmentTerms(student_id=1, group_id=10, price=500000, discount_bp=1000)


def test_monthly_rate_applies_discount():
    # Scenario A: price 500000 with 10% discount
    assert TERMS.monthly_rate == 450000


def test_no_payments_means_full_rate_is_owed():
    result = debt(TERMS, [], "2026-03")
    assert result == MonthlyDebt("2026-03", 450000, 0, 450000)


def test_full_payment_clears_the_month():
    allocations = [Allocation(1, 10, "2026-03", 450000)]
    assert debt(TERMS, allocations, "2026-03").remaining_debt == 0


def test_only_same_month_and_same_ledger_count():
    allocations = [
        Allocation(1, 10, "2026-03", 100000),
        Allocation(1, 10, "2026-04", 200000),   # other month
        Allocation(1, 11, "2026-03", 300000),   # other group
        Allocation(2, 10, "2026-03", 400000),   # other student
    ]
    result = debt(TERMS, allocations, "2026-03")
    assert result.paid_amount == 100000
    assert result.remaining_debt == 350000


def test_remaining_debt_never_negative():
    allocations = [Allocation(1, 10, "2026-03", 450000), Allocation(1, 10, "2026-03", 10)]
    assert debt(TERMS, allocations, "2026-03").remaining_debt == 0


def test_debt_is_idempotent():
    allocations = [Allocation(1, 10, "2026-03", 123456)]
    assert debt(TERMS, allocations, "2026-03") == debt(TERMS, allocations, "2026-03")


def test_rate_rounds_half_up_to_minor_unit():
    terms = EnrollmentTerms(1, 10, price=333, discount_bp=5000)
    assert terms.monthly_rate == 167


def test_full_discount_owes_nothing():
    terms = EnrollmentTerms(1, 10, price=500000, discount_bp=10000)
    assert debt(terms, [], "2026-03").remaining_debt == 0
