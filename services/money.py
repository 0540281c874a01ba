"""
Money helpers - integer minor units inside, decimals only at the API boundary
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from services.errors import ValidationError

MINOR_PER_MAJOR = 100
FULL_BP = 10000  # 100% in basis points
_CENT = Decimal("0.01")


def div_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounding half away from zero."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    sign = -1 if numerator < 0 else 1
    q, r = divmod(abs(numerator), denominator)
    if r * 2 >= denominator:
        q += 1
    return sign * q


def apply_bp(amount: int, bp: int) -> int:
    """amount * bp / 10000, rounded half-up to the minor unit."""
    return div_half_up(amount * bp, FULL_BP)


def discounted_rate(price: int, discount_bp: int) -> int:
    return div_half_up(price * (FULL_BP - discount_bp), FULL_BP)


def to_minor(value, field="amount") -> int:
    """Convert a decimal-compatible major-unit value to minor units."""
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} is not a valid amount")
    if not dec.is_finite():
        raise ValidationError(f"{field} is not a valid amount")
    return int((dec * MINOR_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major(minor) -> Decimal:
    if minor is None:
        return Decimal("0.00")
    return (Decimal(int(minor)) / MINOR_PER_MAJOR).quantize(_CENT)


def percent_to_bp(value, field="discount_percentage") -> int:
    try:
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} is not a valid percentage")
    if not dec.is_finite() or dec < 0 or dec > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return int((dec * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def bp_to_percent(bp) -> Decimal:
    return (Decimal(int(bp or 0)) / 100).quantize(_CENT)


def number_to_words(num):
    """Convert a whole number to words (international format)"""
    ones = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
            "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
            "Seventeen", "Eighteen", "Nineteen"]
    tens = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]
    scales = [(10 ** 9, "Billion"), (10 ** 6, "Million"), (1000, "Thousand")]

    if num == 0:
        return "Zero"
    if num < 0:
        return "Minus " + number_to_words(-num)

    def below_thousand(n):
        words = []
        if n >= 100:
            words.append(ones[n // 100] + " Hundred")
            n %= 100
        if n >= 20:
            words.append(tens[n // 10])
            n %= 10
        if n > 0:
            words.append(ones[n])
        return " ".join(words)

    parts = []
    for size, name in scales:
        if num >= size:
            parts.append(number_to_words(num // size) + " " + name)
            num %= size
    if num > 0:
        parts.append(below_thousand(num))
    return " ".join(parts)


def amount_in_words(minor: int) -> str:
    major, cents = divmod(int(minor), MINOR_PER_MAJOR)
    words = number_to_words(major)
    if cents:
        words += f" and {cents:02d}/100"
    return words + " Only"
