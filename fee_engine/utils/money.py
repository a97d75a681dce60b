"""Money arithmetic in integer paise"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List

PAISE_PER_RUPEE = 100


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to Decimal without binary float drift"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_paise(value: Decimal) -> int:
    """Round a fractional paise amount half-up to whole paise"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount_paise: int, percentage) -> int:
    """
    Apply a percentage to an amount.

    Example:
        percent_of(6000000, 18) → 1080000  (18% of ₹60,000 is ₹10,800)
    """
    return round_paise(Decimal(amount_paise) * to_decimal(percentage) / 100)


def extract_base_from_gross(gross_paise: int, gst_rate) -> int:
    """Back GST out of a GST-inclusive amount, returning the taxable base"""
    rate = to_decimal(gst_rate)
    return round_paise(Decimal(gross_paise) * 100 / (100 + rate))


def split_evenly(amount_paise: int, parts: int) -> List[int]:
    """
    Split an amount into equal integer shares.

    The last share absorbs the rounding remainder so the shares always sum
    back to the amount exactly.

    Example:
        100 paise / 3 → [33, 33, 34]
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")

    base_share = amount_paise // parts
    remainder = amount_paise % parts

    shares = [base_share] * parts
    shares[-1] += remainder
    return shares


def format_inr(amount_paise: int) -> str:
    """
    Render an amount with the rupee sign and Indian digit grouping.

    Example:
        12000000 → "₹1,20,000.00"
    """
    sign = "-" if amount_paise < 0 else ""
    rupees, paise = divmod(abs(amount_paise), PAISE_PER_RUPEE)
    digits = str(rupees)

    # Last three digits form one group, the rest are grouped in pairs
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        digits = ",".join(pairs + [tail])

    return f"{sign}₹{digits}.{paise:02d}"
