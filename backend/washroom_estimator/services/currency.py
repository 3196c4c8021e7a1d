"""Display rounding for INR amounts.  Computations never call these."""
from decimal import Decimal, ROUND_HALF_UP

from washroom_estimator.models.pricing_schema import coerce_amount

_PAISE = Decimal("0.01")


def round_currency(value: float) -> float:
    """Round half-up to 2 decimals (0.125 → 0.13, unlike ``round``)."""
    return float(Decimal(repr(coerce_amount(value))).quantize(_PAISE, rounding=ROUND_HALF_UP))


def format_inr(value: float, symbol: str = "₹") -> str:
    """
    Indian digit grouping: ``1234567.5`` → ``₹12,34,567.50``.

    The last three integer digits form one group, everything above is
    grouped in pairs.
    """
    amount = Decimal(repr(coerce_amount(value))).quantize(_PAISE, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer_part, fraction = f"{abs(amount):.2f}".split(".")

    head, tail = integer_part[:-3], integer_part[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])
    return f"{sign}{symbol}{grouped}.{fraction}"
