"""Fixed-point arithmetic for USDT amounts and token quantities.

Every amount and quantity is a Decimal at scale 6, matching NUMERIC(18, 6)
in PostgreSQL. No float anywhere. Results that need more than six places
are truncated (ROUND_DOWN) so the platform never creates value.
"""

from decimal import ROUND_DOWN, Decimal

SCALE = Decimal("0.000001")
ZERO = Decimal("0.000000")


def to_usdt(value: Decimal | int | str) -> Decimal:
    """Quantize to 6 decimal places, truncating: '1.9999999' -> 1.999999."""
    if isinstance(value, float):
        raise TypeError("float amounts are not accepted, pass Decimal or str")
    return Decimal(value).quantize(SCALE, rounding=ROUND_DOWN)


def usdt_mul(a: Decimal, b: Decimal) -> Decimal:
    """price × quantity, truncated to scale."""
    return to_usdt(a * b)


def usdt_div(a: Decimal, b: Decimal) -> Decimal:
    """a / b truncated to scale. Raises ValueError on a zero divisor."""
    if b == 0:
        raise ValueError("Division by zero amount")
    return to_usdt(a / b)


def format_usdt(value: Decimal) -> str:
    """Display string: Decimal('1200.5') -> '1,200.500000 USDT'."""
    return f"{to_usdt(value):,.6f} USDT"
