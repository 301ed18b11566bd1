"""
Cart and order totals

Money is Decimal end to end and rounded to cents with ROUND_HALF_UP.
Shipping is always free; tax is a fixed rate applied to the subtotal.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from storefront.core.config import settings

CENTS = Decimal("0.01")
TAX_RATE = Decimal(str(settings.TAX_RATE))
SHIPPING_COST = Decimal("0.00")


def to_money(amount) -> Decimal:
    """Quantize any numeric value to cents."""
    if amount is None:
        return Decimal("0.00")
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(price, quantity: int) -> Decimal:
    return to_money(Decimal(str(price)) * quantity)


def total_item_count(lines: Iterable) -> int:
    """Sum of quantities across cart lines."""
    return sum(line.quantity for line in lines)


def cart_subtotal(lines: Iterable) -> Decimal:
    """
    Sum of price * quantity for lines whose product still resolves.

    A line whose product was deleted contributes nothing.
    """
    subtotal = Decimal("0.00")
    for line in lines:
        if line.product is None:
            continue
        subtotal += Decimal(str(line.product.price)) * line.quantity
    return to_money(subtotal)


def tax_amount(subtotal, rate: Optional[Decimal] = None) -> Decimal:
    return to_money(Decimal(str(subtotal)) * (rate if rate is not None else TAX_RATE))


def order_total(subtotal, rate: Optional[Decimal] = None) -> Decimal:
    """Tax-inclusive total: subtotal * (1 + tax rate) + free shipping."""
    rate = rate if rate is not None else TAX_RATE
    return to_money(Decimal(str(subtotal)) * (Decimal("1") + rate)) + SHIPPING_COST


def format_price(amount) -> str:
    """US currency display, e.g. 1234.5 -> "$1,234.50"."""
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
