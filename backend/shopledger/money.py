# Overview: Fixed-point money helpers; all amounts are integer cents.

from __future__ import annotations


def apply_bps(amount_cents: int, bps: int) -> int:
    """
    Multiply an amount by a basis-point factor with half-up rounding.

    apply_bps(1000, 13000) == 1300  (x1.30)
    """
    return (amount_cents * bps + 5000) // 10000


def line_total(unit_price_cents: int, quantity: int) -> int:
    return unit_price_cents * quantity


def floor_zero(amount_cents: int) -> int:
    return amount_cents if amount_cents > 0 else 0
