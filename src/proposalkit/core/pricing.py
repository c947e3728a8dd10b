"""
Pricing engine: totals for a pricing table, and payment amounts derived from it.

Computation
-----------
Given a :class:`PricingBlockData`:

1. ``selected``      = mandatory items plus optional items the client picked
2. ``subtotal``      = sum of ``quantity * unitPrice`` over ``selected``
3. ``discount``      = ``subtotal * value / 100`` (percentage) or ``value`` (fixed),
                       clamped to ``subtotal`` in both cases
4. ``afterDiscount`` = ``subtotal - discount``
5. ``tax``           = ``afterDiscount * taxRate / 100``
6. ``total``         = ``afterDiscount + tax``

All arithmetic is done with :class:`~decimal.Decimal`, so results do not depend
on item order and never carry binary floating point noise. ``total`` is never
negative and an empty table yields all zeros.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from proposalkit.core.contracts.blocks import Block, PaymentBlockData, PricingTableBlock
from proposalkit.core.contracts.pricing import PricingBlockData, PricingSummary

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
}


def compute_pricing(data: PricingBlockData) -> PricingSummary:
    """Compute subtotal, discount, tax and total for a pricing table."""
    subtotal = sum(
        (item.line_total for item in data.items if item.counts_towards_total),
        start=_ZERO,
    )

    if data.discount_type == "percentage":
        discount = subtotal * data.discount_value / _HUNDRED
    else:
        discount = data.discount_value
    # Clamp both kinds so the total can never go negative.
    discount = min(discount, subtotal)

    after_discount = subtotal - discount
    tax = after_discount * data.tax_rate / _HUNDRED if data.tax_rate else _ZERO

    return PricingSummary(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=after_discount + tax,
    )


def first_pricing_block(blocks: Iterable[Block]) -> PricingTableBlock | None:
    """Return the first ``pricing-table`` block in document order.

    Documents with several pricing tables use the first one as *the* pricing
    state for conditions and payments.
    """
    for block in blocks:
        if isinstance(block, PricingTableBlock):
            return block
    return None


def payment_amount_due(payment: PaymentBlockData, blocks: Iterable[Block]) -> Decimal:
    """Return the amount a payment block asks the client to pay now.

    - ``usePricingTableTotal`` off: the block's fixed ``amount``.
    - ``usePricingTableTotal`` on: the first pricing table's total, scaled by
      ``downPaymentPercent`` when it lies strictly between 0 and 100; 0 if the
      document has no pricing table.
    """
    if not payment.use_pricing_table_total:
        return payment.amount

    pricing = first_pricing_block(blocks)
    if pricing is None:
        return _ZERO

    total = compute_pricing(pricing.data).total
    percent = payment.down_payment_percent
    if _ZERO < percent < _HUNDRED:
        return total * percent / _HUNDRED
    return total


def format_money(amount: Decimal, currency: str) -> str:
    """Format ``amount`` for display, e.g. ``$1,250.00`` or ``CHF 80.00``."""
    quantized = amount.quantize(Decimal("0.01"))
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{currency.upper()} {quantized:,.2f}"
    return f"{symbol}{quantized:,.2f}"


__all__ = [
    "CURRENCY_SYMBOLS",
    "compute_pricing",
    "first_pricing_block",
    "format_money",
    "payment_amount_due",
]
