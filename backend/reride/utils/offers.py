"""
Offer formatting utilities.

WHAT: Price formatting and the fixed offer outcome texts
WHY: Outcome messages must keep the exact wording shown in the ReRide UI
HOW: Indian digit grouping (en-IN) and template lookups
"""

import math

from ..core.config import settings

ACCEPTED_TEXT = "✅ Offer accepted! The deal is confirmed."
REJECTED_TEXT = "❌ Offer declined. Thank you for your interest."
COUNTERED_TEMPLATE = "💰 Counter-offer made: {price}"
OFFER_TEMPLATE = "Offer: {price}"


def group_indian(digits: str) -> str:
    """
    Insert en-IN thousands separators into a string of digits.

    The last three digits form one group, every group before that has two
    digits: 550000 -> 5,50,000 and 12500000 -> 1,25,00,000.
    """
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)

    return ",".join(groups + [tail])


def format_inr(amount: float) -> str:
    """
    Format an amount with en-IN grouping and at most two decimals.

    Args:
        amount: Price in rupees

    Returns:
        Grouped number without currency symbol, e.g. "5,50,000" or "1,234.5"

    Raises:
        ValueError: If amount is not a finite number
    """
    if not math.isfinite(amount):
        raise ValueError(f"Cannot format non-finite amount: {amount}")

    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    fraction = fraction.rstrip("0")

    formatted = group_indian(whole)
    if fraction:
        formatted = f"{formatted}.{fraction}"
    return f"{sign}{formatted}"


def format_price(amount: float) -> str:
    """Format an amount with the configured currency symbol."""
    return f"{settings.PRICE_CURRENCY_SYMBOL}{format_inr(amount)}"


def offer_text(offer_price: float) -> str:
    """Display text for a new offer message."""
    return OFFER_TEMPLATE.format(price=format_price(offer_price))


def outcome_text(response: str, counter_price: float | None = None) -> str:
    """
    Display text for the message appended after an offer response.

    Args:
        response: "accepted", "rejected" or "countered"
        counter_price: Required when response is "countered"

    Returns:
        The outcome text for the response
    """
    if response == "accepted":
        return ACCEPTED_TEXT
    if response == "rejected":
        return REJECTED_TEXT
    if response == "countered":
        if counter_price is None:
            raise ValueError("counter_price is required for a countered response")
        return COUNTERED_TEMPLATE.format(price=format_price(counter_price))
    raise ValueError(f"Unknown offer response: {response}")
