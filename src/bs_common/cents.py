"""Prices, rents and transaction totals are integer cents throughout.

A transaction total is therefore always the exact sum of its item snapshot
prices; the "$19.99" form only appears in API responses.
"""


def cents_to_display(cents: int) -> str:
    """1999 -> '$19.99', 250000 -> '$2,500.00', -1200 -> '-$12.00'."""
    sign = "-" if cents < 0 else ""
    dollars, rest = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{rest:02d}"
