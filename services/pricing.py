from decimal import Decimal, ROUND_CEILING

MINOR_UNITS = 100
SECONDS_PER_HOUR = 3600


def compute_price(start, end, hourly_rate):
    """Charge for ``[start, end)`` in the smallest currency unit.

    Partial units are rounded up. A non-positive duration costs nothing.
    """
    seconds = Decimal(str((end - start).total_seconds()))
    if seconds <= 0:
        return 0

    # divide last so whole-unit results stay exact
    amount = Decimal(str(hourly_rate)) * seconds * MINOR_UNITS / SECONDS_PER_HOUR
    return int(amount.to_integral_value(rounding=ROUND_CEILING))
