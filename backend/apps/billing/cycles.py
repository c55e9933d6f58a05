"""
Billing cycle arithmetic.

Calendar-aware: adding a month to Jan 31 lands on the last day of February.
"""

import calendar
from datetime import datetime

from apps.billing.models import BillingCycle

CYCLE_MONTHS: dict[str, int] = {
    BillingCycle.MONTHLY.value: 1,
    BillingCycle.QUARTERLY.value: 3,
    BillingCycle.SEMIANNUALLY.value: 6,
    BillingCycle.ANNUALLY.value: 12,
}


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def compute_end(cycle: str, start: datetime) -> datetime:
    """
    Return the end of a billing period starting at ``start``.

    Unrecognized cycles are billed monthly.
    """
    return add_months(start, CYCLE_MONTHS.get(cycle, 1))
