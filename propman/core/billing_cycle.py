"""
Billing cycle calendar arithmetic.

Each BillingCycle member is bound to a CycleRule holding three functions:

- advance(anchor, n): start date of the n-th period counted from anchor
- period_end(start):  last day covered by the period beginning at start
- due_date(start):    payment due date for that period

Month and year offsets use dateutil's relativedelta and are always computed
from the anchor, so a template anchored on the 31st lands on the last day of
short months without drifting in later ones.
"""
import secrets
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional

from dateutil.relativedelta import relativedelta

from propman.core.enum_utils import to_enum


class BillingCycle(str, Enum):
    """Recurrence unit of a master bill template."""
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    EVERY_2_MONTHS = "EVERY_2_MONTHS"
    HALF_A_YEAR = "HALF_A_YEAR"
    YEARLY = "YEARLY"

    @property
    def rule(self) -> "CycleRule":
        return CYCLE_RULES[self]


@dataclass(frozen=True)
class CycleRule:
    advance: Callable[[date, int], date]
    period_end: Callable[[date], date]
    due_date: Callable[[date], date]


@dataclass(frozen=True)
class BillingPeriod:
    start: date
    end: date
    due_date: date


def _every_n_days(days: int) -> Callable[[date, int], date]:
    return lambda anchor, n: anchor + timedelta(days=days * n)


def _every_n_months(months: int) -> Callable[[date, int], date]:
    return lambda anchor, n: anchor + relativedelta(months=months * n)


def _days_after(days: int) -> Callable[[date], date]:
    return lambda start: start + timedelta(days=days)


def _month_end(months_ahead: int) -> Callable[[date], date]:
    # day=31 clamps to the last day of the target month
    return lambda start: start + relativedelta(months=months_ahead, day=31)


def _fifth_of(months_ahead: int) -> Callable[[date], date]:
    return lambda start: start + relativedelta(months=months_ahead, day=5)


CYCLE_RULES: Dict[BillingCycle, CycleRule] = {
    BillingCycle.WEEKLY: CycleRule(
        advance=_every_n_days(7),
        period_end=_days_after(6),
        due_date=_days_after(4),
    ),
    BillingCycle.MONTHLY: CycleRule(
        advance=_every_n_months(1),
        period_end=_month_end(0),
        due_date=_fifth_of(1),
    ),
    BillingCycle.EVERY_2_MONTHS: CycleRule(
        advance=_every_n_months(2),
        period_end=_month_end(1),
        due_date=_fifth_of(1),
    ),
    BillingCycle.HALF_A_YEAR: CycleRule(
        advance=_every_n_months(6),
        period_end=_month_end(5),
        due_date=_fifth_of(0),
    ),
    BillingCycle.YEARLY: CycleRule(
        advance=lambda anchor, n: anchor + relativedelta(years=n),
        period_end=lambda start: start.replace(month=12, day=31),
        due_date=lambda start: start.replace(month=1, day=5),
    ),
}

_missing_rules = set(BillingCycle) - set(CYCLE_RULES)
if _missing_rules:
    raise RuntimeError(f"No cycle rule for: {sorted(c.value for c in _missing_rules)}")


def parse_billing_cycle(value: Any) -> Optional[BillingCycle]:
    """Resolve a stored cycle string to a BillingCycle, or None if unknown."""
    return to_enum(value, BillingCycle)


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_next_billing_start(
    created_at: date,
    cycle: Any,
    cycles_done: int,
) -> Optional[date]:
    """
    Calculate the start date of the next billing period for a template.

    Args:
        created_at: Template creation timestamp (anchor of all periods)
        cycle: BillingCycle member or stored cycle string
        cycles_done: Number of concrete bills already generated

    Returns:
        Start date of period number `cycles_done`, or None for an
        unrecognized cycle
    """
    billing_cycle = parse_billing_cycle(cycle)
    if billing_cycle is None:
        return None
    return billing_cycle.rule.advance(_as_date(created_at), cycles_done)


def compute_billing_period(start: date, cycle: Any) -> BillingPeriod:
    """
    Compute the period end and due date for a period starting at `start`.

    Raises:
        ValueError: If the cycle is not recognized
    """
    billing_cycle = parse_billing_cycle(cycle)
    if billing_cycle is None:
        raise ValueError(f"Unknown billing cycle: {cycle!r}")
    start = _as_date(start)
    rule = billing_cycle.rule
    return BillingPeriod(
        start=start,
        end=rule.period_end(start),
        due_date=rule.due_date(start),
    )


def generate_bill_number(period_start: date) -> str:
    """
    Generate a bill number like B-2026-2-GEN-4512f3.

    The unique part is the tail of epoch milliseconds plus one random byte,
    so numbers generated in the same millisecond still differ most of the
    time. The unique constraint on bills.bill_number catches the rest.
    """
    timestamp_part = str(int(time.time() * 1000))
    random_part = secrets.token_hex(1)
    unique_part = (timestamp_part + random_part)[-6:].rjust(6, "0")
    return f"B-{period_start.year}-{period_start.month}-GEN-{unique_part}"
