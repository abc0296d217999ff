"""Calendar arithmetic for billing cycles."""
import re
from datetime import date, datetime, timezone

import pytest

from propman.core.billing_cycle import (
    BillingCycle,
    calculate_next_billing_start,
    compute_billing_period,
    generate_bill_number,
    parse_billing_cycle,
)


class TestNextBillingStart:

    @pytest.mark.parametrize("cycle, cycles_done, expected", [
        ("WEEKLY", 0, date(2026, 1, 1)),
        ("WEEKLY", 3, date(2026, 1, 22)),
        ("MONTHLY", 1, date(2026, 2, 1)),
        ("MONTHLY", 12, date(2027, 1, 1)),
        ("EVERY_2_MONTHS", 3, date(2026, 7, 1)),
        ("HALF_A_YEAR", 1, date(2026, 7, 1)),
        ("HALF_A_YEAR", 2, date(2027, 1, 1)),
        ("YEARLY", 1, date(2027, 1, 1)),
    ])
    def test_advances_whole_cycles_from_anchor(self, cycle, cycles_done, expected):
        assert calculate_next_billing_start(date(2026, 1, 1), cycle, cycles_done) == expected

    def test_yearly_template_after_two_cycles(self):
        anchor = datetime(2025, 3, 15, 9, 30, tzinfo=timezone.utc)
        assert calculate_next_billing_start(anchor, BillingCycle.YEARLY, 2) == date(2027, 3, 15)

    def test_month_end_anchor_clamps_without_drifting(self):
        anchor = date(2026, 1, 31)
        assert calculate_next_billing_start(anchor, "MONTHLY", 1) == date(2026, 2, 28)
        assert calculate_next_billing_start(anchor, "MONTHLY", 2) == date(2026, 3, 31)
        assert calculate_next_billing_start(anchor, "MONTHLY", 3) == date(2026, 4, 30)

    def test_leap_day_anchor_on_yearly_cycle(self):
        assert calculate_next_billing_start(date(2024, 2, 29), "YEARLY", 1) == date(2025, 2, 28)
        assert calculate_next_billing_start(date(2024, 2, 29), "YEARLY", 4) == date(2028, 2, 29)

    def test_datetime_anchor_uses_calendar_date(self):
        anchor = datetime(2026, 1, 1, 23, 59, tzinfo=timezone.utc)
        assert calculate_next_billing_start(anchor, "WEEKLY", 1) == date(2026, 1, 8)

    def test_unknown_cycle_returns_none(self):
        assert calculate_next_billing_start(date(2026, 1, 1), "FORTNIGHTLY", 1) is None


class TestBillingPeriod:

    @pytest.mark.parametrize("start, cycle, end, due", [
        (date(2026, 2, 1), "WEEKLY", date(2026, 2, 7), date(2026, 2, 5)),
        (date(2026, 2, 1), "MONTHLY", date(2026, 2, 28), date(2026, 3, 5)),
        (date(2028, 2, 10), "MONTHLY", date(2028, 2, 29), date(2028, 3, 5)),
        (date(2026, 12, 15), "MONTHLY", date(2026, 12, 31), date(2027, 1, 5)),
        (date(2026, 1, 15), "EVERY_2_MONTHS", date(2026, 2, 28), date(2026, 2, 5)),
        (date(2026, 3, 1), "HALF_A_YEAR", date(2026, 8, 31), date(2026, 3, 5)),
        (date(2026, 3, 15), "YEARLY", date(2026, 12, 31), date(2026, 1, 5)),
    ])
    def test_period_end_and_due_date(self, start, cycle, end, due):
        period = compute_billing_period(start, cycle)
        assert period.start == start
        assert period.end == end
        assert period.due_date == due

    def test_unknown_cycle_raises(self):
        with pytest.raises(ValueError):
            compute_billing_period(date(2026, 1, 1), "DAILY")


class TestParseBillingCycle:

    def test_accepts_enum_and_any_case(self):
        assert parse_billing_cycle(BillingCycle.MONTHLY) is BillingCycle.MONTHLY
        assert parse_billing_cycle("monthly") is BillingCycle.MONTHLY
        assert parse_billing_cycle(" Every_2_Months ") is BillingCycle.EVERY_2_MONTHS

    def test_rejects_unknown_and_empty(self):
        assert parse_billing_cycle("QUARTERLY") is None
        assert parse_billing_cycle(None) is None

    def test_every_cycle_has_a_rule(self):
        for cycle in BillingCycle:
            assert cycle.rule is not None


class TestBillNumber:

    def test_format(self):
        number = generate_bill_number(date(2026, 2, 1))
        assert re.fullmatch(r"B-2026-2-GEN-[0-9a-f]{6}", number)

    def test_month_is_not_zero_padded(self):
        assert generate_bill_number(date(2026, 11, 1)).startswith("B-2026-11-GEN-")
