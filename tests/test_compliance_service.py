"""Payment Compliance Tests

Missed-payment counting, the pre-join exemption and status labels.
"""

from datetime import datetime

from app.services.compliance_service import (
    compliance_status, first_liable_period, has_paid, missed_payments,
    refresh_missed_payments, ComplianceStatus
)
from conftest import club, member, payment


class TestMissedPayments:
    """Only closed periods count"""

    def test_first_period_never_has_misses(self):
        assert missed_payments(member(1), [], current_period=1) == 0
        assert missed_payments(member(1), [payment('m2', 1)], current_period=1) == 0

    def test_current_period_is_not_counted(self):
        # Paid period 1, missed 2, period 3 still open
        payments = [payment('m1', 1)]
        assert missed_payments(member(1), payments, current_period=3) == 1

    def test_other_members_payments_do_not_count(self):
        payments = [payment('m2', 1), payment('m2', 2)]
        assert missed_payments(member(1), payments, current_period=3) == 2

    def test_duplicate_payments_count_once(self):
        payments = [payment('m1', 1), payment('m1', 1)]
        assert missed_payments(member(1), payments, current_period=3) == 1

    def test_future_payments_do_not_cover_past_periods(self):
        payments = [payment('m1', 3), payment('m1', 4)]
        assert missed_payments(member(1), payments, current_period=3) == 2

    def test_exempt_periods_before_first_liable(self):
        assert missed_payments(member(1), [], current_period=5, first_liable_period=3) == 2


class TestFirstLiablePeriod:
    """Pre-join exemption from the club calendar"""

    def test_founding_member_is_liable_from_period_one(self):
        assert first_liable_period(member(1), club(current_period=4)) == 1

    def test_member_joining_mid_period_is_liable_for_that_period(self):
        # Period 2 runs Feb 1 - Mar 1
        late = member(7, joined=datetime(2024, 2, 10))
        assert first_liable_period(late, club(current_period=4)) == 2

    def test_member_joining_later_is_capped_at_current_period(self):
        late = member(7, joined=datetime(2025, 1, 1))
        assert first_liable_period(late, club(current_period=3)) == 3

    def test_weekly_calendar(self):
        late = member(7, joined=datetime(2024, 1, 16))
        assert first_liable_period(late, club(frequency='weekly', current_period=5)) == 3


class TestRefreshMissedPayments:

    def test_counts_written_to_copies(self):
        roster = [member(1), member(2)]
        payments = [payment('m1', 1), payment('m1', 2), payment('m2', 1)]

        refreshed = refresh_missed_payments(roster, payments, club(current_period=3))

        assert [m.missed_payments for m in refreshed] == [0, 1]
        assert [m.missed_payments for m in roster] == [0, 0]

    def test_exemption_can_be_turned_off(self):
        late = member(7, joined=datetime(2024, 3, 5))
        c = club(current_period=4)

        assert refresh_missed_payments([late], [], c)[0].missed_payments == 1
        assert refresh_missed_payments([late], [], c, exempt_pre_join=False)[0].missed_payments == 3


class TestComplianceStatus:

    def test_labels(self):
        assert compliance_status(member(1)) == ComplianceStatus.UP_TO_DATE
        assert compliance_status(member(1, missed=1)) == ComplianceStatus.BEHIND
        assert compliance_status(member(1, missed=2)) == ComplianceStatus.DEFAULTING
        assert compliance_status(member(1, missed=5)) == ComplianceStatus.DEFAULTING

    def test_has_paid(self):
        payments = [payment('m1', 2)]
        assert has_paid('m1', 2, payments)
        assert not has_paid('m1', 1, payments)
        assert not has_paid('m2', 2, payments)
