"""
Sanctions Bot - Escalation Tests
================================

Tests for the automatic strike issued when warns reach the limit.
"""

import pytest

from utils.escalation import apply_escalation, should_escalate
from utils.sanctions_ledger import SanctionType

WARN = SanctionType.WARN
STRIKE = SanctionType.STRIKE


def warn_and_escalate(ledger, user, lead, mod, limit=3, ticket=None):
    record = ledger.append_sanction(user, WARN, "spam", lead, mod, ticket=ticket)
    return apply_escalation(ledger, record, limit)


class TestShouldEscalate:

    @pytest.mark.parametrize("count,expected", [(0, False), (1, False), (2, False), (3, True),
                                                (4, False), (6, True), (9, True)])
    def test_multiples_of_limit(self, count, expected):
        assert should_escalate(count, 3) is expected

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_never_escalates(self, limit):
        assert should_escalate(3, limit) is False


class TestApplyEscalation:

    def test_first_two_warns_do_not_escalate(self, ledger, mod, lead):
        assert warn_and_escalate(ledger, "U42", lead, mod) is None
        assert warn_and_escalate(ledger, "U42", lead, mod) is None
        assert ledger.count_active("U42", STRIKE) == 0

    def test_third_warn_adds_exactly_one_strike(self, ledger, mod, lead):
        warn_and_escalate(ledger, "U42", lead, mod)
        warn_and_escalate(ledger, "U42", lead, mod)
        strike = warn_and_escalate(ledger, "U42", lead, mod)

        assert strike is not None
        assert strike.type is STRIKE
        assert strike.auto is True
        assert strike.reason == "Automatic strike: reached 3 active warns (limit 3)"
        assert strike.authorized_by == lead
        assert strike.issued_by == mod
        assert ledger.count_active("U42", STRIKE) == 1
        assert ledger.count_active("U42", WARN) == 3
        assert len(ledger.records) == 4

    def test_sixth_warn_adds_second_strike(self, ledger, mod, lead):
        strikes = [warn_and_escalate(ledger, "U42", lead, mod) for _ in range(6)]

        fired = [s for s in strikes if s is not None]
        assert len(fired) == 2
        assert fired[1].reason == "Automatic strike: reached 6 active warns (limit 3)"
        assert ledger.count_active("U42", STRIKE) == 2
        assert ledger.count_active("U42", WARN) == 6

    def test_strike_append_never_escalates(self, ledger, mod, lead):
        for _ in range(3):
            ledger.append_sanction("U42", WARN, "spam", lead, mod)
        strike = ledger.append_sanction("U42", STRIKE, "manual", lead, mod)

        assert apply_escalation(ledger, strike, 3) is None
        assert ledger.count_active("U42", STRIKE) == 1

    def test_recrossing_after_annulment_fires_again(self, ledger, mod, lead):
        warns = []
        for _ in range(3):
            record = ledger.append_sanction("U42", WARN, "spam", lead, mod)
            warns.append(record)
            apply_escalation(ledger, record, 3)
        ledger.annul(warns[0], "appeal", lead, mod)

        strike = warn_and_escalate(ledger, "U42", lead, mod)

        assert strike is not None
        assert ledger.count_active("U42", STRIKE) == 2

    def test_ticket_is_carried(self, ledger, mod, lead):
        warn_and_escalate(ledger, "U42", lead, mod)
        warn_and_escalate(ledger, "U42", lead, mod)
        strike = warn_and_escalate(ledger, "U42", lead, mod, ticket="T-77")

        assert strike.ticket == "T-77"

    def test_no_ticket_stays_absent(self, ledger, mod, lead):
        for _ in range(2):
            warn_and_escalate(ledger, "U42", lead, mod)
        strike = warn_and_escalate(ledger, "U42", lead, mod)

        assert strike.ticket is None
        assert strike.to_dict()["auto"] is True

    def test_other_users_warns_do_not_count(self, ledger, mod, lead):
        warn_and_escalate(ledger, "U42", lead, mod)
        warn_and_escalate(ledger, "U7", lead, mod)
        assert warn_and_escalate(ledger, "U42", lead, mod) is None
