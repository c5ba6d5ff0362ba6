"""
Tests for split arithmetic and the friend balance ledger.
"""

import pytest
from sqlalchemy.dialects import postgresql

from budgetframes.models import Money
from budgetframes.services import payments
from budgetframes.services.transactions import distribute_total, split_balance


class TestDistributeTotal:
    """Tests for dividing a total by shares."""

    @pytest.mark.parametrize("total,my_share,their_share,mine,theirs", [
        ("100", "60", "40", "60.00", "40.00"),
        ("100", "1", "1", "50.00", "50.00"),
        ("10", "1", "2", "3.33", "6.67"),
        ("0.05", "1", "1", "0.03", "0.02"),
        ("99.99", "0", "1", "0.00", "99.99"),
        ("42", "5", "0", "42.00", "0.00"),
    ])
    def test_partitions_total(self, total, my_share, their_share, mine, theirs):
        """Test that parts round half-up and add up exactly to the total."""
        a, b = distribute_total(Money(total), Money(my_share), Money(their_share))
        assert a.string() == mine
        assert b.string() == theirs
        assert a.plus(b) == Money(total)
        assert a >= 0 and b >= 0

    def test_both_shares_zero(self):
        """Test that two zero shares cannot divide anything."""
        with pytest.raises(ValueError):
            distribute_total(Money("10"), Money("0"), Money("0"))


class TestSplitBalance:
    """Tests for one expense's contribution to the ledger."""

    def test_user_paid(self):
        """Test that the payer is owed the other side's part."""
        assert split_balance("a", "b", Money("60"), Money("40"), "a") == Money("40")

    def test_other_paid(self):
        """Test that the user owes their own part when the other paid."""
        assert split_balance("a", "b", Money("60"), Money("40"), "b") == Money("-60")

    def test_nobody_paid(self):
        """Test that a third payer contributes nothing."""
        assert split_balance("a", "b", Money("60"), Money("40"), "c").is_zero()
        assert split_balance("a", "b", Money("60"), Money("40"), None).is_zero()

    def test_symmetric_from_either_side(self):
        """Test that both sides see the same debt with opposite signs."""
        mine = split_balance("a", "b", Money("60"), Money("40"), "a")
        theirs = split_balance("b", "a", Money("40"), Money("60"), "a")
        assert mine == theirs.negate()


class TestBalanceLedger:
    """Tests for the canonical per-pair balance rows."""

    def test_no_row_means_zero(self, db, alice, bob, balance_between):
        """Test that strangers to the ledger owe nothing."""
        assert balance_between(alice.uid, bob.uid).is_zero()

    def test_add_is_seen_from_both_sides(self, db, alice, bob, balance_between):
        """Test that one row answers both directions with opposite signs."""
        with db.transaction() as tx:
            payments.add_to_balance(alice.uid, bob.uid, Money("25"), tx)
        assert balance_between(alice.uid, bob.uid) == Money("25")
        assert balance_between(bob.uid, alice.uid) == Money("-25")

    def test_adds_accumulate_regardless_of_order(self, db, alice, bob, balance_between):
        """Test that additions from either side net out in one row."""
        with db.transaction() as tx:
            payments.add_to_balance(alice.uid, bob.uid, Money("25"), tx)
            payments.add_to_balance(bob.uid, alice.uid, Money("10"), tx)
            rows = tx.many_or_none("select * from balances")
        assert len(rows) == 1
        assert rows[0]["low_uid"] < rows[0]["high_uid"]
        assert balance_between(alice.uid, bob.uid) == Money("15")

    def test_existing_row_is_updated_in_place(self, db, alice, bob, balance_between):
        """Test that a row inserted by someone else first is added to, not duplicated."""
        low, high = sorted([alice.uid, bob.uid])
        with db.transaction() as tx:
            tx.none(
                "insert into balances (low_uid, high_uid, balance) values (:low, :high, :balance)",
                {"low": low, "high": high, "balance": "5.00"},
            )
        with db.transaction() as tx:
            payments.add_to_balance(low, high, Money("10"), tx)
            rows = tx.many_or_none("select * from balances")
        assert len(rows) == 1
        assert balance_between(low, high) == Money("15")

    def test_balance_row_is_locked_for_update(self):
        """Test that the read before an update takes a row lock."""
        query = payments.locked_balance_query("a", "b")
        assert "FOR UPDATE" in str(query.compile(dialect=postgresql.dialect()))
