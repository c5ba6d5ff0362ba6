"""
Tests for the transaction request handlers.
"""

import pytest
from datetime import date
from http import HTTPStatus

from budgetframes.api import (
    handle_frame_get,
    handle_transaction_amount_post,
    handle_transaction_category_post,
    handle_transaction_date_post,
    handle_transaction_delete,
    handle_transaction_description_post,
    handle_transaction_post,
    handle_transaction_split_post,
    handle_transaction_update_post,
)
from budgetframes.models import (
    AddTransactionRequest,
    DeleteTransactionRequest,
    FrameRequest,
    Money,
    SplitRequest,
    TransactionAmountRequest,
    TransactionCategoryRequest,
    TransactionDateRequest,
    TransactionDescriptionRequest,
    TransactionSplitRequest,
)


def _request(amount="60", split=None, frame=0, category=None):
    return AddTransactionRequest(
        frame=frame,
        amount=amount,
        description="Dinner",
        category=category,
        date=date(2024, 3, 1),
        split=split,
    )


def _split(with_, other_amount="40", my_share="60", their_share="40", i_paid=True):
    return SplitRequest(
        with_=with_,
        i_paid=i_paid,
        other_amount=other_amount,
        my_share=my_share,
        their_share=their_share,
    )


def _count(db, table):
    with db.transaction() as tx:
        return tx.one(f"select count(*) as n from {table}")["n"]


@pytest.fixture
def shared(db, alice, bob):
    """Alice paid 100 for dinner, split 60/40 with Bob."""
    return handle_transaction_post(_request(split=_split(bob.uid)), alice, db=db)


class TestTransactionPost:
    """Tests for creating transactions."""

    def test_plain_transaction(self, db, alice, fetch_transaction):
        """Test that an unshared transaction lands in the actor's group."""
        result = handle_transaction_post(_request(amount="12.5"), alice, db=db)

        assert result.gid == alice.gid
        assert result.split is None
        row = fetch_transaction(result.id)
        assert row["amount"] == "12.50"
        assert row["date"] == "2024-03-01"
        assert row["alive"]

    def test_split_matching_shares(self, shared, db, alice, bob, balance_between, fetch_transaction):
        """Test that 60/40 of a 100 total is accepted and mirrored to the friend."""
        assert shared.split is not None
        assert shared.split.with_.uid == bob.uid
        assert shared.split.payer == alice.uid
        assert shared.split.settled is False
        assert balance_between(alice.uid, bob.uid) == Money("40")

        with db.transaction() as tx:
            split_rows = tx.many_or_none(
                "select * from transaction_splits where sid = :sid",
                {"sid": shared.split.id},
            )
        assert len(split_rows) == 2
        other = next(r for r in split_rows if r["tid"] != shared.id)
        mirrored = fetch_transaction(other["tid"])
        assert mirrored["gid"] == bob.gid
        assert mirrored["amount"] == "40.00"
        assert mirrored["category"] is None
        assert other["share"] == "40.00"

    def test_split_mismatch_is_rejected(self, db, alice, bob):
        """Test that 50 of a 60/40 split is rejected before anything is written."""
        result = handle_transaction_post(_request(amount="50", split=_split(bob.uid)), alice, db=db)

        assert result == HTTPStatus.BAD_REQUEST
        assert _count(db, "transactions") == 0

    def test_friend_paid(self, db, alice, bob, balance_between):
        """Test that Alice owes her part when Bob paid."""
        handle_transaction_post(_request(split=_split(bob.uid, i_paid=False)), alice, db=db)
        assert balance_between(alice.uid, bob.uid) == Money("-60")
        assert balance_between(bob.uid, alice.uid) == Money("60")

    def test_split_with_stranger(self, db, alice, carol):
        """Test that splitting with a non-friend is rejected."""
        result = handle_transaction_post(_request(split=_split(carol.uid)), alice, db=db)
        assert result == HTTPStatus.BAD_REQUEST
        assert _count(db, "transactions") == 0

    @pytest.mark.parametrize("amount", ["-5", "1.001", "abc"])
    def test_invalid_amount(self, db, alice, amount):
        """Test that invalid or negative amounts are rejected."""
        assert handle_transaction_post(_request(amount=amount), alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_zero_shares(self, db, alice, bob):
        """Test that a split with two zero shares is rejected."""
        split = _split(bob.uid, my_share="0", their_share="0")
        assert handle_transaction_post(_request(split=split), alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_oversized_amount(self, db, alice):
        """Test that an absurdly large amount is rejected, not an error."""
        result = handle_transaction_post(_request(amount="100000000000000000000000000"), alice, db=db)
        assert result == HTTPStatus.BAD_REQUEST
        assert _count(db, "transactions") == 0

    def test_largest_amounts_split(self, db, alice, bob):
        """Test that the largest valid amounts can still be added up and divided."""
        big = "999999999999999999999999.99"
        split = _split(bob.uid, other_amount=big, my_share="1", their_share="1")
        result = handle_transaction_post(_request(amount=big, split=split), alice, db=db)
        assert result.amount == Money(big)

    def test_other_groups_category(self, db, alice, carol):
        """Test that a transaction cannot be filed under another group's category."""
        theirs = handle_frame_get(FrameRequest(index=0), carol, db=db).categories[0]

        result = handle_transaction_post(_request(amount="75", category=theirs.id), alice, db=db)

        assert result == HTTPStatus.BAD_REQUEST
        assert _count(db, "transactions") == 0
        after = handle_frame_get(FrameRequest(index=0), carol, db=db).categories[0]
        assert after.balance == theirs.balance

    def test_own_category(self, db, alice):
        """Test that a category of the actor's frame is accepted."""
        mine = handle_frame_get(FrameRequest(index=0), alice, db=db).categories[0]
        result = handle_transaction_post(_request(amount="75", category=mine.id), alice, db=db)
        assert result.category == mine.id

    def test_post_promotes_frame(self, db, alice, bob):
        """Test that posting into a frame makes it permanent for both groups."""
        handle_transaction_post(_request(split=_split(bob.uid), frame=4), alice, db=db)
        with db.transaction() as tx:
            rows = tx.many_or_none("select gid, ghost from frames where frame_index = 4")
        assert {r["gid"] for r in rows} == {alice.gid, bob.gid}
        assert not any(r["ghost"] for r in rows)


class TestTransactionDelete:
    """Tests for soft-deleting transactions."""

    def test_delete_own(self, db, alice, fetch_transaction):
        """Test that deleting marks the row dead."""
        created = handle_transaction_post(_request(), alice, db=db)
        result = handle_transaction_delete(DeleteTransactionRequest(id=created.id), alice, db=db)

        assert result == HTTPStatus.NO_CONTENT
        assert not fetch_transaction(created.id)["alive"]

    def test_delete_unknown(self, db, alice):
        """Test that an unknown id is rejected."""
        result = handle_transaction_delete(DeleteTransactionRequest(id="nope"), alice, db=db)
        assert result == HTTPStatus.BAD_REQUEST

    def test_delete_someone_elses(self, db, alice, carol, fetch_transaction):
        """Test that another group's transaction cannot be deleted."""
        created = handle_transaction_post(_request(), alice, db=db)
        result = handle_transaction_delete(DeleteTransactionRequest(id=created.id), carol, db=db)

        assert result == HTTPStatus.BAD_REQUEST
        assert fetch_transaction(created.id)["alive"]

    def test_delete_twice(self, db, alice):
        """Test that an already deleted transaction cannot be deleted again."""
        created = handle_transaction_post(_request(), alice, db=db)
        handle_transaction_delete(DeleteTransactionRequest(id=created.id), alice, db=db)
        result = handle_transaction_delete(DeleteTransactionRequest(id=created.id), alice, db=db)
        assert result == HTTPStatus.BAD_REQUEST

    def test_delete_split_reverses_balance(self, shared, db, alice, bob, balance_between):
        """Test that deleting a shared transaction removes both sides and the debt."""
        result = handle_transaction_delete(DeleteTransactionRequest(id=shared.id), alice, db=db)

        assert result == HTTPStatus.NO_CONTENT
        assert balance_between(alice.uid, bob.uid).is_zero()
        with db.transaction() as tx:
            alive = tx.many_or_none("select id from transactions where alive = :alive", {"alive": True})
        assert alive == []


class TestTransactionUpdate:
    """Tests for single-field updates."""

    def test_description(self, db, alice, fetch_transaction):
        """Test updating the description."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionDescriptionRequest(id=created.id, description="Brunch")

        assert handle_transaction_description_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        assert fetch_transaction(created.id)["description"] == "Brunch"

    def test_empty_description(self, db, alice):
        """Test that an empty description is rejected."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionDescriptionRequest(id=created.id, description="")
        assert handle_transaction_description_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_amount(self, db, alice, fetch_transaction):
        """Test that amounts are stored in canonical form."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionAmountRequest(id=created.id, amount="12.5")

        assert handle_transaction_amount_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        assert fetch_transaction(created.id)["amount"] == "12.50"

    def test_invalid_amount(self, db, alice):
        """Test that an amount with too many places is rejected."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionAmountRequest(id=created.id, amount="1.234")
        assert handle_transaction_amount_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_amount_on_split_is_rejected(self, shared, db, alice, fetch_transaction):
        """Test that a shared transaction's amount cannot be edited directly."""
        request = TransactionAmountRequest(id=shared.id, amount="70")

        assert handle_transaction_amount_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST
        assert fetch_transaction(shared.id)["amount"] == "60.00"

    def test_date_propagates_to_split(self, shared, db, alice, fetch_transaction):
        """Test that the date of both sides of a split changes together."""
        request = TransactionDateRequest(id=shared.id, date=date(2024, 4, 2))

        assert handle_transaction_date_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        with db.transaction() as tx:
            dates = tx.many_or_none("select date from transactions")
        assert [r["date"] for r in dates] == ["2024-04-02", "2024-04-02"]

    def test_description_propagates_to_split(self, shared, db, alice):
        """Test that the description of both sides of a split changes together."""
        request = TransactionDescriptionRequest(id=shared.id, description="Tapas")

        assert handle_transaction_description_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        with db.transaction() as tx:
            rows = tx.many_or_none("select description from transactions")
        assert {r["description"] for r in rows} == {"Tapas"}

    def test_category_does_not_propagate(self, shared, db, alice, bob):
        """Test that the category stays private to each side."""
        frame = handle_frame_get(FrameRequest(index=0), alice, db=db)
        request = TransactionCategoryRequest(id=shared.id, category=frame.categories[0].id)

        assert handle_transaction_category_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        with db.transaction() as tx:
            mirrored = tx.one("select category from transactions where gid = :gid", {"gid": bob.gid})
        assert mirrored["category"] is None

    def test_unknown_category(self, db, alice):
        """Test that a category from nowhere is rejected."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionCategoryRequest(id=created.id, category="not-a-category")
        assert handle_transaction_category_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_clear_category(self, db, alice, fetch_transaction):
        """Test that an empty category clears it."""
        frame = handle_frame_get(FrameRequest(index=0), alice, db=db)
        created = handle_transaction_post(_request(category=frame.categories[0].id), alice, db=db)
        request = TransactionCategoryRequest(id=created.id, category="")

        assert handle_transaction_category_post(request, alice, db=db) == HTTPStatus.NO_CONTENT
        assert fetch_transaction(created.id)["category"] is None

    def test_wrong_group(self, db, alice, carol):
        """Test that editing another group's transaction is unauthorized."""
        created = handle_transaction_post(_request(), alice, db=db)
        request = TransactionDescriptionRequest(id=created.id, description="Mine now")
        assert handle_transaction_description_post(request, carol, db=db) == HTTPStatus.UNAUTHORIZED

    def test_unknown_transaction(self, db, alice):
        """Test that updating an unknown id is rejected."""
        request = TransactionDescriptionRequest(id="nope", description="x")
        assert handle_transaction_description_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_non_string_without_transform(self, db, alice):
        """Test that a non-string value needs a transform."""
        request = TransactionDateRequest(id="any", date=date(2024, 1, 1))
        with pytest.raises(TypeError):
            handle_transaction_update_post("date", request, alice, db=db)

    def test_unknown_field(self, db, alice):
        """Test that only transaction fields can be updated."""
        request = TransactionDescriptionRequest(id="any", description="x")
        with pytest.raises(ValueError):
            handle_transaction_update_post("gid", request, alice, db=db)


class TestSplitUpdate:
    """Tests for re-dividing a split."""

    def _request(self, shared, total="100", my_share="50", their_share="50", i_paid=True, **overrides):
        data = dict(
            tid=shared.id,
            sid=shared.split.id,
            total=total,
            my_share=my_share,
            their_share=their_share,
            i_paid=i_paid,
        )
        data.update(overrides)
        return TransactionSplitRequest(**data)

    def test_rebalance(self, shared, db, alice, bob, balance_between, fetch_transaction):
        """Test that amounts, shares and the ledger follow the new split."""
        result = handle_transaction_split_post(self._request(shared), alice, db=db)

        assert result == HTTPStatus.NO_CONTENT
        assert fetch_transaction(shared.id)["amount"] == "50.00"
        assert balance_between(alice.uid, bob.uid) == Money("50")

    def test_change_payer(self, shared, db, alice, bob, balance_between):
        """Test that switching the payer flips the debt."""
        handle_transaction_split_post(self._request(shared, i_paid=False), alice, db=db)

        assert balance_between(alice.uid, bob.uid) == Money("-50")
        with db.transaction() as tx:
            payer = tx.one("select payer from shared_transactions")["payer"]
        assert payer == bob.uid

    def test_from_other_side(self, shared, db, alice, bob, balance_between):
        """Test that the friend can re-divide from their own side."""
        with db.transaction() as tx:
            other_tid = tx.one(
                "select tid from transaction_splits where tid <> :tid",
                {"tid": shared.id},
            )["tid"]
        request = self._request(shared, total="100", my_share="30", their_share="70", i_paid=False, tid=other_tid)

        assert handle_transaction_split_post(request, bob, db=db) == HTTPStatus.NO_CONTENT
        # Alice paid 100, Bob's part is 30
        assert balance_between(alice.uid, bob.uid) == Money("30")

    def test_missing_ids(self, shared, db, alice):
        """Test that tid and sid are required."""
        request = self._request(shared, tid=None)
        assert handle_transaction_split_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_zero_shares(self, shared, db, alice):
        """Test that a split needs at least one share."""
        request = self._request(shared, my_share="0", their_share="0")
        assert handle_transaction_split_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST

    def test_wrong_group(self, shared, db, carol):
        """Test that a stranger cannot re-divide the split."""
        assert handle_transaction_split_post(self._request(shared), carol, db=db) == HTTPStatus.UNAUTHORIZED

    def test_mismatched_sid(self, shared, db, alice):
        """Test that the transaction must belong to the given split."""
        request = self._request(shared, sid="other-split")
        assert handle_transaction_split_post(request, alice, db=db) == HTTPStatus.BAD_REQUEST
