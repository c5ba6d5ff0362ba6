"""
Transactions and Splits

A transaction is one ledger entry in a group's frame. A shared expense is
two transactions, one per user, linked through a split:

    shared_transactions(id, payer, settled)
    transaction_splits(tid, sid, share)   -- one row per side

The two amounts always add up to the expense total, divided in proportion
to the two shares (see distribute_total).
"""

from datetime import date
from decimal import ROUND_HALF_UP
from typing import Optional

from budgetframes.db import Tx
from budgetframes.models.ledger import (
    Split,
    SplitId,
    Transaction,
    TransactionId,
    UserId,
)
from budgetframes.models.money import CENT, Money
from budgetframes.services import users


# =============================================================================
# SPLIT ARITHMETIC
# =============================================================================

def distribute_total(total: Money, my_share: Money, their_share: Money) -> tuple[Money, Money]:
    """
    Divide `total` between two sides in proportion to their shares.

    My part is rounded half-up to the cent; the other side gets the rest,
    so the two parts always add up to exactly `total`.

    Raises:
        ValueError: If both shares are zero
    """
    shares = my_share.decimal + their_share.decimal
    if shares == 0:
        raise ValueError("At least one share must be non-zero")
    mine = (total.decimal * my_share.decimal / shares).quantize(CENT, rounding=ROUND_HALF_UP)
    return Money(mine), total.minus(mine)


def split_balance(
    user: UserId,
    other_user: UserId,
    amount: Money,
    other_amount: Money,
    payer: Optional[UserId],
) -> Money:
    """
    What `other_user` owes `user` because of one shared expense.

    Whoever paid is owed the other side's part of it.
    """
    if payer == user:
        return other_amount
    if payer == other_user:
        return amount.negate()
    return Money.zero()


# =============================================================================
# DATA ACCESS
# =============================================================================

def from_serialized(row: dict) -> Transaction:
    return Transaction(
        id=row["id"],
        gid=row["gid"],
        frame=row["frame"],
        amount=Money(row["amount"]),
        description=row["description"],
        category=row["category"],
        date=date.fromisoformat(row["date"]),
        alive=bool(row["alive"]),
    )


def insert(transaction: Transaction, tx: Tx) -> None:
    tx.none(
        "insert into transactions (id, gid, frame, amount, description, category, date, alive) "
        "values (:id, :gid, :frame, :amount, :description, :category, :date, :alive)",
        {
            "id": transaction.id,
            "gid": transaction.gid,
            "frame": transaction.frame,
            "amount": transaction.amount.string(),
            "description": transaction.description,
            "category": transaction.category,
            "date": transaction.date.isoformat(),
            "alive": transaction.alive,
        },
    )


def _load_split(tid: TransactionId, sid: SplitId, my_share: Money, tx: Tx) -> Split:
    shared = tx.one(
        "select payer, settled from shared_transactions where id = :sid",
        {"sid": sid},
    )
    other = tx.one(
        "select s.tid, s.share, t.amount from transaction_splits s "
        "join transactions t on t.id = s.tid where s.sid = :sid and s.tid <> :tid",
        {"sid": sid, "tid": tid},
    )
    return Split(
        id=sid,
        with_=users.get_friend(get_user(other["tid"], tx), tx),
        settled=bool(shared["settled"]),
        my_share=my_share,
        their_share=Money(other["share"]),
        other_amount=Money(other["amount"]),
        payer=shared["payer"],
    )


def get_transaction(tid: TransactionId, tx: Tx) -> Optional[Transaction]:
    """Load a transaction (alive or not) with its split, if it has one."""
    row = tx.one_or_none("select * from transactions where id = :id", {"id": tid})
    if row is None:
        return None
    transaction = from_serialized(row)
    split_row = tx.one_or_none(
        "select sid, share from transaction_splits where tid = :tid",
        {"tid": tid},
    )
    if split_row:
        transaction.split = _load_split(tid, split_row["sid"], Money(split_row["share"]), tx)
    return transaction


def can_user_edit(tid: TransactionId, uid: UserId, tx: Tx) -> bool:
    """True when the transaction exists, is alive and lives in the user's default group."""
    row = tx.one_or_none(
        "select t.id from transactions t join users u on u.gid = t.gid "
        "where t.id = :tid and u.uid = :uid and t.alive = :alive",
        {"tid": tid, "uid": uid, "alive": True},
    )
    return row is not None


def delete_transaction(tid: TransactionId, tx: Tx) -> None:
    tx.none("update transactions set alive = :alive where id = :id", {"id": tid, "alive": False})


def get_other_tid(tid: TransactionId, sid: SplitId, tx: Tx) -> Optional[TransactionId]:
    """The transaction on the other side of a split."""
    row = tx.one_or_none(
        "select tid from transaction_splits where sid = :sid and tid <> :tid",
        {"sid": sid, "tid": tid},
    )
    return row["tid"] if row else None


def get_user(tid: TransactionId, tx: Tx) -> Optional[UserId]:
    """The user whose default group holds the transaction."""
    row = tx.one_or_none(
        "select u.uid from users u join transactions t on t.gid = u.gid where t.id = :tid",
        {"tid": tid},
    )
    return row["uid"] if row else None


def get_balance_from_db(tid: TransactionId, tx: Tx) -> Money:
    """
    The current contribution of a shared transaction to the friend ledger,
    seen from the owner of `tid`. Zero for unshared transactions.
    """
    transaction = get_transaction(tid, tx)
    if transaction is None or transaction.split is None:
        return Money.zero()
    split = transaction.split
    return split_balance(
        user=get_user(tid, tx),
        other_user=split.with_.uid,
        amount=transaction.amount,
        other_amount=split.other_amount,
        payer=split.payer,
    )
