"""
Balance Ledger Between Friends

A signed running total of who owes whom, one row per pair of users.
Rows are stored with the smaller uid first; the stored balance is what the
second user owes the first.

Updates create the pair's row if needed (ignoring a concurrent insert),
then lock it before reading, so concurrent splits and payments between the
same two users serialize on the row instead of overwriting each other.
"""

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from budgetframes.db import Tx
from budgetframes.db.schema import balances
from budgetframes.models.ledger import UserId
from budgetframes.models.money import Money


# Dialects with an INSERT ... ON CONFLICT DO NOTHING construct
_INSERT_IGNORING_CONFLICT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _canonical(uid: UserId, other: UserId, amount: Money) -> tuple[UserId, UserId, Money]:
    if uid < other:
        return uid, other, amount
    return other, uid, amount.negate()


def _pair(low: UserId, high: UserId):
    return (balances.c.low_uid == low) & (balances.c.high_uid == high)


def locked_balance_query(low: UserId, high: UserId):
    """Select a pair's balance row, locking it until the transaction ends."""
    return select(balances.c.balance).where(_pair(low, high)).with_for_update()


def _ensure_row(low: UserId, high: UserId, tx: Tx) -> None:
    values = {"low_uid": low, "high_uid": high, "balance": Money.zero().string()}
    insert = _INSERT_IGNORING_CONFLICT.get(tx.dialect)
    if insert is not None:
        tx.none(insert(balances).values(**values).on_conflict_do_nothing())
        return
    if tx.one_or_none(select(balances.c.balance).where(_pair(low, high))) is None:
        tx.none(balances.insert().values(**values))


def add_to_balance(uid: UserId, other: UserId, amount: Money, tx: Tx) -> None:
    """Record that other owes uid `amount` more (negative: uid owes other)."""
    low, high, delta = _canonical(uid, other, amount)
    _ensure_row(low, high, tx)
    row = tx.one(locked_balance_query(low, high))
    tx.none(
        update(balances)
        .where(_pair(low, high))
        .values(balance=Money(row["balance"]).plus(delta).string())
    )


def get_balance_between(uid: UserId, other: UserId, tx: Tx) -> Money:
    """What other owes uid."""
    low, high, _ = _canonical(uid, other, Money.zero())
    row = tx.one_or_none(
        "select balance from balances where low_uid = :low and high_uid = :high",
        {"low": low, "high": high},
    )
    if row is None:
        return Money.zero()
    balance = Money(row["balance"])
    return balance if uid == low else balance.negate()
