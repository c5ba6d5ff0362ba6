"""
Shared fixtures.

Every test gets its own SQLite file with the schema created, and three
users: alice and bob are friends, carol knows nobody.
"""

import pytest

from budgetframes.db import Database
from budgetframes.models import Money
from budgetframes.services import payments, users


@pytest.fixture
def db(tmp_path):
    database = Database(url=f"sqlite:///{tmp_path / 'ledger.db'}")
    database.create_schema()
    yield database
    database.dispose()


def _create_user(db, email, name):
    with db.transaction() as tx:
        return users.create_user(email, name, tx)


@pytest.fixture
def alice(db):
    return _create_user(db, "alice@example.com", "Alice")


@pytest.fixture
def bob(db, alice):
    bob = _create_user(db, "bob@example.com", "Bob")
    with db.transaction() as tx:
        users.add_friend(alice.uid, bob.uid, tx)
        users.add_friend(bob.uid, alice.uid, tx)
    return bob


@pytest.fixture
def carol(db):
    return _create_user(db, "carol@example.com", "Carol")


@pytest.fixture
def balance_between(db):
    """What `other` owes `uid` right now."""
    def _balance(uid, other) -> Money:
        with db.transaction() as tx:
            return payments.get_balance_between(uid, other, tx)
    return _balance


@pytest.fixture
def fetch_transaction(db):
    """Load a transaction row as a dict, alive or not."""
    def _fetch(tid):
        with db.transaction() as tx:
            return tx.one_or_none("select * from transactions where id = :id", {"id": tid})
    return _fetch
