"""
Relational Schema

Table definitions for the ledger. Queries are written as SQL text against
these tables; the MetaData here is used to create them.

Monetary columns are TEXT holding canonical decimal strings ("12.50").
"""

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
)


metadata = MetaData()

ID = String(64)
MONEY = String(32)


users = Table(
    "users",
    metadata,
    Column("uid", ID, primary_key=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("name", String(100)),
    Column("gid", ID, nullable=False),
)

friendships = Table(
    "friendships",
    metadata,
    Column("uid", ID, nullable=False),
    Column("friend", ID, nullable=False),
    Column("alive", Boolean, nullable=False, default=True),
    PrimaryKeyConstraint("uid", "friend"),
)

# balance = what high_uid owes low_uid
balances = Table(
    "balances",
    metadata,
    Column("low_uid", ID, nullable=False),
    Column("high_uid", ID, nullable=False),
    Column("balance", MONEY, nullable=False),
    PrimaryKeyConstraint("low_uid", "high_uid"),
)

frames = Table(
    "frames",
    metadata,
    Column("gid", ID, nullable=False),
    Column("frame_index", Integer, nullable=False),
    Column("income", MONEY, nullable=False),
    Column("ghost", Boolean, nullable=False, default=False),
    PrimaryKeyConstraint("gid", "frame_index"),
)

categories = Table(
    "categories",
    metadata,
    Column("id", ID, nullable=False),
    Column("gid", ID, nullable=False),
    Column("frame", Integer, nullable=False),
    Column("name", String(100), nullable=False),
    Column("ordering", Integer, nullable=False, default=0),
    Column("budget", MONEY, nullable=False),
    Column("ghost", Boolean, nullable=False, default=False),
    Column("alive", Boolean, nullable=False, default=True),
    PrimaryKeyConstraint("id", "frame"),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", ID, primary_key=True),
    Column("gid", ID, nullable=False, index=True),
    Column("frame", Integer, nullable=False),
    Column("amount", MONEY, nullable=False),
    Column("description", Text, nullable=False),
    Column("category", ID),
    Column("date", String(10), nullable=False),
    Column("alive", Boolean, nullable=False, default=True),
)

shared_transactions = Table(
    "shared_transactions",
    metadata,
    Column("id", ID, primary_key=True),
    Column("payer", ID, nullable=False),
    Column("settled", Boolean, nullable=False, default=False),
)

transaction_splits = Table(
    "transaction_splits",
    metadata,
    Column("tid", ID, primary_key=True),
    Column("sid", ID, nullable=False, index=True),
    Column("share", MONEY, nullable=False),
)

audit_events = Table(
    "audit_events",
    metadata,
    Column("event_id", String(36), primary_key=True),
    Column("timestamp", String(40), nullable=False),
    Column("event_type", String(40), nullable=False),
    Column("severity", String(10), nullable=False),
    Column("entity_type", String(40)),
    Column("entity_id", String(140)),
    Column("actor_uid", ID),
    Column("description", String(500), nullable=False),
    Column("details_json", Text),
    Column("error_message", Text),
    Column("is_user_action", Boolean, nullable=False),
)
