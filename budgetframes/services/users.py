"""
User and Friend Directory

Lookups by uid or email, friendship edges and default-group resolution.

Friendships are directed rows: a user "adds" someone by inserting their own
row. Two users are friends once alive rows exist in both directions.
"""

from typing import Optional
from uuid import uuid4

from budgetframes.db import NotFoundError, Tx
from budgetframes.models.ledger import Friend, GroupId, User, UserId
from budgetframes.services import payments


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(email: str, name: Optional[str], tx: Tx) -> User:
    """Create a user together with their default group."""
    user = User(
        uid=uuid4().hex,
        email=_normalize_email(email),
        name=name,
        gid=uuid4().hex,
    )
    tx.none(
        "insert into users (uid, email, name, gid) values (:uid, :email, :name, :gid)",
        user.model_dump(),
    )
    return user


def get_user(uid: UserId, tx: Tx) -> Optional[User]:
    row = tx.one_or_none("select * from users where uid = :uid", {"uid": uid})
    return User(**row) if row else None


def get_user_by_email(email: str, tx: Tx) -> Optional[UserId]:
    row = tx.one_or_none(
        "select uid from users where email = :email",
        {"email": _normalize_email(email)},
    )
    return row["uid"] if row else None


def get_friend(uid: UserId, tx: Tx) -> Friend:
    """
    Load a user as a Friend.

    Raises:
        NotFoundError: If no such user exists
    """
    row = tx.one_or_none(
        "select uid, email, name, gid from users where uid = :uid",
        {"uid": uid},
    )
    if row is None:
        raise NotFoundError(f"No user {uid}")
    return Friend(**row)


def get_friend_by_email(email: str, tx: Tx) -> Optional[Friend]:
    uid = get_user_by_email(email, tx)
    return get_friend(uid, tx) if uid else None


def get_default_group(actor: User, tx: Tx) -> GroupId:
    """The group new transactions of this user are recorded in."""
    row = tx.one("select gid from users where uid = :uid", {"uid": actor.uid})
    return row["gid"]


def is_friend(uid: UserId, other: UserId, tx: Tx) -> bool:
    rows = tx.many_or_none(
        "select uid from friendships where alive = :alive and "
        "((uid = :uid and friend = :other) or (uid = :other and friend = :uid))",
        {"uid": uid, "other": other, "alive": True},
    )
    return len(rows) == 2


def get_friends(uid: UserId, tx: Tx) -> list[Friend]:
    """Mutual friends of a user, each with what they owe that user."""
    rows = tx.many_or_none(
        "select u.uid, u.email, u.name, u.gid from friendships mine "
        "join friendships theirs on theirs.uid = mine.friend and theirs.friend = mine.uid "
        "join users u on u.uid = mine.friend "
        "where mine.uid = :uid and mine.alive = :alive and theirs.alive = :alive "
        "order by u.email",
        {"uid": uid, "alive": True},
    )
    friends = []
    for row in rows:
        friend = Friend(**row)
        friend.balance = payments.get_balance_between(uid, friend.uid, tx)
        friends.append(friend)
    return friends


def add_friend(uid: UserId, friend: UserId, tx: Tx) -> None:
    """Insert or revive the uid -> friend edge."""
    updated = tx.none(
        "update friendships set alive = :alive where uid = :uid and friend = :friend",
        {"uid": uid, "friend": friend, "alive": True},
    )
    if not updated:
        tx.none(
            "insert into friendships (uid, friend, alive) values (:uid, :friend, :alive)",
            {"uid": uid, "friend": friend, "alive": True},
        )


def delete_friendship(uid: UserId, other: UserId, tx: Tx) -> None:
    """Remove both edges, e.g. when a friend request is rejected."""
    tx.none(
        "delete from friendships where (uid = :uid and friend = :other) "
        "or (uid = :other and friend = :uid)",
        {"uid": uid, "other": other},
    )


def soft_delete_friendship(uid: UserId, other: UserId, tx: Tx) -> None:
    """Mark both edges dead. The balance ledger between the two is kept."""
    tx.none(
        "update friendships set alive = :alive where (uid = :uid and friend = :other) "
        "or (uid = :other and friend = :uid)",
        {"uid": uid, "other": other, "alive": False},
    )


def set_name(uid: UserId, name: str, tx: Tx) -> None:
    tx.none("update users set name = :name where uid = :uid", {"uid": uid, "name": name})
