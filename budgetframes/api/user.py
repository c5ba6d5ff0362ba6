"""
User and Friend Request Handlers
"""

from http import HTTPStatus
from typing import Optional, Union

import structlog

from budgetframes.audit import get_audit_logger
from budgetframes.db import Database, get_database
from budgetframes.models.audit import AuditEventBuilder
from budgetframes.models.ledger import (
    ErrorResponse,
    Friend,
    FriendRequest,
    NameRequest,
    PaymentRequest,
    User,
)
from budgetframes.services import payments, users


logger = structlog.get_logger(__name__)

NO_SUCH_USER = "There is no user with that email"


def _no_such_user() -> ErrorResponse:
    return ErrorResponse(code=HTTPStatus.NOT_FOUND.value, message=NO_SUCH_USER)


def handle_add_friend_post(
    request: FriendRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Union[Friend, ErrorResponse, HTTPStatus]:
    with (db or get_database()).transaction() as tx:
        friend = users.get_friend_by_email(request.email, tx)
        if friend is None:
            return _no_such_user()
        if friend.uid == actor.uid:
            return HTTPStatus.BAD_REQUEST
        users.add_friend(actor.uid, friend.uid, tx)

    get_audit_logger().log(AuditEventBuilder.friend_added(actor.uid, friend.uid))
    return friend


def handle_reject_friend_post(
    request: FriendRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Optional[ErrorResponse]:
    with (db or get_database()).transaction() as tx:
        uid = users.get_user_by_email(request.email, tx)
        if not uid:
            return _no_such_user()
        users.delete_friendship(actor.uid, uid, tx)

    get_audit_logger().log(AuditEventBuilder.friend_rejected(actor.uid, uid))
    return None


def handle_friend_delete(
    request: FriendRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Optional[ErrorResponse]:
    with (db or get_database()).transaction() as tx:
        uid = users.get_user_by_email(request.email, tx)
        if not uid:
            return _no_such_user()
        users.soft_delete_friendship(actor.uid, uid, tx)

    get_audit_logger().log(AuditEventBuilder.friend_removed(actor.uid, uid))
    return None


def handle_change_name_post(
    request: NameRequest,
    actor: User,
    db: Optional[Database] = None,
) -> None:
    with (db or get_database()).transaction() as tx:
        users.set_name(actor.uid, request.name, tx)

    get_audit_logger().log(AuditEventBuilder.name_changed(actor.uid, request.name))
    return None


def handle_friends_get(actor: User, db: Optional[Database] = None) -> list[Friend]:
    """Mutual friends, each with the signed amount they owe the actor."""
    with (db or get_database()).transaction() as tx:
        friends = users.get_friends(actor.uid, tx)
    return friends


def handle_payment_post(
    request: PaymentRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Union[ErrorResponse, HTTPStatus]:
    """
    Record that the actor paid a friend outside of any shared expense.

    The friend then owes the actor `amount` more (or is owed that much less).
    """
    amount = request.amount
    if not amount.is_valid(allow_negative=False) or amount.is_zero():
        logger.info("payment_rejected", uid=actor.uid, amount=str(amount))
        return HTTPStatus.BAD_REQUEST

    with (db or get_database()).transaction() as tx:
        uid = users.get_user_by_email(request.email, tx)
        if not uid:
            return _no_such_user()
        if not users.is_friend(actor.uid, uid, tx):
            return HTTPStatus.BAD_REQUEST
        payments.add_to_balance(actor.uid, uid, amount, tx)

    get_audit_logger().log(AuditEventBuilder.payment_recorded(actor.uid, uid, amount.string()))
    return HTTPStatus.NO_CONTENT
