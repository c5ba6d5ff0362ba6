"""
Transaction Request Handlers

Each handler validates its request, runs all of its writes inside one
database transaction and returns either the created object or a status code:

    204  done, nothing to return
    400  invalid value, unknown/foreign transaction on delete, or an edit
         that is not allowed on a shared transaction
    401  the transaction belongs to another group
"""

from http import HTTPStatus
from typing import Any, Callable, Optional, Union
from uuid import uuid4

import structlog

from budgetframes.audit import get_audit_logger
from budgetframes.db import Database, Tx, get_database
from budgetframes.models.audit import AuditEventBuilder
from budgetframes.models.ledger import (
    AddTransactionRequest,
    DeleteTransactionRequest,
    Split,
    Transaction,
    TransactionAmountRequest,
    TransactionCategoryRequest,
    TransactionDateRequest,
    TransactionDescriptionRequest,
    TransactionSplitRequest,
    User,
)
from budgetframes.services import categories, frames, payments, transactions, users
from budgetframes.services.transactions import distribute_total, split_balance
from budgetframes.validation import TransactionValidator


logger = structlog.get_logger(__name__)

_validator = TransactionValidator()

TX_FIELDS = ("amount", "date", "description", "category")


def _is_shared_field(field: str) -> bool:
    """Fields kept identical on both sides of a split."""
    return field == "date" or field == "description"


def _can_edit_shared(field: str) -> bool:
    return field != "amount"


def handle_transaction_post(
    request: AddTransactionRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Union[Transaction, HTTPStatus]:
    result = _validator.validate_new_transaction(request)
    if not result.is_valid:
        logger.info("transaction_rejected", uid=actor.uid, issues=result.error_count)
        get_audit_logger().log_validation_failed(
            actor_uid=actor.uid,
            operation="transaction_post",
            issues=[issue.model_dump() for issue in result.issues],
        )
        return HTTPStatus.BAD_REQUEST

    split_request = request.split
    other = split_request.with_ if split_request else None
    payer = None
    if split_request:
        payer = actor.uid if split_request.i_paid else other

    with (db or get_database()).transaction() as tx:
        if other and not users.is_friend(actor.uid, other, tx):
            return HTTPStatus.BAD_REQUEST

        gid = users.get_default_group(actor, tx)
        if request.category and categories.get_category(request.category, gid, request.frame, tx) is None:
            return HTTPStatus.BAD_REQUEST
        frames.promote_frame(gid, request.frame, tx)
        transaction = Transaction(
            id=uuid4().hex,
            gid=gid,
            frame=request.frame,
            amount=request.amount,
            description=request.description,
            category=request.category or None,
            date=request.date,
        )
        transactions.insert(transaction, tx)

        if other:
            friend = users.get_friend(other, tx)
            frames.promote_frame(friend.gid, request.frame, tx)
            mirrored = Transaction(
                id=uuid4().hex,
                gid=friend.gid,
                frame=request.frame,
                amount=split_request.other_amount,
                description=request.description,
                category=None,
                date=request.date,
            )
            transactions.insert(mirrored, tx)

            split = Split(
                id=uuid4().hex,
                with_=friend,
                settled=False,
                my_share=split_request.my_share,
                their_share=split_request.their_share,
                other_amount=split_request.other_amount,
                payer=payer,
            )
            tx.none(
                "insert into shared_transactions (id, payer, settled) values (:sid, :payer, :settled)",
                {"sid": split.id, "payer": payer, "settled": False},
            )
            for tid, share in ((transaction.id, split.my_share), (mirrored.id, split.their_share)):
                tx.none(
                    "insert into transaction_splits (tid, sid, share) values (:tid, :sid, :share)",
                    {"tid": tid, "sid": split.id, "share": share.string()},
                )
            payments.add_to_balance(
                actor.uid,
                other,
                split_balance(
                    user=actor.uid,
                    other_user=other,
                    amount=request.amount,
                    other_amount=split_request.other_amount,
                    payer=payer,
                ),
                tx,
            )
            transaction.split = split

    get_audit_logger().log(AuditEventBuilder.transaction_created(
        transaction_id=transaction.id,
        actor_uid=actor.uid,
        amount=transaction.amount.string(),
        frame=transaction.frame,
        split_id=transaction.split.id if transaction.split else None,
    ))
    return transaction


def handle_transaction_delete(
    request: DeleteTransactionRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    linked = None
    with (db or get_database()).transaction() as tx:
        if not transactions.can_user_edit(request.id, actor.uid, tx):
            # Unknown, already deleted or someone else's: indistinguishable to the caller
            return HTTPStatus.BAD_REQUEST

        existing = transactions.get_transaction(request.id, tx)
        if existing.split:
            contribution = transactions.get_balance_from_db(existing.id, tx)
            payments.add_to_balance(actor.uid, existing.split.with_.uid, contribution.negate(), tx)
            linked = transactions.get_other_tid(existing.id, existing.split.id, tx)
            if linked:
                transactions.delete_transaction(linked, tx)
        transactions.delete_transaction(request.id, tx)

    get_audit_logger().log(AuditEventBuilder.transaction_deleted(
        transaction_id=request.id,
        actor_uid=actor.uid,
        linked_id=linked,
    ))
    return HTTPStatus.NO_CONTENT


def handle_transaction_description_post(
    request: TransactionDescriptionRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    return handle_transaction_update_post(
        "description", request, actor,
        is_valid=lambda d: bool(d),
        db=db,
    )


def handle_transaction_amount_post(
    request: TransactionAmountRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    return handle_transaction_update_post(
        "amount", request, actor,
        is_valid=lambda amount: amount.is_valid(),
        transform=lambda amount: amount.string(),
        db=db,
    )


def handle_transaction_date_post(
    request: TransactionDateRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    return handle_transaction_update_post(
        "date", request, actor,
        transform=lambda d: d.isoformat(),
        db=db,
    )


def _category_exists(existing: Transaction, category: Optional[str], tx: Tx) -> bool:
    if not category:
        return True
    return categories.get_category(category, existing.gid, existing.frame, tx) is not None


def handle_transaction_category_post(
    request: TransactionCategoryRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    return handle_transaction_update_post(
        "category", request, actor,
        transform=lambda c: c or None,
        verify=_category_exists,
        db=db,
    )


def handle_transaction_update_post(
    field: str,
    request: Any,
    actor: User,
    is_valid: Optional[Callable[[Any], bool]] = None,
    transform: Optional[Callable[[Any], Optional[str]]] = None,
    verify: Optional[Callable[[Transaction, Any, Tx], bool]] = None,
    db: Optional[Database] = None,
) -> HTTPStatus:
    """
    Set one field of a transaction.

    Args:
        field: One of amount, date, description, category
        request: Request carrying `id` and an attribute named `field`
        is_valid: Predicate on the raw value, checked before any database work
        transform: Turns the raw value into what is stored; required unless
                   the value is already a string
        verify: Predicate on (existing transaction, raw value, tx), checked
                inside the transaction

    Raises:
        ValueError: If `field` is not an editable transaction field
        TypeError: If a non-string value comes without a transform
    """
    if field not in TX_FIELDS:
        raise ValueError(f"Not an editable transaction field: {field}")
    value = getattr(request, field)
    if is_valid is None:
        is_valid = lambda _: True  # noqa: E731
    if transform is None:
        if isinstance(value, str):
            transform = lambda s: s  # noqa: E731
        else:
            raise TypeError(f"Must provide a transform for a non-string value in {field}")
    if not is_valid(value):
        return HTTPStatus.BAD_REQUEST

    update_linked = _is_shared_field(field)
    stored = transform(value)
    linked = None
    with (db or get_database()).transaction() as tx:
        existing = transactions.get_transaction(request.id, tx)
        if existing is None or not existing.alive:
            return HTTPStatus.BAD_REQUEST
        if existing.gid != users.get_default_group(actor, tx):
            return HTTPStatus.UNAUTHORIZED
        if existing.split and not _can_edit_shared(field):
            logger.info("shared_field_edit_refused", field=field, tid=existing.id)
            return HTTPStatus.BAD_REQUEST
        if verify is not None and not verify(existing, value, tx):
            return HTTPStatus.BAD_REQUEST

        query = f"update transactions set {field} = :value where id = :id"
        tx.none(query, {"value": stored, "id": existing.id})
        if update_linked and existing.split:
            linked = transactions.get_other_tid(existing.id, existing.split.id, tx)
            tx.none(query, {"value": stored, "id": linked})

    get_audit_logger().log(AuditEventBuilder.transaction_updated(
        transaction_id=request.id,
        actor_uid=actor.uid,
        field=field,
        value=stored,
        propagated=linked is not None,
    ))
    return HTTPStatus.NO_CONTENT


def handle_transaction_split_post(
    request: TransactionSplitRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    result = _validator.validate_split_update(request)
    if not result.is_valid:
        get_audit_logger().log_validation_failed(
            actor_uid=actor.uid,
            operation="transaction_split_post",
            issues=[issue.model_dump() for issue in result.issues],
        )
        return HTTPStatus.BAD_REQUEST

    tid, sid = request.tid, request.sid
    my_amount, other_amount = distribute_total(request.total, request.my_share, request.their_share)
    with (db or get_database()).transaction() as tx:
        existing = transactions.get_transaction(tid, tx)
        if existing is None or not existing.alive:
            return HTTPStatus.BAD_REQUEST
        if existing.gid != users.get_default_group(actor, tx):
            return HTTPStatus.UNAUTHORIZED
        if existing.split is None or existing.split.id != sid:
            return HTTPStatus.BAD_REQUEST

        other_tid = transactions.get_other_tid(tid, sid, tx)
        if other_tid is None:
            return HTTPStatus.BAD_REQUEST
        other_uid = transactions.get_user(other_tid, tx)
        payer = actor.uid if request.i_paid else other_uid

        # Update the friendship balance
        prev_balance = transactions.get_balance_from_db(tid, tx)
        new_balance = split_balance(
            user=actor.uid,
            other_user=other_uid,
            amount=my_amount,
            other_amount=other_amount,
            payer=payer,
        )
        balance_delta = new_balance.minus(prev_balance)
        payments.add_to_balance(actor.uid, other_uid, balance_delta, tx)

        for row_id, amount, share in (
            (tid, my_amount, request.my_share),
            (other_tid, other_amount, request.their_share),
        ):
            tx.none(
                "update transactions set amount = :amount where id = :id",
                {"amount": amount.string(), "id": row_id},
            )
            tx.none(
                "update transaction_splits set share = :share where tid = :tid",
                {"share": share.string(), "tid": row_id},
            )
        tx.none(
            "update shared_transactions set payer = :payer where id = :sid",
            {"payer": payer, "sid": sid},
        )

    get_audit_logger().log(AuditEventBuilder.split_updated(
        split_id=sid,
        actor_uid=actor.uid,
        my_amount=my_amount.string(),
        other_amount=other_amount.string(),
        balance_delta=balance_delta.string(),
    ))
    return HTTPStatus.NO_CONTENT
