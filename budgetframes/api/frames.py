"""
Frame and Category Request Handlers

Viewing a frame may materialize a ghost. Every write (income, category
changes) promotes the frame to a permanent one first.
"""

from http import HTTPStatus
from typing import Optional

import structlog

from budgetframes.audit import get_audit_logger
from budgetframes.db import Database, get_database
from budgetframes.models.audit import AuditEventBuilder, AuditEventType
from budgetframes.models.ledger import (
    AddCategoryRequest,
    Category,
    CategoryBudgetRequest,
    CategoryNameRequest,
    DeleteCategoryRequest,
    Frame,
    FrameRequest,
    IncomeRequest,
    User,
)
from budgetframes.services import categories, frames, users


logger = structlog.get_logger(__name__)


def handle_frame_get(
    request: FrameRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Frame:
    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        frame = frames.get_or_create_frame(gid, request.index, tx)
    return frame


def handle_income_post(
    request: IncomeRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    if not request.income.is_valid(allow_negative=False):
        logger.info("income_rejected", uid=actor.uid, income=str(request.income))
        return HTTPStatus.BAD_REQUEST

    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        frames.promote_frame(gid, request.frame, tx)
        frames.set_income(gid, request.frame, request.income, tx)

    get_audit_logger().log(AuditEventBuilder.income_set(
        actor_uid=actor.uid,
        gid=gid,
        index=request.frame,
        income=request.income.string(),
    ))
    return HTTPStatus.NO_CONTENT


def handle_category_post(
    request: AddCategoryRequest,
    actor: User,
    db: Optional[Database] = None,
) -> Category:
    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        frames.promote_frame(gid, request.frame, tx)
        category = categories.add_category(gid, request.frame, request.name, tx)

    get_audit_logger().log(AuditEventBuilder.category_changed(
        AuditEventType.CATEGORY_CREATED,
        actor_uid=actor.uid,
        category_id=category.id,
        frame=request.frame,
        details={"name": category.name},
    ))
    return category


def handle_category_budget_post(
    request: CategoryBudgetRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    if not request.budget.is_valid(allow_negative=False):
        return HTTPStatus.BAD_REQUEST

    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        if categories.get_category(request.id, gid, request.frame, tx) is None:
            return HTTPStatus.BAD_REQUEST
        frames.promote_frame(gid, request.frame, tx)
        categories.set_budget(request.id, request.frame, request.budget, tx)

    get_audit_logger().log(AuditEventBuilder.category_changed(
        AuditEventType.CATEGORY_UPDATED,
        actor_uid=actor.uid,
        category_id=request.id,
        frame=request.frame,
        details={"budget": request.budget.string()},
    ))
    return HTTPStatus.NO_CONTENT


def handle_category_name_post(
    request: CategoryNameRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        if categories.get_category(request.id, gid, request.frame, tx) is None:
            return HTTPStatus.BAD_REQUEST
        frames.promote_frame(gid, request.frame, tx)
        categories.set_name(request.id, request.frame, request.name, tx)

    get_audit_logger().log(AuditEventBuilder.category_changed(
        AuditEventType.CATEGORY_UPDATED,
        actor_uid=actor.uid,
        category_id=request.id,
        frame=request.frame,
        details={"name": request.name},
    ))
    return HTTPStatus.NO_CONTENT


def handle_category_delete(
    request: DeleteCategoryRequest,
    actor: User,
    db: Optional[Database] = None,
) -> HTTPStatus:
    with (db or get_database()).transaction() as tx:
        gid = users.get_default_group(actor, tx)
        if categories.get_category(request.id, gid, request.frame, tx) is None:
            return HTTPStatus.BAD_REQUEST
        frames.promote_frame(gid, request.frame, tx)
        categories.delete_category(request.id, request.frame, tx)

    get_audit_logger().log(AuditEventBuilder.category_changed(
        AuditEventType.CATEGORY_DELETED,
        actor_uid=actor.uid,
        category_id=request.id,
        frame=request.frame,
    ))
    return HTTPStatus.NO_CONTENT
