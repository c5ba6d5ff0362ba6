"""
Frames: Budgeting Periods

A frame is one period (e.g. a month) of a group's budget, keyed by
(gid, index). Looking at a frame that has never been used materializes a
"ghost": income and categories are carried forward from the nearest earlier
frame, or seeded with defaults if there is none. The ghost is thrown away
and rebuilt on every look until something real happens in the frame, at
which point mark_not_ghost() makes it permanent.

State per (gid, index):
    Absent    -> get_or_create_frame() -> Ghost (persisted, ghost = true)
    Ghost     -> get_or_create_frame() -> Ghost (rebuilt from scratch)
    Ghost     -> mark_not_ghost()      -> Persisted
    Persisted -> get_or_create_frame() -> Persisted (rollups attached)
"""

from typing import Optional
from uuid import uuid4

import structlog

from budgetframes.db import Database, Tx, get_database
from budgetframes.models.ledger import Category, Frame, FrameIndex, GroupId
from budgetframes.models.money import Money
from budgetframes.services import categories


logger = structlog.get_logger(__name__)


def from_serialized(row: Optional[dict]) -> Optional[Frame]:
    if row is None:
        return None
    return Frame(
        gid=row["gid"],
        index=row["frame_index"],
        income=Money(row["income"]),
        ghost=bool(row["ghost"]),
    )


def get_or_create_frame(
    gid: GroupId,
    index: FrameIndex,
    tx: Optional[Tx] = None,
    db: Optional[Database] = None,
) -> Frame:
    """
    Return the frame with its rollups, materializing a ghost if needed.

    Runs inside `tx` when given, otherwise in a transaction of its own.
    """
    if tx is not None:
        return _get_or_create_frame(gid, index, tx)
    with (db or get_database()).transaction() as own_tx:
        frame = _get_or_create_frame(gid, index, own_tx)
    return frame


def _get_or_create_frame(gid: GroupId, index: FrameIndex, tx: Tx) -> Frame:
    row = tx.one_or_none(
        "select * from frames where gid = :gid and frame_index = :index and ghost = :ghost",
        {"gid": gid, "index": index, "ghost": False},
    )
    if row:
        frame = from_serialized(row)
        frame.categories = get_categories(gid, index, tx)
        frame.balance = get_balance(gid, index, tx)
        frame.spending = get_spending(gid, index, tx)
        return frame

    delete_ghost(gid, index, tx)
    logger.debug("creating_ghost_frame", gid=gid, index=index)
    frame = Frame(gid=gid, index=index, ghost=True)
    frame.spending = get_spending(gid, index, tx)
    frame.balance = get_balance(gid, index, tx)

    prev_frame = get_previous_frame(gid, index, tx)
    if prev_frame:
        frame.income = prev_frame.income
        frame.categories = []
        for category in get_categories(gid, prev_frame.index, tx):
            carried = category.model_copy(update={"frame": index, "ghost": True})
            carried.balance = carried.budget.minus(categories.get_spending(carried.id, gid, index, tx))
            frame.categories.append(carried)
        frame.balance = frame.balance.plus(frame.income)
    else:
        logger.debug("no_previous_frame", gid=gid, index=index)
        frame.categories = []
        for ordering, name in enumerate(categories.default_categories()):
            frame.categories.append(Category(
                id=uuid4().hex,
                gid=gid,
                frame=index,
                name=name,
                ordering=ordering,
                budget=Money.zero(),
                balance=Money.zero(),
                ghost=True,
            ))

    tx.none(
        "insert into frames (gid, frame_index, income, ghost) values (:gid, :index, :income, :ghost)",
        {"gid": gid, "index": index, "income": frame.income.string(), "ghost": True},
    )
    for category in frame.categories:
        categories.insert(category, tx)

    logger.info(
        "ghost_frame_materialized",
        gid=gid,
        index=index,
        carried_forward=prev_frame is not None,
    )
    return frame


def delete_ghost(gid: GroupId, index: FrameIndex, tx: Tx) -> None:
    params = {"gid": gid, "index": index, "ghost": True}
    tx.none(
        "delete from categories where gid = :gid and frame = :index and ghost = :ghost",
        params,
    )
    tx.none(
        "delete from frames where gid = :gid and frame_index = :index and ghost = :ghost",
        params,
    )


def mark_not_ghost(gid: GroupId, index: FrameIndex, tx: Tx) -> None:
    """Promote a ghost frame and its categories to permanent records."""
    params = {"gid": gid, "index": index, "ghost": False}
    tx.none(
        "update frames set ghost = :ghost where gid = :gid and frame_index = :index",
        params,
    )
    tx.none(
        "update categories set ghost = :ghost where gid = :gid and frame = :index",
        params,
    )


def get_income(gid: GroupId, index: FrameIndex, tx: Tx) -> Money:
    row = tx.one_or_none(
        "select income from frames where gid = :gid and frame_index = :index",
        {"gid": gid, "index": index},
    )
    return Money(row["income"]) if row else Money.zero()


def set_income(gid: GroupId, index: FrameIndex, income: Money, tx: Tx) -> None:
    tx.none(
        "update frames set income = :income where gid = :gid and frame_index = :index",
        {"gid": gid, "index": index, "income": income.string()},
    )


def get_balance(gid: GroupId, index: FrameIndex, tx: Tx) -> Money:
    """All income up to and including this frame minus all alive spending up to it."""
    spent = tx.many_or_none(
        "select amount from transactions where gid = :gid and frame <= :index and alive = :alive",
        {"gid": gid, "index": index, "alive": True},
    )
    earned = tx.many_or_none(
        "select income from frames where gid = :gid and frame_index <= :index",
        {"gid": gid, "index": index},
    )
    total_spent = Money.sum(row["amount"] for row in spent)
    total_income = Money.sum(row["income"] for row in earned)
    return total_income.minus(total_spent)


def get_spending(gid: GroupId, index: FrameIndex, tx: Tx) -> Money:
    rows = tx.many_or_none(
        "select amount from transactions where gid = :gid and frame = :index and alive = :alive",
        {"gid": gid, "index": index, "alive": True},
    )
    return Money.sum(row["amount"] for row in rows)


def get_categories(gid: GroupId, index: FrameIndex, tx: Tx) -> list[Category]:
    rows = tx.many_or_none(
        "select * from categories where gid = :gid and frame = :index and alive = :alive "
        "order by ordering asc",
        {"gid": gid, "index": index, "alive": True},
    )
    result = []
    for row in rows:
        category = categories.from_serialized(row)
        category.balance = category.budget.minus(categories.get_spending(category.id, gid, index, tx))
        result.append(category)
    return result


def get_previous_frame(gid: GroupId, index: FrameIndex, tx: Tx) -> Optional[Frame]:
    row = tx.one_or_none(
        "select * from frames where gid = :gid and frame_index < :index "
        "order by frame_index desc limit 1",
        {"gid": gid, "index": index},
    )
    return from_serialized(row)


def promote_frame(gid: GroupId, index: FrameIndex, tx: Tx) -> None:
    """
    Make sure the frame exists and is permanent.

    An existing ghost is promoted as it is, so ids the client has already
    seen (e.g. of seeded categories) stay valid.
    """
    row = tx.one_or_none(
        "select ghost from frames where gid = :gid and frame_index = :index",
        {"gid": gid, "index": index},
    )
    if row is None:
        _get_or_create_frame(gid, index, tx)
    mark_not_ghost(gid, index, tx)
