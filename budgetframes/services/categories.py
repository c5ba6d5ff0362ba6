"""
Budget Categories

Categories belong to one frame of one group. A category keeps its id when
it is carried forward into the next frame, so rows are keyed by (id, frame).
"""

from typing import Optional
from uuid import uuid4

from budgetframes.config import get_settings
from budgetframes.db import Tx
from budgetframes.models.ledger import Category, CategoryId, FrameIndex, GroupId
from budgetframes.models.money import Money


def default_categories() -> list[str]:
    """Names seeded into a group's very first frame."""
    return get_settings().app.default_categories_list


def from_serialized(row: dict) -> Category:
    return Category(
        id=row["id"],
        gid=row["gid"],
        frame=row["frame"],
        name=row["name"],
        ordering=row["ordering"],
        budget=Money(row["budget"]),
        ghost=bool(row["ghost"]),
        alive=bool(row["alive"]),
    )


def get_spending(cid: CategoryId, gid: GroupId, frame: FrameIndex, tx: Tx) -> Money:
    """Sum of the group's alive transactions filed under this category in one frame."""
    rows = tx.many_or_none(
        "select amount from transactions where category = :cid and gid = :gid "
        "and frame = :frame and alive = :alive",
        {"cid": cid, "gid": gid, "frame": frame, "alive": True},
    )
    return Money.sum(row["amount"] for row in rows)


def get_category(
    cid: CategoryId,
    gid: GroupId,
    frame: FrameIndex,
    tx: Tx,
) -> Optional[Category]:
    """An alive category of the group in the given frame, with its balance."""
    row = tx.one_or_none(
        "select * from categories where id = :id and gid = :gid and frame = :frame "
        "and alive = :alive",
        {"id": cid, "gid": gid, "frame": frame, "alive": True},
    )
    if row is None:
        return None
    category = from_serialized(row)
    category.balance = category.budget.minus(get_spending(cid, gid, frame, tx))
    return category


def insert(category: Category, tx: Tx) -> None:
    tx.none(
        "insert into categories (id, gid, frame, name, ordering, budget, ghost, alive) "
        "values (:id, :gid, :frame, :name, :ordering, :budget, :ghost, :alive)",
        {
            "id": category.id,
            "gid": category.gid,
            "frame": category.frame,
            "name": category.name,
            "ordering": category.ordering,
            "budget": category.budget.string(),
            "ghost": category.ghost,
            "alive": category.alive,
        },
    )


def add_category(gid: GroupId, frame: FrameIndex, name: str, tx: Tx) -> Category:
    """Append a new category after the existing ones of the frame."""
    row = tx.one(
        "select max(ordering) as last from categories where gid = :gid and frame = :frame",
        {"gid": gid, "frame": frame},
    )
    ordering = 0 if row["last"] is None else row["last"] + 1
    category = Category(
        id=uuid4().hex,
        gid=gid,
        frame=frame,
        name=name,
        ordering=ordering,
        budget=Money.zero(),
        balance=Money.zero(),
    )
    insert(category, tx)
    return category


def set_budget(cid: CategoryId, frame: FrameIndex, budget: Money, tx: Tx) -> None:
    tx.none(
        "update categories set budget = :budget where id = :id and frame = :frame",
        {"id": cid, "frame": frame, "budget": budget.string()},
    )


def set_name(cid: CategoryId, frame: FrameIndex, name: str, tx: Tx) -> None:
    tx.none(
        "update categories set name = :name where id = :id and frame = :frame",
        {"id": cid, "frame": frame, "name": name},
    )


def delete_category(cid: CategoryId, frame: FrameIndex, tx: Tx) -> None:
    """Soft delete. Transactions keep pointing at the category id."""
    tx.none(
        "update categories set alive = :alive where id = :id and frame = :frame",
        {"id": cid, "frame": frame, "alive": False},
    )
