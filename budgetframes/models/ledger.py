"""
Core Data Models for the Ledger

These models define the shapes of everything the handlers accept and return:
users and friends, transactions and splits, frames and categories, and the
request bodies for every endpoint.

DESIGN DECISION: Wire names are camelCase (the web client's convention),
Python attributes are snake_case. Models accept either on input and
serialize by alias.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from budgetframes.models.money import Money


UserId = str
GroupId = str
TransactionId = str
SplitId = str
CategoryId = str
FrameIndex = int


class LedgerModel(BaseModel):
    """Base for all ledger models: camelCase aliases, whitespace stripped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# PEOPLE
# =============================================================================

class User(LedgerModel):
    """An account holder. Every user owns exactly one default group."""

    uid: UserId
    email: str
    name: Optional[str] = None
    gid: GroupId


class Friend(LedgerModel):
    """Another user, as seen by someone they are friends with."""

    uid: UserId
    email: str
    name: Optional[str] = None
    gid: GroupId
    balance: Optional[Money] = Field(
        default=None,
        description="What this friend owes the viewer (negative: viewer owes them)",
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Split(LedgerModel):
    """
    The link between two transactions that record one shared expense.

    Seen from the side of the user who owns the transaction it is attached to.
    """

    id: SplitId
    with_: Friend = Field(..., alias="with")
    settled: bool = False
    my_share: Money
    their_share: Money
    other_amount: Money
    payer: UserId


class Transaction(LedgerModel):
    """A single ledger entry inside a group's frame."""

    id: TransactionId
    gid: GroupId
    frame: FrameIndex
    amount: Money
    description: str
    category: Optional[CategoryId] = None
    date: date
    alive: bool = True
    split: Optional[Split] = None


# =============================================================================
# FRAMES AND CATEGORIES
# =============================================================================

class Category(LedgerModel):
    """A budget category within one frame."""

    id: CategoryId
    gid: GroupId
    frame: FrameIndex
    name: str
    ordering: int = 0
    budget: Money = Field(default_factory=Money.zero)
    balance: Optional[Money] = None
    ghost: bool = False
    alive: bool = True


class Frame(LedgerModel):
    """
    A budgeting period for a group.

    A ghost frame exists only because someone looked at it; it is promoted
    to a real frame once activity happens inside it.
    """

    gid: GroupId
    index: FrameIndex
    income: Money = Field(default_factory=Money.zero)
    balance: Money = Field(default_factory=Money.zero)
    spending: Optional[Money] = None
    categories: Optional[list[Category]] = None
    ghost: bool = False


# =============================================================================
# REQUESTS
# =============================================================================

class SplitRequest(LedgerModel):
    with_: UserId = Field(..., alias="with")
    i_paid: bool = Field(..., alias="iPaid")
    other_amount: Money
    my_share: Money
    their_share: Money


class AddTransactionRequest(LedgerModel):
    frame: FrameIndex
    amount: Money
    description: str
    category: Optional[CategoryId] = None
    date: date
    split: Optional[SplitRequest] = None


class DeleteTransactionRequest(LedgerModel):
    id: TransactionId


class TransactionDescriptionRequest(LedgerModel):
    id: TransactionId
    description: str


class TransactionAmountRequest(LedgerModel):
    id: TransactionId
    amount: Money


class TransactionDateRequest(LedgerModel):
    id: TransactionId
    date: date


class TransactionCategoryRequest(LedgerModel):
    id: TransactionId
    category: Optional[CategoryId] = None


class TransactionSplitRequest(LedgerModel):
    tid: Optional[TransactionId] = None
    sid: Optional[SplitId] = None
    total: Money
    my_share: Money
    their_share: Money
    i_paid: bool = Field(..., alias="iPaid")


class FriendRequest(LedgerModel):
    email: str


class NameRequest(LedgerModel):
    name: str = Field(..., min_length=1, max_length=100)


class PaymentRequest(LedgerModel):
    email: str
    amount: Money


class FrameRequest(LedgerModel):
    index: FrameIndex


class IncomeRequest(LedgerModel):
    frame: FrameIndex
    income: Money


class AddCategoryRequest(LedgerModel):
    frame: FrameIndex
    name: str = Field(..., min_length=1, max_length=100)


class CategoryBudgetRequest(LedgerModel):
    id: CategoryId
    frame: FrameIndex
    budget: Money


class CategoryNameRequest(LedgerModel):
    id: CategoryId
    frame: FrameIndex
    name: str = Field(..., min_length=1, max_length=100)


class DeleteCategoryRequest(LedgerModel):
    id: CategoryId
    frame: FrameIndex


# =============================================================================
# RESPONSES
# =============================================================================

class ErrorResponse(LedgerModel):
    """Structured error returned by handlers instead of a bare status code."""

    code: int
    message: str


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in a request."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_amount', 'split_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one request before anything is written."""

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
