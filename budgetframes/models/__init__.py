"""
Data Models Package

This package contains the Money type and all Pydantic models used by the ledger.
All data flowing through the handlers must conform to these schemas.
"""

from budgetframes.models.money import Money
from budgetframes.models.ledger import (
    AddCategoryRequest,
    AddTransactionRequest,
    Category,
    CategoryBudgetRequest,
    CategoryNameRequest,
    DeleteCategoryRequest,
    DeleteTransactionRequest,
    ErrorResponse,
    Frame,
    FrameRequest,
    Friend,
    FriendRequest,
    IncomeRequest,
    NameRequest,
    PaymentRequest,
    Split,
    SplitRequest,
    Transaction,
    TransactionAmountRequest,
    TransactionCategoryRequest,
    TransactionDateRequest,
    TransactionDescriptionRequest,
    TransactionSplitRequest,
    User,
    ValidationIssue,
    ValidationResult,
)
from budgetframes.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    "Money",
    # Ledger models
    "Category",
    "ErrorResponse",
    "Frame",
    "Friend",
    "Split",
    "Transaction",
    "User",
    "ValidationIssue",
    "ValidationResult",
    # Requests
    "AddCategoryRequest",
    "AddTransactionRequest",
    "CategoryBudgetRequest",
    "CategoryNameRequest",
    "DeleteCategoryRequest",
    "DeleteTransactionRequest",
    "FrameRequest",
    "FriendRequest",
    "IncomeRequest",
    "NameRequest",
    "PaymentRequest",
    "SplitRequest",
    "TransactionAmountRequest",
    "TransactionCategoryRequest",
    "TransactionDateRequest",
    "TransactionDescriptionRequest",
    "TransactionSplitRequest",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
