"""
Request Validation

DESIGN DECISION: Monetary input is validated before any database work.
A request that fails here is answered with 400 and nothing is written.

Checks:
- Every amount parses, is finite, has at most two decimal places
- Amounts on new transactions and splits are not negative
- Split shares are not both zero
- A new split's two amounts are exactly what distribute_total() produces
  for the submitted shares (compared as canonical strings)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the client can correct its request.
"""

from typing import Optional

from budgetframes.models.ledger import (
    AddTransactionRequest,
    TransactionSplitRequest,
    ValidationIssue,
    ValidationResult,
)
from budgetframes.models.money import Money
from budgetframes.services.transactions import distribute_total


class TransactionValidator:
    """Validates transaction and split requests."""

    def _check_amount(
        self,
        field: str,
        value: Money,
        allow_negative: bool = False,
    ) -> Optional[ValidationIssue]:
        if value.is_valid(allow_negative):
            return None
        return ValidationIssue(
            field=field,
            issue_type="invalid_amount",
            message=f"{field} is not a valid {'' if allow_negative else 'non-negative '}amount: {value}",
        )

    def _check_shares(self, my_share: Money, their_share: Money) -> Optional[ValidationIssue]:
        if my_share.is_zero() and their_share.is_zero():
            return ValidationIssue(
                field="shares",
                issue_type="zero_shares",
                message="At least one share must be greater than zero",
            )
        return None

    def validate_new_transaction(self, request: AddTransactionRequest) -> ValidationResult:
        """Validate a request to create a (possibly shared) transaction."""
        issues = []

        issue = self._check_amount("amount", request.amount)
        if issue:
            issues.append(issue)

        split = request.split
        if split is not None:
            for field, value in (
                ("otherAmount", split.other_amount),
                ("myShare", split.my_share),
                ("theirShare", split.their_share),
            ):
                issue = self._check_amount(field, value)
                if issue:
                    issues.append(issue)

            # Arithmetic needs every amount to be valid
            if not issues:
                issue = self._check_shares(split.my_share, split.their_share)
                if issue:
                    issues.append(issue)
                else:
                    total = request.amount.plus(split.other_amount)
                    amount, other_amount = distribute_total(total, split.my_share, split.their_share)
                    if (
                        amount.string() != request.amount.string()
                        or other_amount.string() != split.other_amount.string()
                    ):
                        issues.append(ValidationIssue(
                            field="split",
                            issue_type="split_mismatch",
                            message=(
                                f"Shares {split.my_share}/{split.their_share} of {total} give "
                                f"{amount}/{other_amount}, not {request.amount}/{split.other_amount}"
                            ),
                        ))

        return ValidationResult(issues=issues)

    def validate_split_update(self, request: TransactionSplitRequest) -> ValidationResult:
        """Validate a request to re-divide an existing split."""
        issues = []

        for field, value in (
            ("total", request.total),
            ("myShare", request.my_share),
            ("theirShare", request.their_share),
        ):
            issue = self._check_amount(field, value)
            if issue:
                issues.append(issue)

        for field, value in (("tid", request.tid), ("sid", request.sid)):
            if not value:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} is required",
                ))

        if not issues:
            issue = self._check_shares(request.my_share, request.their_share)
            if issue:
                issues.append(issue)

        return ValidationResult(issues=issues)
