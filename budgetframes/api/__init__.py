"""
Request handlers.

Handlers take a parsed request model and the acting user, and return a
model, an ErrorResponse, an HTTP status code, or None.
"""

from budgetframes.api.frames import (
    handle_category_budget_post,
    handle_category_delete,
    handle_category_name_post,
    handle_category_post,
    handle_frame_get,
    handle_income_post,
)
from budgetframes.api.transactions import (
    handle_transaction_amount_post,
    handle_transaction_category_post,
    handle_transaction_date_post,
    handle_transaction_delete,
    handle_transaction_description_post,
    handle_transaction_post,
    handle_transaction_split_post,
    handle_transaction_update_post,
)
from budgetframes.api.user import (
    handle_add_friend_post,
    handle_change_name_post,
    handle_friend_delete,
    handle_friends_get,
    handle_payment_post,
    handle_reject_friend_post,
)

__all__ = [
    "handle_category_budget_post",
    "handle_category_delete",
    "handle_category_name_post",
    "handle_category_post",
    "handle_frame_get",
    "handle_income_post",
    "handle_transaction_amount_post",
    "handle_transaction_category_post",
    "handle_transaction_date_post",
    "handle_transaction_delete",
    "handle_transaction_description_post",
    "handle_transaction_post",
    "handle_transaction_split_post",
    "handle_transaction_update_post",
    "handle_add_friend_post",
    "handle_change_name_post",
    "handle_friend_delete",
    "handle_friends_get",
    "handle_payment_post",
    "handle_reject_friend_post",
]
