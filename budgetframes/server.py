"""
HTTP Server

Thin FastAPI layer over the request handlers. Bodies are parsed into the
request models, the acting user comes from the X-User-Id header, and
handler results are turned into responses:

    int / HTTPStatus  -> empty response with that status
    ErrorResponse     -> {code, message} with status `code`
    None              -> 200 null
    model / list      -> 200 JSON (camelCase)
"""

from typing import Any, Optional

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from budgetframes import api
from budgetframes.audit import configure_logging, get_audit_logger
from budgetframes.db import Database, StorageError, get_database
from budgetframes.models.ledger import (
    AddCategoryRequest,
    AddTransactionRequest,
    CategoryBudgetRequest,
    CategoryNameRequest,
    DeleteCategoryRequest,
    DeleteTransactionRequest,
    ErrorResponse,
    FrameRequest,
    FriendRequest,
    IncomeRequest,
    NameRequest,
    PaymentRequest,
    TransactionAmountRequest,
    TransactionCategoryRequest,
    TransactionDateRequest,
    TransactionDescriptionRequest,
    TransactionSplitRequest,
    User,
)
from budgetframes.services import users


logger = structlog.get_logger(__name__)


def _dump(model: BaseModel) -> Any:
    return model.model_dump(mode="json", by_alias=True)


def to_response(result: Any) -> Response:
    """Turn a handler result into an HTTP response."""
    if isinstance(result, ErrorResponse):
        return JSONResponse(status_code=result.code, content=_dump(result))
    if isinstance(result, int):
        return Response(status_code=int(result))
    if result is None:
        return JSONResponse(content=None)
    if isinstance(result, list):
        return JSONResponse(content=[_dump(item) for item in result])
    return JSONResponse(content=_dump(result))


def create_app(db: Optional[Database] = None) -> FastAPI:
    """
    Build the application around a database.

    Creates the schema if needed. Without `db` the cached database from
    settings is used.
    """
    configure_logging()
    database = db or get_database()
    database.create_schema()

    app = FastAPI(title="budgetframes")

    def current_user(x_user_id: Optional[str] = Header(None)) -> User:
        if not x_user_id:
            raise HTTPException(status_code=401, detail="Missing user identity.")
        with database.transaction() as tx:
            user = users.get_user(x_user_id, tx)
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user.")
        return user

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        get_audit_logger().log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"path": request.url.path},
        )
        return JSONResponse(
            status_code=500,
            content=_dump(ErrorResponse(code=500, message="Storage error")),
        )

    # -- transactions --

    @app.post("/api/transaction")
    def post_transaction(request: AddTransactionRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_post(request, actor, database))

    @app.delete("/api/transaction")
    def delete_transaction(request: DeleteTransactionRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_delete(request, actor, database))

    @app.post("/api/transaction/description")
    def post_description(request: TransactionDescriptionRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_description_post(request, actor, database))

    @app.post("/api/transaction/amount")
    def post_amount(request: TransactionAmountRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_amount_post(request, actor, database))

    @app.post("/api/transaction/date")
    def post_date(request: TransactionDateRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_date_post(request, actor, database))

    @app.post("/api/transaction/category")
    def post_category_of_transaction(request: TransactionCategoryRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_category_post(request, actor, database))

    @app.post("/api/transaction/split")
    def post_split(request: TransactionSplitRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_transaction_split_post(request, actor, database))

    # -- friends --

    @app.post("/api/friend")
    def post_friend(request: FriendRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_add_friend_post(request, actor, database))

    @app.post("/api/friend/reject")
    def post_reject_friend(request: FriendRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_reject_friend_post(request, actor, database))

    @app.delete("/api/friend")
    def delete_friend(request: FriendRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_friend_delete(request, actor, database))

    @app.get("/api/friends")
    def get_friends(actor: User = Depends(current_user)):
        return to_response(api.handle_friends_get(actor, database))

    @app.post("/api/payment")
    def post_payment(request: PaymentRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_payment_post(request, actor, database))

    @app.post("/api/name")
    def post_name(request: NameRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_change_name_post(request, actor, database))

    # -- frames and categories --

    @app.get("/api/frame/{index}")
    def get_frame(index: int, actor: User = Depends(current_user)):
        return to_response(api.handle_frame_get(FrameRequest(index=index), actor, database))

    @app.post("/api/frame/income")
    def post_income(request: IncomeRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_income_post(request, actor, database))

    @app.post("/api/category")
    def post_category(request: AddCategoryRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_category_post(request, actor, database))

    @app.post("/api/category/budget")
    def post_category_budget(request: CategoryBudgetRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_category_budget_post(request, actor, database))

    @app.post("/api/category/name")
    def post_category_name(request: CategoryNameRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_category_name_post(request, actor, database))

    @app.delete("/api/category")
    def delete_category(request: DeleteCategoryRequest, actor: User = Depends(current_user)):
        return to_response(api.handle_category_delete(request, actor, database))

    logger.info("app_created", database=database.url)
    return app
