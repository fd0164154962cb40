"""
FastAPI REST API Module

HTTP surface for the account request form, manager decisions and the
notification inbox. Runs on port 8090 by default.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
import uvicorn

from . import __version__
from .config import get_config
from .exceptions import NotFoundError, PersistenceError, ValidationError
from .identifiers import generate_id
from .logging_config import correlation_scope, get_logger, setup_logging
from .notifications import NotificationService
from .schemas import (
    AccountRequestForm, AccountRequestResponse, AccountResponse, CreateUserRequest,
    DecisionRequest, InboxResponse, NotificationResponse, RejectRequest, UserResponse
)
from .system import BankingSystem
from .users import User

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

router = APIRouter()


def get_banking_system(request: Request) -> BankingSystem:
    return request.app.state.banking_system


def _user_response(user: User) -> UserResponse:
    return UserResponse(user_id=user.user_id, full_name=user.full_name, role=user.role)


# Users

@router.post("/customers", status_code=status.HTTP_201_CREATED, response_model=UserResponse, tags=["Users"])
def create_customer(body: CreateUserRequest, system: BankingSystem = Depends(get_banking_system)):
    """Register a customer"""
    return _user_response(system.register_customer(body.first_name, body.last_name))


@router.post("/managers", status_code=status.HTTP_201_CREATED, response_model=UserResponse, tags=["Users"])
def create_manager(body: CreateUserRequest, system: BankingSystem = Depends(get_banking_system)):
    """Register a bank manager"""
    return _user_response(system.register_bank_manager(body.first_name, body.last_name))


@router.get("/managers", response_model=List[UserResponse], tags=["Users"])
def list_managers(system: BankingSystem = Depends(get_banking_system)):
    """Managers a customer can address a request to"""
    return [_user_response(m) for m in system.account_requests.available_managers()]


# Account requests

@router.post("/account-requests", status_code=status.HTTP_201_CREATED,
             response_model=AccountRequestResponse, tags=["Account Requests"])
def submit_account_request(form: AccountRequestForm, system: BankingSystem = Depends(get_banking_system)):
    """Request a new account (created inactive until a manager approves it)"""
    customer = system.gateway.get_customer(form.customer_id)
    manager = system.gateway.get_bank_manager(form.manager_id) if form.manager_id else None
    request = system.account_requests.open_account_request(
        form.account_type, form.amount, manager=manager, customer=customer,
        currency_code=form.currency_code
    )
    return AccountRequestResponse.from_request(request)


@router.get("/managers/{manager_id}/account-requests",
            response_model=List[AccountRequestResponse], tags=["Account Requests"])
def list_pending_requests(manager_id: str, system: BankingSystem = Depends(get_banking_system)):
    """Pending requests addressed to a manager, oldest first"""
    manager = system.gateway.get_bank_manager(manager_id)
    return [AccountRequestResponse.from_request(r)
            for r in system.account_requests.get_pending_requests(manager)]


@router.post("/account-requests/{account_number}/approve",
             response_model=AccountRequestResponse, tags=["Account Requests"])
def approve_request(account_number: str, body: Optional[DecisionRequest] = None,
                    system: BankingSystem = Depends(get_banking_system)):
    account = system.gateway.get_account(account_number)
    manager = None
    if body is not None and body.manager_id:
        manager = system.gateway.get_bank_manager(body.manager_id)
    request = system.account_requests.approve(account.customer, account, manager)
    return AccountRequestResponse.from_request(request)


@router.post("/account-requests/{account_number}/reject",
             response_model=AccountRequestResponse, tags=["Account Requests"])
def reject_request(account_number: str, body: RejectRequest,
                   system: BankingSystem = Depends(get_banking_system)):
    account = system.gateway.get_account(account_number)
    manager = system.gateway.get_bank_manager(body.manager_id) if body.manager_id else None
    request = system.account_requests.reject(account.customer, account, body.reason, manager)
    return AccountRequestResponse.from_request(request)


# Accounts

@router.get("/customers/{customer_id}/accounts", response_model=List[AccountResponse], tags=["Accounts"])
def list_customer_accounts(
    customer_id: str,
    sort: Optional[str] = Query(None, pattern="^(balance|type|created)$"),
    min_balance: Optional[str] = None,
    account_type: Optional[str] = None,
    system: BankingSystem = Depends(get_banking_system)
):
    """Active accounts of a customer; pending or rejected accounts are not listed"""
    accounts = system.gateway.get_customer(customer_id).active_accounts()
    if min_balance is not None:
        accounts = accounts.filter_by_min_balance(min_balance)
    if account_type is not None:
        accounts = accounts.filter_by_type(account_type)
    if sort == "balance":
        accounts.sort_by_balance()
    elif sort == "type":
        accounts.sort_by_type()
    elif sort == "created":
        accounts.sort_by_created_date()
    return [AccountResponse.from_account(a) for a in accounts]


# Inbox

@router.get("/users/{user_id}/notifications", response_model=InboxResponse, tags=["Notifications"])
def get_inbox(user_id: str, unread_only: bool = False,
              system: BankingSystem = Depends(get_banking_system)):
    user = system.gateway.get_user(user_id)
    service = system.notifications
    notifications = (service.get_unread_notifications(user) if unread_only
                     else service.get_all_notifications(user))
    return InboxResponse(
        user_id=user.user_id,
        unread_count=service.get_unread_count(user),
        notifications=[NotificationResponse.from_notification(n) for n in notifications],
    )


@router.post("/users/{user_id}/notifications/read", status_code=status.HTTP_204_NO_CONTENT,
             tags=["Notifications"])
def mark_inbox_read(user_id: str, system: BankingSystem = Depends(get_banking_system)):
    system.notifications.mark_all_as_read(system.gateway.get_user(user_id))


@router.delete("/users/{user_id}/notifications", status_code=status.HTTP_204_NO_CONTENT,
               tags=["Notifications"])
def clear_inbox(user_id: str, system: BankingSystem = Depends(get_banking_system)):
    system.notifications.clear_inbox(system.gateway.get_user(user_id))


# Error translation

async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.detail, "persisted": False})


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.detail})


async def _persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=503,
        content={
            "detail": exc.detail,
            "persisted": False,
            "note": "The change may already be visible in memory; retrying is safe.",
        },
    )


def create_app(system: Optional[BankingSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Retail Banking Account Requests API",
        description="Account opening workflow with per-user notification inboxes",
        version=__version__,
    )
    app.state.banking_system = system or BankingSystem()
    app.include_router(router)
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(PersistenceError, _persistence_error_handler)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_id()
        with correlation_scope(correlation_id):
            response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "retail_banking_api",
            "version": __version__,
            "storage_mode": app.state.banking_system.storage_mode.value,
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Configure logging from settings and serve the API with uvicorn"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    system = BankingSystem(config)
    # Code reaching for the process-wide service shares the app's identity map
    NotificationService.get_instance(gateway=system.gateway)
    uvicorn.run(create_app(system), host=host or config.api_host, port=port or config.api_port)
