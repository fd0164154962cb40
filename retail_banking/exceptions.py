"""
Exception hierarchy for the retail banking package.

    RetailBankingError (base)
    ├── ValidationError          - missing or malformed input, nothing happened
    │   └── InvalidTransitionError - decision on a request that is not pending
    ├── PersistenceError         - store failed, in-memory state already changed
    └── NotFoundError            - unknown user/account/request id
"""


class RetailBankingError(Exception):
    """Base exception for all retail banking domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class ValidationError(RetailBankingError, ValueError):
    """Raised for absent or malformed input. No state was changed."""


class InvalidTransitionError(ValidationError):
    """Raised when an account request is decided after it was resolved."""

    def __init__(self, account_number: str, detail: str = ""):
        self.account_number = account_number
        super().__init__(detail or f"No pending request for account {account_number}")


class PersistenceError(RetailBankingError):
    """
    Raised when the store fails to persist a mutated user or account.

    The in-memory mutation that preceded the write is kept, so the caller may
    retry the write; re-persisting the same final state is idempotent.
    """

    def __init__(self, detail: str, entity_type: str = "", entity_id: str = ""):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(detail)


class NotFoundError(RetailBankingError):
    """Raised when a referenced user or account does not exist."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")
