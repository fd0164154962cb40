"""
Session context: who the current customer is.

Backed by contextvars so concurrent requests (threads or asyncio tasks) each
see their own customer.
"""

import contextvars
from contextlib import contextmanager
from typing import Optional

from .users import Customer

_current_customer = contextvars.ContextVar('current_customer', default=None)


def current_customer() -> Optional[Customer]:
    """Customer signed in for this context, or None"""
    return _current_customer.get()


def login(customer: Customer) -> None:
    _current_customer.set(customer)


def logout() -> None:
    _current_customer.set(None)


@contextmanager
def customer_session(customer: Customer):
    """Context manager for acting as a customer temporarily"""
    token = _current_customer.set(customer)
    try:
        yield customer
    finally:
        _current_customer.reset(token)
