"""
Identifier generation for users, requests, notifications and accounts.
"""

import secrets
import uuid


def generate_id() -> str:
    """Globally unique opaque identifier"""
    return str(uuid.uuid4())


ACCOUNT_PREFIXES = {
    "CHECKING": "CHK",
    "SAVINGS": "SAV",
    "CREDIT": "CRD",
    "CURRENCY": "CUR",
}


def generate_account_number(account_type=None) -> str:
    """
    Generate a unique account number such as ``SAV-4F1C9A02B7D3``.
    
    The prefix follows the account type; the suffix is 48 random bits.
    """
    name = getattr(account_type, "name", account_type)
    prefix = ACCOUNT_PREFIXES.get(str(name).upper() if name else "", "ACC")
    return f"{prefix}-{secrets.token_hex(6).upper()}"
