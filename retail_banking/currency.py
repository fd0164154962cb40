"""
Monetary Value Helpers

Decimal coercion and currency-code normalisation for account balances.
NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Union
import re

from .exceptions import ValidationError

# Set global decimal context for financial precision
getcontext().prec = 28

CURRENCY_CODE_PATTERN = re.compile(r'^[A-Za-z]{3}$')

CURRENCY_SYMBOLS = re.compile(r'[\s$€£¥]')

# Optional sign, digits with optional well-formed thousands groups, optional fraction
AMOUNT_PATTERN = re.compile(r'^[+-]?(\d{1,3}(,\d{3})+|\d+)(\.\d+)?$')

Numeric = Union[Decimal, int, str, float]


def to_decimal(value: Numeric, field_name: str = "amount") -> Decimal:
    """
    Convert user input to Decimal
    
    Accepts Decimal, int and numeric strings ("1,250.50" and "$10" included).
    Floats go through str() so 0.1 stays 0.1.
    
    Raises:
        ValidationError: If the value is missing or not a finite number
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        # Currency symbols and whitespace may appear anywhere; nothing else is dropped
        clean_value = CURRENCY_SYMBOLS.sub('', value)
        if not AMOUNT_PATTERN.match(clean_value):
            raise ValidationError(f"{field_name} must be a number, got '{value}'")
        result = Decimal(clean_value.replace(',', ''))
    else:
        raise ValidationError(f"{field_name} must be a number, got {type(value).__name__}")
    
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite")
    return result


def non_negative_decimal(value: Numeric, field_name: str) -> Decimal:
    """Convert to Decimal and reject negative values"""
    result = to_decimal(value, field_name)
    if result < Decimal('0'):
        raise ValidationError(f"{field_name} cannot be negative: {result}")
    return result


def normalize_currency_code(code: str) -> str:
    """Validate a 3-letter currency code and return it upper-cased"""
    if not isinstance(code, str) or not CURRENCY_CODE_PATTERN.match(code.strip()):
        raise ValidationError(f"Currency code must be 3 letters (e.g., 'USD'), got {code!r}")
    return code.strip().upper()


def format_amount(amount: Decimal, places: int = 2) -> str:
    """Format for display, e.g. Decimal('1234.5') -> '1,234.50'"""
    quantized = amount.quantize(Decimal('0.1') ** places, rounding=ROUND_HALF_UP)
    return f"{quantized:,.{places}f}"
