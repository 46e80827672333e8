"""Currency codes and exchange rate records."""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import Field, field_validator

from protracker.models.base import BaseDataModel, to_decimal


class Currency(str, Enum):
    """Currencies offered by default in forms.

    Calculators accept any three-letter code; this enumeration only lists
    the ones the application proposes.
    """

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"


def normalize_currency_code(code: Union[str, Currency]) -> str:
    """Normalise a currency code to upper-case three letters.

    Args:
        code: Currency code or Currency member

    Returns:
        Upper-case currency code

    Raises:
        ValueError: If the code is not three alphabetic characters

    Example:
        >>> normalize_currency_code(" eur ")
        'EUR'
    """
    if isinstance(code, Currency):
        return code.value
    value = str(code).strip().upper()
    if len(value) != 3 or not value.isalpha():
        raise ValueError(f"Invalid currency code: {code!r}")
    return value


class ExchangeRate(BaseDataModel):
    """A single externally supplied exchange rate.

    ``amount_in_to = amount_in_from * rate``

    Example:
        >>> rate = ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10")
        >>> rate.rate
        Decimal('1.10')
    """

    from_currency: str = Field(..., description="Source currency")
    to_currency: str = Field(..., description="Target currency")
    rate: Decimal = Field(..., gt=0, description="Units of target per unit of source")
    updated_at: Optional[dt.date] = Field(None, description="Date the rate was set")

    @field_validator("from_currency", "to_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @field_validator("rate", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Union[str, int, float, Decimal]) -> Decimal:
        return to_decimal(v)
