"""Base model for all data models in ProTracker.

This module provides a base Pydantic model with common configuration
and the shared helpers used by the entity models.
"""

import uuid
from decimal import Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict


def generate_id() -> str:
    """Generate an opaque identifier for a new record.

    Returns:
        Random hexadecimal identifier
    """
    return uuid.uuid4().hex


def to_decimal(v: Union[str, int, float, Decimal]) -> Decimal:
    """Convert a numeric value to Decimal for precision.

    Args:
        v: The value to convert

    Returns:
        The value as a Decimal

    Raises:
        ValueError: If the value cannot be converted to Decimal
    """
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        raise ValueError(f"Cannot convert {v} to Decimal")
    try:
        return Decimal(str(v).strip())
    except (ArithmeticError, ValueError, TypeError) as e:
        raise ValueError(f"Cannot convert {v} to Decimal: {e}")


class BaseDataModel(BaseModel):
    """Base class for all data models.

    Provides common configuration for:
    - Validation with type checking
    - Serialization to/from dictionaries
    - Validation on assignment, so in-place user edits are checked

    Example:
        >>> class Tag(BaseDataModel):
        ...     name: str
        >>> Tag(name="travel").model_dump()
        {'name': 'travel'}
    """

    model_config = ConfigDict(
        # Allow arbitrary types like Decimal, date, time
        arbitrary_types_allowed=True,
        # Validate on assignment to catch errors early
        validate_assignment=True,
        strict=False,
        extra="forbid",
        # Records are mutated in place by user edits
        frozen=False,
    )
