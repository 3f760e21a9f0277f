"""
Base Schema Classes for Pydantic Models

RULE: All response schemas built from store records or ORM rows MUST inherit
from BaseResponseSchema.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer


CENTS = Decimal("0.01")


def to_display_amount(value) -> float:
    """Round a monetary amount to presentation precision (2 decimals)."""
    return float(Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


# Monetary value kept exact in Python and rounded only when serialized
DisplayAmount = Annotated[Decimal, PlainSerializer(to_display_amount, return_type=float)]


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas.

    Features:
    - Enables from_attributes for ORM compatibility
    - Ignores extra keys so whole store records can be passed in
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        extra='ignore',
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.
    """
    model_config = ConfigDict(
        # Allow extra fields to be ignored (forward compatibility)
        extra='ignore',
        str_strip_whitespace=True,
    )
