"""
Shared Pydantic base for the camelCase wire format.

The dealership UI and every exported snapshot use camelCase keys
(``stockNumber``, ``inStockDate``); Python code uses snake_case.
"""

import re
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# 17 characters, letters I, O and Q excluded
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")


class CamelModel(BaseModel):
    """Base model: camelCase aliases, snake_case attribute access."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def blank_to_none(value: Any) -> Any:
    """UI forms and legacy exports send "" for unset dates and times."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def normalize_vin(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().upper()


def validate_vin(value: str) -> str:
    """Normalize and validate a full VIN."""
    normalized = normalize_vin(value)
    if not VIN_PATTERN.match(normalized):
        raise ValueError("VIN must be 17 alphanumeric characters (I, O, Q not allowed)")
    return normalized


VinStr = Annotated[str, AfterValidator(validate_vin)]
BlankAsNone = BeforeValidator(blank_to_none)
