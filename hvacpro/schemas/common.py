from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field


# Fixed-precision money: at most 10 digits, 2 after the point
Money = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]
NonNegativeMoney = Annotated[Decimal, Field(max_digits=10, decimal_places=2, ge=0)]


def empty_to_none(v):
    if v is None:
        return None
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class TenantKeys(BaseModel):
    """Keys a partial update may echo back but never change."""

    id: Optional[int] = None
    company_id: Optional[int] = None
