import math
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, constr, field_validator
from pydantic.alias_generators import to_camel
from .models import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OrderCreate(CamelModel):
    user_id: int
    product_name: constr(strip_whitespace=True, min_length=1)
    quantity: int
    total_price: float
    order_date: Optional[datetime] = None  # Par défaut: date de création

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v):
        if v < 1:
            raise ValueError("Quantity must be positive")
        return v

    @field_validator("total_price")
    @classmethod
    def total_price_must_be_finite_and_not_negative(cls, v):
        # NaN et Infinity passent le parseur JSON
        if not math.isfinite(v):
            raise ValueError("Total price must be a finite number")
        if v < 0:
            raise ValueError("Total price must not be negative")
        return v

    @field_validator("order_date")
    @classmethod
    def naive_order_date_is_utc(cls, v):
        # Toutes les dates stockées portent un fuseau (UTC par défaut)
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class OrderResponse(CamelModel):
    id: int
    user_id: int
    product_name: str
    quantity: int
    total_price: float
    status: OrderStatus
    order_date: datetime


class UserSnapshot(CamelModel):
    """Vue d'un utilisateur telle que renvoyée par GET /users/{id}."""
    id: int
    first_name: str
    last_name: str
    email: str
