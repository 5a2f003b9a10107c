from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(_WireModel):
    id: str
    name: str
    description: str
    price: float = Field(ge=0)
    category: str
    inventory: int = Field(ge=0)
    image_url: Optional[str] = None


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderItem(_WireModel):
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


class DeliverySlot(_WireModel):
    date: str
    start_time: str
    end_time: str


class DeliveryPreferences(_WireModel):
    type: Literal["delivery", "pickup"]
    slot: Optional[DeliverySlot] = None
    pickup_point_id: Optional[str] = None
    special_instructions: Optional[str] = None


class Order(_WireModel):
    id: str
    customer_id: str
    items: List[OrderItem] = Field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    delivery_preferences: DeliveryPreferences
    created_at: str
    updated_at: str


class Address(_WireModel):
    id: str
    street: str
    city: str
    state: str
    zip_code: str
    is_default: bool = False


class Customer(_WireModel):
    id: str
    email: str
    name: str
    addresses: List[Address] = Field(default_factory=list)


class ApiError(_WireModel):
    code: str
    message: str
    details: Optional[List[str]] = None


class ApiErrorResponse(_WireModel):
    error: ApiError
