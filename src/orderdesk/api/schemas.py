"""Pydantic request/response schemas for the OrderDesk API.

These are external contracts, separate from internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------
class MenuItemResponse(BaseModel):
    id: int
    name: str
    price: float
    description: str = ""
    spicy: int = 0
    rating: float = 0.0
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutLine(BaseModel):
    item_id: int
    quantity: int = Field(ge=1, default=1)


class CheckoutRequest(BaseModel):
    order_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    notes: str | None = None
    payment_method: str = "cod"
    lines: list[CheckoutLine]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Asha Rao",
                    "customer_email": "asha@example.com",
                    "customer_phone": "+91 9000000000",
                    "delivery_address": "12 MG Road, Bengaluru",
                    "payment_method": "upi",
                    "lines": [{"item_id": 1, "quantity": 2}],
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    item_name: str
    quantity: int
    price: float


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    delivery_address: str
    notes: str = ""
    total_amount: float
    payment_method: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[OrderItemResponse] = []


class UpdateStatusRequest(BaseModel):
    status: str


class StatusOption(BaseModel):
    value: str
    label: str
    terminal: bool
    next_statuses: list[str] = []


class StatusesResponse(BaseModel):
    strict: bool
    statuses: list[StatusOption]


# ---------------------------------------------------------------------------
# Operator session
# ---------------------------------------------------------------------------
class LoginRequest(BaseModel):
    username: str
    password: str


class SessionResponse(BaseModel):
    token: str


class StatusResponse(BaseModel):
    status: str = "ok"
