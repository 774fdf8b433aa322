"""Pydantic request/response schemas for the checkout API.

These are external contracts, kept separate from the internal Protean
commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    line1: str | None = None
    line2: str | None = None
    address: str | None = None  # legacy single-line form
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderLineSchema(BaseModel):
    product_id: str | None = None
    product: str | None = None
    qty: int | None = None
    quantity: int | None = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderLineSchema] = Field(default_factory=list)
    shipping_address: AddressSchema = Field(default_factory=AddressSchema)
    payment_method: str = "card"
    shipping_method: str = "standard"
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "qty": 2}],
                    "shipping_address": {
                        "line1": "Plot 12 Kampala Road",
                        "city": "Kampala",
                        "postal_code": "256",
                        "country": "UG",
                    },
                    "shipping_method": "standard",
                    "coupon_code": "WELCOME10",
                }
            ]
        }
    }


class CreateIntentRequest(BaseModel):
    order_id: str
    currency: str = "usd"


class UpdateStatusRequest(BaseModel):
    status: str
    message: str | None = None
    location: str | None = None


class UpdateShippingRequest(BaseModel):
    courier: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    shipping_status: str | None = None
    estimated_delivery: datetime | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    sku: str | None = None
    image: str | None = None
    price: float
    qty: int


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: str
    items: list[OrderItemResponse]
    items_price: float
    shipping_price: float
    tax_price: float
    discount: float
    total_price: float
    currency: str
    coupon_code: str | None = None
    shipping_address: dict
    shipping: dict
    payment_status: str
    is_paid: bool
    paid_at: datetime | None = None
    is_delivered: bool
    delivered_at: datetime | None = None
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    page: int
    pages: int
    total: int


class ShippingMethodResponse(BaseModel):
    method: str
    name: str
    cost: float
    estimated_days: str
    is_free: bool


class PaymentIntentResponse(BaseModel):
    provider_intent_id: str
    client_secret: str


class StatusResponse(BaseModel):
    status: str = "ok"
