"""FastAPI routes for checkout: orders, shipping quotes, payments, webhooks and admin."""

from fastapi import APIRouter, Depends, Header, Query, Request
from protean.utils.globals import current_domain

from ordering.api.dependencies import admin_principal, current_principal
from ordering.api.schemas import (
    CreateIntentRequest,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    PaymentIntentResponse,
    PlaceOrderRequest,
    ShippingMethodResponse,
    StatusResponse,
    UpdateShippingRequest,
    UpdateStatusRequest,
)
from ordering.checkout.placement import PlacementRequest, place_order
from ordering.order.order import Order
from ordering.order.queries import get_order_for, list_orders_for, load_order
from ordering.order.status import UpdateOrderStatus, UpdateShipping
from ordering.payment.intent import CreatePaymentIntent
from ordering.payment.webhook import WebhookProcessor
from ordering.pricing.rates import DOMESTIC_REGION
from ordering.pricing.shipping import shipping_methods
from shared.principal import Principal


def _order_response(order: Order) -> OrderResponse:
    pricing = order.pricing
    address = order.shipping_address
    shipping = order.shipping
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                sku=item.sku,
                image=item.image,
                price=item.price,
                qty=item.qty,
            )
            for item in order.items
        ],
        items_price=pricing.items_price,
        shipping_price=pricing.shipping_price,
        tax_price=pricing.tax_price,
        discount=pricing.discount,
        total_price=pricing.total_price,
        currency=pricing.currency,
        coupon_code=order.coupon_code,
        shipping_address={
            "line1": address.line1,
            "line2": address.line2,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
        },
        shipping={
            "method": shipping.method,
            "estimated_days": shipping.estimated_days,
            "is_free": shipping.is_free,
            "status": shipping.status,
            "courier": shipping.courier,
            "tracking_number": shipping.tracking_number,
            "tracking_url": shipping.tracking_url,
        },
        payment_status=order.payment.status,
        is_paid=bool(order.is_paid),
        paid_at=order.paid_at,
        is_delivered=bool(order.is_delivered),
        delivered_at=order.delivered_at,
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    order = place_order(
        principal,
        PlacementRequest(
            items=[line.model_dump() for line in body.items],
            shipping_address=body.shipping_address.model_dump(),
            payment_method=body.payment_method,
            shipping_method=body.shipping_method,
            coupon_code=body.coupon_code,
        ),
    )
    return _order_response(order)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(default=1),
    limit: int = Query(default=20),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    result = list_orders_for(principal.user_id, page=page, limit=limit)
    return OrderListResponse(
        orders=[_order_response(order) for order in result.orders],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    if principal.is_admin:
        return _order_response(load_order(order_id))
    return _order_response(get_order_for(principal.user_id, order_id))


# ---------------------------------------------------------------------------
# Shipping Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.get("/methods", response_model=list[ShippingMethodResponse])
async def list_shipping_methods(
    country: str | None = Query(default=None),
    subtotal: float = Query(default=0.0, ge=0),
) -> list[ShippingMethodResponse]:
    quotes = shipping_methods(country or DOMESTIC_REGION, subtotal)
    return [
        ShippingMethodResponse(
            method=quote.method,
            name=quote.name,
            cost=quote.cost,
            estimated_days=quote.estimated_days,
            is_free=quote.is_free,
        )
        for quote in quotes
    ]


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreateIntentRequest,
    principal: Principal = Depends(current_principal),
) -> PaymentIntentResponse:
    command = CreatePaymentIntent(
        order_id=body.order_id,
        requester_id=principal.user_id,
        requester_verified=principal.is_verified,
        currency=body.currency,
    )
    result = current_domain.process(command, asynchronous=False)
    return PaymentIntentResponse(**result)


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> dict:
    # Signature is computed over the exact bytes received
    payload = await request.body()
    return WebhookProcessor().handle(payload, stripe_signature)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    principal: Principal = Depends(admin_principal),
) -> OrderResponse:
    load_order(order_id)
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        message=body.message,
        location=body.location,
    )
    current_domain.process(command, asynchronous=False)
    return _order_response(load_order(order_id))


@admin_router.put("/{order_id}/shipping", response_model=StatusResponse)
async def update_order_shipping(
    order_id: str,
    body: UpdateShippingRequest,
    principal: Principal = Depends(admin_principal),
) -> StatusResponse:
    load_order(order_id)
    command = UpdateShipping(order_id=order_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
