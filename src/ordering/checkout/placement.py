"""Order placement: turns cart lines into a reserved, priced, persisted order.

Steps, in the order that keeps every guarantee:

1. normalize the lines and reject an empty cart
2. check the stock store once and pick the reservation strategy
3. inside the reservation scope: price from the reserved product snapshots,
   check the coupon, build the Order and persist it
4. after the scope has committed: redeem the coupon, then send the
   confirmation mail

A failure anywhere in step 3 undoes the reservation. Coupon redemption and
mail happen only once the order exists, and neither can fail the order.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from inventory.reservation import ReservationLine, select_reservation_strategy
from inventory.store import get_stock_store
from inventory.store.port import StockStore
from notifications.notifier import notify
from ordering.coupon.ledger import CouponQuote, quote_coupon
from ordering.coupon.management import RedeemCoupon
from ordering.domain import logger
from ordering.order.order import Order, generate_order_number
from ordering.pricing.rates import DOMESTIC_REGION, SHIPPING_METHODS, STANDARD
from ordering.pricing.totals import PricedLine, compute_order_totals
from shared.config import Settings, get_settings
from shared.principal import Principal

ORDER_NUMBER_ATTEMPTS = 5


@dataclass(frozen=True)
class PlacementRequest:
    items: list
    shipping_address: dict
    payment_method: str = "card"
    shipping_method: str = STANDARD
    coupon_code: str | None = None


def normalize_order_items(raw_items) -> list[ReservationLine]:
    """Accept ``product_id``/``product`` and ``qty``/``quantity``; drop unusable lines."""
    lines = []
    for raw in raw_items or []:
        if not isinstance(raw, dict):
            continue
        product_id = raw.get("product_id") or raw.get("product")
        quantity = raw.get("qty", raw.get("quantity", 0))
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            continue
        if product_id and quantity > 0:
            lines.append(ReservationLine(product_id=str(product_id), quantity=quantity))
    return lines


def normalize_address(raw_address, default_country: str) -> dict:
    raw = raw_address or {}
    return {
        "line1": raw.get("line1") or raw.get("address"),
        "line2": raw.get("line2"),
        "city": raw.get("city"),
        "state": raw.get("state"),
        "postal_code": raw.get("postal_code") or raw.get("postalCode"),
        "country": (raw.get("country") or default_country).strip().upper(),
    }


class OrderPlacement:
    def __init__(self, store: StockStore | None = None, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    def place_order(self, principal: Principal, request: PlacementRequest) -> Order:
        lines = normalize_order_items(request.items)
        if not lines:
            raise ValidationError({"items": ["No order items"]})

        shipping_method = request.shipping_method or STANDARD
        if shipping_method not in SHIPPING_METHODS:
            raise ValidationError({"shipping_method": [f"Unknown shipping method: {shipping_method}"]})

        address = normalize_address(request.shipping_address, DOMESTIC_REGION)
        repo = current_domain.repository_for(Order)
        is_first_order = repo.count_for_customer(principal.user_id) == 0

        strategy = select_reservation_strategy(self.store or get_stock_store())
        with strategy.reserve(lines) as snapshots:
            merged = {}
            for line in lines:
                merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity

            order_items = []
            priced = []
            for product_id, quantity in merged.items():
                snapshot = snapshots[product_id]
                order_items.append(
                    {
                        "product_id": product_id,
                        "name": snapshot.name,
                        "sku": snapshot.sku,
                        "image": snapshot.image,
                        "price": snapshot.price,
                        "qty": quantity,
                    }
                )
                priced.append(PricedLine(unit_price=snapshot.price, quantity=quantity, weight=snapshot.weight))

            items_price = sum(line.unit_price * line.quantity for line in priced)
            coupon = quote_coupon(request.coupon_code, principal.user_id, is_first_order, items_price)
            if request.coupon_code and not coupon.valid:
                logger.info("coupon_not_applied", code=coupon.code, reason=coupon.reason)

            totals = compute_order_totals(
                priced,
                address["country"],
                shipping_method=shipping_method,
                coupon_discount=coupon.discount,
            )
            order = Order.place(
                customer_id=principal.user_id,
                customer_email=principal.email,
                items=order_items,
                shipping_address=address,
                totals=totals,
                payment_method=request.payment_method or "card",
                coupon_code=coupon.code if coupon.valid else None,
                currency=self.settings.default_currency,
                order_number=self._allocate_order_number(repo),
            )
            repo.add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            strategy=strategy.name,
            total=order.pricing.total_price,
        )

        if coupon.valid:
            self._redeem(coupon, principal, order)
        self._notify(order)
        return order

    def _allocate_order_number(self, repo) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number(self.settings.order_number_prefix)
            if repo.find_by_number(candidate) is None:
                return candidate
            logger.warning("order_number_collision", order_number=candidate)
        raise ValidationError({"order_number": ["Could not allocate a unique order number"]})

    def _redeem(self, coupon: CouponQuote, principal: Principal, order: Order) -> None:
        try:
            current_domain.process(
                RedeemCoupon(
                    code=coupon.code,
                    user_id=principal.user_id,
                    order_id=str(order.id),
                    amount=coupon.discount,
                ),
                asynchronous=False,
            )
        except ValidationError as exc:
            # Another checkout used the last slot first; the order keeps its discount
            logger.warning(
                "coupon_overused",
                code=coupon.code,
                user_id=principal.user_id,
                order_id=str(order.id),
                reason=exc.messages,
            )
        except Exception:
            # The order stands; the usage log is short one entry
            logger.exception("coupon_redemption_failed", code=coupon.code, order_id=str(order.id))

    def _notify(self, order: Order) -> None:
        notify(
            "order_placed",
            order.customer_email,
            {
                "order_number": order.order_number,
                "total_price": order.pricing.total_price,
                "currency": order.pricing.currency,
                "items": [{"qty": item.qty, "name": item.name, "price": item.price} for item in order.items],
            },
        )


def place_order(principal: Principal, request: PlacementRequest, store: StockStore | None = None) -> Order:
    return OrderPlacement(store=store).place_order(principal, request)
