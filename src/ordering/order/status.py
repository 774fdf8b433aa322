"""Operator order updates: status and shipping details."""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    message = String(max_length=500)
    location = String(max_length=255)


@ordering.command(part_of="Order")
class UpdateShipping:
    order_id = Identifier(required=True)
    courier = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=1024)
    shipping_status = String(max_length=50)
    estimated_delivery = DateTime()


@ordering.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_status(command.status, message=command.message, location=command.location)
        repo.add(order)
        return order.status

    @handle(UpdateShipping)
    def update_shipping(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_shipping(
            courier=command.courier,
            tracking_number=command.tracking_number,
            tracking_url=command.tracking_url,
            shipping_status=command.shipping_status,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)
