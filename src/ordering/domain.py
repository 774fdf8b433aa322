"""Ordering bounded context: orders, coupons and payment reconciliation.

Hosts the Order aggregate and its state machine, the coupon ledger, the
webhook event ledger, the pricing engine and the checkout flow that turns
cart lines into a reserved, priced and persisted order.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
