"""Error taxonomy shared by the ordering, inventory and payments contexts.

Input validation failures use Protean's ``ValidationError``. Everything a
caller must be able to tell apart (stock, ownership, settlement, processor
trouble) is a ``CheckoutError`` carrying the HTTP status the API layer
answers with.
"""


class CheckoutError(Exception):
    """Base class for checkout failures surfaced to callers."""

    status_code = 400
    code = "checkout_error"
    default_message = "Checkout failed"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InsufficientStock(CheckoutError):
    status_code = 409
    code = "insufficient_stock"
    default_message = "Insufficient stock for one or more items"


class ProductUnavailable(CheckoutError):
    status_code = 400
    code = "product_unavailable"
    default_message = "One or more products are unavailable"


class OrderNotFound(CheckoutError):
    status_code = 404
    code = "order_not_found"
    default_message = "Order not found"


class NotOwner(CheckoutError):
    status_code = 403
    code = "not_owner"
    default_message = "Not authorized to access this order"


class Unauthorized(CheckoutError):
    status_code = 403
    code = "unauthorized"
    default_message = "Please verify your email before paying"


class Unauthenticated(CheckoutError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class AdminRequired(CheckoutError):
    status_code = 403
    code = "admin_required"
    default_message = "Administrator access required"


class AlreadySettled(CheckoutError):
    status_code = 400
    code = "already_settled"
    default_message = "Order already settled"


class InvalidAmount(CheckoutError):
    status_code = 400
    code = "invalid_amount"
    default_message = "Invalid order amount"


class SignatureInvalid(CheckoutError):
    status_code = 400
    code = "signature_invalid"
    default_message = "Webhook signature verification failed"


class TransientProcessorError(CheckoutError):
    """The payment processor or a webhook handler failed; retrying may succeed."""

    status_code = 500
    code = "processor_error"
    default_message = "Payment processor error"


class PaymentsNotConfigured(CheckoutError):
    status_code = 503
    code = "payments_not_configured"
    default_message = "Payments are not configured"


class TransactionsUnsupported(Exception):
    """Raised by stores that cannot open a multi-write transaction."""
