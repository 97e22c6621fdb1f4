"""Error taxonomy of the order dispatch core.

Every error carries a stable ``code`` so callers can branch on it without
parsing messages. The HTTP layer maps each class to a status code in ``main.py``.
"""


class OrderDispatchError(Exception):
    code = "order_dispatch_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(OrderDispatchError):
    code = "bad_request"


class NotFoundError(OrderDispatchError):
    code = "not_found"


class PreconditionFailedError(OrderDispatchError):
    """Raised when a take attempt loses against an earlier one."""

    code = "order_already_taken"


class InternalError(OrderDispatchError):
    code = "internal_error"


class GatewayError(InternalError):
    code = "gateway_error"


class StoreError(InternalError):
    code = "store_error"
