import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.config import is_production

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, code: str = None, field: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.field = field

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(StorefrontError):
    status_code = 400
    code = "VALIDATION_FAILED"


class PaymentError(StorefrontError):
    status_code = 400
    code = "PAYMENT_FAILED"


class PaymentMethodDisabledError(PaymentError):
    status_code = 403
    code = "PAYMENT_METHOD_DISABLED"


class PaymentDeclinedError(PaymentError):
    status_code = 402
    code = "card_declined"

    def __init__(self, message: str, payment_intent_id: str, code: str = None):
        super().__init__(message, code=code)
        self.payment_intent_id = payment_intent_id

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["paymentIntentId"] = self.payment_intent_id
        return body


class AuthorizationError(StorefrontError):
    status_code = 401
    code = "UNAUTHORIZED"


class NotFoundError(StorefrontError):
    status_code = 404
    code = "NOT_FOUND"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Malformed bodies are a client error like any other validation failure
    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        body = {
            "error": first.get("msg", "Invalid request"),
            "code": "VALIDATION_FAILED",
        }
        if loc:
            body["field"] = ".".join(loc)
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        body = {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        if not is_production():
            body["details"] = str(exc)
        return JSONResponse(status_code=500, content=body)
