# Overview: Domain error taxonomy shared by services and routes.

from __future__ import annotations


class BusinessRuleError(Exception):
    """
    400-level rule violation detected while working against the store.

    errors carries every independent violation found in one request
    (e.g. one message per short product) so callers can show them together.
    """
    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class InsufficientStockError(BusinessRuleError):
    """One or more products could not be covered by their batches."""

    def __init__(self, errors: list[str]):
        super().__init__("Not enough stock for one or more products.", errors)


class NotFoundError(LookupError):
    """404-level: the referenced entity does not exist."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__("Product not found")
        self.product_id = product_id


class BatchNotFoundError(NotFoundError):
    def __init__(self, batch_id: int):
        super().__init__("Batch not found")
        self.batch_id = batch_id
