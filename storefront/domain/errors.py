# storefront/domain/errors.py
from dataclasses import dataclass
from typing import List


class NotFoundError(ValueError):
    """Cart, variant, order or user is absent. Not retried."""


class CartNotFoundError(NotFoundError):
    pass


class VariantNotFoundError(NotFoundError):
    def __init__(self, variant_id: int):
        super().__init__(f"Variant {variant_id} not found")
        self.variant_id = variant_id


class OrderNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class EmptyCartError(ValueError):
    pass


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


@dataclass(frozen=True)
class StockShortage:
    variant_id: int
    available: int
    requested: int

    def as_dict(self) -> dict:
        return {
            "variant_id": self.variant_id,
            "available": self.available,
            "requested": self.requested,
        }


class InsufficientStockError(ValueError):
    """
    Business-rule violation raised before anything is written.
    Carries every under-stocked line so the client can fix quantities
    without losing the rest of the cart.
    """

    kind = "InsufficientStock"

    def __init__(self, shortages: List[StockShortage]):
        ids = ", ".join(str(s.variant_id) for s in shortages)
        super().__init__(f"Insufficient stock for variant(s): {ids}")
        self.shortages = list(shortages)

    def to_payload(self) -> dict:
        first = self.shortages[0]
        return {
            "kind": self.kind,
            "variant_id": first.variant_id,
            "available": first.available,
            "requested": first.requested,
            "items": [s.as_dict() for s in self.shortages],
        }


class ConflictError(RuntimeError):
    """A concurrent merge/checkout won the race. The caller may retry once."""


class TransactionAbortedError(RuntimeError):
    """Infrastructure failure inside a transaction. State was rolled back."""
