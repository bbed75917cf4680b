"""Custom application-wide exceptions."""

from typing import Any


class ApplicationError(Exception):
    """Base class for application-specific errors."""

    def __init__(
        self,
        message: str = "An application error occurred",
        original_exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.original_exception = original_exception
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        text = self.message
        if self.context:
            details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
            text += f" [{details}]"
        if self.original_exception:
            text += f" (Original error: {self.original_exception})"
        return text


class ValidationError(ApplicationError):
    """Raised when caller-supplied input violates a precondition. Never retried automatically."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: str | None = None,
        value: Any = None,
        entity_id: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        merged = {"field": field, "value": value, "entity_id": entity_id}
        merged = {key: val for key, val in merged.items() if val is not None}
        merged.update(context or {})
        super().__init__(message, context=merged)
        self.field = field
        self.value = value
        self.entity_id = entity_id


class ConcurrentStockConflict(ApplicationError):
    """
    Raised when the optimistic stock update kept losing to concurrent writers.
    `size` is None when a whole-sizes catalog edit was refused.
    """

    def __init__(self, product_id: Any, size: str | None, attempts: int) -> None:
        target = f"product {product_id}" if size is None else f"product {product_id} size {size!r}"
        super().__init__(
            f"Stock for {target} changed concurrently",
            context={"product_id": product_id, "size": size, "attempts": attempts},
        )
        self.product_id = product_id
        self.size = size
        self.attempts = attempts


class PartialWriteError(ApplicationError):
    """
    Raised when a multi-step sale write failed part-way through.

    The ledger may disagree with inventory. `compensated` tells whether the
    already completed steps were rolled back; when it is False the sale needs
    manual reconciliation. Retrying risks double-booking.
    """

    def __init__(
        self,
        sale_id: Any,
        product_id: Any,
        size: str,
        completed_steps: list[str],
        compensated: bool,
        original_exception: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Sale {sale_id} for product {product_id} was only partially written",
            original_exception=original_exception,
            context={
                "sale_id": sale_id,
                "product_id": product_id,
                "size": size,
                "completed_steps": completed_steps,
                "compensated": compensated,
            },
        )
        self.sale_id = sale_id
        self.product_id = product_id
        self.size = size
        self.completed_steps = completed_steps
        self.compensated = compensated


class DatabaseError(ApplicationError):
    """Exception raised for errors during database operations."""

    def __init__(
        self,
        message: str = "Database operation failed",
        original_exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, original_exception, context)
        self.message = f"Database Error: {message}"


class StoreUnavailableError(DatabaseError):
    """Raised when the data store cannot be reached or did not answer in time."""

    def __init__(
        self,
        message: str = "Data store unavailable",
        original_exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, original_exception, context)
        self.message = f"Store Unavailable: {message}"
