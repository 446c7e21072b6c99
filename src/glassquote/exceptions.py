"""Typed errors for pricing validation and API contract errors."""

from typing import Any, Dict, Optional


class PricingError(ValueError):
    """Rejected pricing input; `code` maps to a user-facing message."""

    code = "PRICING_ERROR"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidMoneyValue(PricingError):
    code = "INVALID_MONEY_VALUE"


class InvalidDimensions(PricingError):
    code = "INVALID_DIMENSIONS"


class InvalidCoordinates(PricingError):
    code = "INVALID_COORDINATES"


class InvalidMarginError(PricingError):
    code = "INVALID_MARGIN"


class InvalidColorMultiplier(PricingError):
    code = "INVALID_COLOR_MULTIPLIER"


class ContractError(Exception):
    """Error that maps to a stable API error payload."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    @classmethod
    def from_pricing_error(cls, exc: PricingError) -> "ContractError":
        """Wrap a pricing validation error for the API boundary."""
        details: Dict[str, Any] = {}
        if exc.field:
            details["field"] = exc.field
        return cls(exc.code, exc.message, status_code=400, details=details)
