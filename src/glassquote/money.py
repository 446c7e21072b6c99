"""Exact decimal money value type."""

from dataclasses import InitVar, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional, Type, Union

from glassquote.exceptions import InvalidMoneyValue, PricingError

Numeric = Union[int, float, str, Decimal]

ROUND_SCALE = 2


def coerce_decimal(
    value: Numeric,
    *,
    field: str = "value",
    error: Type[PricingError] = InvalidMoneyValue,
) -> Decimal:
    """Normalize a numeric literal to a finite Decimal.

    Floats go through ``str`` so that ``1.15`` becomes ``Decimal("1.15")``
    instead of its binary expansion.

    Raises:
        PricingError: ``error`` when the value is not a finite number.
    """
    if isinstance(value, bool):
        raise error(f"{field} must be a number, got bool", field=field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise error(f"{field} is not a number: {value!r}", field=field) from None
    else:
        raise error(
            f"{field} must be a number, got {type(value).__name__}", field=field
        )

    if not result.is_finite():
        raise error(f"{field} must be finite", field=field)
    return result


def round_half_up(value: Decimal, decimals: int = ROUND_SCALE) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money:
    """Immutable monetary amount backed by ``Decimal``.

    Addition, subtraction and multiplication are exact. ``divide`` is the
    only operation that rounds (half-up to cents); display rounding is
    requested explicitly through ``to_number(decimals)`` or ``quantize``.
    """

    amount: Decimal
    allow_negative: InitVar[bool] = True

    def __post_init__(self, allow_negative: bool) -> None:
        amount = coerce_decimal(self.amount, field="amount")
        if not allow_negative and amount < 0:
            raise InvalidMoneyValue(
                f"amount cannot be negative: {amount}", field="amount"
            )
        object.__setattr__(self, "amount", amount)

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal("0"))

    @classmethod
    def price(cls, value: Union["Money", Numeric], *, field: str = "price") -> "Money":
        """Build a non-negative amount, naming the offending field on error."""
        if isinstance(value, Money):
            value = value.amount
        amount = coerce_decimal(value, field=field)
        if amount < 0:
            raise InvalidMoneyValue(f"{field} cannot be negative", field=field)
        return cls(amount)

    @staticmethod
    def sum(values: Iterable["Money"]) -> "Money":
        total = Decimal("0")
        for value in values:
            total += value.amount
        return Money(total)

    def add(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.amount - other.amount)

    def multiply(self, factor: Numeric) -> "Money":
        return Money(self.amount * coerce_decimal(factor, field="factor"))

    def divide(self, divisor: Numeric) -> "Money":
        """Divide and round half-up to cents."""
        value = coerce_decimal(divisor, field="divisor")
        if value == 0:
            raise InvalidMoneyValue("divisor cannot be zero", field="divisor")
        return Money(round_half_up(self.amount / value))

    def negate(self) -> "Money":
        return Money(-self.amount)

    def quantize(self, decimals: int = ROUND_SCALE) -> "Money":
        return Money(round_half_up(self.amount, decimals))

    def to_number(self, decimals: Optional[int] = None) -> float:
        """Return the value as float, exact unless ``decimals`` is given."""
        if decimals is None:
            return float(self.amount)
        return float(round_half_up(self.amount, decimals))

    def equals(self, other: "Money") -> bool:
        return self.amount == other.amount

    def greater_than(self, other: "Money") -> bool:
        return self.amount > other.amount

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return str(round_half_up(self.amount))
