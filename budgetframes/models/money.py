"""
Money Value Type

All monetary amounts in the ledger are Money objects backed by Decimal.
They are stored in the database and sent over the wire as decimal strings
with exactly two places ("60" is serialized as "60.00").

DESIGN DECISION: Parsing never raises. Text that is not a number produces
an *invalid* Money so request handlers can answer 400 instead of the
framework rejecting the whole body. Arithmetic on an invalid Money does raise.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Any, Iterable, Optional, Union

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema


CENT = Decimal("0.01")

# Digits kept free in the decimal context for cents and for sums of valid amounts
HEADROOM_DIGITS = 4

MoneyLike = Union["Money", Decimal, int, float, str]


def _parse(value: Any) -> Optional[Decimal]:
    if isinstance(value, Money):
        return value._value
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        return None


class Money:
    """
    An arbitrary-precision monetary amount.

    Usage:
        Money("12.5").plus(Money("0.50")).string()  # "13.00"
    """

    __slots__ = ("_raw", "_value")

    def __init__(self, value: MoneyLike = 0):
        self._raw = value._raw if isinstance(value, Money) else value
        self._value = _parse(value)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def is_valid(self, allow_negative: bool = True) -> bool:
        """
        Check the amount parsed, is finite, is not absurdly large and has at
        most two decimal places.

        Args:
            allow_negative: If False, amounts below zero are invalid.
        """
        if self._value is None or not self._value.is_finite():
            return False
        if self._value.adjusted() >= getcontext().prec - HEADROOM_DIGITS:
            # Too large to add up and still be exact to the cent
            return False
        if self._value != self._value.quantize(CENT, rounding=ROUND_HALF_UP):
            return False
        if not allow_negative and self._value < 0:
            return False
        return True

    def _require(self) -> Decimal:
        if self._value is None or not self._value.is_finite():
            raise ValueError(f"Invalid money value: {self._raw!r}")
        return self._value

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @property
    def decimal(self) -> Decimal:
        return self._require()

    def string(self) -> str:
        """
        Canonical two-decimal string form.

        Raises:
            ValueError: If the amount is invalid or too large to render to the cent
        """
        try:
            value = self._require().quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ValueError(f"Money value out of range: {self._raw!r}") from e
        if value == 0:
            # no "-0.00"
            value = abs(value)
        return str(value)

    def __str__(self) -> str:
        try:
            return self.string()
        except ValueError:
            return str(self._raw)

    def __repr__(self) -> str:
        return f"Money({str(self)!r})"

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def plus(self, other: MoneyLike) -> "Money":
        return Money(self._require() + Money(other)._require())

    def minus(self, other: MoneyLike) -> "Money":
        return Money(self._require() - Money(other)._require())

    def negate(self) -> "Money":
        return Money(-self._require())

    def is_zero(self) -> bool:
        return self._require() == 0

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal("0"))

    @classmethod
    def sum(cls, values: Iterable[MoneyLike]) -> "Money":
        total = Decimal("0")
        for value in values:
            total += Money(value)._require()
        return cls(total)

    __add__ = plus
    __sub__ = minus
    __neg__ = negate

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Money, Decimal, int, str)):
            return NotImplemented
        other_value = _parse(other)
        if self._value is None or other_value is None:
            return self._value is None and other_value is None and str(self) == str(other)
        return self._value == other_value

    def __hash__(self) -> int:
        return hash(self._value)

    def __lt__(self, other: MoneyLike) -> bool:
        return self._require() < Money(other)._require()

    def __le__(self, other: MoneyLike) -> bool:
        return self._require() <= Money(other)._require()

    def __gt__(self, other: MoneyLike) -> bool:
        return self._require() > Money(other)._require()

    def __ge__(self, other: MoneyLike) -> bool:
        return self._require() >= Money(other)._require()

    # -------------------------------------------------------------------------
    # Pydantic integration
    # -------------------------------------------------------------------------

    @classmethod
    def _validate(cls, value: Any) -> "Money":
        if isinstance(value, Money):
            return value
        if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
            raise ValueError("Money must be a string or a number")
        return cls(value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str,
                when_used="always",
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls,
        schema: core_schema.CoreSchema,
        handler: GetJsonSchemaHandler,
    ) -> JsonSchemaValue:
        return {"type": "string", "format": "decimal", "examples": ["12.50"]}
