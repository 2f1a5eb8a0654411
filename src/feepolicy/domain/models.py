# File: src/feepolicy/domain/models.py
"""
Domain Models for the Fee Policy Engine
Following Domain-Driven Design (DDD) principles with immutable value objects

This module contains:
1. Value Objects: Money, UsageRecord, Customer
2. Entity: Base class for objects with identity
3. Enums: Variant tags for conditions, discount policies and rate policies
4. Exceptions: Domain error hierarchy

Every fee computed by the engine flows through Money, which wraps an exact
Decimal so repeated additions and subtractions never drift.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union
from datetime import datetime, timedelta
from decimal import Decimal, Context, localcontext, ROUND_HALF_UP, MAX_PREC, MAX_EMAX, MIN_EMIN
import uuid
from enum import Enum


Numeric = Union[int, float, str, Decimal]

# Money arithmetic never rounds: the context is wide enough for any exact result
_EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FeePolicyError(Exception):
    """Base exception for fee policy domain errors"""
    pass


class UnsupportedVariantError(FeePolicyError):
    """Raised when a policy or condition variant is asked for an operation it does not support"""

    def __init__(self, operation: str, variant: Enum):
        super().__init__(f"'{operation}' is not supported for variant {variant.name}")
        self.operation = operation
        self.variant = variant


class MalformedIntervalError(FeePolicyError, ValueError):
    """Raised when a usage record ends before it starts"""
    pass


class CurrencyMismatchError(FeePolicyError, ValueError):
    """Raised when two amounts in different currencies are combined"""
    pass


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric literal to an exact Decimal.
    Floats go through their shortest repr so 0.1 becomes Decimal('0.1').
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a numeric amount")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, (float, str)):
        return Decimal(str(value).strip())
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


# ============================================================================
# DOMAIN PRIMITIVES / VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)  # Value objects are immutable
class Money:
    """
    Value Object: Exact monetary amount with currency
    Provides arithmetic and comparison by decimal value

    Negative amounts are allowed: an amount discount larger than the base
    fee yields a negative fee and that result is kept as-is.
    """
    amount: Decimal
    currency: str = "KRW"

    ZERO: ClassVar['Money']

    def __post_init__(self):
        """Normalize and validate money amount"""
        object.__setattr__(self, 'amount', to_decimal(self.amount))

        if not self.amount.is_finite():
            raise ValueError(f"Money amount must be finite: {self.amount}")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def of(cls, value: Numeric, currency: str = "KRW") -> 'Money':
        """Create money from an integer or decimal literal"""
        return cls(to_decimal(value), currency)

    @classmethod
    def wons(cls, value: Numeric) -> 'Money':
        """Create money in Korean won"""
        return cls.of(value, "KRW")

    def _check_currency(self, other: 'Money', operation: str) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot {operation} Money and {type(other).__name__}")
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                f"Cannot {operation} {self.currency} and {other.currency}"
            )

    def plus(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        self._check_currency(other, "add")
        with localcontext(_EXACT):
            return Money(self.amount + other.amount, self.currency)

    def minus(self, other: 'Money') -> 'Money':
        """Subtract money amounts (same currency only); result may be negative"""
        self._check_currency(other, "subtract")
        with localcontext(_EXACT):
            return Money(self.amount - other.amount, self.currency)

    def times(self, factor: Numeric) -> 'Money':
        """Scale by a real-valued factor (percentages, unit multipliers, quantities)"""
        with localcontext(_EXACT):
            return Money(self.amount * to_decimal(factor), self.currency)

    def is_less_than(self, other: 'Money') -> bool:
        """Strictly smaller amount (same currency only)"""
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def is_at_least(self, other: 'Money') -> bool:
        """Equal or larger amount (same currency only)"""
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def rounded(self, places: int = 2) -> 'Money':
        """
        Round half-up to the given number of decimal places.
        Presentation only: no domain operation rounds implicitly.
        """
        quantum = Decimal(1).scaleb(-places)
        with localcontext(_EXACT):
            return Money(self.amount.quantize(quantum, rounding=ROUND_HALF_UP), self.currency)

    def __add__(self, other: 'Money') -> 'Money':
        return self.plus(other)

    def __sub__(self, other: 'Money') -> 'Money':
        return self.minus(other)

    def __mul__(self, factor: Numeric) -> 'Money':
        return self.times(factor)

    __rmul__ = __mul__

    def __neg__(self) -> 'Money':
        return Money(self.amount.copy_negate(), self.currency)

    def __lt__(self, other: 'Money') -> bool:
        return self.is_less_than(other)

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        return self.is_at_least(other)

    def format(self) -> str:
        """Format money for display"""
        return f"{self.amount} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "amount": str(self.amount),
            "currency": self.currency
        }

    def __str__(self) -> str:
        return self.format()


Money.ZERO = Money(Decimal(0))


@dataclass(frozen=True)
class UsageRecord:
    """
    Value Object: One timed usage interval (e.g. a phone call)
    Zero-length records are valid; records ending before they start are not
    """
    start_time: datetime
    end_time: datetime

    def __post_init__(self):
        """Validate interval"""
        if self.end_time < self.start_time:
            raise MalformedIntervalError(
                f"Usage record ends before it starts: {self.start_time} > {self.end_time}"
            )

    @property
    def duration(self) -> timedelta:
        """Calculate duration of the record"""
        return self.end_time - self.start_time

    @property
    def duration_seconds(self) -> float:
        """Duration in seconds, for display and DTOs"""
        return self.duration.total_seconds()

    @property
    def start_hour(self) -> int:
        """Hour of day the record starts in; selects day or night rate"""
        return self.start_time.hour

    def __str__(self) -> str:
        start_str = self.start_time.strftime("%Y-%m-%d %H:%M:%S")
        end_str = self.end_time.strftime("%Y-%m-%d %H:%M:%S")
        return f"{start_str} to {end_str} ({self.duration_seconds:g}s)"


class Entity:
    """
    Base class for all domain entities
    Provides common functionality for entities with identity
    """

    def __init__(self, id: Optional[str] = None):
        self._id = id or str(uuid.uuid4())

    @property
    def id(self) -> str:
        """Get entity ID"""
        return self._id

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they have the same ID and type"""
        if not isinstance(other, Entity):
            return False
        return self.id == other.id and type(self) == type(other)

    def __hash__(self) -> int:
        return hash((self.id, type(self).__name__))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


@dataclass(frozen=True)
class Customer:
    """Value Object: Payer identity attached to a reservation"""
    name: str
    customer_id: str

    def __post_init__(self):
        if not self.customer_id or not self.customer_id.strip():
            raise ValueError("Customer id cannot be empty")

    def __str__(self) -> str:
        return f"{self.name} ({self.customer_id})"


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class DayOfWeek(Enum):
    """Days of the week, numbered like datetime.weekday()"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def of(cls, when: datetime) -> 'DayOfWeek':
        """Day of week of a timestamp"""
        return cls(when.weekday())

    def __str__(self) -> str:
        return self.name.title()


class ConditionType(Enum):
    """
    Enumeration of discount condition variants
    """
    SEQUENCE = "sequence"   # Matches the n-th screening of the day
    PERIOD = "period"       # Matches a weekday and time-of-day window


class DiscountType(Enum):
    """
    Enumeration of discount policy variants
    """
    AMOUNT = "amount"       # Fixed amount off
    PERCENT = "percent"     # Fraction of the base fee off
    NONE = "none"           # No discount


class RatePolicyType(Enum):
    """
    Enumeration of base rate policy variants
    """
    REGULAR = "regular"                     # One rate per unit of duration
    NIGHTLY_DISCOUNT = "nightly_discount"   # Separate rate for late-night usage


class AdjustmentType(Enum):
    """
    Enumeration of additional rate policy (decorator) variants
    """
    TAX = "tax"                             # fee + fee * rate
    RATE_DISCOUNT = "rate_discount"         # fee - amount
