from .models import (
    Money, UsageRecord, Customer, Entity, DayOfWeek,
    ConditionType, DiscountType, RatePolicyType, AdjustmentType,
    FeePolicyError, UnsupportedVariantError, MalformedIntervalError, CurrencyMismatchError
)
from .strategies import (
    DiscountCondition, DiscountPolicy, BaseRatePolicy, AdditionalRatePolicy, RatePolicy
)
from .aggregates import Movie, Screening, Reservation, UsageLedger

__all__ = [
    "Money",
    "UsageRecord",
    "Customer",
    "Entity",
    "DayOfWeek",
    "ConditionType",
    "DiscountType",
    "RatePolicyType",
    "AdjustmentType",
    "FeePolicyError",
    "UnsupportedVariantError",
    "MalformedIntervalError",
    "CurrencyMismatchError",
    "DiscountCondition",
    "DiscountPolicy",
    "BaseRatePolicy",
    "AdditionalRatePolicy",
    "RatePolicy",
    "Movie",
    "Screening",
    "Reservation",
    "UsageLedger",
]
