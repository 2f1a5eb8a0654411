# File: src/feepolicy/domain/strategies.py
"""
Pricing Strategies for the Fee Policy Engine

This module holds the pluggable fee-transformation rules. Each rule family is
a closed set of variants selected by an enum tag, with one dispatch per
operation:

1. Discount Conditions - Sequence and period predicates over a screening
2. Discount Policies - Amount, percent or no discount, gated by conditions (OR)
3. Base Rate Policies - Regular and nightly-discount per-unit rates over usage records
4. Additional Rate Policies - Tax and flat discount wrappers around another rate policy

All strategies are frozen dataclasses. They are built once, never mutated,
and can be shared by reference between any number of priced items or ledgers.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union
from datetime import datetime, time, timedelta
from decimal import Decimal, Context
import logging

from .models import (
    Money, UsageRecord, DayOfWeek, Numeric, to_decimal,
    ConditionType, DiscountType, RatePolicyType, AdjustmentType,
    UnsupportedVariantError, CurrencyMismatchError
)


logger = logging.getLogger(__name__)

_MICROSECOND = timedelta(microseconds=1)

# The duration ratio is the one place a fee is rounded: 28 significant digits
_RATIO_CONTEXT = Context(prec=28)


# ============================================================================
# DISCOUNT CONDITIONS
# ============================================================================

@dataclass(frozen=True)
class DiscountCondition:
    """
    Strategy: Decides whether a discount may apply to a given screening

    SEQUENCE matches the screening's sequence number exactly.
    PERIOD matches the weekday and a time-of-day window, both ends inclusive.
    """
    condition_type: ConditionType
    sequence_number: Optional[int] = None
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def __post_init__(self):
        """Validate that the variant carries its own fields"""
        if self.condition_type == ConditionType.SEQUENCE:
            if self.sequence_number is None:
                raise ValueError("Sequence condition requires a sequence number")
        elif self.condition_type == ConditionType.PERIOD:
            if self.day_of_week is None or self.start_time is None or self.end_time is None:
                raise ValueError("Period condition requires day of week, start time and end time")
            if isinstance(self.day_of_week, int):
                object.__setattr__(self, 'day_of_week', DayOfWeek(self.day_of_week))

    @classmethod
    def sequence(cls, sequence_number: int) -> 'DiscountCondition':
        """Condition satisfied by the n-th screening"""
        return cls(ConditionType.SEQUENCE, sequence_number=sequence_number)

    @classmethod
    def period(cls, day_of_week: DayOfWeek, start_time: time, end_time: time) -> 'DiscountCondition':
        """Condition satisfied on a weekday between start_time and end_time"""
        return cls(
            ConditionType.PERIOD,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time
        )

    def is_sequence_satisfied(self, sequence: int) -> bool:
        """Sequence number equals this condition's number"""
        if self.condition_type != ConditionType.SEQUENCE:
            raise UnsupportedVariantError("is_sequence_satisfied", self.condition_type)
        return self.sequence_number == sequence

    def is_period_satisfied(self, day_of_week: DayOfWeek, time_of_day: time) -> bool:
        """Same weekday and time within the window, both ends inclusive"""
        if self.condition_type != ConditionType.PERIOD:
            raise UnsupportedVariantError("is_period_satisfied", self.condition_type)
        return (self.day_of_week == day_of_week and
                self.start_time <= time_of_day <= self.end_time)

    def is_satisfied_by(self, sequence: int, when: datetime) -> bool:
        """Check the condition against a screening's sequence number and start time"""
        if self.condition_type == ConditionType.SEQUENCE:
            return self.is_sequence_satisfied(sequence)
        return self.is_period_satisfied(DayOfWeek.of(when), when.time())

    def __str__(self) -> str:
        if self.condition_type == ConditionType.SEQUENCE:
            return f"Sequence #{self.sequence_number}"
        return (f"{self.day_of_week} "
                f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}")


# ============================================================================
# DISCOUNT POLICIES
# ============================================================================

@dataclass(frozen=True)
class DiscountPolicy:
    """
    Strategy: Computes a discounted fee from a base fee

    The policy is applicable when any of its conditions is satisfied. The
    variant payload is a Money for AMOUNT, a Decimal fraction for PERCENT and
    None for NONE. Percentages are not range-checked.
    """
    discount_type: DiscountType
    conditions: Tuple[DiscountCondition, ...] = ()
    value: Optional[Union[Money, Decimal]] = None

    def __post_init__(self):
        object.__setattr__(self, 'conditions', tuple(self.conditions))

        if self.discount_type == DiscountType.AMOUNT:
            if not isinstance(self.value, Money):
                raise ValueError("Amount discount requires a Money amount")
        elif self.discount_type == DiscountType.PERCENT:
            if self.value is None:
                raise ValueError("Percent discount requires a percentage")
            object.__setattr__(self, 'value', to_decimal(self.value))
        else:
            if self.value is not None:
                raise ValueError("No-discount policy takes no value")
            if self.conditions:
                raise ValueError("No-discount policy takes no conditions")

    @classmethod
    def amount_off(cls, amount: Money, *conditions: DiscountCondition) -> 'DiscountPolicy':
        """Fixed amount off when any condition holds"""
        return cls(DiscountType.AMOUNT, conditions, amount)

    @classmethod
    def percent_off(cls, percent: Numeric, *conditions: DiscountCondition) -> 'DiscountPolicy':
        """Fraction of the base fee off when any condition holds"""
        return cls(DiscountType.PERCENT, conditions, to_decimal(percent))

    @classmethod
    def none(cls) -> 'DiscountPolicy':
        """Policy that never changes the fee"""
        return cls(DiscountType.NONE)

    @property
    def discount_amount(self) -> Money:
        """Amount taken off (amount policies only)"""
        if self.discount_type != DiscountType.AMOUNT:
            raise UnsupportedVariantError("discount_amount", self.discount_type)
        return self.value

    @property
    def discount_percent(self) -> Decimal:
        """Fraction taken off (percent policies only)"""
        if self.discount_type != DiscountType.PERCENT:
            raise UnsupportedVariantError("discount_percent", self.discount_type)
        return self.value

    def is_applicable(self, sequence: int, when: datetime) -> bool:
        """True iff any owned condition is satisfied"""
        return any(condition.is_satisfied_by(sequence, when) for condition in self.conditions)

    def calculate_amount_discounted_fee(self, fee: Money) -> Money:
        """fee - amount; not clamped, the result may be negative"""
        return fee.minus(self.discount_amount)

    def calculate_percent_discounted_fee(self, fee: Money) -> Money:
        """fee - fee * percent"""
        return fee.minus(fee.times(self.discount_percent))

    def calculate_none_discounted_fee(self, fee: Money) -> Money:
        """fee unchanged (no-discount policies only)"""
        if self.discount_type != DiscountType.NONE:
            raise UnsupportedVariantError("calculate_none_discounted_fee", self.discount_type)
        return fee

    def apply(self, base_fee: Money) -> Money:
        """Apply the variant's transform, ignoring conditions"""
        if self.discount_type == DiscountType.AMOUNT:
            return self.calculate_amount_discounted_fee(base_fee)
        if self.discount_type == DiscountType.PERCENT:
            return self.calculate_percent_discounted_fee(base_fee)
        return self.calculate_none_discounted_fee(base_fee)

    def calculate_fee(self, base_fee: Money, sequence: int, when: datetime) -> Money:
        """
        Resolve the fee for a screening
        Returns: discounted fee when applicable, otherwise base_fee unchanged
        """
        if not self.is_applicable(sequence, when):
            logger.debug(f"{self} not applicable to sequence {sequence} at {when}")
            return base_fee

        fee = self.apply(base_fee)
        logger.debug(f"{self} applied to sequence {sequence} at {when}: {base_fee} -> {fee}")
        return fee

    def __str__(self) -> str:
        if self.discount_type == DiscountType.AMOUNT:
            return f"AmountDiscountPolicy({self.value})"
        if self.discount_type == DiscountType.PERCENT:
            return f"PercentDiscountPolicy({self.value})"
        return "NoneDiscountPolicy"


# ============================================================================
# RATE POLICIES
# ============================================================================

def _unit_ratio(duration: timedelta, unit: timedelta) -> Decimal:
    """Real-valued duration / unit, computed from whole microseconds"""
    return _RATIO_CONTEXT.divide(Decimal(duration // _MICROSECOND), Decimal(unit // _MICROSECOND))


@dataclass(frozen=True)
class BaseRatePolicy:
    """
    Strategy: Base fee over a ledger of usage records

    Each record is charged rate * (duration / unit). The nightly-discount
    variant charges nightly_rate for records starting at or after
    night_start_hour and regular_rate otherwise. Record fees are summed in
    ledger order.
    """
    rate_type: RatePolicyType
    regular_rate: Money
    unit: timedelta
    nightly_rate: Optional[Money] = None
    night_start_hour: int = 22

    def __post_init__(self):
        """Validate rate policy"""
        if self.unit <= timedelta(0):
            raise ValueError(f"Rate unit must be positive: {self.unit}")

        if not 0 <= self.night_start_hour <= 23:
            raise ValueError(f"Night start hour must be 0-23: {self.night_start_hour}")

        if self.rate_type == RatePolicyType.NIGHTLY_DISCOUNT:
            if self.nightly_rate is None:
                raise ValueError("Nightly discount policy requires a nightly rate")
            if self.nightly_rate.currency != self.regular_rate.currency:
                raise CurrencyMismatchError(
                    f"Nightly rate in {self.nightly_rate.currency}, "
                    f"regular rate in {self.regular_rate.currency}"
                )
        elif self.nightly_rate is not None:
            raise ValueError("Regular policy takes no nightly rate")

    @classmethod
    def regular(cls, rate: Money, unit: timedelta) -> 'BaseRatePolicy':
        """One rate per unit of usage"""
        return cls(RatePolicyType.REGULAR, rate, unit)

    @classmethod
    def nightly_discount(
        cls,
        nightly_rate: Money,
        regular_rate: Money,
        unit: timedelta,
        night_start_hour: int = 22
    ) -> 'BaseRatePolicy':
        """nightly_rate from night_start_hour on, regular_rate before"""
        return cls(
            RatePolicyType.NIGHTLY_DISCOUNT,
            regular_rate,
            unit,
            nightly_rate=nightly_rate,
            night_start_hour=night_start_hour
        )

    def rate_for(self, record: UsageRecord) -> Money:
        """Select the per-unit rate from the record's start hour"""
        if (self.rate_type == RatePolicyType.NIGHTLY_DISCOUNT and
                record.start_hour >= self.night_start_hour):
            return self.nightly_rate
        return self.regular_rate

    def calculate_record_fee(self, record: UsageRecord) -> Money:
        """rate * (duration / unit) for one record"""
        return self.rate_for(record).times(_unit_ratio(record.duration, self.unit))

    def calculate_fee(self, records: Sequence[UsageRecord]) -> Money:
        """Sum of per-record fees"""
        result = Money(Decimal(0), self.regular_rate.currency)
        for record in records:
            result = result.plus(self.calculate_record_fee(record))

        logger.debug(f"{self.describe()} over {len(records)} records: {result}")
        return result

    def layers(self) -> Tuple['RatePolicy', ...]:
        """A base policy is its own whole chain"""
        return (self,)

    @property
    def base_policy(self) -> 'BaseRatePolicy':
        """Innermost policy of the chain"""
        return self

    def describe(self) -> str:
        """Short label, e.g. Regular(10 KRW per 10s)"""
        unit_seconds = f"{self.unit.total_seconds():g}s"
        if self.rate_type == RatePolicyType.NIGHTLY_DISCOUNT:
            return (f"NightlyDiscount({self.nightly_rate} from {self.night_start_hour:02d}:00, "
                    f"{self.regular_rate} otherwise, per {unit_seconds})")
        return f"Regular({self.regular_rate} per {unit_seconds})"


@dataclass(frozen=True)
class AdditionalRatePolicy:
    """
    Strategy (Decorator): Adjusts the fee of the policy it wraps

    The wrapped policy is evaluated first and this policy transforms its
    result. Wrapping order is fixed at construction and changes the result:
    tax around a discount differs from a discount around tax.
    """
    adjustment_type: AdjustmentType
    next_policy: 'RatePolicy'
    value: Union[Decimal, Money]

    def __post_init__(self):
        if not isinstance(self.next_policy, (BaseRatePolicy, AdditionalRatePolicy)):
            raise TypeError(
                f"next_policy must be a rate policy, got {type(self.next_policy).__name__}"
            )

        if self.adjustment_type == AdjustmentType.TAX:
            object.__setattr__(self, 'value', to_decimal(self.value))
        elif not isinstance(self.value, Money):
            raise ValueError("Rate discount requires a Money amount")
        else:
            currency = self.next_policy.base_policy.regular_rate.currency
            if self.value.currency != currency:
                raise CurrencyMismatchError(
                    f"Rate discount in {self.value.currency}, wrapped policy charges {currency}"
                )

    @classmethod
    def taxable(cls, next_policy: 'RatePolicy', tax_rate: Numeric) -> 'AdditionalRatePolicy':
        """Wrap next_policy, adding fee * tax_rate"""
        return cls(AdjustmentType.TAX, next_policy, to_decimal(tax_rate))

    @classmethod
    def rate_discountable(cls, next_policy: 'RatePolicy', amount: Money) -> 'AdditionalRatePolicy':
        """Wrap next_policy, subtracting a flat amount"""
        return cls(AdjustmentType.RATE_DISCOUNT, next_policy, amount)

    @property
    def tax_rate(self) -> Decimal:
        """Tax fraction (tax adjustments only)"""
        if self.adjustment_type != AdjustmentType.TAX:
            raise UnsupportedVariantError("tax_rate", self.adjustment_type)
        return self.value

    @property
    def discount_amount(self) -> Money:
        """Flat amount subtracted (rate discounts only)"""
        if self.adjustment_type != AdjustmentType.RATE_DISCOUNT:
            raise UnsupportedVariantError("discount_amount", self.adjustment_type)
        return self.value

    def adjust(self, fee: Money) -> Money:
        """Transform an already-computed inner fee"""
        if self.adjustment_type == AdjustmentType.TAX:
            return fee.plus(fee.times(self.tax_rate))
        return fee.minus(self.discount_amount)

    def calculate_fee(self, records: Sequence[UsageRecord]) -> Money:
        """Evaluate the wrapped policy, then adjust its fee"""
        fee = self.next_policy.calculate_fee(records)
        adjusted = self.adjust(fee)
        logger.debug(f"{self.describe()}: {fee} -> {adjusted}")
        return adjusted

    def layers(self) -> Tuple['RatePolicy', ...]:
        """Chain from this policy (outermost) down to the base policy"""
        return (self,) + self.next_policy.layers()

    @property
    def base_policy(self) -> BaseRatePolicy:
        """Innermost policy of the chain"""
        return self.next_policy.base_policy

    def describe(self) -> str:
        """Short label for this layer only"""
        if self.adjustment_type == AdjustmentType.TAX:
            return f"Tax({self.value})"
        return f"RateDiscount({self.value})"


RatePolicy = Union[BaseRatePolicy, AdditionalRatePolicy]
