# File: src/feepolicy/infrastructure/factories.py
"""
Factory Pattern Implementation for the Fee Policy Engine

This module builds domain policy graphs from the forms callers hand in:
1. Strategy Factories - Conditions, discount policies and rate policies by type name
2. DTO Factories - Domain policies from validated DTOs
3. Builder - Rate policy chains assembled innermost-first

Factories only construct; they never compute fees. Bad input surfaces as
ValueError (or the domain error raised by the value object itself).
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, Dict, List, Any, Union
from datetime import timedelta
import logging

from ..domain.models import (
    Money, DayOfWeek, Numeric,
    ConditionType, DiscountType, RatePolicyType, AdjustmentType
)
from ..domain.strategies import (
    DiscountCondition, DiscountPolicy,
    BaseRatePolicy, AdditionalRatePolicy, RatePolicy
)
from ..domain.aggregates import Movie
from ..application.dtos import (
    MoneyDTO, DiscountConditionDTO, DiscountPolicyDTO, MovieDTO,
    RatePolicyDTO, RatePolicyTypeDTO
)


T = TypeVar('T')


# ============================================================================
# FACTORY INTERFACES
# ============================================================================

class Factory(ABC, Generic[T]):
    """Base factory interface"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def create(self, **kwargs) -> T:
        """Create an instance of T"""
        pass

    @abstractmethod
    def create_from_dto(self, dto: Any) -> T:
        """Create instance from DTO"""
        pass


class StrategyFactory(Factory[T], ABC):
    """Factory for strategy objects"""

    @abstractmethod
    def create_by_type(self, strategy_type: Any, **kwargs) -> T:
        """Create strategy by type name"""
        pass

    def create(self, **kwargs) -> T:
        """Create strategy from keyword arguments; 'type' selects the variant"""
        params = dict(kwargs)
        if "type" not in params:
            raise ValueError(f"{self.__class__.__name__}.create requires 'type'")
        return self.create_by_type(params.pop("type"), **params)


def money_from_dto(dto: MoneyDTO) -> Money:
    return Money(dto.amount, dto.currency)


def _as_money(value: Union[Money, Numeric, Dict[str, Any]]) -> Money:
    if isinstance(value, Money):
        return value
    if isinstance(value, dict):
        return money_from_dto(MoneyDTO.model_validate(value))
    return Money.of(value)


def _enum_member(enum_cls, value: Any):
    """Look up an enum member by member, value or case-insensitive name"""
    if isinstance(value, enum_cls):
        return value
    if hasattr(value, "value"):
        value = value.value
    for member in enum_cls:
        if member.value == value or (isinstance(value, str) and member.name == value.upper()):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {value}")


# ============================================================================
# DISCOUNT FACTORIES
# ============================================================================

class DiscountConditionFactory(StrategyFactory[DiscountCondition]):
    """Factory for creating DiscountCondition instances"""

    def create_by_type(
        self,
        strategy_type: Union[str, ConditionType],
        **kwargs
    ) -> DiscountCondition:
        """
        Create condition by type

        Args:
            strategy_type: "sequence" or "period"
            sequence: Sequence number (sequence conditions)
            day_of_week: DayOfWeek, weekday number or name (period conditions)
            start_time: Window start, inclusive (period conditions)
            end_time: Window end, inclusive (period conditions)
        """
        condition_type = _enum_member(ConditionType, strategy_type)

        if condition_type == ConditionType.SEQUENCE:
            if "sequence" not in kwargs:
                raise ValueError("Sequence condition requires 'sequence'")
            return DiscountCondition.sequence(kwargs["sequence"])

        missing = [k for k in ("day_of_week", "start_time", "end_time") if kwargs.get(k) is None]
        if missing:
            raise ValueError(f"Period condition requires {', '.join(missing)}")

        day = kwargs["day_of_week"]
        day_of_week = DayOfWeek(day) if isinstance(day, int) else _enum_member(DayOfWeek, day)
        return DiscountCondition.period(day_of_week, kwargs["start_time"], kwargs["end_time"])

    def create_from_dto(self, dto: DiscountConditionDTO) -> DiscountCondition:
        return self.create_by_type(
            dto.type.value,
            sequence=dto.sequence,
            day_of_week=dto.day_of_week.name if dto.day_of_week else None,
            start_time=dto.start_time,
            end_time=dto.end_time
        )


class DiscountPolicyFactory(StrategyFactory[DiscountPolicy]):
    """Factory for creating DiscountPolicy instances"""

    def __init__(self, condition_factory: Optional[DiscountConditionFactory] = None):
        super().__init__()
        self.condition_factory = condition_factory or DiscountConditionFactory()

    def create_by_type(
        self,
        strategy_type: Union[str, DiscountType],
        **kwargs
    ) -> DiscountPolicy:
        """
        Create discount policy by type

        Args:
            strategy_type: "amount", "percent" or "none"
            amount: Money (or number) off, amount policies
            percent: Fraction off, percent policies
            conditions: DiscountConditions, or dicts accepted by the condition factory
        """
        discount_type = _enum_member(DiscountType, strategy_type)
        conditions = [
            c if isinstance(c, DiscountCondition) else self.condition_factory.create(**c)
            for c in kwargs.get("conditions") or []
        ]

        if discount_type == DiscountType.AMOUNT:
            if kwargs.get("amount") is None:
                raise ValueError("Amount discount requires 'amount'")
            return DiscountPolicy.amount_off(_as_money(kwargs["amount"]), *conditions)

        if discount_type == DiscountType.PERCENT:
            if kwargs.get("percent") is None:
                raise ValueError("Percent discount requires 'percent'")
            return DiscountPolicy.percent_off(kwargs["percent"], *conditions)

        if conditions:
            self.logger.debug("Ignoring conditions on a no-discount policy")
        return DiscountPolicy.none()

    def create_from_dto(self, dto: DiscountPolicyDTO) -> DiscountPolicy:
        conditions = [self.condition_factory.create_from_dto(c) for c in dto.conditions]
        amount = money_from_dto(dto.amount) if dto.amount is not None else None
        return self.create_by_type(
            dto.type.value,
            amount=amount,
            percent=dto.percent,
            conditions=conditions
        )


class MovieFactory(Factory[Movie]):
    """Factory for creating Movie priced items"""

    def __init__(self, policy_factory: Optional[DiscountPolicyFactory] = None):
        super().__init__()
        self.policy_factory = policy_factory or DiscountPolicyFactory()

    def create(
        self,
        title: str,
        running_time_minutes: int,
        base_fee: Union[Money, Numeric],
        discount_policy: Optional[DiscountPolicy] = None
    ) -> Movie:
        return Movie(
            title,
            timedelta(minutes=running_time_minutes),
            _as_money(base_fee),
            discount_policy
        )

    def create_from_dto(self, dto: MovieDTO) -> Movie:
        return self.create(
            dto.title,
            dto.running_time_minutes,
            money_from_dto(dto.base_fee),
            self.policy_factory.create_from_dto(dto.discount_policy)
        )


# ============================================================================
# RATE POLICY FACTORY
# ============================================================================

class RatePolicyFactory(StrategyFactory[RatePolicy]):
    """Factory for creating base and additional rate policies"""

    def create_by_type(
        self,
        strategy_type: Union[str, RatePolicyType, AdjustmentType],
        **kwargs
    ) -> RatePolicy:
        """
        Create rate policy by type

        Args:
            strategy_type: "regular", "nightly_discount", "tax" or "rate_discount"
            regular_rate, nightly_rate: Money per unit (base policies)
            unit: timedelta, or unit_seconds (base policies)
            night_start_hour: First nightly hour (nightly_discount, default 22)
            next_policy: Wrapped policy (tax, rate_discount)
            tax_rate: Tax fraction (tax)
            discount_amount: Money subtracted (rate_discount)
        """
        if isinstance(strategy_type, (RatePolicyType, AdjustmentType)):
            strategy_type = strategy_type.value

        if strategy_type in (RatePolicyType.REGULAR.value, RatePolicyType.NIGHTLY_DISCOUNT.value):
            return self._create_base(strategy_type, kwargs)
        if strategy_type in (AdjustmentType.TAX.value, AdjustmentType.RATE_DISCOUNT.value):
            return self._create_adjustment(strategy_type, kwargs)

        raise ValueError(f"Unknown rate policy type: {strategy_type}")

    def _create_base(self, strategy_type: str, params: Dict[str, Any]) -> BaseRatePolicy:
        unit = params.get("unit")
        if unit is None and params.get("unit_seconds") is not None:
            unit = timedelta(seconds=params["unit_seconds"])
        if unit is None or params.get("regular_rate") is None:
            raise ValueError(f"{strategy_type} policy requires 'regular_rate' and a unit")

        regular_rate = _as_money(params["regular_rate"])
        if strategy_type == RatePolicyType.REGULAR.value:
            return BaseRatePolicy.regular(regular_rate, unit)

        if params.get("nightly_rate") is None:
            raise ValueError("Nightly discount policy requires 'nightly_rate'")
        return BaseRatePolicy.nightly_discount(
            _as_money(params["nightly_rate"]),
            regular_rate,
            unit,
            night_start_hour=params.get("night_start_hour", 22)
        )

    def _create_adjustment(self, strategy_type: str, params: Dict[str, Any]) -> AdditionalRatePolicy:
        next_policy = params.get("next_policy")
        if next_policy is None:
            raise ValueError(f"{strategy_type} policy requires 'next_policy'")
        if isinstance(next_policy, dict):
            next_policy = self.create(**next_policy)

        if strategy_type == AdjustmentType.TAX.value:
            if params.get("tax_rate") is None:
                raise ValueError("Tax policy requires 'tax_rate'")
            return AdditionalRatePolicy.taxable(next_policy, params["tax_rate"])

        if params.get("discount_amount") is None:
            raise ValueError("Rate discount policy requires 'discount_amount'")
        return AdditionalRatePolicy.rate_discountable(next_policy, _as_money(params["discount_amount"]))

    def create_from_dto(self, dto: RatePolicyDTO) -> RatePolicy:
        """Build the chain recursively, innermost policy first"""
        if dto.type in (RatePolicyTypeDTO.TAX, RatePolicyTypeDTO.RATE_DISCOUNT):
            return self.create_by_type(
                dto.type.value,
                next_policy=self.create_from_dto(dto.next_policy),
                tax_rate=dto.tax_rate,
                discount_amount=money_from_dto(dto.discount_amount) if dto.discount_amount else None
            )

        return self.create_by_type(
            dto.type.value,
            regular_rate=money_from_dto(dto.regular_rate),
            nightly_rate=money_from_dto(dto.nightly_rate) if dto.nightly_rate else None,
            unit_seconds=dto.unit_seconds,
            night_start_hour=dto.night_start_hour
        )


# ============================================================================
# BUILDER PATTERN (Alternative to Factory)
# ============================================================================

class RatePolicyChainBuilder:
    """
    Builder for rate policy chains

    Start with a base rate, then each with_* call wraps everything added so
    far. The first adjustment added is evaluated first.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> 'RatePolicyChainBuilder':
        self._policy: Optional[RatePolicy] = None
        return self

    def regular(self, rate: Money, unit: timedelta) -> 'RatePolicyChainBuilder':
        self._policy = BaseRatePolicy.regular(rate, unit)
        return self

    def nightly_discount(
        self,
        nightly_rate: Money,
        regular_rate: Money,
        unit: timedelta,
        night_start_hour: int = 22
    ) -> 'RatePolicyChainBuilder':
        self._policy = BaseRatePolicy.nightly_discount(nightly_rate, regular_rate, unit, night_start_hour)
        return self

    def _require_base(self) -> RatePolicy:
        if self._policy is None:
            raise ValueError("Set a base rate policy before adding adjustments")
        return self._policy

    def with_tax(self, tax_rate: Numeric) -> 'RatePolicyChainBuilder':
        self._policy = AdditionalRatePolicy.taxable(self._require_base(), tax_rate)
        return self

    def with_rate_discount(self, amount: Money) -> 'RatePolicyChainBuilder':
        self._policy = AdditionalRatePolicy.rate_discountable(self._require_base(), amount)
        return self

    def build(self) -> RatePolicy:
        policy = self._require_base()
        self.reset()
        return policy


# ============================================================================
# FACTORY REGISTRY (Singleton)
# ============================================================================

class FactoryRegistry:
    """Singleton registry for all factories"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all factories"""
        self.condition_factory = DiscountConditionFactory()
        self.discount_policy_factory = DiscountPolicyFactory(self.condition_factory)
        self.movie_factory = MovieFactory(self.discount_policy_factory)
        self.rate_policy_factory = RatePolicyFactory()

    def get_factory(self, factory_type: str) -> Any:
        """Get factory by type"""
        factory_map = {
            'condition': self.condition_factory,
            'discount_policy': self.discount_policy_factory,
            'movie': self.movie_factory,
            'rate_policy': self.rate_policy_factory,
        }

        factory = factory_map.get(factory_type)
        if not factory:
            raise ValueError(f"Unknown factory type: {factory_type}")

        return factory

    def available_factories(self) -> List[str]:
        return ['condition', 'discount_policy', 'movie', 'rate_policy']
