# File: src/feepolicy/domain/aggregates.py
"""
Aggregates for the Fee Policy Engine

Aggregates:
1. Movie - Priced item binding a base fee to one discount policy
2. Screening - A scheduled showing; computes and caches its fee once
3. Reservation - Multiplies a screening's fee by the audience count
4. UsageLedger - Append-only usage records with a swappable rate policy

Key Concepts:
- Movie, Screening and Reservation are immutable after construction
- UsageLedger is the only mutable aggregate; it is not thread-safe and
  callers must serialize record appends and policy swaps themselves
"""

from typing import List, Optional, Tuple
from datetime import datetime, timedelta
import logging

from .models import Entity, Money, UsageRecord, Customer, DiscountType, CurrencyMismatchError
from .strategies import (
    DiscountPolicy, BaseRatePolicy, AdditionalRatePolicy, RatePolicy
)


# ============================================================================
# SCREENING PRICING
# ============================================================================

class Movie(Entity):
    """
    Priced item: a base fee and the discount policy that may reduce it
    """

    def __init__(
        self,
        title: str,
        running_time: timedelta,
        base_fee: Money,
        discount_policy: Optional[DiscountPolicy] = None,
        id: Optional[str] = None
    ):
        super().__init__(id)
        if not isinstance(base_fee, Money):
            raise TypeError(f"base_fee must be Money, got {type(base_fee).__name__}")

        discount_policy = discount_policy or DiscountPolicy.none()
        if (discount_policy.discount_type == DiscountType.AMOUNT and
                discount_policy.discount_amount.currency != base_fee.currency):
            raise CurrencyMismatchError(
                f"Discount in {discount_policy.discount_amount.currency}, "
                f"base fee in {base_fee.currency}"
            )

        self._title = title
        self._running_time = running_time
        self._base_fee = base_fee
        self._discount_policy = discount_policy

    @property
    def title(self) -> str:
        return self._title

    @property
    def running_time(self) -> timedelta:
        return self._running_time

    @property
    def base_fee(self) -> Money:
        return self._base_fee

    @property
    def discount_policy(self) -> DiscountPolicy:
        return self._discount_policy

    def is_discountable(self, sequence: int, when: datetime) -> bool:
        return self._discount_policy.is_applicable(sequence, when)

    def calculate_fee(self, sequence: int, when: datetime) -> Money:
        """Fee for one seat at the given screening; pure"""
        return self._discount_policy.calculate_fee(self._base_fee, sequence, when)

    def __str__(self) -> str:
        minutes = int(self._running_time.total_seconds() // 60)
        return f"{self._title} ({minutes} min, {self._base_fee}, {self._discount_policy})"


class Screening(Entity):
    """
    A scheduled showing of a movie

    The fee is computed once at construction and cached for the lifetime of
    the screening. Rescheduling means constructing a new Screening.
    """

    def __init__(
        self,
        movie: Movie,
        sequence: int,
        when_screened: datetime,
        id: Optional[str] = None
    ):
        super().__init__(id)
        self._movie = movie
        self._sequence = sequence
        self._when_screened = when_screened

        self._discount_applied = movie.is_discountable(sequence, when_screened)
        self._fee = movie.calculate_fee(sequence, when_screened)

        logging.getLogger(self.__class__.__name__).debug(
            f"Screening of '{movie.title}' #{sequence} at {when_screened}: fee {self._fee}"
        )

    @property
    def movie(self) -> Movie:
        return self._movie

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def when_screened(self) -> datetime:
        return self._when_screened

    @property
    def fee(self) -> Money:
        return self._fee

    @property
    def discount_applied(self) -> bool:
        return self._discount_applied

    def get_fee(self) -> Money:
        return self._fee

    def __str__(self) -> str:
        return (f"Screening #{self._sequence} of '{self._movie.title}' "
                f"at {self._when_screened:%Y-%m-%d %H:%M} ({self._fee})")


class Reservation(Entity):
    """
    Terminal consumer: the fee for a number of seats at one screening
    """

    def __init__(
        self,
        customer: Customer,
        screening: Screening,
        audience_count: int,
        id: Optional[str] = None
    ):
        super().__init__(id)
        if isinstance(audience_count, bool) or not isinstance(audience_count, int):
            raise TypeError("Audience count must be an integer")
        if audience_count < 1:
            raise ValueError(f"Audience count must be at least 1, got {audience_count}")

        self._customer = customer
        self._screening = screening
        self._audience_count = audience_count
        self._fee = screening.fee.times(audience_count)

        logging.getLogger(self.__class__.__name__).info(
            f"Reservation {self.id} for {customer}: {audience_count} x {screening.fee} = {self._fee}"
        )

    @property
    def customer(self) -> Customer:
        return self._customer

    @property
    def screening(self) -> Screening:
        return self._screening

    @property
    def audience_count(self) -> int:
        return self._audience_count

    @property
    def fee(self) -> Money:
        return self._fee

    def __str__(self) -> str:
        return f"Reservation for {self._customer}: {self._audience_count} seat(s), {self._fee}"


# ============================================================================
# USAGE BILLING
# ============================================================================

class UsageLedger(Entity):
    """
    Aggregate: Append-only ledger of usage records with a current rate policy

    The rate policy may be replaced between fee queries; records are kept.
    Fee queries never mutate the ledger.
    """

    def __init__(self, rate_policy: RatePolicy, id: Optional[str] = None):
        super().__init__(id)
        self._check_policy(rate_policy)
        self._rate_policy = rate_policy
        self._records: List[UsageRecord] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def _check_policy(rate_policy: RatePolicy) -> None:
        if not isinstance(rate_policy, (BaseRatePolicy, AdditionalRatePolicy)):
            raise TypeError(f"Expected a rate policy, got {type(rate_policy).__name__}")

    @property
    def rate_policy(self) -> RatePolicy:
        return self._rate_policy

    @property
    def usage_records(self) -> Tuple[UsageRecord, ...]:
        return tuple(self._records)

    @property
    def total_duration(self) -> timedelta:
        return sum((record.duration for record in self._records), timedelta(0))

    def add_usage_record(self, record: UsageRecord) -> None:
        if not isinstance(record, UsageRecord):
            raise TypeError(f"Expected UsageRecord, got {type(record).__name__}")
        self._records.append(record)
        self._logger.debug(f"Ledger {self.id}: added {record}")

    def set_rate_policy(self, rate_policy: RatePolicy) -> None:
        self._check_policy(rate_policy)
        self._rate_policy = rate_policy
        self._logger.debug(f"Ledger {self.id}: rate policy set to {rate_policy.describe()}")

    def calculate_fee(self) -> Money:
        return self._rate_policy.calculate_fee(self.usage_records)

    def __len__(self) -> int:
        return len(self._records)
