# File: src/feepolicy/application/pricing_service.py
"""
Pricing Application Service

This module implements the application service layer for the fee policy
engine. It is the surface an outer application (console demo, test harness,
service wrapper) talks to.

Responsibilities:
1. Turn request DTOs into domain policy graphs via the factories
2. Price screenings and reservations
3. Keep usage ledgers per account and price them under their current policy
4. Map construction failures to service errors

Key Principles:
- Dependency Injection for testability
- Fee computation is pure; only ledgers hold state
- Not thread-safe: callers serialize access to one service instance
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
import logging

from ..domain.models import Money, UsageRecord, Customer
from ..domain.aggregates import Screening, Reservation, UsageLedger
from .dtos import (
    MoneyDTO, ScreeningRequestDTO, ReservationRequestDTO,
    RatePolicyDTO, UsageRecordDTO,
    FeeQuoteDTO, ReservationDTO, UsageFeeDTO
)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PricingServiceError(Exception):
    """Base exception for pricing service errors"""
    pass


class PolicyConfigurationError(PricingServiceError):
    """Exception when a request cannot be turned into a policy graph"""
    pass


class ReservationError(PricingServiceError):
    """Exception for reservation errors"""
    pass


class LedgerNotFoundError(PricingServiceError):
    """Exception when no ledger is open for an account"""

    def __init__(self, account_id: str):
        super().__init__(f"No usage ledger open for account '{account_id}'")
        self.account_id = account_id


class DuplicateLedgerError(PricingServiceError):
    """Exception when a ledger is already open for an account"""

    def __init__(self, account_id: str):
        super().__init__(f"Usage ledger already open for account '{account_id}'")
        self.account_id = account_id


# ============================================================================
# MAIN PRICING SERVICE
# ============================================================================

class PricingService:
    """
    Main application service for fee computation

    Use cases:
    1. Quote a seat at a screening
    2. Reserve seats at a screening
    3. Open usage ledgers, record usage, swap rate policies, compute usage fees
    """

    DEFAULT_CONFIG: Dict[str, Any] = {
        "quote_decimal_places": None,   # None keeps quotes exact
        "max_audience_count": None,     # None means no upper bound
    }

    def __init__(self, factory_registry: Optional[Any] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the pricing service

        Args:
            factory_registry: Registry providing the policy factories.
                              If not provided, the shared FactoryRegistry is used.
            config: Overrides for DEFAULT_CONFIG
        """
        self.logger = logging.getLogger(self.__class__.__name__)

        if factory_registry is None:
            from ..infrastructure.factories import FactoryRegistry
            factory_registry = FactoryRegistry()

        self.movie_factory = factory_registry.get_factory('movie')
        self.rate_policy_factory = factory_registry.get_factory('rate_policy')

        unknown = set(config or {}) - set(self.DEFAULT_CONFIG)
        if unknown:
            raise PolicyConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        self.config = {**self.DEFAULT_CONFIG, **(config or {})}

        self._ledgers: Dict[str, UsageLedger] = {}

        self.logger.info("PricingService initialized")

    # ========================================================================
    # SCREENINGS AND RESERVATIONS
    # ========================================================================

    def schedule_screening(self, request: ScreeningRequestDTO) -> Screening:
        """Build the movie's policy graph and schedule a screening (fee fixed here)"""
        try:
            movie = self.movie_factory.create_from_dto(request.movie)
            return Screening(movie, request.sequence, request.screened_at)
        except (ValueError, TypeError) as e:
            raise PolicyConfigurationError(f"Invalid movie '{request.movie.title}': {e}") from e

    def quote_screening(self, request: ScreeningRequestDTO) -> FeeQuoteDTO:
        """Price one seat at a screening"""
        screening = self.schedule_screening(request)

        return FeeQuoteDTO(
            movie_title=screening.movie.title,
            sequence=screening.sequence,
            screened_at=screening.when_screened,
            base_fee=self._to_money_dto(screening.movie.base_fee),
            fee=self._to_money_dto(screening.fee),
            discount_applied=screening.discount_applied
        )

    def reserve(self, request: ReservationRequestDTO) -> ReservationDTO:
        """Reserve seats at a screening"""
        max_audience = self.config["max_audience_count"]
        if max_audience is not None and request.audience_count > max_audience:
            raise ReservationError(
                f"Audience count {request.audience_count} exceeds maximum {max_audience}"
            )

        screening = self.schedule_screening(request.screening)
        customer = Customer(request.customer_name, request.customer_id)
        reservation = Reservation(customer, screening, request.audience_count)

        return ReservationDTO(
            reservation_id=reservation.id,
            customer_id=customer.customer_id,
            audience_count=reservation.audience_count,
            unit_fee=self._to_money_dto(screening.fee),
            total_fee=self._to_money_dto(reservation.fee)
        )

    # ========================================================================
    # USAGE LEDGERS
    # ========================================================================

    def _build_rate_policy(self, dto: RatePolicyDTO):
        try:
            return self.rate_policy_factory.create_from_dto(dto)
        except (ValueError, TypeError) as e:
            raise PolicyConfigurationError(f"Invalid rate policy: {e}") from e

    def open_ledger(self, account_id: str, rate_policy: RatePolicyDTO) -> UsageLedger:
        if account_id in self._ledgers:
            raise DuplicateLedgerError(account_id)

        ledger = UsageLedger(self._build_rate_policy(rate_policy))
        self._ledgers[account_id] = ledger
        self.logger.info(f"Opened usage ledger for account '{account_id}'")
        return ledger

    def get_ledger(self, account_id: str) -> UsageLedger:
        ledger = self._ledgers.get(account_id)
        if ledger is None:
            raise LedgerNotFoundError(account_id)
        return ledger

    def list_accounts(self) -> List[str]:
        return list(self._ledgers)

    def record_usage(self, account_id: str, record: UsageRecordDTO) -> UsageRecord:
        ledger = self.get_ledger(account_id)
        usage_record = UsageRecord(record.start_time, record.end_time)
        ledger.add_usage_record(usage_record)
        return usage_record

    def change_rate_policy(self, account_id: str, rate_policy: RatePolicyDTO) -> None:
        """Swap the ledger's policy; recorded usage is kept"""
        ledger = self.get_ledger(account_id)
        policy = self._build_rate_policy(rate_policy)
        ledger.set_rate_policy(policy)
        self.logger.info(f"Account '{account_id}' switched to {policy.describe()}")

    def calculate_usage_fee(self, account_id: str) -> UsageFeeDTO:
        ledger = self.get_ledger(account_id)
        fee = ledger.calculate_fee()

        return UsageFeeDTO(
            account_id=account_id,
            record_count=len(ledger),
            total_duration_seconds=ledger.total_duration.total_seconds(),
            policy_chain=[layer.describe() for layer in ledger.rate_policy.layers()],
            fee=self._to_money_dto(fee),
            calculated_at=datetime.now()
        )

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _to_money_dto(self, money: Money) -> MoneyDTO:
        places = self.config["quote_decimal_places"]
        if places is not None:
            money = money.rounded(places)
        return MoneyDTO(amount=money.amount, currency=money.currency)
