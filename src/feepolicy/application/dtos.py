# File: src/feepolicy/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Fee Policy Engine

This module defines DTOs for data transfer between the caller and the engine:
1. Input DTOs - Policy graphs, screenings, reservations and usage records
2. Output DTOs - Fee quotes, reservation results and usage fee results

DTO Principles:
- Validation at creation
- No business logic, only data
- Amounts travel as Decimal, never float
- Serialization/deserialization support
"""

from typing import Dict, List, Optional, Any
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
import json
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ConfigDict


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        """Create DTO from dictionary"""
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        """Create DTO from JSON string"""
        return cls.model_validate(json.loads(json_str))


# ============================================================================
# ENUM DTOs
# ============================================================================

class ConditionTypeDTO(str, Enum):
    """Discount condition type DTO"""
    SEQUENCE = "sequence"
    PERIOD = "period"


class DiscountTypeDTO(str, Enum):
    """Discount policy type DTO"""
    AMOUNT = "amount"
    PERCENT = "percent"
    NONE = "none"


class RatePolicyTypeDTO(str, Enum):
    """Rate policy type DTO (base rates and adjustments)"""
    REGULAR = "regular"
    NIGHTLY_DISCOUNT = "nightly_discount"
    TAX = "tax"
    RATE_DISCOUNT = "rate_discount"

    @property
    def is_adjustment(self) -> bool:
        return self in (RatePolicyTypeDTO.TAX, RatePolicyTypeDTO.RATE_DISCOUNT)


class DayOfWeekDTO(str, Enum):
    """Day of week DTO"""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# ============================================================================
# COMMON VALUE OBJECT DTOs
# ============================================================================

class MoneyDTO(BaseDTO):
    """Money value object DTO; negative amounts are valid fee results"""
    amount: Decimal = Field(description="Amount")
    currency: str = Field(default="KRW", min_length=3, max_length=3, description="Currency code (ISO 4217)")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be finite")
        return v


class UsageRecordDTO(BaseDTO):
    """Usage record DTO"""
    start_time: datetime = Field(description="Start time")
    end_time: datetime = Field(description="End time")

    @model_validator(mode='after')
    def validate_interval(self) -> 'UsageRecordDTO':
        """End time may equal but not precede start time"""
        if self.end_time < self.start_time:
            raise ValueError("End time must not be before start time")
        return self

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


# ============================================================================
# DISCOUNT POLICY DTOs
# ============================================================================

class DiscountConditionDTO(BaseDTO):
    """Discount condition DTO"""
    type: ConditionTypeDTO
    sequence: Optional[int] = Field(default=None, description="Screening sequence number")
    day_of_week: Optional[DayOfWeekDTO] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @model_validator(mode='after')
    def validate_variant_fields(self) -> 'DiscountConditionDTO':
        if self.type == ConditionTypeDTO.SEQUENCE and self.sequence is None:
            raise ValueError("Sequence condition requires 'sequence'")
        if self.type == ConditionTypeDTO.PERIOD:
            missing = [name for name in ('day_of_week', 'start_time', 'end_time')
                       if getattr(self, name) is None]
            if missing:
                raise ValueError(f"Period condition requires {', '.join(missing)}")
        return self


class DiscountPolicyDTO(BaseDTO):
    """Discount policy DTO"""
    type: DiscountTypeDTO = DiscountTypeDTO.NONE
    amount: Optional[MoneyDTO] = None
    percent: Optional[Decimal] = Field(default=None, description="Fraction of the base fee, unchecked")
    conditions: List[DiscountConditionDTO] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_variant_fields(self) -> 'DiscountPolicyDTO':
        if self.type == DiscountTypeDTO.AMOUNT and self.amount is None:
            raise ValueError("Amount discount requires 'amount'")
        if self.type == DiscountTypeDTO.PERCENT and self.percent is None:
            raise ValueError("Percent discount requires 'percent'")
        return self


class MovieDTO(BaseDTO):
    """Movie (priced item) DTO"""
    title: str = Field(min_length=1)
    running_time_minutes: int = Field(ge=0)
    base_fee: MoneyDTO
    discount_policy: DiscountPolicyDTO = Field(default_factory=DiscountPolicyDTO)


class ScreeningRequestDTO(BaseDTO):
    """Request to price one seat at a screening"""
    movie: MovieDTO
    sequence: int = Field(ge=1, description="Screening sequence number of the day")
    screened_at: datetime


class ReservationRequestDTO(BaseDTO):
    """Request to reserve seats at a screening"""
    customer_name: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)
    screening: ScreeningRequestDTO
    audience_count: int = Field(ge=1)


# ============================================================================
# RATE POLICY DTOs
# ============================================================================

class RatePolicyDTO(BaseDTO):
    """
    Rate policy DTO

    Base rates (regular, nightly_discount) need regular_rate and unit_seconds.
    Adjustments (tax, rate_discount) need next_policy, the policy they wrap.
    """
    type: RatePolicyTypeDTO
    regular_rate: Optional[MoneyDTO] = None
    nightly_rate: Optional[MoneyDTO] = None
    unit_seconds: Optional[int] = Field(default=None, gt=0)
    night_start_hour: int = Field(default=22, ge=0, le=23)
    tax_rate: Optional[Decimal] = None
    discount_amount: Optional[MoneyDTO] = None
    next_policy: Optional['RatePolicyDTO'] = None

    @model_validator(mode='after')
    def validate_variant_fields(self) -> 'RatePolicyDTO':
        if self.type.is_adjustment:
            if self.next_policy is None:
                raise ValueError(f"{self.type.value} policy requires 'next_policy'")
            if self.type == RatePolicyTypeDTO.TAX and self.tax_rate is None:
                raise ValueError("Tax policy requires 'tax_rate'")
            if self.type == RatePolicyTypeDTO.RATE_DISCOUNT and self.discount_amount is None:
                raise ValueError("Rate discount policy requires 'discount_amount'")
        else:
            if self.regular_rate is None or self.unit_seconds is None:
                raise ValueError(f"{self.type.value} policy requires 'regular_rate' and 'unit_seconds'")
            if self.type == RatePolicyTypeDTO.NIGHTLY_DISCOUNT and self.nightly_rate is None:
                raise ValueError("Nightly discount policy requires 'nightly_rate'")
        return self


RatePolicyDTO.model_rebuild()


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class FeeQuoteDTO(BaseDTO):
    """Fee quote for one seat at a screening"""
    movie_title: str
    sequence: int
    screened_at: datetime
    base_fee: MoneyDTO
    fee: MoneyDTO
    discount_applied: bool
    calculated_at: datetime = Field(default_factory=datetime.now)


class ReservationDTO(BaseDTO):
    """Reservation result"""
    reservation_id: str
    customer_id: str
    audience_count: int
    unit_fee: MoneyDTO
    total_fee: MoneyDTO


class UsageFeeDTO(BaseDTO):
    """Fee for all records of a usage ledger under its current policy"""
    account_id: str
    record_count: int
    total_duration_seconds: float
    policy_chain: List[str]
    fee: MoneyDTO
    calculated_at: datetime = Field(default_factory=datetime.now)
