"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional, Dict, Any

from domain.enums import PricingModel, BoardType, BookingStatus, GuestCategory, RestrictionType
from domain.value_objects import (
    Restriction, RateRuleSummary, AllotmentSnapshot, BlockedDate, CalendarDay, ValidationIssue
)


# ============================================================================
# CATALOGUE SCHEMAS
# ============================================================================

class CreateAgePolicyRequest(BaseModel):
    """Create hotel age policy request DTO"""
    policy_id: str
    name: Optional[str] = None
    infant_max_age: Optional[int] = Field(None, ge=0)
    child_max_age: Optional[int] = Field(None, ge=0)
    adult_min_age: Optional[int] = Field(None, ge=0)


class AgePolicyResponse(BaseModel):
    """Hotel age policy response DTO"""
    policy_id: str
    name: Optional[str] = None
    infant_max_age: Optional[int] = None
    child_max_age: Optional[int] = None
    adult_min_age: Optional[int] = None


class CreateStayTypeRequest(BaseModel):
    """Create stay type request DTO"""
    stay_type_id: str
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    nights: int = Field(gt=0)
    included_board_type: BoardType = BoardType.ROOM_ONLY
    age_policy_id: Optional[str] = None
    is_active: bool = True


class StayTypeResponse(BaseModel):
    """Stay type response DTO"""
    stay_type_id: str
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    nights: int
    included_board_type: str
    age_policy_id: Optional[str] = None
    is_active: bool


class CreateRoomTypeRequest(BaseModel):
    """Create room type request DTO"""
    room_type_id: str
    code: Optional[str] = None
    name: str
    base_occupancy: int = Field(ge=0, default=2)
    max_occupancy: int = Field(ge=0, default=4)
    extra_bed_slots: int = Field(ge=0, default=0)
    single_use_supplement: Decimal = Field(ge=0, default=Decimal("0"))
    currency: str = "EUR"
    is_active: bool = True


class RoomTypeResponse(BaseModel):
    """Room type response DTO"""
    room_type_id: str
    code: Optional[str] = None
    name: str
    base_occupancy: int
    max_occupancy: int
    extra_bed_slots: int
    single_use_supplement: Decimal
    currency: str
    is_active: bool


class CreateRatePlanRequest(BaseModel):
    """Create rate plan request DTO"""
    rate_plan_id: str
    name: str
    pricing_model: PricingModel = PricingModel.OCCUPANCY_BASED
    currency: str = "EUR"
    is_active: bool = True


class RatePlanResponse(BaseModel):
    """Rate plan response DTO"""
    rate_plan_id: str
    name: str
    pricing_model: str
    currency: str
    is_active: bool


class CreateRateRuleRequest(BaseModel):
    """Create rate rule request DTO (omit stay_type_id / room_type_id for a wildcard)"""
    rate_plan_id: str
    stay_type_id: Optional[str] = None
    room_type_id: Optional[str] = None
    start_date: date
    end_date: date
    base_price: Decimal = Field(ge=0)
    price_per_adult: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_child: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_infant: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_extra_bed: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_extra_person: Decimal = Field(ge=0, default=Decimal("0"))
    single_use_supplement: Optional[Decimal] = Field(None, ge=0)
    included_occupancy: Optional[int] = Field(None, ge=0)


class RateRuleResponse(BaseModel):
    """Rate rule response DTO"""
    rate_rule_id: UUID
    rate_plan_id: str
    stay_type_id: Optional[str] = None
    room_type_id: Optional[str] = None
    start_date: date
    end_date: date
    base_price: Decimal
    price_per_adult: Decimal
    price_per_child: Decimal
    price_per_infant: Decimal
    price_per_extra_bed: Decimal
    price_per_extra_person: Decimal
    single_use_supplement: Optional[Decimal] = None
    included_occupancy: Optional[int] = None


class SetAllotmentRequest(BaseModel):
    """Create or replace allotment request DTO"""
    room_type_id: str
    date: date
    quantity: int = Field(ge=0)
    allocated: Optional[int] = Field(None, ge=0)
    stop_sell: bool = False
    min_stay: Optional[int] = Field(None, ge=0)
    max_stay: Optional[int] = Field(None, ge=0)
    cta: bool = False
    ctd: bool = False


class AllotmentResponse(BaseModel):
    """Allotment response DTO"""
    room_type_id: str
    date: date
    quantity: int
    allocated: int
    remaining: int
    stop_sell: bool
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    cta: bool
    ctd: bool
    version: int


# ============================================================================
# CLASSIFICATION SCHEMAS
# ============================================================================

class ClassifyGuestRequest(BaseModel):
    """Classify guest request DTO: either a stored policy id or inline thresholds"""
    birthdate: date
    check_in_date: date
    policy_id: Optional[str] = None
    infant_max_age: Optional[int] = Field(None, ge=0)
    child_max_age: Optional[int] = Field(None, ge=0)
    adult_min_age: Optional[int] = Field(None, ge=0)


class ClassifyGuestResponse(BaseModel):
    """Classify guest response DTO"""
    category: GuestCategory
    age: int


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class NightlyPriceResponse(BaseModel):
    """Price of one night DTO"""
    date: date
    amount: Decimal
    rate_rule_id: Optional[UUID] = None


class StayAvailabilityResponse(BaseModel):
    """Stay availability response DTO"""
    is_available: bool
    reason: Optional[RestrictionType] = None
    message: str
    restriction: Optional[Restriction] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    nights: int
    available_dates: List[date] = []
    prices: List[NightlyPriceResponse] = []
    total_price: Decimal
    currency: str
    rate_rule: Optional[RateRuleSummary] = None
    allotments: List[AllotmentSnapshot] = []
    total_available: Optional[int] = None
    blocked_dates: List[BlockedDate] = []


class CalendarResponse(BaseModel):
    """Availability calendar response DTO"""
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str
    start_date: date
    end_date: date
    days: List[CalendarDay]
    total_days: int
    available_days: int
    unavailable_days: int
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    avg_price: Optional[Decimal] = None


# ============================================================================
# PRICING SCHEMAS
# ============================================================================

class PriceCalculationRequest(BaseModel):
    """Price a stay request DTO"""
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str
    check_in_date: date
    nights: Optional[int] = Field(None, ge=1, le=365)
    adults: int = Field(ge=1, default=2)
    children: int = Field(ge=0, default=0)
    infants: int = Field(ge=0, default=0)
    extra_beds: int = Field(ge=0, default=0)


class PriceBreakdownResponse(BaseModel):
    """Price breakdown response DTO"""
    base_price: Decimal
    adult_supplement: Decimal
    child_supplement: Decimal
    infant_supplement: Decimal
    extra_bed_supplement: Decimal
    single_use_supplement: Decimal
    extra_occupancy_charge: Decimal
    total: Decimal
    per_night_total: Decimal
    currency: str
    pricing_model: Optional[str] = None
    nights: int
    is_priced: bool


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class GuestRequest(BaseModel):
    """Guest details request DTO; category is derived from birthdate when omitted"""
    name: Optional[str] = None
    birthdate: Optional[str] = None
    guest_category: Optional[str] = None


class ValidateBookingRequest(BaseModel):
    """Validate booking request DTO"""
    stay_type_id: str
    room_type_id: Optional[str] = None
    check_in_date: Optional[str] = None
    nights: int = 0
    guests: List[GuestRequest] = []
    extra_beds: int = 0
    total_price: Decimal = Decimal("0")


class ValidationResponse(BaseModel):
    """Validation result response DTO"""
    is_valid: bool
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []


class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str
    check_in_date: date
    nights: Optional[int] = Field(None, ge=1, le=365)
    guests: List[GuestRequest] = Field(min_length=1)
    extra_beds: int = Field(ge=0, default=0)
    notes: Optional[str] = None
    created_by: str = "SYSTEM"


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: str = "Guest changed plans"


class UpdateBookingStatusRequest(BaseModel):
    """Update booking status request DTO"""
    status: BookingStatus
    reason: Optional[str] = None


class BookingGuestResponse(BaseModel):
    """Booking guest response DTO"""
    guest_id: UUID
    name: str
    birthdate: Optional[date] = None
    guest_category: str
    age: Optional[int] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    reference: str
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str
    check_in_date: date
    check_out_date: date
    nights: int
    adults: int
    children: int
    infants: int
    extra_beds: int
    guests: List[BookingGuestResponse] = []
    reserved_dates: List[date] = []
    total_price: Decimal
    currency: str
    status: str
    rate_rule_snapshot: Optional[Dict[str, Any]] = None
    age_policy_snapshot: Optional[Dict[str, Any]] = None
    price_breakdown_snapshot: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    created_at: datetime
    modified_at: datetime
    created_by: str
    version: int


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    disabled: bool
