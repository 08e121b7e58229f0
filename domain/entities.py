"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, validator
from uuid import UUID, uuid4
from datetime import datetime, date, timedelta, timezone
from typing import Optional, List, Dict, Any
from decimal import Decimal, ROUND_HALF_UP
import random
import string

from domain.enums import GuestCategory, BookingStatus, BoardType, PricingModel
from domain.exceptions import InvalidInputError, BusinessRuleViolationError, AllotmentUnavailableError
from domain.value_objects import Money, Occupancy, AllotmentSnapshot, RateRuleSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HotelAgePolicy(BaseModel):
    """Age thresholds a hotel uses to classify guests at check-in"""
    policy_id: str
    name: Optional[str] = None
    infant_max_age: Optional[int] = Field(default=None, ge=0)
    child_max_age: Optional[int] = Field(default=None, ge=0)
    adult_min_age: Optional[int] = Field(default=None, ge=0)

    class Config:
        from_attributes = True

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "policy_id": self.policy_id,
            "name": self.name,
            "infant_max_age": self.infant_max_age,
            "child_max_age": self.child_max_age,
            "adult_min_age": self.adult_min_age,
        }


class StayType(BaseModel):
    """Fixed-duration stay package"""
    stay_type_id: str
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    nights: int = Field(gt=0)
    included_board_type: BoardType = BoardType.ROOM_ONLY
    age_policy_id: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class RoomType(BaseModel):
    """Sellable room category and its capacity"""
    room_type_id: str
    code: Optional[str] = None
    name: str
    base_occupancy: int = Field(ge=0, default=2)
    max_occupancy: int = Field(ge=0, default=4)
    extra_bed_slots: int = Field(ge=0, default=0)
    single_use_supplement: Money = Money.zero()
    is_active: bool = True

    @validator('max_occupancy')
    def max_not_below_base(cls, v, values):
        if 'base_occupancy' in values and v < values['base_occupancy']:
            raise ValueError('Max occupancy must be at least the base occupancy')
        return v

    class Config:
        from_attributes = True


class RatePlan(BaseModel):
    """Commercial plan grouping rate rules under one pricing model"""
    rate_plan_id: str
    name: str
    pricing_model: PricingModel = PricingModel.OCCUPANCY_BASED
    currency: str = "EUR"
    is_active: bool = True

    class Config:
        from_attributes = True


class RateRule(BaseModel):
    """Date-ranged price definition scoped to a rate plan.

    A ``None`` stay_type_id or room_type_id matches any stay type or room type.
    """

    # Identity
    rate_rule_id: UUID = Field(default_factory=uuid4)
    rate_plan_id: str

    # Scope (None = wildcard)
    stay_type_id: Optional[str] = None
    room_type_id: Optional[str] = None

    # Validity
    start_date: date
    end_date: date

    # Prices
    base_price: Decimal = Field(ge=0)
    price_per_adult: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_child: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_infant: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_extra_bed: Decimal = Field(ge=0, default=Decimal("0"))
    price_per_extra_person: Decimal = Field(ge=0, default=Decimal("0"))
    single_use_supplement: Optional[Decimal] = Field(default=None, ge=0)
    included_occupancy: Optional[int] = Field(default=None, ge=0)

    created_at: datetime = Field(default_factory=_utcnow)

    @validator('end_date')
    def end_not_before_start(cls, v, values):
        if 'start_date' in values and v < values['start_date']:
            raise ValueError('End date must be on or after start date')
        return v

    class Config:
        from_attributes = True

    def covers(self, on: date) -> bool:
        return self.start_date <= on <= self.end_date

    def is_scoped_to(self, stay_type_id: Optional[str], room_type_id: Optional[str]) -> bool:
        """Exact scope match, wildcards compared as None"""
        return self.stay_type_id == stay_type_id and self.room_type_id == room_type_id

    def summary(self, rate_plan: "RatePlan") -> RateRuleSummary:
        return RateRuleSummary(
            id=self.rate_rule_id,
            rate_plan_id=self.rate_plan_id,
            rate_plan_name=rate_plan.name,
            pricing_model=rate_plan.pricing_model,
            base_price=self.base_price,
            included_occupancy=self.included_occupancy,
        )

    def to_snapshot(self, rate_plan: "RatePlan") -> Dict[str, Any]:
        return {
            "id": str(self.rate_rule_id),
            "rate_plan_id": self.rate_plan_id,
            "pricing_model": rate_plan.pricing_model.value,
            "base_price": str(self.base_price),
            "price_per_adult": str(self.price_per_adult),
            "price_per_child": str(self.price_per_child),
            "price_per_infant": str(self.price_per_infant),
            "price_per_extra_bed": str(self.price_per_extra_bed),
            "price_per_extra_person": str(self.price_per_extra_person),
            "single_use_supplement": (
                str(self.single_use_supplement) if self.single_use_supplement is not None else None
            ),
            "included_occupancy": self.included_occupancy,
        }


class Allotment(BaseModel):
    """Inventory for one room type on one date"""

    # Composite Identity
    room_type_id: str
    date: date

    # Capacity Tracking
    quantity: int = Field(ge=0)
    allocated: int = Field(ge=0, default=0)

    # Restrictions
    stop_sell: bool = False
    min_stay: Optional[int] = Field(default=None, ge=0)
    max_stay: Optional[int] = Field(default=None, ge=0)
    cta: bool = False
    ctd: bool = False

    # Metadata
    last_updated: datetime = Field(default_factory=_utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== COMPUTED PROPERTIES ====================
    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.allocated)

    @property
    def is_available(self) -> bool:
        return not self.stop_sell and self.remaining > 0

    # ==================== KEY METHODS ====================
    def allocate(self, count: int = 1) -> None:
        """Take rooms out of inventory"""
        if self.stop_sell:
            raise AllotmentUnavailableError(f"Stop sell is active for {self.date.isoformat()}")
        if self.remaining < count:
            raise AllotmentUnavailableError(f"No allotment remaining for {self.date.isoformat()}")

        self.allocated += count
        self.last_updated = _utcnow()
        self.version += 1

    def release(self, count: int = 1) -> None:
        """Return rooms to inventory, never dropping allocated below zero"""
        self.allocated = max(0, self.allocated - count)
        self.last_updated = _utcnow()
        self.version += 1

    def snapshot(self) -> AllotmentSnapshot:
        return AllotmentSnapshot(
            date=self.date,
            quantity=self.quantity,
            allocated=self.allocated,
            available=self.quantity - self.allocated,
            stop_sell=self.stop_sell,
            min_stay=self.min_stay,
            max_stay=self.max_stay,
            cta=self.cta,
            ctd=self.ctd,
        )


class BookingGuest(BaseModel):
    """Child Entity for a guest staying under a booking"""
    guest_id: UUID = Field(default_factory=uuid4)
    name: str
    birthdate: Optional[date] = None
    guest_category: GuestCategory
    age: Optional[int] = None

    class Config:
        from_attributes = True


# Same-day cancellations get nothing back; anything beyond the last threshold is refunded in full
REFUND_SCHEDULE = (
    (0, Decimal("0")),
    (1, Decimal("50")),
    (3, Decimal("70")),
    (7, Decimal("90")),
    (14, Decimal("100")),
)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_OUT},
}


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    reference: str

    # References to the catalogue
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str

    # Stay
    check_in_date: date
    check_out_date: date
    occupancy: Occupancy
    guests: List[BookingGuest] = []

    # Nights counted down from inventory; nights without an allotment row are not listed
    reserved_dates: List[date] = []

    # Price
    total_price: Money

    # Point-in-time copies taken when the booking was made
    rate_rule_snapshot: Optional[Dict[str, Any]] = None
    age_policy_snapshot: Optional[Dict[str, Any]] = None
    price_breakdown_snapshot: Optional[Dict[str, Any]] = None

    # Status
    status: BookingStatus = BookingStatus.PENDING
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    refund_amount: Optional[Money] = None

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    modified_at: datetime = Field(default_factory=_utcnow)
    created_by: str = "SYSTEM"
    version: int = 1

    @validator('check_out_date')
    def check_out_after_check_in(cls, v, values):
        if 'check_in_date' in values and v <= values['check_in_date']:
            raise ValueError('Check-out must be after check-in')
        return v

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        stay_type_id: str,
        room_type_id: str,
        rate_plan_id: str,
        check_in_date: date,
        nights: int,
        occupancy: Occupancy,
        guests: List[BookingGuest],
        total_price: Money,
        reserved_dates: Optional[List[date]] = None,
        rate_rule_snapshot: Optional[Dict[str, Any]] = None,
        age_policy_snapshot: Optional[Dict[str, Any]] = None,
        price_breakdown_snapshot: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM",
        reference: Optional[str] = None
    ) -> "Booking":
        """Create new pending booking"""
        if nights < 1:
            raise InvalidInputError("Number of nights must be greater than 0")
        if total_price.is_zero():
            raise InvalidInputError("Price must be greater than 0")

        return Booking(
            reference=reference or Booking.generate_reference(check_in_date),
            stay_type_id=stay_type_id,
            room_type_id=room_type_id,
            rate_plan_id=rate_plan_id,
            check_in_date=check_in_date,
            check_out_date=check_in_date + timedelta(days=nights),
            occupancy=occupancy,
            guests=guests,
            reserved_dates=list(reserved_dates or []),
            total_price=total_price,
            rate_rule_snapshot=rate_rule_snapshot,
            age_policy_snapshot=age_policy_snapshot,
            price_breakdown_snapshot=price_breakdown_snapshot,
            notes=notes,
            created_by=created_by,
        )

    @staticmethod
    def generate_reference(on: Optional[date] = None) -> str:
        """BK + YYYYMMDD + six random upper-case alphanumerics"""
        on = on or date.today()
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"BK{on.strftime('%Y%m%d')}{suffix}"

    # ==================== STATE TRANSITION METHODS ====================
    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status, set())

    def confirm(self) -> None:
        self.transition_to(BookingStatus.CONFIRMED)

    def check_in(self) -> None:
        self.transition_to(BookingStatus.CHECKED_IN)

    def check_out(self) -> None:
        self.transition_to(BookingStatus.CHECKED_OUT)

    def mark_no_show(self) -> None:
        self.transition_to(BookingStatus.NO_SHOW)

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move to a non-cancelled status; cancellation goes through cancel()"""
        if new_status == BookingStatus.CANCELLED:
            raise BusinessRuleViolationError("Use cancel() to cancel a booking")
        if not self.can_transition_to(new_status):
            raise BusinessRuleViolationError(
                f"Cannot change booking status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self.modified_at = _utcnow()
        self.version += 1

    def cancel(self, reason: str, today: Optional[date] = None) -> Money:
        """Cancel booking and return the refund due"""
        today = today or date.today()
        if not reason or not reason.strip():
            raise InvalidInputError("Cancellation reason is required")
        if not self.is_cancellable(today):
            if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
                raise BusinessRuleViolationError(
                    f"Cannot cancel booking with status {self.status.value}. "
                    "Only PENDING, CONFIRMED bookings can be cancelled."
                )
            raise BusinessRuleViolationError(
                f"Cannot cancel booking: check-in date ({self.check_in_date.isoformat()}) has already passed"
            )

        refund = self.calculate_refund(today)
        now = _utcnow()

        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.refund_amount = refund
        self.notes = (self.notes or "") + (
            f"[{now.strftime('%Y-%m-%d %H:%M:%S')}] CANCELLED - Reason: {reason}\n"
        )
        self.modified_at = now
        self.version += 1

        return refund

    # ==================== QUERY METHODS ====================
    def is_cancellable(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return (
            self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)
            and self.check_in_date >= today
        )

    @staticmethod
    def refund_percentage(days_until_check_in: int) -> Decimal:
        for threshold, percentage in REFUND_SCHEDULE:
            if days_until_check_in <= threshold:
                return percentage
        return Decimal("100")

    def calculate_refund(self, cancellation_date: date) -> Money:
        """Refund due when cancelling on the given date"""
        days = (self.check_in_date - cancellation_date).days
        percentage = Booking.refund_percentage(days)
        amount = (self.total_price.amount * percentage / Decimal("100")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return Money(amount=amount, currency=self.total_price.currency)

    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    def stay_dates(self) -> List[date]:
        return [self.check_in_date + timedelta(days=i) for i in range(self.nights())]

    def total_guests(self) -> int:
        return self.occupancy.total_guests()

    def price_per_night(self) -> Money:
        return Money(
            amount=self.total_price.amount / max(1, self.nights()),
            currency=self.total_price.currency,
        ).rounded()

