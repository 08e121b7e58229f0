"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID
from typing import Optional, List, Tuple, Union, Dict, Any

from domain.enums import PricingModel, RestrictionType
from domain.exceptions import InvalidInputError

CENT = Decimal("0.01")

PRICE_COMPONENTS = (
    "base_price",
    "adult_supplement",
    "child_supplement",
    "infant_supplement",
    "extra_bed_supplement",
    "single_use_supplement",
    "extra_occupancy_charge",
)


def parse_date(value: Union[date, datetime, str, None]) -> date:
    """Parse an ISO date (or datetime) into a date, raising InvalidInputError when malformed"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise InvalidInputError("Date is required")
    text = str(value).strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidInputError(f"Invalid date format: {text}")


class Money(BaseModel):
    """Value Object for monetary amounts"""
    amount: Decimal = Field(ge=0)
    currency: str = "EUR"

    @validator('currency')
    def currency_is_iso_code(cls, v):
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError('Currency must be a 3-letter code')
        return v

    class Config:
        frozen = True

    @staticmethod
    def zero(currency: str = "EUR") -> "Money":
        return Money(amount=Decimal("0"), currency=currency)

    @staticmethod
    def of(amount: Union[Decimal, int, str, float, None], currency: str = "EUR") -> "Money":
        """Build Money from a loose amount, None counting as zero"""
        if amount is None:
            return Money.zero(currency)
        try:
            value = Decimal(str(amount))
        except ArithmeticError:
            raise InvalidInputError(f"Invalid amount: {amount}")
        if value < 0:
            raise InvalidInputError("Money amount cannot be negative")
        return Money(amount=value, currency=currency)

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise InvalidInputError("Subtraction would result in negative amount")
        return Money(amount=result, currency=self.currency)

    def multiply(self, factor: Union[int, Decimal]) -> "Money":
        factor = Decimal(str(factor))
        if factor < 0:
            raise InvalidInputError("Cannot multiply money by a negative factor")
        return Money(amount=self.amount * factor, currency=self.currency)

    def rounded(self) -> "Money":
        """Round half-up to cents"""
        return Money(amount=self.amount.quantize(CENT, rounding=ROUND_HALF_UP), currency=self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_greater_than(self, other: "Money") -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def format(self) -> str:
        return f"{self.currency} {self.rounded().amount:,.2f}"

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise InvalidInputError(
                f"Currency mismatch: {self.currency} vs {other.currency}"
            )


class Occupancy(BaseModel):
    """Value Object for the guests sharing one room"""
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)
    infants: int = Field(ge=0, default=0)
    extra_beds: int = Field(ge=0, default=0)

    class Config:
        frozen = True

    def total(self) -> int:
        """Paying guests (infants excluded)"""
        return self.adults + self.children

    def sleeps(self) -> int:
        return self.adults + self.children + self.extra_beds

    def total_guests(self) -> int:
        """Everyone in the room, infants included"""
        return self.adults + self.children + self.infants

    def is_single_use(self) -> bool:
        return self.total() == 1


class PriceBreakdown(BaseModel):
    """Value Object for a priced stay"""
    base_price: Money
    adult_supplement: Money
    child_supplement: Money
    infant_supplement: Money
    extra_bed_supplement: Money
    single_use_supplement: Money
    extra_occupancy_charge: Money
    total: Money
    currency: str = "EUR"
    pricing_model: Optional[PricingModel] = None
    nights: int = Field(ge=0, default=0)

    class Config:
        frozen = True

    @staticmethod
    def zero(currency: str = "EUR") -> "PriceBreakdown":
        """Canonical breakdown for a stay that could not be priced"""
        nothing = Money.zero(currency)
        return PriceBreakdown(
            base_price=nothing,
            adult_supplement=nothing,
            child_supplement=nothing,
            infant_supplement=nothing,
            extra_bed_supplement=nothing,
            single_use_supplement=nothing,
            extra_occupancy_charge=nothing,
            total=nothing,
            currency=currency,
        )

    def is_zero(self) -> bool:
        return self.total.is_zero() and all(
            getattr(self, name).is_zero() for name in PRICE_COMPONENTS
        )

    def combine(self, other: "PriceBreakdown") -> "PriceBreakdown":
        """Sum two breakdowns component by component"""
        if self.currency != other.currency:
            raise InvalidInputError(
                f"Currency mismatch: {self.currency} vs {other.currency}"
            )
        components = {
            name: getattr(self, name).add(getattr(other, name))
            for name in PRICE_COMPONENTS
        }
        return PriceBreakdown(
            **components,
            total=self.total.add(other.total),
            currency=self.currency,
            pricing_model=self.pricing_model or other.pricing_model,
            nights=self.nights + other.nights,
        )

    def per_night_total(self) -> Money:
        if self.nights <= 0:
            return self.total
        return Money(amount=self.total.amount / self.nights, currency=self.currency).rounded()

    def supplements_total(self) -> Money:
        result = Money.zero(self.currency)
        for name in PRICE_COMPONENTS[1:]:
            result = result.add(getattr(self, name))
        return result

    def to_snapshot(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ValidationIssue(BaseModel):
    """A single field-level error or warning"""
    field: str
    message: str

    class Config:
        frozen = True


class ValidationResult(BaseModel):
    """Immutable outcome of a booking validation; appending returns a new result"""
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()

    class Config:
        frozen = True

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def with_error(self, field: str, message: str) -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + (ValidationIssue(field=field, message=message),),
            warnings=self.warnings,
        )

    def with_warning(self, field: str, message: str) -> "ValidationResult":
        return ValidationResult(
            errors=self.errors,
            warnings=self.warnings + (ValidationIssue(field=field, message=message),),
        )

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def has_error(self, field: str) -> bool:
        return any(issue.field == field for issue in self.errors)

    def error_messages(self) -> List[str]:
        return [issue.message for issue in self.errors]

    def first_error(self) -> Optional[str]:
        return self.errors[0].message if self.errors else None


class Restriction(BaseModel):
    """Reason a date or stay cannot be sold, with context for the caller"""
    type: RestrictionType
    message: str
    details: Dict[str, Any] = {}

    class Config:
        frozen = True


class AllotmentSnapshot(BaseModel):
    """Raw inventory figures for one room type on one date"""
    date: date
    quantity: int
    allocated: int
    available: int
    stop_sell: bool = False
    min_stay: Optional[int] = None
    max_stay: Optional[int] = None
    cta: bool = False
    ctd: bool = False

    class Config:
        frozen = True


class BlockedDate(BaseModel):
    date: date
    reason: RestrictionType

    class Config:
        frozen = True


class NightlyPrice(BaseModel):
    date: date
    price: Money
    rate_rule_id: Optional[UUID] = None

    class Config:
        frozen = True


class RateRuleSummary(BaseModel):
    """Rate rule details reported alongside an availability result"""
    id: UUID
    rate_plan_id: str
    rate_plan_name: Optional[str] = None
    pricing_model: PricingModel
    base_price: Decimal
    included_occupancy: Optional[int] = None

    class Config:
        frozen = True


class StayAvailability(BaseModel):
    """Result of checking one stay (check-in plus nights) for bookability"""
    is_available: bool
    reason: Optional[RestrictionType] = None
    message: str = "Available"
    restriction: Optional[Restriction] = None
    check_in: Optional[date] = None
    nights: int = 0
    available_dates: List[date] = []
    prices: List[NightlyPrice] = []
    total_price: Money = Money.zero()
    currency: str = "EUR"
    rate_rule: Optional[RateRuleSummary] = None
    allotments: List[AllotmentSnapshot] = []
    total_available: Optional[int] = None
    blocked_dates: List[BlockedDate] = []

    @validator('reason', always=True)
    def reason_matches_availability(cls, v, values):
        if 'is_available' not in values:
            return v
        if values['is_available'] and v is not None:
            raise ValueError('An available stay cannot carry a restriction reason')
        if not values['is_available'] and v is None:
            raise ValueError('An unavailable stay needs a restriction reason')
        return v

    class Config:
        frozen = True

    @staticmethod
    def unavailable(
        reason: RestrictionType,
        message: str,
        currency: str = "EUR",
        **kwargs
    ) -> "StayAvailability":
        details = kwargs.pop("details", {})
        return StayAvailability(
            is_available=False,
            reason=reason,
            message=message,
            restriction=Restriction(type=reason, message=message, details=details),
            total_price=Money.zero(currency),
            currency=currency,
            **kwargs
        )

    def check_out(self) -> Optional[date]:
        if self.check_in is None:
            return None
        return self.check_in + timedelta(days=self.nights)


class CalendarDay(BaseModel):
    """One day of an availability calendar"""
    date: date
    day_of_week: int = Field(ge=0, le=6)
    day_name: str
    day: int
    is_weekend: bool
    is_available: bool
    is_blocked: bool
    has_rate: bool
    price: Optional[Decimal] = None
    base_price: Optional[Decimal] = None
    currency: str = "EUR"
    rate_rule_id: Optional[UUID] = None
    allotment: Optional[AllotmentSnapshot] = None
    minimum_stay: Optional[int] = None
    maximum_stay: Optional[int] = None
    cta: bool = False
    ctd: bool = False
    restriction: Optional[Restriction] = None

    class Config:
        frozen = True


class AvailabilityCalendar(BaseModel):
    """Day-by-day availability over an inclusive date range"""
    stay_type_id: str
    room_type_id: str
    rate_plan_id: str
    start_date: date
    end_date: date
    days: List[CalendarDay] = []

    class Config:
        frozen = True

    @property
    def total_days(self) -> int:
        return len(self.days)

    @property
    def available_days(self) -> int:
        return sum(1 for day in self.days if day.is_available)

    @property
    def unavailable_days(self) -> int:
        return self.total_days - self.available_days

    @property
    def available_dates(self) -> List[date]:
        return [day.date for day in self.days if day.is_available]

    def _priced(self) -> List[Decimal]:
        return [day.price for day in self.days if day.price is not None]

    @property
    def min_price(self) -> Optional[Decimal]:
        prices = self._priced()
        return min(prices) if prices else None

    @property
    def max_price(self) -> Optional[Decimal]:
        prices = self._priced()
        return max(prices) if prices else None

    @property
    def avg_price(self) -> Optional[Decimal]:
        prices = self._priced()
        if not prices:
            return None
        return (sum(prices) / len(prices)).quantize(CENT, rounding=ROUND_HALF_UP)
