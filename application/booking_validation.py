"""Booking validation before persistence"""
from datetime import date
from decimal import Decimal
from typing import Optional, List, Union, Callable

from pydantic import BaseModel

from domain.entities import StayType, RoomType, Allotment, HotelAgePolicy
from domain.enums import GuestCategory
from domain.exceptions import InvalidInputError
from domain.value_objects import ValidationResult, parse_date
from application.age_classification import AgeClassificationService

DECLARABLE_CATEGORIES = (GuestCategory.ADULT, GuestCategory.CHILD, GuestCategory.INFANT)


class GuestDraft(BaseModel):
    """Guest details as submitted, not yet parsed"""
    name: Optional[str] = None
    birthdate: Optional[Union[date, str]] = None
    guest_category: Optional[str] = None


class BookingDraft(BaseModel):
    """Everything the validator needs to judge a booking before it is stored"""
    stay_type: Optional[StayType] = None
    room_type: Optional[RoomType] = None
    check_in_date: Optional[Union[date, str]] = None
    nights: int = 0
    guests: List[GuestDraft] = []
    extra_beds: int = 0
    total_price: Decimal = Decimal("0")


class BookingValidationService:
    """Collects every problem with a booking draft in one pass.

    Checks never stop at the first failure: stay duration, guest count,
    check-in date, guest details and price are all evaluated and their
    errors and warnings accumulated.
    """

    def __init__(
        self,
        age_classifier: Optional[AgeClassificationService] = None,
        near_capacity_margin: int = 1,
        today: Optional[Callable[[], date]] = None
    ):
        self.age_classifier = age_classifier or AgeClassificationService()
        self.near_capacity_margin = near_capacity_margin
        self._today = today or date.today

    def validate(self, draft: BookingDraft) -> ValidationResult:
        result = ValidationResult()
        result = self._validate_stay_duration(draft.stay_type, draft.nights, result)
        result = self._validate_guest_count(draft.room_type, draft.guests, draft.extra_beds, result)
        result = self._validate_check_in_date(draft.check_in_date, result)
        result = self._validate_guest_details(draft.guests, result)
        result = self._validate_pricing(draft.total_price, result)
        return result

    def validate_full_booking(
        self,
        draft: BookingDraft,
        age_policy: Optional[HotelAgePolicy] = None
    ) -> ValidationResult:
        """``validate`` plus a check of each declared category against the guest's age at check-in"""
        result = self.validate(draft)
        if age_policy is None:
            return result

        try:
            check_in = parse_date(draft.check_in_date)
        except InvalidInputError:
            return result

        for index, guest in enumerate(draft.guests):
            declared = GuestCategory.parse(guest.guest_category)
            if declared not in DECLARABLE_CATEGORIES:
                continue
            if result.has_error(f"guests.{index}.birthdate"):
                continue
            try:
                age = self.age_classifier.calculate_age(guest.birthdate, check_in)
            except InvalidInputError as e:
                result = result.with_error(f"guests.{index}.birthdate", str(e))
                continue

            derived = self.age_classifier.category_for_age(age, age_policy)
            if derived != declared:
                result = result.with_error(f"guests.{index}", self._category_mismatch(declared, age, age_policy))

        return result

    def validate_stay_requirements(
        self,
        result: ValidationResult,
        allotments: List[Allotment],
        nights: int
    ) -> ValidationResult:
        """Apply the tightest min/max stay set on the stay's allotment rows (0 or None ignored)"""
        min_stays = [a.min_stay for a in allotments if a.min_stay]
        max_stays = [a.max_stay for a in allotments if a.max_stay]

        if min_stays and nights < min(min_stays):
            result = result.with_error('nights', f"Minimum stay requirement is {min(min_stays)} nights")
        if max_stays and nights > min(max_stays):
            result = result.with_error('nights', f"Maximum stay allowed is {min(max_stays)} nights")
        return result

    # ==================== INDIVIDUAL CHECKS ====================
    def _validate_stay_duration(
        self,
        stay_type: Optional[StayType],
        nights: int,
        result: ValidationResult
    ) -> ValidationResult:
        if stay_type is None:
            return result.with_error('stay_type', 'Stay type is required')

        if stay_type.nights > 0 and nights != stay_type.nights:
            result = result.with_error(
                'nights', f"Stay must be exactly {stay_type.nights} nights for this package"
            )
        elif nights <= 0:
            result = result.with_error('nights', 'Number of nights must be greater than 0')
        return result

    def _validate_guest_count(
        self,
        room_type: Optional[RoomType],
        guests: List[GuestDraft],
        extra_beds: int,
        result: ValidationResult
    ) -> ValidationResult:
        if room_type is None:
            return result.with_error('room_type', 'Room type is required')

        total_guests = len(guests)
        adults = sum(1 for g in guests if GuestCategory.parse(g.guest_category) == GuestCategory.ADULT)

        if adults < 1:
            result = result.with_error('guests', 'At least 1 adult is required')

        if total_guests > room_type.max_occupancy:
            result = result.with_error(
                'guests',
                f"Maximum {room_type.max_occupancy} guests allowed, but {total_guests} provided"
            )

        if extra_beds > room_type.extra_bed_slots:
            result = result.with_error(
                'extra_beds',
                f"Maximum {room_type.extra_bed_slots} extra beds allowed, but {extra_beds} requested"
            )

        if room_type.max_occupancy - self.near_capacity_margin <= total_guests < room_type.max_occupancy:
            result = result.with_warning('guests', 'Near max occupancy')

        return result

    def _validate_check_in_date(
        self,
        check_in_date: Union[date, str, None],
        result: ValidationResult
    ) -> ValidationResult:
        if check_in_date is None or (isinstance(check_in_date, str) and not check_in_date.strip()):
            return result.with_error('check_in_date', 'Check-in date is required')
        try:
            check_in = parse_date(check_in_date)
        except InvalidInputError:
            return result.with_error('check_in_date', 'Invalid check-in date format')

        if check_in < self._today():
            result = result.with_error('check_in_date', 'Check-in date cannot be in the past')
        return result

    def _validate_guest_details(self, guests: List[GuestDraft], result: ValidationResult) -> ValidationResult:
        valid = ", ".join(c.value.lower() for c in DECLARABLE_CATEGORIES)
        for index, guest in enumerate(guests):
            if guest.birthdate is None or (isinstance(guest.birthdate, str) and not guest.birthdate.strip()):
                result = result.with_error(f"guests.{index}.birthdate", 'Birthdate is required for all guests')
            else:
                try:
                    parse_date(guest.birthdate)
                except InvalidInputError:
                    result = result.with_error(f"guests.{index}.birthdate", 'Invalid birthdate format')

            if GuestCategory.parse(guest.guest_category) not in DECLARABLE_CATEGORIES:
                result = result.with_error(
                    f"guests.{index}.guest_category",
                    f'Invalid guest category "{guest.guest_category or ""}". Valid categories: {valid}'
                )
        return result

    @staticmethod
    def _validate_pricing(total_price: Decimal, result: ValidationResult) -> ValidationResult:
        if total_price <= 0:
            result = result.with_error('total_price', 'Price must be greater than 0')
        return result

    def _category_mismatch(self, declared: GuestCategory, age: int, policy: HotelAgePolicy) -> str:
        bounds = self.age_classifier.age_range(declared, policy)
        if bounds is None:
            return (
                f"Guest category {declared.value.lower()} is not used by this age policy "
                f"(current age: {age})"
            )
        youngest, oldest = bounds
        if declared == GuestCategory.INFANT:
            return f"Infant must be {oldest} years or younger (current age: {age})"
        if declared == GuestCategory.CHILD:
            return f"Child must be between {youngest} and {oldest} years (current age: {age})"
        return f"Adult must be {youngest} years or older (current age: {age})"
