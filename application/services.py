"""Application Services - Business use cases"""
from uuid import UUID
from datetime import date, timedelta
from typing import List, Optional, Union

from domain.repositories import (
    StayTypeRepository,
    RoomTypeRepository,
    RatePlanRepository,
    RateRuleRepository,
    AllotmentRepository,
    HotelAgePolicyRepository,
    BookingRepository,
)
from domain.entities import (
    HotelAgePolicy, StayType, RoomType, RatePlan, RateRule, Allotment, Booking, BookingGuest
)
from domain.enums import BookingStatus, GuestCategory
from domain.exceptions import InvalidInputError, BusinessRuleViolationError, AllotmentUnavailableError
from domain.value_objects import Occupancy, ValidationResult, parse_date
from application.age_classification import AgeClassificationService
from application.availability import AvailabilityService
from application.booking_validation import BookingValidationService, BookingDraft, GuestDraft
from application.pricing import PricingService, RateRuleResolver
from infrastructure.logger import get_logger

logger = get_logger(__name__)


class CatalogService:
    """Service for the stay, room, rate and inventory catalogue"""

    def __init__(self,
                 stay_type_repo: StayTypeRepository,
                 room_type_repo: RoomTypeRepository,
                 rate_plan_repo: RatePlanRepository,
                 rate_rule_repo: RateRuleRepository,
                 allotment_repo: AllotmentRepository,
                 age_policy_repo: HotelAgePolicyRepository):
        self.stay_type_repo = stay_type_repo
        self.room_type_repo = room_type_repo
        self.rate_plan_repo = rate_plan_repo
        self.rate_rule_repo = rate_rule_repo
        self.allotment_repo = allotment_repo
        self.age_policy_repo = age_policy_repo

    # ==================== STAY TYPES ====================
    async def register_stay_type(self, stay_type: StayType) -> StayType:
        if stay_type.age_policy_id and not await self.age_policy_repo.find_by_id(stay_type.age_policy_id):
            raise InvalidInputError(f"Age policy {stay_type.age_policy_id} not found")
        return await self.stay_type_repo.save(stay_type)

    async def get_stay_type(self, stay_type_id: str) -> Optional[StayType]:
        return await self.stay_type_repo.find_by_id(stay_type_id)

    async def list_stay_types(self, active_only: bool = False) -> List[StayType]:
        stay_types = await self.stay_type_repo.find_all()
        if active_only:
            return [s for s in stay_types if s.is_active]
        return stay_types

    # ==================== ROOM TYPES ====================
    async def register_room_type(self, room_type: RoomType) -> RoomType:
        return await self.room_type_repo.save(room_type)

    async def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return await self.room_type_repo.find_by_id(room_type_id)

    # ==================== RATES ====================
    async def register_rate_plan(self, rate_plan: RatePlan) -> RatePlan:
        return await self.rate_plan_repo.save(rate_plan)

    async def get_rate_plan(self, rate_plan_id: str) -> Optional[RatePlan]:
        return await self.rate_plan_repo.find_by_id(rate_plan_id)

    async def add_rate_rule(self, rate_rule: RateRule) -> RateRule:
        """Store a rate rule after checking that everything it points at exists"""
        if not await self.rate_plan_repo.find_by_id(rate_rule.rate_plan_id):
            raise InvalidInputError(f"Rate plan {rate_rule.rate_plan_id} not found")
        if rate_rule.stay_type_id and not await self.stay_type_repo.find_by_id(rate_rule.stay_type_id):
            raise InvalidInputError(f"Stay type {rate_rule.stay_type_id} not found")
        if rate_rule.room_type_id and not await self.room_type_repo.find_by_id(rate_rule.room_type_id):
            raise InvalidInputError(f"Room type {rate_rule.room_type_id} not found")
        return await self.rate_rule_repo.save(rate_rule)

    async def get_rate_rules(self, rate_plan_id: str) -> List[RateRule]:
        return await self.rate_rule_repo.find_by_rate_plan(rate_plan_id)

    # ==================== INVENTORY ====================
    async def set_allotment(self, allotment: Allotment) -> Allotment:
        """Create or replace the inventory row for a room type and date.

        Rooms already allocated on an existing row are kept unless
        ``allocated`` is given explicitly.
        """
        if not await self.room_type_repo.find_by_id(allotment.room_type_id):
            raise InvalidInputError(f"Room type {allotment.room_type_id} not found")

        existing = await self.allotment_repo.find_by_room_and_date(allotment.room_type_id, allotment.date)
        if existing is not None and "allocated" not in allotment.model_fields_set:
            allotment = allotment.model_copy(update={"allocated": existing.allocated})
        return await self.allotment_repo.save(allotment)

    async def get_allotments(self, room_type_id: str, start_date: date, end_date: date) -> List[Allotment]:
        return await self.allotment_repo.find_by_room_and_date_range(room_type_id, start_date, end_date)

    # ==================== AGE POLICIES ====================
    async def register_age_policy(self, policy: HotelAgePolicy) -> HotelAgePolicy:
        return await self.age_policy_repo.save(policy)

    async def get_age_policy(self, policy_id: str) -> Optional[HotelAgePolicy]:
        return await self.age_policy_repo.find_by_id(policy_id)

    async def get_age_policy_for(self, stay_type: StayType) -> Optional[HotelAgePolicy]:
        if not stay_type.age_policy_id:
            return None
        return await self.age_policy_repo.find_by_id(stay_type.age_policy_id)


class BookingService:
    """Service for Booking business use cases"""

    def __init__(self,
                 repository: BookingRepository,
                 catalog: CatalogService,
                 availability_service: AvailabilityService,
                 pricing_service: PricingService,
                 rate_rule_resolver: RateRuleResolver,
                 validator: BookingValidationService,
                 age_classifier: AgeClassificationService,
                 allotment_repo: AllotmentRepository):
        self.repository = repository
        self.catalog = catalog
        self.availability_service = availability_service
        self.pricing_service = pricing_service
        self.rate_rule_resolver = rate_rule_resolver
        self.validator = validator
        self.age_classifier = age_classifier
        self.allotment_repo = allotment_repo

    async def _load_catalogue(self, stay_type_id: str, room_type_id: Optional[str], rate_plan_id: Optional[str]):
        stay_type = await self.catalog.get_stay_type(stay_type_id)
        room_type = await self.catalog.get_room_type(room_type_id) if room_type_id else None
        rate_plan = await self.catalog.get_rate_plan(rate_plan_id) if rate_plan_id else None
        return stay_type, room_type, rate_plan

    def _classified_guests(
        self,
        guests: List[GuestDraft],
        check_in_date: Union[date, str, None],
        policy: Optional[HotelAgePolicy]
    ) -> List[GuestDraft]:
        """Fill in missing guest categories from birthdates"""
        classified = []
        for guest in guests:
            if guest.guest_category or guest.birthdate is None:
                classified.append(guest)
                continue
            try:
                category = self.age_classifier.classify(guest.birthdate, check_in_date, policy)
            except InvalidInputError:
                classified.append(guest)
                continue
            classified.append(guest.model_copy(update={"guest_category": category.value}))
        return classified

    @staticmethod
    def _occupancy_for(guests: List[GuestDraft], extra_beds: int) -> Optional[Occupancy]:
        categories = [GuestCategory.parse(g.guest_category) for g in guests]
        adults = categories.count(GuestCategory.ADULT)
        if adults < 1:
            return None
        return Occupancy(
            adults=adults,
            children=categories.count(GuestCategory.CHILD) + categories.count(GuestCategory.TEEN),
            infants=categories.count(GuestCategory.INFANT),
            extra_beds=extra_beds,
        )

    async def validate_booking(
        self,
        stay_type_id: str,
        room_type_id: Optional[str],
        check_in_date: Union[date, str, None],
        nights: int,
        guests: List[GuestDraft],
        extra_beds: int = 0,
        total_price=0
    ) -> ValidationResult:
        """Run the full validator for a booking described by catalogue ids"""
        stay_type, room_type, _ = await self._load_catalogue(stay_type_id, room_type_id, None)
        policy = await self.catalog.get_age_policy_for(stay_type) if stay_type else None
        draft = BookingDraft(
            stay_type=stay_type,
            room_type=room_type,
            check_in_date=check_in_date,
            nights=nights,
            guests=self._classified_guests(guests, check_in_date, policy),
            extra_beds=extra_beds,
            total_price=total_price,
        )
        return self.validator.validate_full_booking(draft, policy)

    async def create_booking(
        self,
        stay_type_id: str,
        room_type_id: str,
        rate_plan_id: str,
        check_in_date: Union[date, str],
        guests: List[GuestDraft],
        nights: Optional[int] = None,
        extra_beds: int = 0,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> Booking:
        """Validate, price and reserve inventory for a stay, then store it as PENDING"""
        stay_type, room_type, rate_plan = await self._load_catalogue(stay_type_id, room_type_id, rate_plan_id)
        if stay_type is None:
            raise InvalidInputError(f"Stay type {stay_type_id} not found")
        if room_type is None:
            raise InvalidInputError(f"Room type {room_type_id} not found")
        if rate_plan is None:
            raise InvalidInputError(f"Rate plan {rate_plan_id} not found")

        nights = nights if nights is not None else stay_type.nights
        check_in = parse_date(check_in_date)
        policy = await self.catalog.get_age_policy_for(stay_type)
        guests = self._classified_guests(guests, check_in, policy)

        # Price and availability need at least one adult; the validator reports it otherwise
        occupancy = self._occupancy_for(guests, extra_beds)
        availability = None
        if occupancy is not None and nights > 0:
            availability = await self.availability_service.check_stay_availability(
                stay_type, room_type, rate_plan, check_in, nights, occupancy
            )

        draft = BookingDraft(
            stay_type=stay_type,
            room_type=room_type,
            check_in_date=check_in,
            nights=nights,
            guests=guests,
            extra_beds=extra_beds,
            total_price=availability.total_price.amount if availability and availability.is_available else 0,
        )
        validation = self.validator.validate_full_booking(draft, policy)
        if availability is not None:
            stay_rows = await self.allotment_repo.find_by_room_and_date_range(
                room_type.room_type_id, check_in, check_in + timedelta(days=nights - 1)
            )
            validation = self.validator.validate_stay_requirements(validation, stay_rows, nights)

        if availability is not None and not availability.is_available:
            logger.warning(
                "booking_rejected",
                stay_type_id=stay_type_id,
                room_type_id=room_type_id,
                check_in=check_in.isoformat(),
                reason=availability.reason.value,
            )
            raise BusinessRuleViolationError(
                availability.message, validation=validation, restriction=availability.restriction
            )
        if not validation.is_valid:
            logger.warning(
                "booking_rejected",
                stay_type_id=stay_type_id,
                room_type_id=room_type_id,
                check_in=check_in.isoformat(),
                errors=validation.error_messages(),
            )
            raise BusinessRuleViolationError(validation.first_error(), validation=validation)

        # Only dates with an inventory row are counted down; dates without one are unconstrained
        inventory_dates = [snapshot.date for snapshot in availability.allotments]
        try:
            await self.allotment_repo.reserve(room_type.room_type_id, inventory_dates)
        except AllotmentUnavailableError as e:
            logger.warning("allotment_reservation_failed", room_type_id=room_type_id, error=str(e))
            raise

        first_rule = await self.rate_rule_resolver.resolve(rate_plan, stay_type, room_type, check_in)
        breakdown = await self.pricing_service.calculate_stay_price(
            stay_type, room_type, rate_plan, check_in, occupancy, nights
        )

        booking = Booking.create(
            stay_type_id=stay_type.stay_type_id,
            room_type_id=room_type.room_type_id,
            rate_plan_id=rate_plan.rate_plan_id,
            check_in_date=check_in,
            nights=nights,
            occupancy=occupancy,
            guests=[self._booking_guest(g, check_in) for g in guests],
            total_price=availability.total_price,
            reserved_dates=inventory_dates,
            rate_rule_snapshot=first_rule.to_snapshot(rate_plan) if first_rule else None,
            age_policy_snapshot=policy.to_snapshot() if policy else None,
            price_breakdown_snapshot=breakdown.to_snapshot(),
            notes=notes,
            created_by=created_by,
            reference=await self._unique_reference(),
        )
        booking = await self.repository.save(booking)

        logger.info(
            "booking_created",
            booking_id=str(booking.booking_id),
            reference=booking.reference,
            total_price=str(booking.total_price.amount),
            currency=booking.total_price.currency,
        )
        return booking

    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        """Get booking by ID"""
        return await self.repository.find_by_id(booking_id)

    async def get_booking_by_reference(self, reference: str) -> Optional[Booking]:
        """Get booking by reference"""
        return await self.repository.find_by_reference(reference)

    async def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Get all bookings, optionally only those in one status"""
        return await self.repository.find_all(status)

    async def cancel_booking(self, booking_id: UUID, reason: str, today: Optional[date] = None) -> Optional[Booking]:
        """Cancel booking, hand its rooms back and record the refund"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        refund = booking.cancel(reason, today)
        await self.allotment_repo.release(booking.room_type_id, booking.reserved_dates)
        booking = await self.repository.update(booking)

        logger.info(
            "booking_cancelled",
            booking_id=str(booking.booking_id),
            reference=booking.reference,
            refund=str(refund.amount),
        )
        return booking

    async def update_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus,
        reason: Optional[str] = None
    ) -> Optional[Booking]:
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return None

        if new_status == BookingStatus.CANCELLED:
            return await self.cancel_booking(booking_id, reason or "Cancelled via status update")

        previous = booking.status
        booking.transition_to(new_status)
        booking = await self.repository.update(booking)

        logger.info(
            "booking_status_changed",
            booking_id=str(booking.booking_id),
            from_status=previous.value,
            to_status=new_status.value,
        )
        return booking

    # ==================== PRIVATE HELPERS ====================
    async def _unique_reference(self) -> str:
        while True:
            reference = Booking.generate_reference(date.today())
            if not await self.repository.find_by_reference(reference):
                return reference

    def _booking_guest(self, guest: GuestDraft, check_in: date) -> BookingGuest:
        birthdate = parse_date(guest.birthdate) if guest.birthdate is not None else None
        age = self.age_classifier.calculate_age(birthdate, check_in) if birthdate else None
        return BookingGuest(
            name=guest.name or "Guest",
            birthdate=birthdate,
            guest_category=GuestCategory.parse(guest.guest_category),
            age=age,
        )
