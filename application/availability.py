"""Stay and calendar availability"""
import calendar
from datetime import date, timedelta
from typing import Optional, List, Callable

from domain.entities import StayType, RoomType, RatePlan, Allotment
from domain.enums import RestrictionType
from domain.exceptions import InvalidInputError
from domain.repositories import AllotmentRepository
from domain.value_objects import (
    Money,
    Occupancy,
    Restriction,
    BlockedDate,
    NightlyPrice,
    StayAvailability,
    CalendarDay,
    AvailabilityCalendar,
)
from application.pricing import RateRuleResolver, PricingService
from infrastructure.logger import get_logger

logger = get_logger(__name__)


class AvailabilityService:
    """Decides whether stays and individual dates can be sold.

    Business outcomes (no rate, stop sell, past date, sold out, stay length,
    occupancy) come back as data on the result, never as exceptions.
    """

    def __init__(
        self,
        rate_rule_resolver: RateRuleResolver,
        pricing_service: PricingService,
        allotment_repository: AllotmentRepository,
        default_max_stay: int = 30,
        today: Optional[Callable[[], date]] = None
    ):
        self.rate_rule_resolver = rate_rule_resolver
        self.pricing_service = pricing_service
        self.allotment_repository = allotment_repository
        self.default_max_stay = default_max_stay
        self._today = today or date.today

    # ==================== STAY CHECK ====================
    async def check_stay_availability(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        check_in: date,
        nights: int,
        occupancy: Occupancy,
        extra_beds: Optional[int] = None
    ) -> StayAvailability:
        if nights < 1:
            raise InvalidInputError("Number of nights must be greater than 0")
        if extra_beds is not None:
            occupancy = occupancy.model_copy(update={"extra_beds": extra_beds})

        currency = rate_plan.currency
        today = self._today()

        total_guests = occupancy.total_guests()
        if total_guests > room_type.max_occupancy:
            result = StayAvailability.unavailable(
                RestrictionType.OCCUPANCY_EXCEEDED,
                f"Room capacity exceeded. Maximum occupancy is {room_type.max_occupancy} guests",
                currency=currency,
                check_in=check_in,
                nights=nights,
                details={
                    "max_occupancy": room_type.max_occupancy,
                    "requested_guests": total_guests,
                },
            )
            self._log_outcome(stay_type, room_type, check_in, nights, result)
            return result

        available_dates: List[date] = []
        prices: List[NightlyPrice] = []
        consulted = []
        blocked: List[BlockedDate] = []
        total = Money.zero(currency)
        first_rule = None

        for offset in range(nights):
            night = check_in + timedelta(days=offset)

            rule = await self.rate_rule_resolver.resolve(rate_plan, stay_type, room_type, night)
            if rule is None:
                blocked.append(BlockedDate(date=night, reason=RestrictionType.NO_RATE))
                break
            if first_rule is None:
                first_rule = rule

            allotment = await self.allotment_repository.find_by_room_and_date(room_type.room_type_id, night)
            if allotment is not None:
                consulted.append(allotment.snapshot())

            if allotment is not None and allotment.stop_sell:
                blocked.append(BlockedDate(date=night, reason=RestrictionType.STOP_SELL))
                break

            if night < today:
                blocked.append(BlockedDate(date=night, reason=RestrictionType.PAST_DATE))
                break

            min_stay = self._minimum_stay(stay_type, allotment)
            if nights < min_stay:
                result = StayAvailability.unavailable(
                    RestrictionType.MINIMUM_STAY,
                    f"Minimum stay requirement is {min_stay} nights",
                    currency=currency,
                    check_in=check_in,
                    nights=nights,
                    allotments=consulted,
                    details={"minimum_nights": min_stay, "requested_nights": nights},
                )
                self._log_outcome(stay_type, room_type, check_in, nights, result)
                return result

            max_stay = self._maximum_stay(allotment)
            if nights > max_stay:
                result = StayAvailability.unavailable(
                    RestrictionType.MAXIMUM_STAY,
                    f"Maximum stay is {max_stay} nights",
                    currency=currency,
                    check_in=check_in,
                    nights=nights,
                    allotments=consulted,
                    details={"maximum_nights": max_stay, "requested_nights": nights},
                )
                self._log_outcome(stay_type, room_type, check_in, nights, result)
                return result

            if allotment is not None and allotment.remaining <= 0:
                blocked.append(BlockedDate(date=night, reason=RestrictionType.SOLD_OUT))
                break

            nightly = self.pricing_service.price(rate_plan, rule, occupancy, 1, room_type)
            available_dates.append(night)
            prices.append(NightlyPrice(date=night, price=nightly.total, rate_rule_id=rule.rate_rule_id))
            total = total.add(nightly.total)

        if blocked or not available_dates:
            first_blocked = blocked[0] if blocked else None
            result = StayAvailability.unavailable(
                RestrictionType.NO_RATE,
                "Not available for the selected dates",
                currency=currency,
                check_in=check_in,
                nights=nights,
                allotments=consulted,
                blocked_dates=blocked,
                details={
                    "date": first_blocked.date.isoformat() if first_blocked else None,
                    "cause": first_blocked.reason.value if first_blocked else None,
                },
            )
            self._log_outcome(stay_type, room_type, check_in, nights, result)
            return result

        result = StayAvailability(
            is_available=True,
            message="Available",
            check_in=check_in,
            nights=nights,
            available_dates=available_dates,
            prices=prices,
            total_price=total.rounded(),
            currency=currency,
            rate_rule=first_rule.summary(rate_plan),
            allotments=consulted,
            total_available=min((max(0, a.available) for a in consulted), default=None),
        )
        self._log_outcome(stay_type, room_type, check_in, nights, result)
        return result

    # ==================== CALENDAR ====================
    async def get_calendar_availability(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        start_date: date,
        end_date: date,
        occupancy: Optional[Occupancy] = None
    ) -> AvailabilityCalendar:
        """Evaluate every day of the inclusive range on its own"""
        if end_date < start_date:
            raise InvalidInputError("End date must be on or after start date")

        occupancy = occupancy or Occupancy(adults=2)
        today = self._today()
        rows = await self.allotment_repository.find_by_room_and_date_range(
            room_type.room_type_id, start_date, end_date
        )
        by_date = {row.date: row for row in rows}

        days = []
        current = start_date
        while current <= end_date:
            days.append(await self._calendar_day(
                stay_type, room_type, rate_plan, current, occupancy, by_date.get(current), today
            ))
            current += timedelta(days=1)

        return AvailabilityCalendar(
            stay_type_id=stay_type.stay_type_id,
            room_type_id=room_type.room_type_id,
            rate_plan_id=rate_plan.rate_plan_id,
            start_date=start_date,
            end_date=end_date,
            days=days,
        )

    async def get_month_calendar(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        year: int,
        month: int,
        occupancy: Optional[Occupancy] = None
    ) -> AvailabilityCalendar:
        if not 1 <= month <= 12:
            raise InvalidInputError("Month must be between 1 and 12")
        last_day = calendar.monthrange(year, month)[1]
        return await self.get_calendar_availability(
            stay_type, room_type, rate_plan, date(year, month, 1), date(year, month, last_day), occupancy
        )

    # ==================== SINGLE DATES ====================
    async def is_date_available(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        on: date
    ) -> bool:
        rule = await self.rate_rule_resolver.resolve(rate_plan, stay_type, room_type, on)
        if rule is None:
            return False
        if on < self._today():
            return False
        allotment = await self.allotment_repository.find_by_room_and_date(room_type.room_type_id, on)
        if allotment is not None and not allotment.is_available:
            return False
        return True

    async def get_available_dates(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        start_date: date,
        end_date: date
    ) -> List[date]:
        dates = []
        current = start_date
        while current <= end_date:
            if await self.is_date_available(stay_type, room_type, rate_plan, current):
                dates.append(current)
            current += timedelta(days=1)
        return dates

    # ==================== PRIVATE HELPERS ====================
    async def _calendar_day(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        on: date,
        occupancy: Occupancy,
        allotment: Optional[Allotment],
        today: date
    ) -> CalendarDay:
        rule = await self.rate_rule_resolver.resolve(rate_plan, stay_type, room_type, on)
        has_rate = rule is not None
        restriction = None

        if not has_rate:
            restriction = Restriction(type=RestrictionType.NO_RATE, message="No rate configured for this date")
        elif allotment is not None and allotment.stop_sell:
            restriction = Restriction(type=RestrictionType.STOP_SELL, message="Stop sell is active for this date")
        elif on < today:
            restriction = Restriction(type=RestrictionType.PAST_DATE, message="Date has passed")
        elif allotment is not None and allotment.remaining <= 0:
            restriction = Restriction(type=RestrictionType.SOLD_OUT, message="Sold out")

        is_available = restriction is None
        price = None
        base_price = None
        if is_available:
            price = self.pricing_service.price(rate_plan, rule, occupancy, 1, room_type).total.amount
            base_price = rule.base_price

        # Sunday = 0 ... Saturday = 6
        day_of_week = (on.weekday() + 1) % 7

        return CalendarDay(
            date=on,
            day_of_week=day_of_week,
            day_name=calendar.day_name[on.weekday()],
            day=on.day,
            is_weekend=day_of_week in (0, 6),
            is_available=is_available,
            is_blocked=not has_rate or not is_available,
            has_rate=has_rate,
            price=price,
            base_price=base_price,
            currency=rate_plan.currency,
            rate_rule_id=rule.rate_rule_id if rule else None,
            allotment=allotment.snapshot() if allotment else None,
            minimum_stay=self._minimum_stay(stay_type, allotment),
            maximum_stay=self._maximum_stay(allotment),
            cta=allotment.cta if allotment else False,
            ctd=allotment.ctd if allotment else False,
            restriction=restriction,
        )

    @staticmethod
    def _minimum_stay(stay_type: StayType, allotment: Optional[Allotment]) -> int:
        if allotment is not None and allotment.min_stay is not None:
            return allotment.min_stay
        return stay_type.nights

    def _maximum_stay(self, allotment: Optional[Allotment]) -> int:
        if allotment is not None and allotment.max_stay:
            return allotment.max_stay
        return self.default_max_stay

    def _log_outcome(
        self,
        stay_type: StayType,
        room_type: RoomType,
        check_in: date,
        nights: int,
        result: StayAvailability
    ) -> None:
        logger.info(
            "stay_availability_checked",
            stay_type_id=stay_type.stay_type_id,
            room_type_id=room_type.room_type_id,
            check_in=check_in.isoformat(),
            nights=nights,
            is_available=result.is_available,
            reason=result.reason.value if result.reason else None,
        )
