"""Rate rule resolution and stay pricing"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, List

from domain.entities import StayType, RoomType, RatePlan, RateRule
from domain.enums import PricingModel
from domain.exceptions import InvalidInputError
from domain.repositories import RateRuleRepository
from domain.value_objects import Money, Occupancy, PriceBreakdown, PRICE_COMPONENTS
from infrastructure.logger import get_logger

logger = get_logger(__name__)


class RateRuleResolver:
    """Finds the rate rule that prices a given date.

    Rules of an active rate plan covering the date are searched most specific
    first: stay type and room type, room type only, stay type only, then the
    plan-wide rule. Within one step the latest-starting rule wins.
    """

    def __init__(self, rate_rule_repository: RateRuleRepository):
        self.rate_rule_repository = rate_rule_repository

    async def resolve(
        self,
        rate_plan: Optional[RatePlan],
        stay_type: Optional[StayType],
        room_type: RoomType,
        on: date
    ) -> Optional[RateRule]:
        if rate_plan is None or not rate_plan.is_active:
            return None

        candidates = await self.rate_rule_repository.find_covering(rate_plan.rate_plan_id, on)
        if not candidates:
            logger.debug("rate_rule_not_found", rate_plan_id=rate_plan.rate_plan_id, date=on.isoformat())
            return None

        stay_type_id = stay_type.stay_type_id if stay_type else None
        room_type_id = room_type.room_type_id

        for scope in self._precedence(stay_type_id, room_type_id):
            matching = [rule for rule in candidates if rule.is_scoped_to(*scope)]
            if matching:
                # max() keeps the first of equal start dates, i.e. insertion order
                return max(matching, key=lambda rule: rule.start_date)

        logger.debug(
            "rate_rule_not_found",
            rate_plan_id=rate_plan.rate_plan_id,
            stay_type_id=stay_type_id,
            room_type_id=room_type_id,
            date=on.isoformat(),
        )
        return None

    @staticmethod
    def _precedence(stay_type_id: Optional[str], room_type_id: str) -> List[tuple]:
        steps = []
        if stay_type_id is not None:
            steps.append((stay_type_id, room_type_id))
        steps.append((None, room_type_id))
        if stay_type_id is not None:
            steps.append((stay_type_id, None))
        steps.append((None, None))
        return steps


class PricingService:
    """Computes price breakdowns under the rate plan's pricing model"""

    def __init__(
        self,
        rate_rule_resolver: Optional[RateRuleResolver] = None,
        default_currency: str = "EUR",
        default_included_occupancy: int = 2
    ):
        self.rate_rule_resolver = rate_rule_resolver
        self.default_currency = default_currency
        self.default_included_occupancy = default_included_occupancy

    def price(
        self,
        rate_plan: RatePlan,
        rate_rule: Optional[RateRule],
        occupancy: Occupancy,
        nights: int,
        room_type: Optional[RoomType] = None
    ) -> PriceBreakdown:
        """Price ``nights`` nights under one rule; the zero breakdown when there is no rule"""
        currency = rate_plan.currency or self.default_currency
        if rate_rule is None:
            return PriceBreakdown.zero(currency)
        if nights < 1:
            raise InvalidInputError("Number of nights must be greater than 0")

        nothing = Money.zero(currency)
        base = Money.of(rate_rule.base_price, currency).multiply(nights)

        if rate_plan.pricing_model == PricingModel.UNIT_INCLUDED_OCCUPANCY:
            included = rate_rule.included_occupancy
            if included is None:
                included = self.default_included_occupancy
            extra_persons = max(0, occupancy.total() - included)
            components = {
                "base_price": base,
                "adult_supplement": nothing,
                "child_supplement": nothing,
                "infant_supplement": nothing,
                "extra_bed_supplement": nothing,
                "single_use_supplement": nothing,
                "extra_occupancy_charge": Money.of(rate_rule.price_per_extra_person, currency).multiply(
                    extra_persons * nights
                ),
            }
        else:
            single_use = nothing
            supplement = self._single_use_supplement(rate_rule, room_type)
            if occupancy.is_single_use() and supplement > 0:
                single_use = Money.of(supplement, currency).multiply(nights)

            components = {
                "base_price": base,
                "adult_supplement": Money.of(rate_rule.price_per_adult, currency).multiply(
                    occupancy.adults * nights
                ),
                "child_supplement": Money.of(rate_rule.price_per_child, currency).multiply(
                    occupancy.children * nights
                ),
                "infant_supplement": Money.of(rate_rule.price_per_infant, currency).multiply(
                    occupancy.infants * nights
                ),
                "extra_bed_supplement": Money.of(rate_rule.price_per_extra_bed, currency).multiply(
                    occupancy.extra_beds * nights
                ),
                "single_use_supplement": single_use,
                "extra_occupancy_charge": nothing,
            }

        total = nothing
        for name in PRICE_COMPONENTS:
            total = total.add(components[name])

        return PriceBreakdown(
            **components,
            total=total.rounded(),
            currency=currency,
            pricing_model=rate_plan.pricing_model,
            nights=nights,
        )

    async def calculate_stay_price(
        self,
        stay_type: StayType,
        room_type: RoomType,
        rate_plan: RatePlan,
        check_in: date,
        occupancy: Occupancy,
        nights: Optional[int] = None
    ) -> PriceBreakdown:
        """Price each night with its own rule and add them up"""
        if self.rate_rule_resolver is None:
            raise RuntimeError("PricingService needs a RateRuleResolver to price a stay")

        nights = nights if nights is not None else stay_type.nights
        if nights < 1:
            raise InvalidInputError("Number of nights must be greater than 0")

        breakdown = None
        for offset in range(nights):
            night = check_in + timedelta(days=offset)
            rule = await self.rate_rule_resolver.resolve(rate_plan, stay_type, room_type, night)
            if rule is None:
                logger.info(
                    "stay_unpriceable",
                    stay_type_id=stay_type.stay_type_id,
                    room_type_id=room_type.room_type_id,
                    date=night.isoformat(),
                )
                return PriceBreakdown.zero(rate_plan.currency)
            nightly = self.price(rate_plan, rule, occupancy, 1, room_type)
            breakdown = nightly if breakdown is None else breakdown.combine(nightly)

        return breakdown

    def per_night(self, breakdown: PriceBreakdown) -> PriceBreakdown:
        """Average one night of a multi-night breakdown"""
        nights = max(1, breakdown.nights)
        components = {
            name: Money(amount=getattr(breakdown, name).amount / nights, currency=breakdown.currency).rounded()
            for name in PRICE_COMPONENTS
        }
        return PriceBreakdown(
            **components,
            total=breakdown.per_night_total(),
            currency=breakdown.currency,
            pricing_model=breakdown.pricing_model,
            nights=1 if breakdown.nights else 0,
        )

    def validate_occupancy(self, room_type: RoomType, occupancy: Occupancy) -> List[str]:
        errors = []
        if occupancy.total() > room_type.max_occupancy:
            errors.append(
                f"Maximum occupancy is {room_type.max_occupancy} guests. "
                f"You have {occupancy.total()} paying guests."
            )
        if occupancy.extra_beds > room_type.extra_bed_slots:
            errors.append(
                f"Maximum {room_type.extra_bed_slots} extra beds available. "
                f"You requested {occupancy.extra_beds}."
            )
        return errors

    @staticmethod
    def _single_use_supplement(rate_rule: RateRule, room_type: Optional[RoomType]) -> Decimal:
        if rate_rule.single_use_supplement is not None:
            return rate_rule.single_use_supplement
        if room_type is not None:
            return room_type.single_use_supplement.amount
        return Decimal("0")
