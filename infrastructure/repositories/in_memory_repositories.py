"""In-Memory Repository Implementations"""
import asyncio
from typing import Optional, List, Dict, Tuple
from uuid import UUID
from datetime import date

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
    HotelAgePolicy, StayType, RoomType, RatePlan, RateRule, Allotment, Booking
)
from domain.enums import BookingStatus
from domain.exceptions import AllotmentUnavailableError


class InMemoryStayTypeRepository(StayTypeRepository):
    """In-memory implementation of StayTypeRepository"""

    def __init__(self):
        self._storage: Dict[str, StayType] = {}

    async def save(self, stay_type: StayType) -> StayType:
        self._storage[stay_type.stay_type_id] = stay_type
        return stay_type

    async def find_by_id(self, stay_type_id: str) -> Optional[StayType]:
        return self._storage.get(stay_type_id)

    async def find_all(self) -> List[StayType]:
        return list(self._storage.values())


class InMemoryRoomTypeRepository(RoomTypeRepository):
    """In-memory implementation of RoomTypeRepository"""

    def __init__(self):
        self._storage: Dict[str, RoomType] = {}

    async def save(self, room_type: RoomType) -> RoomType:
        self._storage[room_type.room_type_id] = room_type
        return room_type

    async def find_by_id(self, room_type_id: str) -> Optional[RoomType]:
        return self._storage.get(room_type_id)

    async def find_all(self) -> List[RoomType]:
        return list(self._storage.values())


class InMemoryRatePlanRepository(RatePlanRepository):
    """In-memory implementation of RatePlanRepository"""

    def __init__(self):
        self._storage: Dict[str, RatePlan] = {}

    async def save(self, rate_plan: RatePlan) -> RatePlan:
        self._storage[rate_plan.rate_plan_id] = rate_plan
        return rate_plan

    async def find_by_id(self, rate_plan_id: str) -> Optional[RatePlan]:
        return self._storage.get(rate_plan_id)

    async def find_all(self) -> List[RatePlan]:
        return list(self._storage.values())


class InMemoryRateRuleRepository(RateRuleRepository):
    """In-memory implementation of RateRuleRepository (dicts keep insertion order)"""

    def __init__(self):
        self._storage: Dict[UUID, RateRule] = {}

    async def save(self, rate_rule: RateRule) -> RateRule:
        self._storage[rate_rule.rate_rule_id] = rate_rule
        return rate_rule

    async def find_by_id(self, rate_rule_id: UUID) -> Optional[RateRule]:
        return self._storage.get(rate_rule_id)

    async def find_covering(self, rate_plan_id: str, on: date) -> List[RateRule]:
        return [
            rule for rule in self._storage.values()
            if rule.rate_plan_id == rate_plan_id and rule.covers(on)
        ]

    async def find_by_rate_plan(self, rate_plan_id: str) -> List[RateRule]:
        return [rule for rule in self._storage.values() if rule.rate_plan_id == rate_plan_id]


class InMemoryAllotmentRepository(AllotmentRepository):
    """In-memory implementation of AllotmentRepository.

    ``reserve`` and ``release`` run under one asyncio.Lock so concurrent
    bookings cannot both take the last room on a date.
    """

    def __init__(self):
        self._storage: Dict[Tuple[str, date], Allotment] = {}
        self._lock = asyncio.Lock()

    async def save(self, allotment: Allotment) -> Allotment:
        key = (allotment.room_type_id, allotment.date)
        existing = self._storage.get(key)
        if existing is not None:
            allotment.version = existing.version + 1
        self._storage[key] = allotment
        return allotment

    async def find_by_room_and_date(self, room_type_id: str, on: date) -> Optional[Allotment]:
        return self._storage.get((room_type_id, on))

    async def find_by_room_and_date_range(self, room_type_id: str, start_date: date, end_date: date) -> List[Allotment]:
        results = [
            allotment for (rt_id, d), allotment in self._storage.items()
            if rt_id == room_type_id and start_date <= d <= end_date
        ]
        return sorted(results, key=lambda a: a.date)

    async def reserve(self, room_type_id: str, dates: List[date], count: int = 1) -> List[Allotment]:
        async with self._lock:
            rows = []
            for on in dates:
                allotment = self._storage.get((room_type_id, on))
                if allotment is None:
                    raise AllotmentUnavailableError(
                        f"No allotment found for room type {room_type_id} on {on.isoformat()}"
                    )
                if allotment.stop_sell:
                    raise AllotmentUnavailableError(f"Stop sell is active for {on.isoformat()}")
                if allotment.remaining < count:
                    raise AllotmentUnavailableError(f"No allotment remaining for {on.isoformat()}")
                rows.append(allotment)

            for allotment in rows:
                allotment.allocate(count)
            return rows

    async def release(self, room_type_id: str, dates: List[date], count: int = 1) -> List[Allotment]:
        async with self._lock:
            rows = []
            for on in dates:
                allotment = self._storage.get((room_type_id, on))
                if allotment is None:
                    continue
                allotment.release(count)
                rows.append(allotment)
            return rows


class InMemoryHotelAgePolicyRepository(HotelAgePolicyRepository):
    """In-memory implementation of HotelAgePolicyRepository"""

    def __init__(self):
        self._storage: Dict[str, HotelAgePolicy] = {}

    async def save(self, policy: HotelAgePolicy) -> HotelAgePolicy:
        self._storage[policy.policy_id] = policy
        return policy

    async def find_by_id(self, policy_id: str) -> Optional[HotelAgePolicy]:
        return self._storage.get(policy_id)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}

    async def save(self, booking: Booking) -> Booking:
        """Save booking to memory"""
        self._storage[booking.booking_id] = booking
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        return self._storage.get(booking_id)

    async def find_by_reference(self, reference: str) -> Optional[Booking]:
        """Find booking by reference"""
        for booking in self._storage.values():
            if booking.reference == reference:
                return booking
        return None

    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find all bookings"""
        if status is None:
            return list(self._storage.values())
        return [b for b in self._storage.values() if b.status == status]

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        if booking.booking_id in self._storage:
            self._storage[booking.booking_id] = booking
            return booking
        raise ValueError("Booking not found")
