"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date

from domain.enums import BookingStatus
from domain.entities import (
    HotelAgePolicy, StayType, RoomType, RatePlan, RateRule, Allotment, Booking
)


class StayTypeRepository(ABC):
    """Repository interface for stay packages"""

    @abstractmethod
    async def save(self, stay_type: StayType) -> StayType:
        pass

    @abstractmethod
    async def find_by_id(self, stay_type_id: str) -> Optional[StayType]:
        pass

    @abstractmethod
    async def find_all(self) -> List[StayType]:
        pass


class RoomTypeRepository(ABC):
    """Repository interface for room types"""

    @abstractmethod
    async def save(self, room_type: RoomType) -> RoomType:
        pass

    @abstractmethod
    async def find_by_id(self, room_type_id: str) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_all(self) -> List[RoomType]:
        pass


class RatePlanRepository(ABC):
    """Repository interface for rate plans"""

    @abstractmethod
    async def save(self, rate_plan: RatePlan) -> RatePlan:
        pass

    @abstractmethod
    async def find_by_id(self, rate_plan_id: str) -> Optional[RatePlan]:
        pass

    @abstractmethod
    async def find_all(self) -> List[RatePlan]:
        pass


class RateRuleRepository(ABC):
    """Repository interface for rate rules"""

    @abstractmethod
    async def save(self, rate_rule: RateRule) -> RateRule:
        pass

    @abstractmethod
    async def find_by_id(self, rate_rule_id: UUID) -> Optional[RateRule]:
        pass

    @abstractmethod
    async def find_covering(self, rate_plan_id: str, on: date) -> List[RateRule]:
        """Rules of a rate plan whose validity window includes the date, in insertion order"""
        pass

    @abstractmethod
    async def find_by_rate_plan(self, rate_plan_id: str) -> List[RateRule]:
        pass


class AllotmentRepository(ABC):
    """Repository interface for per-date room inventory"""

    @abstractmethod
    async def save(self, allotment: Allotment) -> Allotment:
        """Insert or replace the row for (room type, date)"""
        pass

    @abstractmethod
    async def find_by_room_and_date(self, room_type_id: str, on: date) -> Optional[Allotment]:
        pass

    @abstractmethod
    async def find_by_room_and_date_range(self, room_type_id: str, start_date: date, end_date: date) -> List[Allotment]:
        """Rows within the inclusive range, ordered by date"""
        pass

    @abstractmethod
    async def reserve(self, room_type_id: str, dates: List[date], count: int = 1) -> List[Allotment]:
        """Allocate rooms on every date or on none of them.

        Raises AllotmentUnavailableError when any date has no row, is stop-sold
        or has fewer than ``count`` rooms left.
        """
        pass

    @abstractmethod
    async def release(self, room_type_id: str, dates: List[date], count: int = 1) -> List[Allotment]:
        """Give rooms back on every date that has a row"""
        pass


class HotelAgePolicyRepository(ABC):
    """Repository interface for hotel age policies"""

    @abstractmethod
    async def save(self, policy: HotelAgePolicy) -> HotelAgePolicy:
        pass

    @abstractmethod
    async def find_by_id(self, policy_id: str) -> Optional[HotelAgePolicy]:
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Save booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_reference(self, reference: str) -> Optional[Booking]:
        """Find booking by reference"""
        pass

    @abstractmethod
    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find all bookings, optionally filtered by status"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass
