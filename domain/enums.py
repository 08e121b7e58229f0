"""Domain Enums"""
from enum import Enum
from typing import Optional


class PricingModel(str, Enum):
    OCCUPANCY_BASED = "OCCUPANCY_BASED"
    UNIT_INCLUDED_OCCUPANCY = "UNIT_INCLUDED_OCCUPANCY"

    def is_occupancy_based(self) -> bool:
        return self == PricingModel.OCCUPANCY_BASED

    def is_unit_included_occupancy(self) -> bool:
        return self == PricingModel.UNIT_INCLUDED_OCCUPANCY


class GuestCategory(str, Enum):
    INFANT = "INFANT"
    CHILD = "CHILD"
    # Stored label only; age classification never produces it
    TEEN = "TEEN"
    ADULT = "ADULT"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["GuestCategory"]:
        """Case-insensitive lookup, None when the label is unknown"""
        if value is None:
            return None
        if isinstance(value, GuestCategory):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class RestrictionType(str, Enum):
    NO_RATE = "no_rate"
    STOP_SELL = "stop_sell"
    PAST_DATE = "past_date"
    SOLD_OUT = "sold_out"
    OCCUPANCY_EXCEEDED = "occupancy_exceeded"
    MINIMUM_STAY = "minimum_stay"
    MAXIMUM_STAY = "maximum_stay"


class BoardType(str, Enum):
    ROOM_ONLY = "RO"
    BED_AND_BREAKFAST = "BB"
    HALF_BOARD = "HB"
    FULL_BOARD = "FB"
    ALL_INCLUSIVE = "AI"
