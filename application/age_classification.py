"""Guest age classification against a hotel age policy"""
from datetime import date
from typing import Optional, Tuple, Union

from domain.entities import HotelAgePolicy
from domain.enums import GuestCategory
from domain.exceptions import InvalidInputError
from domain.value_objects import parse_date


def _years_before(on: date, years: int) -> date:
    try:
        return on.replace(year=on.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return on.replace(year=on.year - years, day=28)


class AgeClassificationService:
    """Maps a guest's birthdate to INFANT, CHILD or ADULT as of the check-in date.

    With ``inclusive_thresholds`` (the default) ``infant_max_age`` and
    ``child_max_age`` are inclusive upper bounds: a guest aged exactly
    ``child_max_age`` is still a CHILD. Otherwise they are exclusive.
    The ``adult_min_age`` fallback is always exclusive.
    """

    def __init__(self, max_age: int = 150, inclusive_thresholds: bool = True):
        self.max_age = max_age
        self.inclusive_thresholds = inclusive_thresholds

    def calculate_age(
        self,
        birthdate: Union[date, str, None],
        checkin_date: Union[date, str, None]
    ) -> int:
        """Whole years between birthdate and check-in, floored at 0"""
        born = parse_date(birthdate)
        on = parse_date(checkin_date)

        if born > on:
            raise InvalidInputError("Birthdate cannot be after check-in date")
        if born < _years_before(on, self.max_age):
            raise InvalidInputError(
                f"Birthdate cannot be more than {self.max_age} years before check-in date"
            )

        age = on.year - born.year
        if (on.month, on.day) < (born.month, born.day):
            age -= 1
        return max(0, age)

    def classify(
        self,
        birthdate: Union[date, str, None],
        checkin_date: Union[date, str, None],
        policy: Optional[HotelAgePolicy]
    ) -> GuestCategory:
        return self.category_for_age(self.calculate_age(birthdate, checkin_date), policy)

    def category_for_age(self, age: int, policy: Optional[HotelAgePolicy]) -> GuestCategory:
        if age < 0:
            raise InvalidInputError("Age cannot be negative")
        if policy is None:
            return GuestCategory.ADULT

        if policy.infant_max_age is not None and self._within(age, policy.infant_max_age):
            return GuestCategory.INFANT
        if policy.child_max_age is not None and self._within(age, policy.child_max_age):
            return GuestCategory.CHILD
        if policy.child_max_age is None and policy.adult_min_age is not None and age < policy.adult_min_age:
            return GuestCategory.CHILD
        return GuestCategory.ADULT

    def age_range(self, category: GuestCategory, policy: Optional[HotelAgePolicy]) -> Optional[Tuple[int, int]]:
        """Youngest and oldest age classified as ``category``, or None when no age is"""
        ages = [age for age in range(self.max_age + 1) if self.category_for_age(age, policy) == category]
        if not ages:
            return None
        return ages[0], ages[-1]

    def _within(self, age: int, threshold: int) -> bool:
        if self.inclusive_thresholds:
            return age <= threshold
        return age < threshold
