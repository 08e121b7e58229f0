"""Domain Exceptions"""


class DomainError(Exception):
    """Base class for errors raised by the booking domain"""


class InvalidInputError(DomainError, ValueError):
    """Malformed or out-of-range argument (bad money, future birthdate, unparseable date)"""


class BusinessRuleViolationError(DomainError, ValueError):
    """A booking operation was refused by a business rule"""

    def __init__(self, message: str, validation=None, restriction=None):
        super().__init__(message)
        self.validation = validation
        self.restriction = restriction


class AllotmentUnavailableError(BusinessRuleViolationError):
    """Inventory could not be reserved for every night of the stay"""
