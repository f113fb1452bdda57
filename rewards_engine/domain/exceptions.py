"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransactionDataError(DomainException):
    """Ledger transaction record is malformed or invalid"""

    pass


class InvalidCardConfigurationError(DomainException):
    """Card, group or settings record is malformed or invalid"""

    pass


class InvalidCalculationRecordError(DomainException):
    """Stored calculation record cannot be read back"""

    pass
