"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class SameTierError(DomainException):
    """Requested tier change targets the tier the subscriber already has"""

    def __init__(self, message: str = "Target tier is the same as current tier"):
        super().__init__(message)


class CustomerNotFoundError(DomainException):
    """No billing customer is linked to the user"""

    pass


class SubscriptionNotFoundError(DomainException):
    """Billing customer has no active subscription"""

    pass


class TierNotFoundError(DomainException):
    """No credit tier is configured for a provider price id"""

    pass


class UpgradePricingNotConfiguredError(DomainException):
    """Upgrade cost matrix has no entry for a from/to/period combination"""

    pass


class InvalidBillingCycleError(DomainException):
    """Billing period boundaries are unusable (end not after start)"""

    pass


class BillingProviderError(DomainException):
    """Billing provider API returned an error or is unavailable"""

    pass


class CreditAccountNotFoundError(DomainException):
    """User has no credit balance record"""

    pass


class InsufficientCreditsError(DomainException):
    """Credit balance does not cover the requested cost"""

    def __init__(self, message: str = "Insufficient credits"):
        super().__init__(message)


class InvalidCreditAmountError(DomainException):
    """Credit amount or transaction type is not acceptable"""

    pass


class CreditBalanceConflictError(DomainException):
    """Balance kept changing underneath an update; the client may retry"""

    pass
