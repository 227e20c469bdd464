from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    reference: str = ''
    message: str = ''


class InvalidPaymentDetails(ValueError):
    """The payment details were rejected before any charge was attempted."""


class BasePaymentProvider(ABC):
    """
    Abstract base class for all payment providers.
    Defines the common interface that all payment providers must implement.
    """

    def __init__(self, **kwargs):
        """Initialize the payment provider with configuration."""
        self.config = kwargs

    @abstractmethod
    def charge(self, payment, method, **kwargs) -> ChargeResult:
        """
        Settle a pending payment.

        Args:
            payment: the Payment being processed
            method: payment method code, e.g. 'demo_card'
            **kwargs: method-specific details such as ``card_number``

        Returns:
            ChargeResult: ``success`` False means the charge was declined.

        Raises:
            InvalidPaymentDetails: malformed input; nothing was charged.
        """
        pass
