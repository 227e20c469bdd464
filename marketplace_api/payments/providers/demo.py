import logging
import re

from .base import BasePaymentProvider, ChargeResult, InvalidPaymentDetails

logger = logging.getLogger(__name__)


class DemoProvider(BasePaymentProvider):
    """
    Deterministic stand-in for a card gateway.

    Every charge succeeds except those made with a card number listed in
    ``declined_cards``.
    """
    METHODS = ('demo_card', 'demo_bank', 'demo_wallet')
    DECLINED_CARDS = ('4000000000000002',)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.declined_cards = set(kwargs.get('declined_cards', self.DECLINED_CARDS))

    def charge(self, payment, method, **kwargs):
        if method not in self.METHODS:
            raise InvalidPaymentDetails(f"Unsupported payment method: {method}")

        card_number = kwargs.get('card_number')
        if method == 'demo_card' and card_number:
            card_number = re.sub(r'\s', '', card_number)
            if not re.fullmatch(r'\d{16}', card_number):
                raise InvalidPaymentDetails("Invalid card number format (demo: use any 16 digits)")
            if card_number in self.declined_cards:
                logger.info("Demo charge for %s declined", payment.transaction_id)
                return ChargeResult(success=False, message="Card declined.")

        return ChargeResult(success=True, reference=f"DEMO-{payment.transaction_id}", message="Payment approved.")
