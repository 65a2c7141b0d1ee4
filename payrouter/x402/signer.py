"""External payment signer (wallet) interface."""

from decimal import Decimal
from typing import Protocol


class PaymentSigner(Protocol):
    """Settles a payment and returns its settlement reference.

    The signer owns signing, broadcasting and any in-flight transaction
    state. It may raise any exception on failure; the client wraps it.
    """

    async def send_payment(
        self,
        recipient: str,
        amount: Decimal,
        token: str,
        chain: str,
    ) -> str:
        """Pay `amount` of `token` on `chain` to `recipient`.

        Returns:
            Settlement reference (transaction hash or signed receipt)
        """
        ...
