import logging
import time
from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4

log = logging.getLogger(__name__)


class MockPaymentAdapter:
    """
    Stand-in for a payment gateway: a fixed pause and a captured transaction.
    Nothing is verified against an external service.
    """

    def __init__(self, delay_ms: int = 2000):
        # Convert delay from milliseconds to seconds for time.sleep
        self.delay_seconds = delay_ms / 1000.0

    def charge(self, amount: Decimal, payment_method: Optional[Dict] = None) -> Dict:
        # Simulate gateway processing
        time.sleep(self.delay_seconds)
        txn = {
            "transaction_id": f"mock-{uuid4().hex}",
            "status": "captured",
            "amount": str(amount),
        }
        log.info("mock payment captured %s (%s)", txn["amount"], txn["transaction_id"])
        return txn

    def health_check(self) -> bool:
        return True
