"""
Handler for ReceiptIssued events.

On receipt issuance, pushes the receipt summary to the tenant's linked LINE
contact. Tenants without a linked contact are skipped.
"""

import logging
from typing import Callable

from core.events import ReceiptIssued

logger = logging.getLogger(__name__)


def handle_receipt_issued(line_service) -> Callable:
    """
    Factory that returns a ReceiptIssued handler.

    Args:
        line_service: LineService instance

    Returns:
        Handler callable that pushes the receipt over LINE
    """

    def handler(event: ReceiptIssued):
        receipt = event.receipt

        if line_service.push_receipt(receipt, event.invoice):
            logger.info(f"Sent receipt {receipt.receipt_no} via LINE")
        else:
            logger.info(f"Receipt {receipt.receipt_no} not sent: tenant has no LINE contact")

    return handler
