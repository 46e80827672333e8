"""External service boundaries."""

from protracker.services.receipt_service import ReceiptExtractor, ReceiptService

__all__ = ["ReceiptExtractor", "ReceiptService"]
