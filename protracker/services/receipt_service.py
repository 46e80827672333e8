"""Receipt upload and extraction boundary.

Receipt files are copied into the receipts directory and, when an
extractor is configured, passed to it for OCR. The extractor is an opaque
external collaborator: any callable taking a file path and returning a
mapping with optional ``merchant``, ``amount``, ``currency`` and ``date``
keys.

Failures are reported once as ExternalServiceError and never retried. The
expense passed in is never modified; callers get a new expense only when
every step succeeded.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from protracker.exceptions import ExternalServiceError
from protracker.models.base import generate_id
from protracker.models.expense import Expense, Receipt

logger = logging.getLogger(__name__)

ReceiptExtractor = Callable[[Path], Mapping[str, Any]]

ALLOWED_SUFFIXES = {".pdf", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic"}


class ReceiptService:
    """Attaches receipt files to expenses.

    Args:
        receipts_dir: Directory receipt files are copied into
        extractor: Optional OCR callable

    Example:
        >>> service = ReceiptService(tmp_path / "receipts")
        >>> updated, receipt = service.attach(expense, "scan.pdf")
        >>> updated.receipts[-1].file_name
        'scan.pdf'
    """

    def __init__(
        self,
        receipts_dir: Union[str, Path],
        extractor: Optional[ReceiptExtractor] = None,
    ):
        self.receipts_dir = Path(receipts_dir)
        self.extractor = extractor

    def upload(self, expense_id: str, source: Union[str, Path]) -> Receipt:
        """Copy a receipt file into storage.

        Raises:
            ExternalServiceError: If the file is missing, has an unsupported
                type or cannot be copied
        """
        source = Path(source)
        if not source.is_file():
            raise ExternalServiceError(
                "Receipt upload",
                f"File not found: {source}",
                recovery_hint="Check the path and try again",
            )
        if source.suffix.lower() not in ALLOWED_SUFFIXES:
            raise ExternalServiceError(
                "Receipt upload",
                f"Unsupported file type '{source.suffix}'",
                recovery_hint="Upload a PDF or image file",
            )

        receipt_id = generate_id()
        target = self.receipts_dir / expense_id / f"{receipt_id}{source.suffix.lower()}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            logger.error(f"Receipt upload failed for {source}: {e}")
            raise ExternalServiceError("Receipt upload", str(e))

        logger.info(f"Stored receipt {source.name} for expense {expense_id}")
        return Receipt(id=receipt_id, file_name=source.name, path=str(target))

    def extract(self, receipt: Receipt) -> Receipt:
        """Run the extractor and return the receipt with extracted fields.

        Raises:
            ExternalServiceError: If the extractor fails or returns fields
                that cannot be used
        """
        if self.extractor is None:
            return receipt

        try:
            fields = self.extractor(Path(receipt.path))
        except Exception as e:
            logger.error(f"Receipt extraction failed for {receipt.file_name}: {e}")
            raise ExternalServiceError(
                "Receipt OCR",
                f"Extraction failed: {e}",
                recovery_hint="Enter the expense details manually",
            )

        try:
            return Receipt.model_validate(
                {
                    **receipt.model_dump(),
                    "merchant": fields.get("merchant"),
                    "extracted_amount": fields.get("amount"),
                    "extracted_currency": fields.get("currency"),
                    "extracted_date": fields.get("date"),
                }
            )
        except (ValueError, AttributeError) as e:
            raise ExternalServiceError(
                "Receipt OCR",
                f"Unusable extraction result: {e}",
                recovery_hint="Enter the expense details manually",
            )

    def attach(
        self, expense: Expense, source: Union[str, Path]
    ) -> Tuple[Expense, Receipt]:
        """Upload, extract and attach a receipt.

        The stored file is removed again if extraction fails.

        Returns:
            Tuple of (new expense with the receipt appended, receipt)

        Raises:
            ExternalServiceError: If upload or extraction fails
        """
        receipt = self.upload(expense.id, source)
        try:
            receipt = self.extract(receipt)
        except ExternalServiceError:
            Path(receipt.path).unlink(missing_ok=True)
            raise

        updated = expense.model_copy(update={"receipts": expense.receipts + [receipt]})
        return updated, receipt
