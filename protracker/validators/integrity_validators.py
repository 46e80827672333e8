"""Cross-record integrity checks.

Deletes never cascade, so records may point at ids that no longer exist.
Such orphans are tolerated and reported as warnings. Duplicate ids and
payment ledgers that disagree with their invoice are errors.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from protracker.models.expense import Expense, ExpenseReport
from protracker.models.invoice import Invoice, Payment
from protracker.models.project import Client, Project, ProjectPhase
from protracker.models.time_entry import TimeEntry
from protracker.validators.validation_report import ValidationReport

logger = logging.getLogger(__name__)


class IntegrityValidator:
    """Checks references between collections.

    Example:
        >>> report = IntegrityValidator().validate(
        ...     clients=[], projects=[project], time_entries=[], expenses=[],
        ...     invoices=[], payments=[],
        ... )
        >>> report.warning_count
        1
    """

    def validate(
        self,
        clients: Sequence[Client],
        projects: Sequence[Project],
        time_entries: Sequence[TimeEntry],
        expenses: Sequence[Expense],
        invoices: Sequence[Invoice],
        payments: Sequence[Payment],
        project_phases: Sequence[ProjectPhase] = (),
        expense_reports: Sequence[ExpenseReport] = (),
    ) -> ValidationReport:
        """Run every integrity check and return the combined report."""
        report = ValidationReport()

        for name, records in (
            ("clients", clients),
            ("projects", projects),
            ("project_phases", project_phases),
            ("time_entries", time_entries),
            ("expenses", expenses),
            ("expense_reports", expense_reports),
            ("invoices", invoices),
            ("payments", payments),
        ):
            self.check_duplicate_ids(name, records, report)

        client_ids = {c.id for c in clients}
        project_ids = {p.id for p in projects}
        entry_ids = {e.id for e in time_entries}
        invoice_ids = {i.id for i in invoices}

        for project in projects:
            if project.client_id not in client_ids:
                report.add_warning(
                    "projects",
                    "Project references a missing client",
                    project.client_id,
                    {"project": project.id},
                )

        phases_by_id = {p.id: p for p in project_phases}
        for phase in project_phases:
            if phase.project_id not in project_ids:
                report.add_warning(
                    "project_phases",
                    "Phase references a missing project",
                    phase.project_id,
                    {"phase": phase.id},
                )

        for entry in time_entries:
            if entry.project_id not in project_ids:
                report.add_warning(
                    "time_entries",
                    "Time entry references a missing project",
                    entry.project_id,
                    {"time_entry": entry.id},
                )
            if entry.invoice_id is not None and entry.invoice_id not in invoice_ids:
                report.add_warning(
                    "time_entries",
                    "Time entry is linked to a missing invoice",
                    entry.invoice_id,
                    {"time_entry": entry.id},
                )
            self.check_phase(
                "time_entries",
                entry.phase_id,
                entry.project_id,
                phases_by_id,
                {"time_entry": entry.id},
                report,
            )

        for expense in expenses:
            if expense.project_id is not None and expense.project_id not in project_ids:
                report.add_warning(
                    "expenses",
                    "Expense references a missing project",
                    expense.project_id,
                    {"expense": expense.id},
                )
            if expense.client_id is not None and expense.client_id not in client_ids:
                report.add_warning(
                    "expenses",
                    "Expense references a missing client",
                    expense.client_id,
                    {"expense": expense.id},
                )
            self.check_phase(
                "expenses",
                expense.phase_id,
                expense.project_id,
                phases_by_id,
                {"expense": expense.id},
                report,
            )

        expense_ids = {e.id for e in expenses}
        for expense_report in expense_reports:
            for expense_id in expense_report.expense_ids:
                if expense_id not in expense_ids:
                    report.add_info(
                        "expense_reports",
                        "Reported expense no longer exists",
                        expense_id,
                        {"expense_report": expense_report.id},
                    )

        entries_by_id = {e.id: e for e in time_entries}
        for invoice in invoices:
            if invoice.client_id not in client_ids:
                report.add_warning(
                    "invoices",
                    "Invoice references a missing client",
                    invoice.client_id,
                    {"invoice": invoice.invoice_number},
                )
            for entry_id in invoice.time_entry_ids:
                entry = entries_by_id.get(entry_id)
                if entry is None:
                    # The snapshot total stays valid; only the link is gone
                    report.add_info(
                        "invoices",
                        "Invoiced time entry no longer exists",
                        entry_id,
                        {"invoice": invoice.invoice_number},
                    )
                elif entry.invoice_id != invoice.id:
                    report.add_warning(
                        "invoices",
                        "Invoiced time entry is not linked back to the invoice",
                        entry_id,
                        {"invoice": invoice.invoice_number},
                    )

        self.check_payments(invoices, payments, invoice_ids, report)

        logger.info(f"Integrity check finished: {report.summary()}")
        return report

    @staticmethod
    def check_phase(
        collection: str,
        phase_id: Optional[str],
        project_id: Optional[str],
        phases_by_id: dict,
        context: dict,
        report: ValidationReport,
    ) -> None:
        """A booked phase must exist and belong to the record's project."""
        if phase_id is None:
            return
        phase = phases_by_id.get(phase_id)
        if phase is None:
            report.add_warning(
                collection, "Record references a missing phase", phase_id, context
            )
        elif phase.project_id != project_id:
            report.add_warning(
                collection,
                "Phase belongs to a different project",
                phase_id,
                {**context, "phase_project": phase.project_id},
            )

    @staticmethod
    def check_duplicate_ids(
        collection: str, records: Iterable, report: ValidationReport
    ) -> None:
        counts = Counter(record.id for record in records)
        for record_id, count in counts.items():
            if count > 1:
                report.add_error(
                    collection, f"Duplicate id appears {count} times", record_id
                )

    @staticmethod
    def check_payments(
        invoices: Sequence[Invoice],
        payments: Sequence[Payment],
        invoice_ids: set,
        report: ValidationReport,
    ) -> None:
        """Payments must point at invoices and add up to each paid amount."""
        paid: Counter = Counter()
        for payment in payments:
            if payment.invoice_id not in invoice_ids:
                report.add_warning(
                    "payments",
                    "Payment references a missing invoice",
                    payment.invoice_id,
                    {"payment": payment.id},
                )
                continue
            paid[payment.invoice_id] += payment.amount

        for invoice in invoices:
            recorded = paid.get(invoice.id, Decimal("0.00"))
            if recorded != invoice.paid_amount:
                report.add_error(
                    "invoices",
                    f"Paid amount {invoice.paid_amount} does not match recorded "
                    f"payments {recorded}",
                    invoice.paid_amount,
                    {"invoice": invoice.invoice_number},
                )
            if invoice.paid_amount > invoice.total_amount:
                report.add_warning(
                    "invoices",
                    "Invoice is overpaid",
                    invoice.paid_amount,
                    {"invoice": invoice.invoice_number},
                )
