"""Application state with write-through JSON persistence.

``AppStore`` owns every collection. Each mutation goes through a named
method and is followed by a synchronous save of the affected collection.
Deletes never cascade; dangling references are left for the integrity
check to report.
"""

import datetime as dt
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from protracker.calculators.currency_converter import CurrencyConverter
from protracker.calculators.expense_report_calculator import create_expense_report
from protracker.calculators.invoice_calculator import (
    create_invoice_from_entries,
    create_manual_invoice,
    next_invoice_number,
)
from protracker.calculators.payment_calculator import (
    apply_payment,
    is_overdue,
    remove_payment,
)
from protracker.exceptions import StorageError, ValidationError
from protracker.models.currency import ExchangeRate
from protracker.models.expense import (
    Expense,
    ExpenseReport,
    ExpenseReportStatus,
    Receipt,
)
from protracker.models.invoice import BillerInfo, Invoice, InvoiceStatus, Payment
from protracker.models.project import Client, Project, ProjectPhase
from protracker.models.time_entry import TimeEntry
from protracker.services.receipt_service import ReceiptService
from protracker.storage.json_storage import JsonFileStorage
from protracker.validators.integrity_validators import IntegrityValidator
from protracker.validators.validation_report import ValidationReport

logger = logging.getLogger(__name__)

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "clients": Client,
    "projects": Project,
    "project_phases": ProjectPhase,
    "time_entries": TimeEntry,
    "expenses": Expense,
    "expense_reports": ExpenseReport,
    "invoices": Invoice,
    "payments": Payment,
    "exchange_rates": ExchangeRate,
}

BILLER_INFO_KEY = "biller_info"

STORAGE_KEYS = tuple(COLLECTIONS) + (BILLER_INFO_KEY,)

RECORD_LABELS = {
    "clients": "client",
    "projects": "project",
    "project_phases": "project phase",
    "time_entries": "time entry",
    "expenses": "expense",
    "expense_reports": "expense report",
    "invoices": "invoice",
    "payments": "payment",
    "exchange_rates": "exchange rate",
}


def build_model(model_cls: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    """Validate raw data into a model, raising the domain ValidationError.

    Raises:
        ValidationError: With the first failing field and pydantic's message
    """
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", str(e))
        raise ValidationError(
            f"Invalid {model_cls.__name__}: {message}"
            + (f" (field: {field})" if field else ""),
            field=field,
            value=first.get("input"),
        )


def dump_records(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [record.model_dump(mode="json") for record in records]


class AppStore:
    """In-memory collections backed by a ``JsonFileStorage``.

    Args:
        storage: Persistence backend
        default_currency: Currency for manual invoices without one
        invoice_due_days: Days between issue and due date by default

    Example:
        >>> store = AppStore(JsonFileStorage(tmp_path))
        >>> client = store.add_client(Client(name="Acme"))
        >>> store.get_client(client.id).name
        'Acme'
    """

    def __init__(
        self,
        storage: JsonFileStorage,
        default_currency: str = "USD",
        invoice_due_days: int = 30,
    ):
        self.storage = storage
        self.default_currency = default_currency
        self.invoice_due_days = invoice_due_days
        self.failed_keys: set = set()
        self._data: Dict[str, List[BaseModel]] = {key: [] for key in COLLECTIONS}
        self._biller_info = BillerInfo()
        self.load()

    @classmethod
    def from_config(cls, config) -> "AppStore":
        """Open the store in the configured data directory."""
        return cls(
            JsonFileStorage(config.data_dir),
            default_currency=config.default_currency,
            invoice_due_days=config.invoice_due_days,
        )

    # -- persistence ----------------------------------------------------------

    def load(self) -> None:
        """(Re)load every collection from storage.

        Raises:
            StorageError: If a file is unreadable or holds invalid records
        """
        for key, model_cls in COLLECTIONS.items():
            raw = self.storage.load(key, default=[])
            if not isinstance(raw, list):
                raise StorageError(f"Stored data for '{key}' is not a list")
            records = []
            for index, item in enumerate(raw):
                try:
                    records.append(build_model(model_cls, item))
                except ValidationError as e:
                    raise StorageError(
                        f"Stored {key} record #{index + 1} is invalid: {e.message}"
                    )
            self._data[key] = records

        raw_biller = self.storage.load(BILLER_INFO_KEY, default={}) or {}
        try:
            self._biller_info = build_model(BillerInfo, raw_biller)
        except ValidationError as e:
            raise StorageError(f"Stored biller info is invalid: {e.message}")

        logger.debug(
            "Loaded store: "
            + ", ".join(f"{k}={len(v)}" for k, v in self._data.items())
        )

    def _persist(self, key: str) -> bool:
        if key == BILLER_INFO_KEY:
            ok = self.storage.save(key, self._biller_info.model_dump(mode="json"))
        else:
            ok = self.storage.save(key, dump_records(self._data[key]))
        if ok:
            self.failed_keys.discard(key)
        else:
            self.failed_keys.add(key)
        return ok

    def save_all(self) -> bool:
        results = [self._persist(key) for key in STORAGE_KEYS]
        return all(results)

    # -- generic helpers ------------------------------------------------------

    def _find(self, key: str, record_id: str) -> Optional[BaseModel]:
        for record in self._data[key]:
            if record.id == record_id:
                return record
        return None

    def _get(self, key: str, record_id: str) -> BaseModel:
        record = self._find(key, record_id)
        if record is None:
            raise ValidationError(
                f"No {RECORD_LABELS[key]} with id '{record_id}'", value=record_id
            )
        return record

    def _insert(self, key: str, record: BaseModel) -> BaseModel:
        if self._find(key, record.id) is not None:
            raise ValidationError(
                f"A record with id '{record.id}' already exists in {key}",
                field="id",
                value=record.id,
            )
        self._data[key].append(record)
        self._persist(key)
        return record

    def _replace(self, key: str, record: BaseModel, persist: bool = True) -> BaseModel:
        self._data[key] = [
            record if existing.id == record.id else existing
            for existing in self._data[key]
        ]
        if persist:
            self._persist(key)
        return record

    def _update(self, key: str, record_id: str, changes: Dict[str, Any]) -> BaseModel:
        current = self._get(key, record_id)
        if "id" in changes and changes["id"] != record_id:
            raise ValidationError("Record ids cannot be changed", field="id")
        merged = {**current.model_dump(), **changes}
        return self._replace(key, build_model(type(current), merged))

    def _delete(self, key: str, record_id: str) -> bool:
        before = len(self._data[key])
        self._data[key] = [r for r in self._data[key] if r.id != record_id]
        if len(self._data[key]) == before:
            return False
        self._persist(key)
        return True

    # -- read access ------------------------------------------------------------

    @property
    def clients(self) -> List[Client]:
        return list(self._data["clients"])

    @property
    def projects(self) -> List[Project]:
        return list(self._data["projects"])

    @property
    def project_phases(self) -> List[ProjectPhase]:
        return list(self._data["project_phases"])

    @property
    def time_entries(self) -> List[TimeEntry]:
        return list(self._data["time_entries"])

    @property
    def expenses(self) -> List[Expense]:
        return list(self._data["expenses"])

    @property
    def expense_reports(self) -> List[ExpenseReport]:
        return list(self._data["expense_reports"])

    @property
    def invoices(self) -> List[Invoice]:
        return list(self._data["invoices"])

    @property
    def payments(self) -> List[Payment]:
        return list(self._data["payments"])

    @property
    def exchange_rates(self) -> List[ExchangeRate]:
        return list(self._data["exchange_rates"])

    @property
    def biller_info(self) -> BillerInfo:
        return self._biller_info

    @property
    def converter(self) -> CurrencyConverter:
        return CurrencyConverter(self._data["exchange_rates"])

    def get_client(self, client_id: str) -> Client:
        return self._get("clients", client_id)

    def get_project(self, project_id: str) -> Project:
        return self._get("projects", project_id)

    def get_project_phase(self, phase_id: str) -> ProjectPhase:
        return self._get("project_phases", phase_id)

    def phases_for(self, project_id: str) -> List[ProjectPhase]:
        """Phases of a project in display order."""
        return sorted(
            (p for p in self._data["project_phases"] if p.project_id == project_id),
            key=lambda p: p.order,
        )

    def get_time_entry(self, entry_id: str) -> TimeEntry:
        return self._get("time_entries", entry_id)

    def get_expense(self, expense_id: str) -> Expense:
        return self._get("expenses", expense_id)

    def get_expense_report(self, report_id: str) -> ExpenseReport:
        return self._get("expense_reports", report_id)

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self._get("invoices", invoice_id)

    def find_invoice_by_number(self, invoice_number: str) -> Optional[Invoice]:
        for invoice in self._data["invoices"]:
            if invoice.invoice_number == invoice_number:
                return invoice
        return None

    def payments_for(self, invoice_id: str) -> List[Payment]:
        return [p for p in self._data["payments"] if p.invoice_id == invoice_id]

    # -- clients and projects ---------------------------------------------------

    def add_client(self, client: Client) -> Client:
        return self._insert("clients", client)

    def update_client(self, client_id: str, **changes) -> Client:
        return self._update("clients", client_id, changes)

    def delete_client(self, client_id: str) -> bool:
        return self._delete("clients", client_id)

    def add_project(self, project: Project) -> Project:
        self.get_client(project.client_id)
        return self._insert("projects", project)

    def update_project(self, project_id: str, **changes) -> Project:
        return self._update("projects", project_id, changes)

    def delete_project(self, project_id: str) -> bool:
        return self._delete("projects", project_id)

    # -- project phases -------------------------------------------------------------

    def _check_phase(self, project_id: Optional[str], phase_id: Optional[str]) -> None:
        if not phase_id:
            return
        phase = self.get_project_phase(phase_id)
        if phase.project_id != project_id:
            raise ValidationError(
                f"Phase '{phase.name}' does not belong to project {project_id}",
                field="phase_id",
                value=phase_id,
            )

    def add_project_phase(self, phase: ProjectPhase) -> ProjectPhase:
        """Add a phase to an existing project.

        A phase added with the default order goes after the project's
        existing phases.

        Raises:
            ValidationError: If the project does not exist
        """
        self.get_project(phase.project_id)
        existing = self.phases_for(phase.project_id)
        if phase.order == 0 and existing:
            phase = phase.model_copy(update={"order": existing[-1].order + 1})
        return self._insert("project_phases", phase)

    def update_project_phase(self, phase_id: str, **changes) -> ProjectPhase:
        return self._update("project_phases", phase_id, changes)

    def delete_project_phase(self, phase_id: str) -> bool:
        """Delete a phase and clear it from entries and expenses booked to it."""
        if not self._delete("project_phases", phase_id):
            return False
        for key in ("time_entries", "expenses"):
            cleared = False
            for record in self._data[key]:
                if record.phase_id == phase_id:
                    self._replace(
                        key, record.model_copy(update={"phase_id": None}), persist=False
                    )
                    cleared = True
            if cleared:
                self._persist(key)
        return True

    def reorder_project_phases(
        self, project_id: str, phase_ids: List[str]
    ) -> List[ProjectPhase]:
        """Set the display order of a project's phases.

        Args:
            project_id: Project whose phases are reordered
            phase_ids: Every phase id of the project, in the new order

        Raises:
            ValidationError: If ``phase_ids`` is not exactly the project's
                phases
        """
        current = {p.id: p for p in self.phases_for(project_id)}
        if len(phase_ids) != len(set(phase_ids)) or set(phase_ids) != set(current):
            raise ValidationError(
                f"Reorder must list each phase of project {project_id} exactly once",
                field="phase_ids",
                value=phase_ids,
            )
        for position, phase_id in enumerate(phase_ids):
            self._replace(
                "project_phases",
                current[phase_id].model_copy(update={"order": position}),
                persist=False,
            )
        self._persist("project_phases")
        return self.phases_for(project_id)

    # -- time entries and expenses ------------------------------------------------

    def add_time_entry(self, entry: TimeEntry) -> TimeEntry:
        """Add a time entry for an existing project.

        Raises:
            ValidationError: If the project does not exist, or the phase is
                unknown or belongs to another project
        """
        self.get_project(entry.project_id)
        self._check_phase(entry.project_id, entry.phase_id)
        return self._insert("time_entries", entry)

    def update_time_entry(self, entry_id: str, **changes) -> TimeEntry:
        """Edit a time entry.

        Invoices already built from the entry keep their snapshot total.
        """
        if "phase_id" in changes or "project_id" in changes:
            current = self.get_time_entry(entry_id)
            self._check_phase(
                changes.get("project_id", current.project_id),
                changes.get("phase_id", current.phase_id),
            )
        return self._update("time_entries", entry_id, changes)

    def delete_time_entry(self, entry_id: str) -> bool:
        return self._delete("time_entries", entry_id)

    def add_expense(self, expense: Expense) -> Expense:
        self._check_phase(expense.project_id, expense.phase_id)
        return self._insert("expenses", expense)

    def update_expense(self, expense_id: str, **changes) -> Expense:
        if "phase_id" in changes or "project_id" in changes:
            current = self.get_expense(expense_id)
            self._check_phase(
                changes.get("project_id", current.project_id),
                changes.get("phase_id", current.phase_id),
            )
        return self._update("expenses", expense_id, changes)

    def delete_expense(self, expense_id: str) -> bool:
        return self._delete("expenses", expense_id)

    def attach_receipt(
        self, expense_id: str, source: Union[str, Path], service: ReceiptService
    ) -> Receipt:
        """Upload a receipt and attach it to an expense.

        Raises:
            ExternalServiceError: If upload or extraction fails; the stored
                expense is left unchanged
        """
        expense = self.get_expense(expense_id)
        updated, receipt = service.attach(expense, source)
        self._replace("expenses", updated)
        return receipt

    # -- invoices -----------------------------------------------------------------

    def _due_date(self, issue_date: dt.date, due_date: Optional[dt.date]) -> dt.date:
        return due_date or issue_date + dt.timedelta(days=self.invoice_due_days)

    def create_invoice(
        self,
        client_id: str,
        time_entry_ids: List[str],
        issue_date: Optional[dt.date] = None,
        due_date: Optional[dt.date] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        """Invoice the given time entries and link them to the invoice.

        Raises:
            ValidationError: If the client or an entry does not exist, or the
                selection cannot be invoiced
        """
        self.get_client(client_id)
        entries = [self.get_time_entry(entry_id) for entry_id in time_entry_ids]
        issue_date = issue_date or dt.date.today()

        invoice = create_invoice_from_entries(
            client_id=client_id,
            entries=entries,
            projects=self._data["projects"],
            invoice_number=next_invoice_number(self._data["invoices"]),
            issue_date=issue_date,
            due_date=self._due_date(issue_date, due_date),
            notes=notes,
        )
        self._insert("invoices", invoice)

        for entry in entries:
            self._replace(
                "time_entries",
                entry.model_copy(update={"invoice_id": invoice.id}),
                persist=False,
            )
        self._persist("time_entries")
        return invoice

    def create_manual_invoice(
        self,
        client_id: str,
        amount: Union[Decimal, int, str],
        currency: Optional[str] = None,
        issue_date: Optional[dt.date] = None,
        due_date: Optional[dt.date] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        self.get_client(client_id)
        issue_date = issue_date or dt.date.today()
        invoice = create_manual_invoice(
            client_id=client_id,
            amount=amount,
            currency=currency or self.default_currency,
            invoice_number=next_invoice_number(self._data["invoices"]),
            issue_date=issue_date,
            due_date=self._due_date(issue_date, due_date),
            notes=notes,
        )
        return self._insert("invoices", invoice)

    def update_invoice_status(
        self, invoice_id: str, status: Union[InvoiceStatus, str]
    ) -> Invoice:
        return self._update("invoices", invoice_id, {"status": InvoiceStatus(status)})

    def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice and release its time entries for re-invoicing.

        Payments recorded against the invoice are kept.
        """
        if not self._delete("invoices", invoice_id):
            return False
        released = False
        for entry in self._data["time_entries"]:
            if entry.invoice_id == invoice_id:
                self._replace(
                    "time_entries",
                    entry.model_copy(update={"invoice_id": None}),
                    persist=False,
                )
                released = True
        if released:
            self._persist("time_entries")
        return True

    def add_payment(
        self,
        invoice_id: str,
        amount: Union[Decimal, int, str],
        date: Optional[dt.date] = None,
        method: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Payment:
        """Record a payment and refresh the invoice's paid amount and status.

        Raises:
            ValidationError: If the invoice does not exist or the amount is
                invalid or exceeds the balance due
        """
        invoice = self.get_invoice(invoice_id)
        payment = build_model(
            Payment,
            {
                "invoice_id": invoice_id,
                "amount": amount,
                "date": date or dt.date.today(),
                "method": method,
                "note": note,
            },
        )
        updated, payments = apply_payment(invoice, self._data["payments"], payment)
        self._data["payments"] = payments
        self._persist("payments")
        self._replace("invoices", updated)
        return payment

    def remove_payment(self, payment_id: str) -> Invoice:
        """Remove a payment and return the refreshed invoice."""
        payment = self._get("payments", payment_id)
        invoice = self.get_invoice(payment.invoice_id)
        updated, payments = remove_payment(invoice, self._data["payments"], payment_id)
        self._data["payments"] = payments
        self._persist("payments")
        return self._replace("invoices", updated)

    def refresh_overdue(self, today: Optional[dt.date] = None) -> List[Invoice]:
        """Move unpaid invoices past their due date to Overdue.

        Returns:
            The invoices whose status changed
        """
        changed = []
        for invoice in self._data["invoices"]:
            if invoice.status != InvoiceStatus.OVERDUE and is_overdue(invoice, today):
                updated = invoice.model_copy(update={"status": InvoiceStatus.OVERDUE})
                self._replace("invoices", updated, persist=False)
                changed.append(updated)
        if changed:
            self._persist("invoices")
            logger.info(f"Marked {len(changed)} invoice(s) overdue")
        return changed

    # -- expense reports ------------------------------------------------------------

    def create_expense_report(
        self,
        title: str,
        expense_ids: List[str],
        start_date: dt.date,
        end_date: dt.date,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ExpenseReport:
        """Bundle approved expenses of a period into a Draft report.

        Raises:
            ValidationError: If an expense does not exist or the selection
                cannot be reported
        """
        if project_id is not None:
            self.get_project(project_id)
        if client_id is not None:
            self.get_client(client_id)
        expenses = [self.get_expense(expense_id) for expense_id in expense_ids]
        report = create_expense_report(
            title=title,
            expenses=expenses,
            start_date=start_date,
            end_date=end_date,
            projects=self._data["projects"],
            project_id=project_id,
            client_id=client_id,
            notes=notes,
        )
        return self._insert("expense_reports", report)

    def update_expense_report_status(
        self, report_id: str, status: Union[ExpenseReportStatus, str]
    ) -> ExpenseReport:
        return self._update(
            "expense_reports", report_id, {"status": ExpenseReportStatus(status)}
        )

    def delete_expense_report(self, report_id: str) -> bool:
        """Delete a report. Its expenses are left untouched."""
        return self._delete("expense_reports", report_id)

    def report_expenses(self, report: ExpenseReport) -> List[Expense]:
        """The report's expenses that still exist, in report order."""
        by_id = {e.id: e for e in self._data["expenses"]}
        return [by_id[i] for i in report.expense_ids if i in by_id]

    # -- settings -----------------------------------------------------------------

    def update_exchange_rate(self, rate: ExchangeRate) -> ExchangeRate:
        """Replace the rate for the same currency pair, or add it."""
        converter = self.converter
        converter.update_rate(rate)
        self._data["exchange_rates"] = converter.rates
        self._persist("exchange_rates")
        return rate

    def set_biller_info(self, info: BillerInfo) -> BillerInfo:
        self._biller_info = info
        self._persist(BILLER_INFO_KEY)
        return info

    # -- bulk access ----------------------------------------------------------------

    def check_integrity(self) -> ValidationReport:
        return IntegrityValidator().validate(
            clients=self._data["clients"],
            projects=self._data["projects"],
            time_entries=self._data["time_entries"],
            expenses=self._data["expenses"],
            invoices=self._data["invoices"],
            payments=self._data["payments"],
            project_phases=self._data["project_phases"],
            expense_reports=self._data["expense_reports"],
        )

    def snapshot(self) -> Dict[str, Any]:
        """All collections as JSON-ready data, keyed by storage key."""
        data: Dict[str, Any] = {
            key: dump_records(records) for key, records in self._data.items()
        }
        data[BILLER_INFO_KEY] = self._biller_info.model_dump(mode="json")
        return data

    def replace_collections(
        self,
        collections: Dict[str, List[BaseModel]],
        biller_info: Optional[BillerInfo] = None,
    ) -> bool:
        """Swap in whole collections and persist everything that changed."""
        for key, records in collections.items():
            if key not in COLLECTIONS:
                raise ValueError(f"Unknown collection: {key}")
            self._data[key] = list(records)
        if biller_info is not None:
            self._biller_info = biller_info
        keys = list(collections) + ([BILLER_INFO_KEY] if biller_info else [])
        results = [self._persist(key) for key in keys]
        return all(results)
