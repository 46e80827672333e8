"""Expense report creation.

A report bundles approved expenses from one period, optionally restricted
to a project or client. Its total is a snapshot in the single currency the
expenses share; reports never sum across currencies.
"""

import datetime as dt
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from protracker.exceptions import ValidationError
from protracker.models.expense import Expense, ExpenseReport, ExpenseStatus
from protracker.models.project import Project

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def expense_client_id(
    expense: Expense, projects: Iterable[Project]
) -> Optional[str]:
    """Client an expense is charged to, directly or through its project."""
    if expense.client_id is not None:
        return expense.client_id
    for project in projects:
        if project.id == expense.project_id:
            return project.client_id
    return None


def eligible_expenses(
    expenses: Iterable[Expense],
    start_date: dt.date,
    end_date: dt.date,
    projects: Iterable[Project] = (),
    project_id: Optional[str] = None,
    client_id: Optional[str] = None,
) -> List[Expense]:
    """Approved expenses dated within the period that match the filters."""
    projects = list(projects)
    selected = []
    for expense in expenses:
        if expense.status != ExpenseStatus.APPROVED:
            continue
        if not start_date <= expense.date <= end_date:
            continue
        if project_id is not None and expense.project_id != project_id:
            continue
        if client_id is not None and expense_client_id(expense, projects) != client_id:
            continue
        selected.append(expense)
    return selected


def create_expense_report(
    title: str,
    expenses: Sequence[Expense],
    start_date: dt.date,
    end_date: dt.date,
    projects: Iterable[Project] = (),
    project_id: Optional[str] = None,
    client_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> ExpenseReport:
    """Create a Draft report over the selected expenses.

    Args:
        title: Report title
        expenses: Expenses to include
        start_date: First day of the period
        end_date: Last day of the period
        projects: Projects, used to find an expense's client
        project_id: Restrict the report to this project
        client_id: Restrict the report to this client
        notes: Optional notes

    Returns:
        New ExpenseReport in Draft status

    Raises:
        ValidationError: If the title is blank, no expenses are selected, one
            is selected twice, an expense is not approved or falls outside
            the period and filters, or the expenses span several currencies
    """
    if not title or not title.strip():
        raise ValidationError("Expense report title is required", field="title")
    if end_date < start_date:
        raise ValidationError(
            f"End date ({end_date}) must not be before start date ({start_date})",
            field="end_date",
            value=end_date,
        )
    if not expenses:
        raise ValidationError(
            "Please select at least one expense to include in the report",
            field="expense_ids",
        )

    allowed = {
        e.id
        for e in eligible_expenses(
            expenses, start_date, end_date, projects, project_id, client_id
        )
    }
    seen = set()
    for expense in expenses:
        if expense.id in seen:
            raise ValidationError(
                f"Expense {expense.id} is selected more than once",
                field="expense_ids",
                value=expense.id,
            )
        seen.add(expense.id)
        if expense.status != ExpenseStatus.APPROVED:
            raise ValidationError(
                f"Expense {expense.id} is {expense.status.value}; only approved "
                "expenses can be reported",
                field="expense_ids",
                value=expense.id,
            )
        if expense.id not in allowed:
            raise ValidationError(
                f"Expense {expense.id} is outside the report period or filters",
                field="expense_ids",
                value=expense.id,
            )

    currencies = sorted({e.currency for e in expenses})
    if len(currencies) > 1:
        raise ValidationError(
            f"Selected expenses span several currencies ({', '.join(currencies)})",
            field="expense_ids",
            recovery_hint="Create one report per currency",
        )

    total = sum((e.amount for e in expenses), Decimal("0")).quantize(CENTS)
    report = ExpenseReport(
        title=title,
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        client_id=client_id,
        expense_ids=[e.id for e in expenses],
        total_amount=total,
        currency=currencies[0],
        notes=notes,
    )
    logger.info(
        f"Created expense report '{report.title}': {len(expenses)} expenses, "
        f"{report.currency} {report.total_amount}"
    )
    return report
