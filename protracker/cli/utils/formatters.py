"""Output formatting utilities for CLI."""

from decimal import Decimal
from typing import List, Mapping

import click


def format_success(message: str) -> str:
    """Format a success message with green color.

    Args:
        message: The success message to format

    Returns:
        Formatted success message with color
    """
    return click.style(f"✓ {message}", fg="green", bold=True)


def format_error(message: str) -> str:
    """Format an error message with red color."""
    return click.style(f"✗ {message}", fg="red", bold=True)


def format_warning(message: str) -> str:
    """Format a warning message with yellow color."""
    return click.style(f"⚠ {message}", fg="yellow", bold=True)


def format_info(message: str) -> str:
    """Format an info message with blue color."""
    return click.style(f"ℹ {message}", fg="blue")


def format_money(amount: Decimal, currency: str) -> str:
    """Format an amount with its currency code, e.g. ``USD 1,234.50``."""
    return f"{currency} {amount:,.2f}"


def format_amounts(amounts: Mapping[str, Decimal]) -> str:
    """Format per-currency totals without mixing them.

    Returns:
        ``"USD 100.00 + EUR 20.00"``, or ``"-"`` when there is nothing
    """
    if not amounts:
        return "-"
    return " + ".join(format_money(v, k) for k, v in amounts.items())


def format_table(headers: List[str], rows: List[List[str]], max_width: int = 80) -> str:
    """Format data as a table.

    Args:
        headers: List of column headers
        rows: List of data rows (each row is a list of cell values)
        max_width: Maximum width for each column (default: 80)

    Returns:
        Formatted table as a string
    """
    if not headers:
        return ""

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(col_widths):
                col_widths[i] = max(col_widths[i], len(str(cell)))
    col_widths = [min(w, max_width) for w in col_widths]

    separator = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"

    def render(cells) -> str:
        formatted = [
            f" {str(cell)[: col_widths[i]]:<{col_widths[i]}} "
            for i, cell in enumerate(cells)
            if i < len(col_widths)
        ]
        return "|" + "|".join(formatted) + "|"

    table_lines = [separator, render(headers), separator]
    if rows:
        table_lines.extend(render(row) for row in rows)
        table_lines.append(separator)

    return "\n".join(table_lines)
