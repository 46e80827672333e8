"""Validation report for collecting and formatting validation issues."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ValidationSeverity(IntEnum):
    """Severity levels for validation issues."""

    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass
class ValidationIssue:
    """A single finding.

    Attributes:
        severity: How serious the issue is
        field: Field or collection the issue concerns
        message: Human-readable description
        value: Offending value
        context: Optional record context (e.g. ``{"time_entry": "abc"}``)
    """

    severity: ValidationSeverity
    field: str
    message: str
    value: Any
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        context_str = ""
        if self.context:
            context_str = " (" + ", ".join(f"{k}={v}" for k, v in self.context.items()) + ")"
        return f"[{self.severity.name}] {self.field}: {self.message}{context_str}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name.lower(),
            "field": self.field,
            "message": self.message,
            "value": None if self.value is None else str(self.value),
            "context": self.context or {},
        }


class ValidationReport:
    """Accumulates errors, warnings and info messages.

    Only errors make a report invalid.

    Example:
        >>> report = ValidationReport()
        >>> report.add_warning("projects", "Client not found", "c9")
        >>> report.is_valid()
        True
    """

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def _count(self, severity: ValidationSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def error_count(self) -> int:
        return self._count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(ValidationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(ValidationSeverity.INFO)

    def is_valid(self) -> bool:
        return self.error_count == 0

    def has_errors(self) -> bool:
        return self.error_count > 0

    def has_warnings(self) -> bool:
        return self.warning_count > 0

    def _add(
        self,
        severity: ValidationSeverity,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]],
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=severity,
                field=field,
                message=message,
                value=value,
                context=context,
            )
        )

    def add_error(
        self,
        field: str,
        message: str,
        value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add an error; errors make the report invalid."""
        self._add(ValidationSeverity.ERROR, field, message, value, context)

    def add_warning(
        self,
        field: str,
        message: str,
        value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._add(ValidationSeverity.WARNING, field, message, value, context)

    def add_info(
        self,
        field: str,
        message: str,
        value: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._add(ValidationSeverity.INFO, field, message, value, context)

    def get_errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def get_warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def get_info(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.INFO]

    def merge(self, other: "ValidationReport") -> None:
        self.issues.extend(other.issues)

    def summary(self) -> str:
        """One-line count of issues by severity.

        Example:
            >>> report.summary()
            '1 error(s), 2 warning(s)'
        """
        parts = []
        if self.error_count:
            parts.append(f"{self.error_count} error(s)")
        if self.warning_count:
            parts.append(f"{self.warning_count} warning(s)")
        if self.info_count:
            parts.append(f"{self.info_count} info message(s)")
        return ", ".join(parts) if parts else "No issues found"

    def format(self) -> str:
        """Multi-line report grouped by severity, errors first."""
        if not self.issues:
            return "Validation successful - no issues found"

        lines = [f"Validation Report - {self.summary()}", "=" * 60]
        for title, issues in (
            ("ERRORS", self.get_errors()),
            ("WARNINGS", self.get_warnings()),
            ("INFO", self.get_info()),
        ):
            if issues:
                lines.append(f"\n{title}:")
                lines.extend(f"  - {issue}" for issue in issues)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_valid(),
            "summary": self.summary(),
            "issues": [issue.to_dict() for issue in self.issues],
        }
