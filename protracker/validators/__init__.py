"""Validation layer for data quality and reference integrity."""

from protracker.validators.field_validators import FieldValidators
from protracker.validators.integrity_validators import IntegrityValidator
from protracker.validators.record_validators import RecordValidator
from protracker.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    "FieldValidators",
    "IntegrityValidator",
    "RecordValidator",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSeverity",
]
