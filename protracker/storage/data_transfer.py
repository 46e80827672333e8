"""Full data export and import.

An export document wraps every collection with a SHA-256 checksum:

    {
        "version": "1.0",
        "exported_at": "2024-03-01T10:00:00",
        "exported_by": "ProTracker",
        "checksum": "<sha256 of the canonical JSON of data>",
        "data": {"clients": [...], "projects": [...], ..., "biller_info": {...}}
    }

Import accepts this format or a legacy document holding the collections at
the top level. Problems that still allow an import (checksum or version
mismatch, dangling references) become warnings; anything that prevents it
raises StorageError and leaves the store untouched.
"""

import datetime as dt
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from protracker.exceptions import StorageError, ValidationError
from protracker.models.invoice import BillerInfo
from protracker.storage.app_store import (
    BILLER_INFO_KEY,
    COLLECTIONS,
    AppStore,
    build_model,
)
from protracker.utils.logging_utils import log_function_call
from protracker.validators.integrity_validators import IntegrityValidator

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"

EXPORTED_BY = "ProTracker"

IMPORT_MODES = ("replace", "merge")


def compute_checksum(data: Dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form (sorted keys, compact separators)."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def export_data(store: AppStore) -> Dict[str, Any]:
    """Build an export document for every collection in the store."""
    data = store.snapshot()
    document = {
        "version": EXPORT_VERSION,
        "exported_at": dt.datetime.now().isoformat(timespec="seconds"),
        "exported_by": EXPORTED_BY,
        "checksum": compute_checksum(data),
        "data": data,
    }
    logger.info(
        "Exported "
        + ", ".join(
            f"{len(data[key])} {key}" for key in COLLECTIONS if data.get(key)
        )
    )
    return document


def export_json(store: AppStore) -> str:
    return json.dumps(export_data(store), indent=2, ensure_ascii=False)


@dataclass
class ImportResult:
    """Outcome of an import.

    Attributes:
        mode: "replace" or "merge"
        counts: Number of records per collection after the import
        warnings: Non-fatal problems found in the document
        saved: False if any collection failed to persist
    """

    mode: str
    counts: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    saved: bool = True


def _unwrap(document: Dict[str, Any], warnings: List[str]) -> Dict[str, Any]:
    if "data" in document and "checksum" in document:
        data = document["data"]
        if not isinstance(data, dict):
            raise StorageError("Export document 'data' must be an object")
        if document["checksum"] != compute_checksum(data):
            warnings.append("Data checksum mismatch - data may be corrupted")
        version = document.get("version")
        if version and version != EXPORT_VERSION:
            warnings.append(
                f"Version mismatch: imported v{version}, current v{EXPORT_VERSION}"
            )
        return data

    if "clients" in document and "projects" in document:
        warnings.append("Imported data from legacy format")
        return document

    raise StorageError(
        "Invalid data format - unable to import",
        recovery_hint="Use a file created by 'protracker export-data'",
    )


def _parse_collections(data: Dict[str, Any]) -> Dict[str, list]:
    parsed: Dict[str, list] = {}
    for key, model_cls in COLLECTIONS.items():
        raw = data.get(key) or []
        if not isinstance(raw, list):
            raise StorageError(f"Imported '{key}' must be a list")
        records = []
        for index, item in enumerate(raw):
            try:
                records.append(build_model(model_cls, item))
            except ValidationError as e:
                raise StorageError(
                    f"Imported {key} record #{index + 1} is invalid: {e.message}"
                )
        parsed[key] = records
    return parsed


def _merge(existing: list, incoming: list) -> list:
    """Imported records replace existing ones with the same id."""
    by_id = {record.id: record for record in existing}
    order = [record.id for record in existing]
    for record in incoming:
        if record.id not in by_id:
            order.append(record.id)
        by_id[record.id] = record
    return [by_id[record_id] for record_id in order]


def _merge_rates(existing: list, incoming: list) -> list:
    merged = {(r.from_currency, r.to_currency): r for r in existing}
    for rate in incoming:
        merged[(rate.from_currency, rate.to_currency)] = rate
    return list(merged.values())


@log_function_call(level="INFO")
def import_data(
    store: AppStore,
    document: Union[str, Dict[str, Any]],
    mode: str = "merge",
) -> ImportResult:
    """Import an export document into the store.

    Args:
        store: Target store
        document: Parsed document or its JSON text
        mode: ``replace`` swaps every collection; ``merge`` adds new records
            and overwrites those with matching ids

    Returns:
        ImportResult with counts and warnings

    Raises:
        StorageError: If the document cannot be parsed or holds invalid records
        ValueError: If the mode is unknown
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Import mode must be one of {IMPORT_MODES}, got {mode!r}")

    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise StorageError(f"Import file is not valid JSON: {e}")
    if not isinstance(document, dict):
        raise StorageError("Invalid data format - unable to import")

    warnings: List[str] = []
    data = _unwrap(document, warnings)
    incoming = _parse_collections(data)

    raw_biller = data.get(BILLER_INFO_KEY)
    biller_info = None
    if raw_biller:
        try:
            biller_info = build_model(BillerInfo, raw_biller)
        except ValidationError as e:
            raise StorageError(f"Imported biller info is invalid: {e.message}")

    if mode == "replace":
        collections = incoming
    else:
        collections = {}
        for key, records in incoming.items():
            current = getattr(store, key)
            if key == "exchange_rates":
                collections[key] = _merge_rates(current, records)
            else:
                collections[key] = _merge(current, records)

    integrity = IntegrityValidator().validate(
        clients=collections["clients"],
        projects=collections["projects"],
        time_entries=collections["time_entries"],
        expenses=collections["expenses"],
        invoices=collections["invoices"],
        payments=collections["payments"],
        project_phases=collections["project_phases"],
        expense_reports=collections["expense_reports"],
    )
    warnings.extend(str(issue) for issue in integrity.issues)

    saved = store.replace_collections(collections, biller_info)
    result = ImportResult(
        mode=mode,
        counts={key: len(records) for key, records in collections.items()},
        warnings=warnings,
        saved=saved,
    )
    for warning in warnings:
        logger.warning(f"Import: {warning}")
    logger.info(f"Imported data ({mode}): {result.counts}")
    return result
