"""Persistence: JSON file storage, the application store and data transfer."""

from protracker.storage.app_store import (
    BILLER_INFO_KEY,
    COLLECTIONS,
    STORAGE_KEYS,
    AppStore,
)
from protracker.storage.data_transfer import (
    ImportResult,
    compute_checksum,
    export_data,
    export_json,
    import_data,
)
from protracker.storage.json_storage import JsonFileStorage

__all__ = [
    "BILLER_INFO_KEY",
    "COLLECTIONS",
    "STORAGE_KEYS",
    "AppStore",
    "ImportResult",
    "JsonFileStorage",
    "compute_checksum",
    "export_data",
    "export_json",
    "import_data",
]
