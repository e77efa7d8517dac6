# Vehicle status batch updater
# Resolves free-text vehicle names and statuses, applies them to the garage registry

from .models import (
    CanonicalStatus,
    MatchType,
    OutcomeKind,
    ErrorKind,
    VehicleRecord,
    StatusUpdateRequest,
    DuplicateCriteria,
    Candidate,
    MatchResult,
    TransitionResult,
    MaintenanceCheck,
    ValidationOutcome,
    ItemOutcome,
    BatchReport,
)
from .exceptions import (
    VehicleStatusError,
    InputError,
    UnknownStatusError,
    VehicleNotFoundError,
    TransitionError,
    RegistryError,
)
from .config import load_config, Config
from .normalize import normalize_name, extract_keywords
from .similarity import distance, similarity
from .status import StatusNormalizer, validate_transition, validate_maintenance_history, validate_vehicle_name
from .registry import VehicleRegistry, InMemoryVehicleRegistry
from .sqlite_registry import SqliteVehicleRegistry
from .resolver import VehicleResolver
from .duplicates import DuplicateResolver
from .audit import AuditLogger, LoggingAuditLogger, FileAuditLogger, generate_batch_id
from .batch import BatchProcessor, BatchPreflight, find_repeated_names, default_requests
from .loader import load_requests
from .report import format_console, export_csv, export_xlsx

__version__ = "1.0.0"

__all__ = [
    # Models
    "CanonicalStatus",
    "MatchType",
    "OutcomeKind",
    "ErrorKind",
    "VehicleRecord",
    "StatusUpdateRequest",
    "DuplicateCriteria",
    "Candidate",
    "MatchResult",
    "TransitionResult",
    "MaintenanceCheck",
    "ValidationOutcome",
    "ItemOutcome",
    "BatchReport",
    # Errors
    "VehicleStatusError",
    "InputError",
    "UnknownStatusError",
    "VehicleNotFoundError",
    "TransitionError",
    "RegistryError",
    # Config
    "Config",
    "load_config",
    # Matching
    "normalize_name",
    "extract_keywords",
    "distance",
    "similarity",
    "VehicleResolver",
    "DuplicateResolver",
    # Status
    "StatusNormalizer",
    "validate_transition",
    "validate_maintenance_history",
    "validate_vehicle_name",
    # Registry
    "VehicleRegistry",
    "InMemoryVehicleRegistry",
    "SqliteVehicleRegistry",
    # Audit
    "AuditLogger",
    "LoggingAuditLogger",
    "FileAuditLogger",
    "generate_batch_id",
    # Batch
    "BatchProcessor",
    "BatchPreflight",
    "find_repeated_names",
    "default_requests",
    # IO
    "load_requests",
    "format_console",
    "export_csv",
    "export_xlsx",
]
