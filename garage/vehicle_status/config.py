"""
Configuration for the vehicle status pipeline.

Thresholds, stop words and storage paths live in declarative JSON -
edit the file, not the code. Storage paths can be overridden from the
environment.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

MODULE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = MODULE_DIR / "vehicle_status_config.json"
DEFAULT_SYNONYMS_PATH = MODULE_DIR / "status_synonyms.yaml"

DEFAULT_STOP_WORDS = ("the", "and", "or", "for", "in", "on", "at", "to", "of")


@dataclass
class MatchSettings:
    """Settings for the resolver."""
    similarity_threshold: float = 0.7
    suggestion_threshold: float = 0.3
    max_alternatives: int = 3
    max_suggestions: int = 3
    stop_words: tuple[str, ...] = DEFAULT_STOP_WORDS


@dataclass
class NameSettings:
    """Bounds for raw vehicle names."""
    min_length: int = 2
    max_length: int = 100


@dataclass
class MaintenanceSettings:
    """Day thresholds for maintenance-history heuristics."""
    overdue_days: int = 30
    stale_good_days: int = 60
    fresh_poor_days: int = 7


@dataclass
class StorageSettings:
    db_path: str = "data/garage.db"
    audit_log_dir: str = "logs"


@dataclass
class Config:
    """Full configuration for the vehicle status pipeline."""
    matching: MatchSettings = field(default_factory=MatchSettings)
    names: NameSettings = field(default_factory=NameSettings)
    maintenance: MaintenanceSettings = field(default_factory=MaintenanceSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    status_synonyms_path: Path = DEFAULT_SYNONYMS_PATH


def load_config(config_path: Optional[str | Path] = None) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to a config JSON (default: module's vehicle_status_config.json)

    Returns:
        Config with env overrides applied
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    with open(path, "r") as f:
        data = json.load(f)

    matching_data = data.get("matching", {})
    matching = MatchSettings(
        similarity_threshold=float(matching_data.get("similarity_threshold", 0.7)),
        suggestion_threshold=float(matching_data.get("suggestion_threshold", 0.3)),
        max_alternatives=int(matching_data.get("max_alternatives", 3)),
        max_suggestions=int(matching_data.get("max_suggestions", 3)),
        stop_words=tuple(w.lower() for w in matching_data.get("stop_words", DEFAULT_STOP_WORDS)),
    )
    if not 0.0 <= matching.similarity_threshold <= 1.0:
        raise ValueError(f"similarity_threshold must be within [0, 1], got {matching.similarity_threshold}")

    names_data = data.get("names", {})
    names = NameSettings(
        min_length=int(names_data.get("min_length", 2)),
        max_length=int(names_data.get("max_length", 100)),
    )

    maintenance_data = data.get("maintenance", {})
    maintenance = MaintenanceSettings(
        overdue_days=int(maintenance_data.get("overdue_days", 30)),
        stale_good_days=int(maintenance_data.get("stale_good_days", 60)),
        fresh_poor_days=int(maintenance_data.get("fresh_poor_days", 7)),
    )

    storage_data = data.get("storage", {})
    storage = StorageSettings(
        db_path=os.environ.get("VEHICLE_STATUS_DB_PATH", storage_data.get("db_path", "data/garage.db")),
        audit_log_dir=os.environ.get("VEHICLE_STATUS_AUDIT_DIR", storage_data.get("audit_log_dir", "logs")),
    )

    # Relative synonym paths are resolved against the config file's folder
    synonyms = data.get("status_synonyms_path")
    synonyms_path = DEFAULT_SYNONYMS_PATH
    if synonyms:
        synonyms_path = Path(synonyms)
        if not synonyms_path.is_absolute():
            synonyms_path = path.parent / synonyms_path

    return Config(
        matching=matching,
        names=names,
        maintenance=maintenance,
        storage=storage,
        status_synonyms_path=synonyms_path,
    )
