"""Triage settings schema and YAML loaders.

Settings are optional. When ``CLAIMS_TRIAGE_SETTINGS`` points to a YAML file
it is validated here; otherwise defaults apply:

    data_file: .claims_triage/data.json
    log_level: INFO
    scoring:
      charges_divisor: 500
      age_weight: 1.5
      denial_penalty: 100
      denial_status: DENY
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from claims_triage.triage.fields import is_standard_field
from claims_triage.triage.priority_scorer import ScoringConfig

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "CLAIMS_TRIAGE_SETTINGS"
DATA_FILE_ENV_VAR = "CLAIMS_TRIAGE_DATA_FILE"
DEFAULT_DATA_FILE = Path(".claims_triage") / "data.json"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


class SettingsError(Exception):
    """Raised when a settings or mapping file is unreadable or invalid."""

    pass


class ScoringSettings(BaseModel):
    """Overrides for the priority score weights."""

    charges_divisor: float = Field(500.0, gt=0, description="Charges are divided by this")
    age_weight: float = Field(1.5, description="Points per day of age")
    denial_penalty: float = Field(100.0, description="Points added for denied claims")
    denial_status: str = Field("DENY", min_length=1, description="Status that earns the penalty")

    def to_config(self) -> ScoringConfig:
        return ScoringConfig.from_dict(self.model_dump())


class TriageSettings(BaseModel):
    """Top-level settings file schema."""

    data_file: Optional[Path] = Field(
        default=None,
        description="Repository JSON file (overridden by env var and --data-file)",
    )
    log_level: str = Field(default="INFO", description="Default log level")
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Unknown log level '{v}'. Valid levels: {sorted(VALID_LOG_LEVELS)}"
            )
        return level


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Could not read {path}: {e}") from e


def load_settings(path: Optional[Path] = None) -> TriageSettings:
    """Load settings from a YAML file.

    Args:
        path: Settings file. None or a missing file gives defaults.

    Raises:
        SettingsError: If the file exists but is not valid.
    """
    if path is None or not Path(path).exists():
        if path is not None:
            logger.debug(f"No settings file at {path}, using defaults")
        return TriageSettings()

    data = _read_yaml(Path(path))
    if data is None:
        logger.warning(f"Empty settings file at {path}")
        return TriageSettings()

    try:
        settings = TriageSettings.model_validate(data)
    except ValueError as e:
        raise SettingsError(f"Invalid settings in {path}: {e}") from e

    logger.debug(f"Loaded settings from {path}")
    return settings


def load_column_mapping(path: Path) -> Dict[str, str]:
    """Load a client column mapping (standard field -> client header) from YAML.

    Unknown standardized field names are kept but logged, since clients
    sometimes map columns ahead of a catalog update.

    Raises:
        SettingsError: If the file is unreadable or not a flat mapping.
    """
    data = _read_yaml(Path(path))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Column mapping in {path} must be a mapping of field -> header")

    mapping: Dict[str, str] = {}
    for field, header in data.items():
        if isinstance(header, (dict, list)):
            raise SettingsError(f"Header for '{field}' in {path} must be a single value")
        if not is_standard_field(str(field)):
            logger.warning(f"'{field}' is not a standardized field name")
        mapping[str(field)] = "" if header is None else str(header)
    return mapping
