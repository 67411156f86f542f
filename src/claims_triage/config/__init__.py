"""Settings and column-mapping loaders."""

from claims_triage.config.settings import (
    DATA_FILE_ENV_VAR,
    DEFAULT_DATA_FILE,
    SETTINGS_ENV_VAR,
    ScoringSettings,
    SettingsError,
    TriageSettings,
    load_column_mapping,
    load_settings,
)

__all__ = [
    "DATA_FILE_ENV_VAR",
    "DEFAULT_DATA_FILE",
    "SETTINGS_ENV_VAR",
    "ScoringSettings",
    "SettingsError",
    "TriageSettings",
    "load_column_mapping",
    "load_settings",
]
