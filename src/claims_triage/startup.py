"""Centralized initialization for claims_triage entry points.

Loads ``.env`` and resolves the settings file and the repository data file
once. Precedence for the data file: explicit override (``--data-file``),
then ``CLAIMS_TRIAGE_DATA_FILE``, then ``data_file`` in the settings YAML,
then ``./.claims_triage/data.json``.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from claims_triage.config.settings import (
    DATA_FILE_ENV_VAR,
    DEFAULT_DATA_FILE,
    SETTINGS_ENV_VAR,
    TriageSettings,
    load_settings,
)

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Resolved application state after initialization."""

    data_file: Path
    settings: TriageSettings
    settings_file: Optional[Path] = None


# Module-level state
_initialized: bool = False
_state: Optional[AppState] = None


def _load_env() -> bool:
    """Load a .env file from the working directory (or a parent)."""
    loaded = load_dotenv(find_dotenv(usecwd=True))
    if loaded:
        logger.debug("Loaded environment from .env")
    return loaded


def _resolve_data_file(settings: TriageSettings, override: Optional[Path]) -> Path:
    if override is not None:
        return Path(override)
    env_value = os.getenv(DATA_FILE_ENV_VAR)
    if env_value:
        return Path(env_value)
    if settings.data_file is not None:
        return settings.data_file
    return DEFAULT_DATA_FILE


def ensure_initialized(data_file: Optional[Path] = None) -> AppState:
    """Ensure the application is initialized (idempotent).

    Args:
        data_file: Explicit repository file; replaces the cached path when given.

    Returns:
        Current AppState.

    Raises:
        SettingsError: If the settings file is invalid.
    """
    global _initialized, _state

    if _initialized and _state is not None:
        if data_file is not None:
            _state.data_file = Path(data_file)
        return _state

    _load_env()
    settings_env = os.getenv(SETTINGS_ENV_VAR)
    settings_file = Path(settings_env) if settings_env else None
    settings = load_settings(settings_file)

    _state = AppState(
        data_file=_resolve_data_file(settings, data_file),
        settings=settings,
        settings_file=settings_file,
    )
    _initialized = True
    logger.debug(f"Using repository file {_state.data_file}")
    return _state


def get_state() -> AppState:
    """Get current application state.

    Raises:
        RuntimeError: If not initialized. Call ensure_initialized() first.
    """
    if not _initialized or _state is None:
        raise RuntimeError("startup not initialized. Call ensure_initialized() first.")
    return _state


def reset_for_testing() -> None:
    """Reset initialization state for test isolation.

    Should only be used in tests.
    """
    global _initialized, _state
    _initialized = False
    _state = None
