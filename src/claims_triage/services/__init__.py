from .triage_service import (
    ClaimsTriageService,
    DiscoverySession,
    NothingToSaveError,
    StaleSelectionError,
    TriageServiceError,
)

__all__ = [
    "ClaimsTriageService",
    "DiscoverySession",
    "NothingToSaveError",
    "StaleSelectionError",
    "TriageServiceError",
]
