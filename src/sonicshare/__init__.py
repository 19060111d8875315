"""SonicShare: transactional upload core for a lossless music catalog."""

from sonicshare.coordinator import TransactionalUploadCoordinator
from sonicshare.errors import (
    AnalysisError,
    CompensationWarning,
    InvalidTransitionError,
    UploadCoreError,
    UploadError,
    ValidationError,
)
from sonicshare.models import AudioStats, CatalogRecord, MediaFile, TrackFields, UploadState
from sonicshare.service import UploadService
from sonicshare.session import UploadSession

__all__ = [
    "AnalysisError",
    "AudioStats",
    "CatalogRecord",
    "CompensationWarning",
    "InvalidTransitionError",
    "MediaFile",
    "TrackFields",
    "TransactionalUploadCoordinator",
    "UploadCoreError",
    "UploadError",
    "UploadService",
    "UploadSession",
    "UploadState",
    "ValidationError",
]

__version__ = "0.1.0"
