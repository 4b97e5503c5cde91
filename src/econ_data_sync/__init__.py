"""Public package exports for the economic data sync pipeline."""

from .admin import AdminAction, AdminResult, Dataset
from .client import EconDataSync
from .config import EconDataSyncConfig
from .models import ObservationFilter, Period, SortKey, SortOrder

__all__ = [
    "EconDataSync",
    "EconDataSyncConfig",
    "AdminAction",
    "AdminResult",
    "Dataset",
    "Period",
    "ObservationFilter",
    "SortKey",
    "SortOrder",
]
