"""Sync pipeline: planning, reconciliation and orchestration."""

from .orchestrator import SyncOrchestrator
from .reconcile import ApplyResult, Outcome, ReconciliationEngine
from .summary import AllSyncSummary, DatasetSyncSummary, SyncSummary, WipeResult

__all__ = [
    "SyncOrchestrator",
    "ReconciliationEngine",
    "Outcome",
    "ApplyResult",
    "SyncSummary",
    "DatasetSyncSummary",
    "AllSyncSummary",
    "WipeResult",
]
