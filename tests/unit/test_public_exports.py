from __future__ import annotations

import econ_data_sync
import econ_data_sync.storage as storage
import econ_data_sync.sync as sync


def test_package_exports_facade_config_and_query_types():
    expected = {
        "EconDataSync",
        "EconDataSyncConfig",
        "AdminAction",
        "AdminResult",
        "Dataset",
        "Period",
        "ObservationFilter",
        "SortKey",
        "SortOrder",
    }
    assert expected == set(econ_data_sync.__all__)


def test_internal_services_are_not_top_level_exports():
    assert "StorageGateway" not in econ_data_sync.__all__
    assert "SyncOrchestrator" not in econ_data_sync.__all__
    assert "StorageGateway" in storage.__all__
    assert {"SyncOrchestrator", "ReconciliationEngine", "SyncSummary"}.issubset(set(sync.__all__))
