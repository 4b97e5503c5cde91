from __future__ import annotations

import importlib
import pkgutil

import pytest

import econ_data_sync


def _module_names() -> list[str]:
    names = [econ_data_sync.__name__]
    for info in pkgutil.walk_packages(econ_data_sync.__path__, prefix=f"{econ_data_sync.__name__}."):
        names.append(info.name)
    return sorted(names)


@pytest.mark.parametrize("name", _module_names())
def test_module_declares_resolvable_dunder_all(name: str) -> None:
    module = importlib.import_module(name)
    exported = getattr(module, "__all__", None)
    assert isinstance(exported, list), f"{name} has no __all__ list"
    unresolved = [symbol for symbol in exported if not hasattr(module, symbol)]
    assert unresolved == []
    assert len(set(exported)) == len(exported)
