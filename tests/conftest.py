from __future__ import annotations

import pytest

from travel_request_workflow import EntityStore, LifecycleService, WorkflowConfig


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRAVEL_WORKFLOW_CONFIG", raising=False)


@pytest.fixture
def store() -> EntityStore:
    return EntityStore()


@pytest.fixture
def service(store: EntityStore) -> LifecycleService:
    return LifecycleService(store, WorkflowConfig())


@pytest.fixture
def owner_id(service: LifecycleService) -> int:
    return service.ensure_submitter().id
