"""
Pytest fixtures for decision tree builder tests.

API tests get a fresh in-memory workspace per test through a dependency override.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.models.decision_tree import TreeSnapshot
from backend.services.tree_store import TreeStore
from backend.workspace import TreeWorkspace, get_workspace
from shared.schemas import ConditionSpec, NodeContent, Operator

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def store() -> TreeStore:
    return TreeStore(tree_id="test")


@pytest.fixture
def glucose_tree(store: TreeStore) -> TreeSnapshot:
    """root(Glucose >= 150) -> true: Result(1), false: Result(0)."""
    store.update_node(
        "root",
        NodeContent(condition=ConditionSpec(column="Glucose", operator=Operator.GE, threshold=150)),
    )
    store.add_child("root", "true", "result", result=1)
    store.add_child("root", "false", "result", result=0)
    return store.snapshot()


@pytest.fixture
def workspace() -> TreeWorkspace:
    return TreeWorkspace(max_trees=5)


@pytest.fixture
def client(workspace: TreeWorkspace, monkeypatch):
    """FastAPI TestClient with an isolated workspace."""
    monkeypatch.setattr("backend.main.configure_logging", lambda: None)
    app.dependency_overrides[get_workspace] = lambda: workspace
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
