"""
In-memory workspace of tree stores for the HTTP service.

Trees live only for the life of the process. DTB_MAX_TREES caps how many
are held at once; DTB_STRICT_MUTATIONS=1 makes new stores raise on ignored edits.
"""

import os
import threading
import uuid
from typing import Optional

from backend.services.tree_store import TreeStore

MAX_TREES = int(os.getenv("DTB_MAX_TREES", "100"))
STRICT_MUTATIONS = os.getenv("DTB_STRICT_MUTATIONS", "0").lower() in ("1", "true", "yes")


class TreeWorkspace:
    """Registry tree_id -> TreeStore."""

    def __init__(self, max_trees: int = MAX_TREES, strict: bool = STRICT_MUTATIONS):
        self.max_trees = max_trees
        self.strict = strict
        self._stores: dict[str, TreeStore] = {}
        self._lock = threading.Lock()

    def create(self, tree_id: Optional[str] = None) -> TreeStore:
        """Create a tree holding only its root. Raises ValueError if the ID is taken or the workspace is full."""
        with self._lock:
            tree_id = tree_id or f"tree-{uuid.uuid4().hex[:12]}"
            if tree_id in self._stores:
                raise ValueError(f"Tree '{tree_id}' already exists")
            if len(self._stores) >= self.max_trees:
                raise ValueError(f"Workspace is full ({self.max_trees} trees)")
            store = TreeStore(tree_id=tree_id, strict=self.strict)
            self._stores[tree_id] = store
            return store

    def get(self, tree_id: str) -> Optional[TreeStore]:
        with self._lock:
            return self._stores.get(tree_id)

    def remove(self, tree_id: str) -> bool:
        with self._lock:
            return self._stores.pop(tree_id, None) is not None

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._stores)

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()


workspace = TreeWorkspace()


def get_workspace() -> TreeWorkspace:
    """Dependency: the process-wide workspace (overridden in tests)."""
    return workspace
