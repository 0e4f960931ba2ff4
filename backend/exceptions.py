"""
Errors raised by the tree store and the evaluator.

- InvalidMutation: rejected edit (only raised by stores created with strict=True)
- IncompleteTree: a condition node is missing the branch a record needs, or the root is gone
- InvalidData: non-numeric record value / threshold, or an unfinished node
- CyclicTree: a node was reached twice during one walk
- EmptyInput: nothing to evaluate (no records, or no reachable result node)
"""

from typing import Optional


class TreeError(Exception):
    """Base class for decision tree errors."""

    code = "tree_error"

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.node_id = node_id

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "code": self.code, "message": self.message, "node_id": self.node_id}


class InvalidMutation(TreeError):
    code = "invalid_mutation"


class IncompleteTree(TreeError):
    code = "incomplete_tree"

    def __init__(self, node_id: str, label: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            message = f"Node '{node_id}' has no '{label}' branch"
        super().__init__(message, node_id=node_id)
        self.label = label


class InvalidData(TreeError):
    code = "invalid_data"

    def __init__(self, node_id: str, column: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            message = f"Non-numeric data at node '{node_id}' (column '{column}')"
        super().__init__(message, node_id=node_id)
        self.column = column


class CyclicTree(TreeError):
    code = "cyclic_tree"

    def __init__(self, node_id: str):
        super().__init__(f"Cycle detected at node '{node_id}'", node_id=node_id)


class EmptyInput(TreeError):
    code = "empty_input"
