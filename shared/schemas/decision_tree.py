"""
Decision tree contract shared by the backend and the builder UI.

Node kinds, branch labels, condition content, and the intent events the UI
emits into a tree store (AddChild, DeleteNode, UpdateNode).
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

ROOT_ID = "root"


class NodeType(str, Enum):
    """Kind of node in the decision tree."""

    CONDITION = "condition"
    RESULT = "result"


class BranchLabel(str, Enum):
    """Label of an outgoing branch of a condition node."""

    TRUE = "true"
    FALSE = "false"

    @classmethod
    def from_bool(cls, value: bool) -> "BranchLabel":
        return cls.TRUE if value else cls.FALSE


class Operator(str, Enum):
    """Comparison applied between a record value and a condition threshold."""

    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="


class ConditionSpec(BaseModel):
    """Condition content: column, operator, threshold. Any part may still be empty while editing."""

    column: str = Field("", description="Record attribute to test (e.g. 'Glucose')")
    operator: Optional[Operator] = Field(Operator.GT, description="Comparison operator")
    threshold: Optional[Union[float, str]] = Field(
        "0",
        description="Threshold; numeric or a numeric string as typed in the editor",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def is_complete(self) -> bool:
        return bool(self.column) and self.operator is not None and self.threshold not in (None, "")


class NodeContent(BaseModel):
    """Replacement content for a node. Unset fields are left untouched."""

    label: Optional[str] = Field(None, description="Display label")
    condition: Optional[ConditionSpec] = Field(None, description="New condition (condition nodes only)")
    result: Optional[Literal[0, 1]] = Field(None, description="Predicted class (result nodes only)")

    model_config = {"extra": "forbid"}


# -----------------------------------------------------------------------------
# Intent events (UI -> tree store)
# -----------------------------------------------------------------------------


class AddChild(BaseModel):
    """Create a child of a condition node under the given branch label."""

    action: Literal["add_child"] = "add_child"
    parent_id: str = Field(..., description="ID of the parent condition node")
    label: BranchLabel = Field(..., description="Branch to populate")
    kind: NodeType = Field(..., description="Kind of the new node")
    result: Optional[Literal[0, 1]] = Field(None, description="Initial class for a result child")


class DeleteNode(BaseModel):
    """Delete a node together with its whole subtree."""

    action: Literal["delete_node"] = "delete_node"
    node_id: str = Field(..., description="ID of the node to delete")


class UpdateNode(BaseModel):
    """Replace a node's content in place."""

    action: Literal["update_node"] = "update_node"
    node_id: str = Field(..., description="ID of the node to update")
    content: NodeContent = Field(..., description="New content")


TreeIntent = Annotated[Union[AddChild, DeleteNode, UpdateNode], Field(discriminator="action")]


# -----------------------------------------------------------------------------
# Request bodies
# -----------------------------------------------------------------------------


class IntentRequest(BaseModel):
    intent: TreeIntent


class CreateTreeRequest(BaseModel):
    tree_id: Optional[str] = Field(None, description="Requested tree ID; generated when omitted")


class PredictRequest(BaseModel):
    record: dict[str, Any] = Field(..., description="Attribute name -> value")


class EvaluateRequest(BaseModel):
    records: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Flat records: attribute name -> value, plus an 'outcome' of 0 or 1",
    )
