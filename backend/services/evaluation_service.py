"""
Tree evaluation: per-record prediction and accuracy over a record set.

- predict: walk the tree from the root for one record, return 0 or 1.
- predict_with_trace: same walk, also returns the visited path.
- evaluate_all: predict every record, tally the confusion matrix, report accuracy.

Evaluation reads a snapshot only and never mutates a tree.
"""

import logging
import math
import numbers
import operator as op
import time
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from backend.exceptions import CyclicTree, EmptyInput, IncompleteTree, InvalidData
from backend.models.decision_tree import (
    EvaluationReport,
    PatientRecord,
    PredictionTrace,
    RecordFailure,
    TraceStep,
    TreeNode,
    TreeSnapshot,
    lookup_value,
)
from backend.services.validation_service import has_reachable_result
from backend.utils.logging import log_evaluation_result
from shared.schemas.decision_tree import BranchLabel, NodeType, Operator

logger = logging.getLogger(__name__)

RecordLike = Union[PatientRecord, Mapping[str, Any]]

OUTCOME_KEYS = ("outcome", "Outcome")

_COMPARATORS: dict[Operator, Callable[[float, float], bool]] = {
    Operator.GT: op.gt,
    Operator.LT: op.lt,
    Operator.GE: op.ge,
    Operator.LE: op.le,
    Operator.EQ: op.eq,
}


# -----------------------------------------------------------------------------
# Value coercion
# -----------------------------------------------------------------------------


def to_number(value: Any) -> Optional[float]:
    """Parse value as a finite float. Booleans, blanks and non-numeric text give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (numbers.Real, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _record_values(record: RecordLike) -> Mapping[str, Any]:
    if isinstance(record, PatientRecord):
        return record.values
    return record


def _record_outcome(record: RecordLike, index: int) -> int:
    if isinstance(record, PatientRecord):
        return record.outcome
    raw = None
    for key in OUTCOME_KEYS:
        if key in record:
            raw = record[key]
            break
    number = to_number(raw)
    if number not in (0.0, 1.0):
        raise InvalidData(
            node_id="",
            column="outcome",
            message=f"Record {index} has no valid outcome (expected 0 or 1, got {raw!r})",
        )
    return int(number)


# -----------------------------------------------------------------------------
# Tree walk
# -----------------------------------------------------------------------------


class _TreeIndex:
    """Lookup tables built once per snapshot so each record walk is O(depth)."""

    __slots__ = ("root_id", "nodes", "branches")

    def __init__(self, tree: TreeSnapshot):
        self.root_id = tree.root_id
        self.nodes: dict[str, TreeNode] = {n.id: n for n in tree.nodes}
        self.branches: dict[tuple[str, BranchLabel], str] = {
            (b.source_id, b.label): b.target_id for b in tree.branches
        }

    def require_root(self) -> None:
        if self.root_id not in self.nodes:
            raise IncompleteTree(self.root_id, message=f"Root node '{self.root_id}' not found")


def _walk(index: _TreeIndex, values: Mapping[str, Any], steps: Optional[list[TraceStep]] = None) -> int:
    index.require_root()
    visited: set[str] = set()
    current = index.root_id

    while True:
        if current in visited:
            raise CyclicTree(current)
        visited.add(current)
        node = index.nodes.get(current)
        if node is None:
            raise IncompleteTree(current, message=f"Node '{current}' not found")

        if node.type == NodeType.RESULT:
            if node.result not in (0, 1):
                raise InvalidData(node.id, message=f"Result node '{node.id}' has no class")
            if steps is not None:
                steps.append(TraceStep(node_id=node.id, node_type=node.type))
            return node.result

        cond = node.condition
        if cond is None or not cond.column or cond.operator is None:
            raise InvalidData(
                node.id,
                cond.column if cond else None,
                message=f"Condition on node '{node.id}' is incomplete",
            )
        raw = lookup_value(values, cond.column)
        value = to_number(raw)
        threshold = to_number(cond.threshold)
        if value is None or threshold is None:
            raise InvalidData(node.id, cond.column)

        matched = _COMPARATORS[cond.operator](value, threshold)
        label = BranchLabel.from_bool(matched)
        next_id = index.branches.get((node.id, label))
        if steps is not None:
            steps.append(
                TraceStep(
                    node_id=node.id,
                    node_type=node.type,
                    column=cond.column,
                    operator=cond.operator.value,
                    threshold=cond.threshold,
                    input_value=raw,
                    matched=matched,
                    next_node_id=next_id,
                )
            )
        if next_id is None:
            raise IncompleteTree(node.id, label.value)
        current = next_id


def predict(tree: TreeSnapshot, record: RecordLike) -> int:
    """Predicted class (0 or 1) for one record."""
    return _walk(_TreeIndex(tree), _record_values(record))


def predict_with_trace(tree: TreeSnapshot, record: RecordLike) -> PredictionTrace:
    """Predicted class for one record plus every node visited on the way."""
    steps: list[TraceStep] = []
    prediction = _walk(_TreeIndex(tree), _record_values(record), steps)
    return PredictionTrace(prediction=prediction, path=[s.node_id for s in steps], steps=steps)


# -----------------------------------------------------------------------------
# Aggregate evaluation
# -----------------------------------------------------------------------------


def evaluate_all(tree: TreeSnapshot, records: Iterable[RecordLike]) -> EvaluationReport:
    """
    Predict every record and compare against its outcome.

    A record that fails (bad data, or a path ending at a missing branch) is
    logged, listed in `failures` and left out of the totals. Problems with the
    tree as a whole (no root, nothing to predict, a cycle) abort the run.
    """
    start = time.perf_counter()
    records = list(records)
    if not records:
        raise EmptyInput("No records to evaluate")
    index = _TreeIndex(tree)
    index.require_root()
    if not has_reachable_result(tree):
        raise EmptyInput("No result node is reachable from the root")

    tp = tn = fp = fn = 0
    failures: list[RecordFailure] = []
    for i, record in enumerate(records):
        try:
            outcome = _record_outcome(record, i)
            prediction = _walk(index, _record_values(record))
        except (InvalidData, IncompleteTree) as e:
            logger.warning("Record %s excluded from evaluation: %s", i, e.message)
            failures.append(
                RecordFailure(index=i, error=type(e).__name__, message=e.message, node_id=e.node_id or None)
            )
            continue
        if prediction == 1 and outcome == 1:
            tp += 1
        elif prediction == 0 and outcome == 0:
            tn += 1
        elif prediction == 1:
            fp += 1
        else:
            fn += 1

    evaluated = tp + tn + fp + fn
    if evaluated == 0:
        log_evaluation_result(logger, 0, len(failures), None, time.perf_counter() - start)
        raise EmptyInput(f"None of the {len(records)} records could be evaluated")

    accuracy = round((tp + tn) / evaluated * 100, 2)
    log_evaluation_result(logger, evaluated, len(failures), accuracy, time.perf_counter() - start)
    return EvaluationReport(
        total=evaluated,
        correct=tp + tn,
        true_positive=tp,
        true_negative=tn,
        false_positive=fp,
        false_negative=fn,
        accuracy_percent=accuracy,
        excluded=len(failures),
        failures=failures,
    )
