#!/usr/bin/env python3
"""
Build the Glucose >= 150 example tree through intent events and evaluate it.

Usage (from project root):
  python scripts/demo.py [path/to/diabetes.csv]

Without an argument the bundled test fixture is used.
Output: the tree, dataset row counts and the evaluation report.
"""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_CSV = ROOT / "tests" / "fixtures" / "diabetes_sample.csv"


def main(argv: list[str]) -> int:
    from backend.exceptions import TreeError
    from backend.services.evaluation_service import evaluate_all
    from backend.services.record_loader import load_records
    from backend.services.tree_store import TreeStore
    from shared.schemas import AddChild, ConditionSpec, NodeContent, UpdateNode

    csv_path = Path(argv[1]) if len(argv) > 1 else DEFAULT_CSV
    if not csv_path.exists():
        print(f"CSV not found: {csv_path}", file=sys.stderr)
        return 1

    store = TreeStore(tree_id="demo")
    for intent in (
        UpdateNode(
            node_id="root",
            content=NodeContent(label="Glucose check", condition=ConditionSpec(column="Glucose", operator=">=", threshold=150)),
        ),
        AddChild(parent_id="root", label="true", kind="result", result=1),
        AddChild(parent_id="root", label="false", kind="result", result=0),
    ):
        store.apply(intent)
    snapshot = store.snapshot()

    print("Tree:")
    for node in snapshot.nodes:
        if node.condition:
            c = node.condition
            print(f"  {node.id}: {c.column} {c.operator.value} {c.threshold}")
        else:
            print(f"  {node.id}: predict {node.result}")
    for b in snapshot.branches:
        print(f"  {b.source_id} -[{b.label.value}]-> {b.target_id}")

    dataset = load_records(csv_path)
    s = dataset.stats
    print(f"\nData: {s.total} rows, {s.valid} valid, {s.invalid} invalid ({csv_path.name})")

    try:
        report = evaluate_all(snapshot, dataset.records)
    except TreeError as e:
        print(f"Evaluation failed: {e.message}", file=sys.stderr)
        return 1

    print(f"\nAccuracy: {report.accuracy_percent}% ({report.correct} correct of {report.total})")
    print(f"  TP: {report.true_positive}  TN: {report.true_negative}")
    print(f"  FP: {report.false_positive}  FN: {report.false_negative}")
    if report.excluded:
        print(f"  Excluded: {report.excluded}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
