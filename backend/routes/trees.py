"""
Tree editing and evaluation routes.

Every edit goes through an intent event applied by the tree's store; the
response carries the resulting snapshot for re-rendering.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile

from backend.exceptions import InvalidMutation, TreeError
from backend.services.evaluation_service import evaluate_all, predict_with_trace
from backend.services.record_loader import load_records
from backend.services.tree_store import TreeStore
from backend.services.validation_service import has_reachable_result, validate_tree
from backend.workspace import TreeWorkspace, get_workspace
from shared.schemas import CreateTreeRequest, EvaluateRequest, IntentRequest, PredictRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_store(tree_id: str, ws: TreeWorkspace) -> TreeStore:
    store = ws.get(tree_id)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Tree '{tree_id}' not found")
    return store


def _tree_payload(store: TreeStore) -> dict:
    return {"id": store.tree_id, **store.snapshot().model_dump(mode="json")}


def _evaluation_error(e: TreeError) -> HTTPException:
    return HTTPException(status_code=422, detail=e.to_dict())


@router.get("/", response_model=list[dict])
def list_trees(ws: TreeWorkspace = Depends(get_workspace)):
    """List trees held in the workspace."""
    out = []
    for tree_id in ws.list_ids():
        store = ws.get(tree_id)
        if store is not None:
            out.append({"id": tree_id, "nodes": len(store), "version": store.version})
    return out


@router.post("/", status_code=201)
def create_tree(body: Optional[CreateTreeRequest] = None, ws: TreeWorkspace = Depends(get_workspace)):
    """Create a tree holding only an empty root condition."""
    try:
        store = ws.create(body.tree_id if body else None)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    logger.info("Created tree %s", store.tree_id)
    return _tree_payload(store)


@router.get("/{tree_id}")
def get_tree(tree_id: str, ws: TreeWorkspace = Depends(get_workspace)):
    """Current snapshot of a tree."""
    return _tree_payload(_get_store(tree_id, ws))


@router.delete("/{tree_id}", status_code=204)
def delete_tree(tree_id: str, ws: TreeWorkspace = Depends(get_workspace)):
    """Drop a tree from the workspace."""
    if not ws.remove(tree_id):
        raise HTTPException(status_code=404, detail=f"Tree '{tree_id}' not found")
    return None


@router.post("/{tree_id}/intents")
def apply_intent(tree_id: str, body: IntentRequest, ws: TreeWorkspace = Depends(get_workspace)):
    """Apply one edit (add_child, delete_node, update_node). Ignored edits return applied=false."""
    store = _get_store(tree_id, ws)
    try:
        result = store.apply(body.intent)
    except InvalidMutation as e:
        raise HTTPException(status_code=409, detail=e.to_dict()) from e
    return result.model_dump(mode="json")


@router.post("/{tree_id}/reset")
def reset_tree(tree_id: str, ws: TreeWorkspace = Depends(get_workspace)):
    """Discard every node except a fresh root."""
    return _get_store(tree_id, ws).reset().model_dump(mode="json")


@router.get("/{tree_id}/validate")
def validate(tree_id: str, ws: TreeWorkspace = Depends(get_workspace)):
    """Structure and content issues of the current tree."""
    snapshot = _get_store(tree_id, ws).snapshot()
    issues = validate_tree(snapshot)
    return {
        "issues": [i.model_dump(mode="json") for i in issues],
        "valid": not issues,
        "evaluable": has_reachable_result(snapshot) and not any(i.severity == "error" for i in issues),
    }


@router.post("/{tree_id}/predict")
def predict_record(tree_id: str, body: PredictRequest, ws: TreeWorkspace = Depends(get_workspace)):
    """Prediction and path for a single record."""
    snapshot = _get_store(tree_id, ws).snapshot()
    try:
        trace = predict_with_trace(snapshot, body.record)
    except TreeError as e:
        raise _evaluation_error(e) from e
    return trace.model_dump(mode="json")


@router.post("/{tree_id}/evaluate")
def evaluate(tree_id: str, body: EvaluateRequest, ws: TreeWorkspace = Depends(get_workspace)):
    """Accuracy and confusion matrix over the records in the body."""
    snapshot = _get_store(tree_id, ws).snapshot()
    try:
        report = evaluate_all(snapshot, body.records)
    except TreeError as e:
        raise _evaluation_error(e) from e
    return report.model_dump(mode="json")


@router.post("/{tree_id}/evaluate-csv")
def evaluate_csv(tree_id: str, file: UploadFile, ws: TreeWorkspace = Depends(get_workspace)):
    """Load records from an uploaded CSV and evaluate the tree against them."""
    snapshot = _get_store(tree_id, ws).snapshot()
    try:
        dataset = load_records(file.file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    try:
        report = evaluate_all(snapshot, dataset.records)
    except TreeError as e:
        raise _evaluation_error(e) from e
    return {"stats": dataset.stats.model_dump(), "report": report.model_dump(mode="json")}
