"""Health endpoint."""

from fastapi import APIRouter, Depends

from backend.workspace import TreeWorkspace, get_workspace

router = APIRouter(tags=["monitoring"])


@router.get("/health", summary="Health check")
def health(ws: TreeWorkspace = Depends(get_workspace)):
    """Health check for load balancers. Reports how many trees are held in memory."""
    return {"status": "healthy", "trees": len(ws.list_ids()), "max_trees": ws.max_trees}
