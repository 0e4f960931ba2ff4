"""Routes for loading patient records from CSV."""

from fastapi import APIRouter, HTTPException, UploadFile

from backend.services.record_loader import load_records, summarize_columns

router = APIRouter()


@router.post("/parse")
def parse_records(file: UploadFile):
    """Parse an uploaded CSV into validated records with row counts and column statistics."""
    try:
        dataset = load_records(file.file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    summary = summarize_columns(dataset.records)
    return {
        "filename": file.filename,
        "stats": dataset.stats.model_dump(),
        "columns": dataset.columns,
        "summary": {name: s.model_dump(exclude_none=True) for name, s in summary.items()},
        "records": [r.model_dump() for r in dataset.records],
    }
