# finance_api/api/data.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from finance_api.api.deps import get_store
from finance_api.db.models import utc_today
from finance_api.db.store import JsonStore
from finance_api.schemas.data import ImportRequest, ValidateRequest
from finance_api.services.data_transfer import export_document, import_document, validate_document

router = APIRouter(tags=["data"])


@router.get("/export")
def export_data(store: JsonStore = Depends(get_store)):
    """The whole document, access tokens still encrypted, as a downloadable backup."""
    filename = f"finance-backup-{utc_today().isoformat()}.json"
    return JSONResponse(
        content=export_document(store),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
def import_data(payload: ImportRequest, store: JsonStore = Depends(get_store)):
    counts = import_document(store, payload.data, payload.strategy)
    return {
        "success": True,
        "message": f"Database imported successfully using {payload.strategy} strategy",
        "counts": counts,
    }


@router.post("/validate")
def validate_data(payload: ValidateRequest):
    counts = validate_document(payload.data)
    return {"valid": True, "message": "Database structure is valid", "counts": counts}
