"""
FastAPI API for the Renstra planner
Provides REST endpoints for master data, Renstra rows and Kepmen reference lookups
"""

from typing import Any, Dict, List, NoReturn, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError
import uvicorn

from ..config.settings import settings
from ..db.gateway import DataAccessError, DataGateway, RowNotFoundError
from ..schemas.forms import empty_draft, parse_form
from ..schemas.hierarchy import Dataset, HierarchyLevel
from ..services.dashboard import dataset_summary
from ..services.field_mapping import reference_fields, resolve_fields
from ..services.grid_orchestrator import filter_rows
from ..services.navigation import MENU_ITEMS
from ..services.notifications import NotificationChannel
from ..services.parent_resolution import ParentResolver
from ..services.reference_lookup import ReferenceLookup, ReferenceOption, apply_reference
from ..utils.logging import get_logger, log_error

logger = get_logger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Renstra Planner API",
    description="Hierarchical master data and strategic plan (Renstra) editor",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_gateway: Optional[DataGateway] = None


def get_gateway() -> DataGateway:
    """Gateway dependency bound to the application database."""
    global _gateway
    if _gateway is None:
        _gateway = DataGateway()
    return _gateway


def get_notifications() -> NotificationChannel:
    """Fresh notification channel per request."""
    return NotificationChannel()


# Request models
class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class FromReferenceRequest(BaseModel):
    reference_id: str


def _require_editable(dataset: Dataset) -> None:
    if not dataset.editable:
        raise HTTPException(status_code=403, detail="Reference data is read-only")


def _raise_data_error(e: DataAccessError, action: str) -> NoReturn:
    logger.error(f"Failed to {action}: {e}", extra=log_error(e, table=e.table))
    if isinstance(e, RowNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=500, detail=f"Failed to {action}")


def _validated_row(dataset: Dataset, level: HierarchyLevel, payload: Dict[str, Any]) -> Dict[str, Any]:
    draft = {**payload, "level": level.value}
    try:
        form = parse_form(draft)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    return form.to_row(resolve_fields(level, dataset))


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "renstra-planner-api"}


@app.get("/navigation")
def navigation():
    """Sidebar menu with the grid each route mounts"""
    return {"items": [item.to_dict() for item in MENU_ITEMS]}


@app.get("/dashboard")
def dashboard(gateway: DataGateway = Depends(get_gateway)):
    """Row totals per level for master data and Renstra, plus Renstra budgets"""
    try:
        return {
            "datasets": [
                dataset_summary(gateway, Dataset.MASTER),
                dataset_summary(gateway, Dataset.RENSTRA),
            ]
        }
    except DataAccessError as e:
        _raise_data_error(e, "load dashboard")


@app.get("/{dataset}/{level}")
def list_rows(
    dataset: Dataset,
    level: HierarchyLevel,
    search: str = Query("", description="Case-insensitive filter on code and name"),
    gateway: DataGateway = Depends(get_gateway),
):
    """Rows of one level ordered by code"""
    fields = resolve_fields(level, dataset)
    try:
        rows = gateway.fetch(fields.table)
    except DataAccessError as e:
        _raise_data_error(e, "load data")
    visible = filter_rows(rows, search, fields)
    return {
        "dataset": dataset.value,
        "level": level.value,
        "code_field": fields.code_field,
        "name_field": fields.name_field,
        "total": len(visible),
        "rows": visible,
    }


@app.post("/{dataset}/{level}", status_code=201)
def create_row(
    dataset: Dataset,
    level: HierarchyLevel,
    payload: Dict[str, Any] = Body(...),
    gateway: DataGateway = Depends(get_gateway),
):
    """Create a row from form state"""
    _require_editable(dataset)
    row = _validated_row(dataset, level, payload)
    try:
        return gateway.create(resolve_fields(level, dataset).table, row)
    except DataAccessError as e:
        _raise_data_error(e, "save data")


@app.put("/{dataset}/{level}/{item_id}")
def update_row(
    dataset: Dataset,
    level: HierarchyLevel,
    item_id: str,
    payload: Dict[str, Any] = Body(...),
    gateway: DataGateway = Depends(get_gateway),
):
    """Replace the editable fields of a row"""
    _require_editable(dataset)
    row = _validated_row(dataset, level, payload)
    try:
        return gateway.update(resolve_fields(level, dataset).table, item_id, row)
    except DataAccessError as e:
        _raise_data_error(e, "save data")


@app.delete("/{dataset}/{level}/{item_id}")
def delete_row(
    dataset: Dataset,
    level: HierarchyLevel,
    item_id: str,
    gateway: DataGateway = Depends(get_gateway),
):
    _require_editable(dataset)
    try:
        gateway.delete(resolve_fields(level, dataset).table, item_id)
    except DataAccessError as e:
        _raise_data_error(e, "delete item")
    return {"status": "deleted", "id": item_id}


@app.post("/{dataset}/{level}/bulk-delete")
def bulk_delete(
    dataset: Dataset,
    level: HierarchyLevel,
    request: BulkDeleteRequest,
    gateway: DataGateway = Depends(get_gateway),
):
    """Delete several rows; reports the outcome of every id"""
    _require_editable(dataset)
    results = gateway.delete_many(resolve_fields(level, dataset).table, request.ids)
    failed = [r for r in results if not r.ok]
    return {
        "results": [r.to_dict() for r in results],
        "deleted": len(results) - len(failed),
        "failed": len(failed),
    }


@app.get("/{dataset}/{level}/reference-options")
def reference_options(
    dataset: Dataset,
    level: HierarchyLevel,
    gateway: DataGateway = Depends(get_gateway),
    notifications: NotificationChannel = Depends(get_notifications),
):
    """Kepmen rows that can seed a new row of this level"""
    _require_editable(dataset)
    lookup = ReferenceLookup(gateway, notifications)
    options = lookup.load_options(level, include_top_level=dataset is Dataset.RENSTRA)
    return {
        "options": [opt.to_dict() for opt in options],
        "notifications": [n.to_dict() for n in notifications.drain()],
    }


@app.get("/{dataset}/{level}/parent-options")
def parent_options(
    dataset: Dataset,
    level: HierarchyLevel,
    gateway: DataGateway = Depends(get_gateway),
    notifications: NotificationChannel = Depends(get_notifications),
):
    """Persisted rows one level up"""
    _require_editable(dataset)
    resolver = ParentResolver(gateway, notifications)
    options = resolver.load_parent_options(level, dataset)
    return {
        "options": [opt.to_dict() for opt in options],
        "notifications": [n.to_dict() for n in notifications.drain()],
    }


@app.post("/{dataset}/{level}/from-reference")
def draft_from_reference(
    dataset: Dataset,
    level: HierarchyLevel,
    request: FromReferenceRequest,
    gateway: DataGateway = Depends(get_gateway),
):
    """Form draft seeded from a reference row, with the derived parent for programs"""
    _require_editable(dataset)
    ref_fields = reference_fields(level)
    try:
        reference_row = gateway.get(ref_fields.table, request.reference_id)
        option = ReferenceOption.from_row(ref_fields, reference_row)
        draft = apply_reference(empty_draft(level), option)
        if level is HierarchyLevel.PROGRAM:
            draft["parent_id"] = ParentResolver(gateway).resolve_parent(level, option, dataset)
    except DataAccessError as e:
        _raise_data_error(e, "load reference data")
    return {"draft": draft}


if __name__ == "__main__":
    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
