"""
/api/v1/resources endpoints.

GET    /resources                  filtered, sorted, paginated listing
GET    /resources/{resource_id}    one resource with its providers
POST   /resources                  validated batch create
PUT    /resources/{resource_id}    partial update (PATCH is an alias)
DELETE /resources/{resource_id}    soft delete, or hard delete with force=true

Authorization is a router-level dependency so it is resolved before get_db.
"""

import logging
import sqlite3
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Request, Response
from fastapi.responses import JSONResponse

from api.auth import require_user
from api.database import get_db
from api.models import (
    DeleteResponse,
    ErrorResponse,
    ResourceCreateRequest,
    ResourceDetailOut,
    ResourceListResponse,
    StatusResponse,
)
from utils.database import (
    ResourceNotFoundError,
    delete_resource,
    fetch_resource,
    insert_resources,
    update_resource,
)
from utils.query import FilterSpec, build_and_execute
from utils.validation import validate_batch, validate_update

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/resources",
    tags=["resources"],
    dependencies=[Depends(require_user)],
    responses={401: {"description": "Caller is not authenticated"}},
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Resource not found"}}


def _not_found(exc: ResourceNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


def _validation_status(request: Request) -> int:
    return request.app.state.config.validation_error_status


@router.get(
    "",
    response_model=ResourceListResponse,
    summary="List resources",
    description=(
        "Filters are passed as query parameters, either plain (`price=10-50`) "
        "or bracketed (`filters[price]=10-50`). Substring filters: email, currency, "
        "payment_method, promotions, notes, other_info, social_media, main_category, "
        "other_categories. Numeric ranges (`lo-hi` or exact): price, casino_price, "
        "adult_price, usd_price, da, dr, rd, tr, pa, tf, cf, organic_keywords. "
        "Date range (`YYYY-MM-DD - YYYY-MM-DD` or exact): metrics_update_date. "
        "Paging: page, limit. Sorting: sortby, order (ASC|DESC). "
        "Malformed values are ignored."
    ),
)
def list_resources(
    request: Request,
    response: Response,
    conn: sqlite3.Connection = Depends(get_db),
) -> ResourceListResponse:
    """Return one page of provider/resource rows plus total and filtered counts."""
    config = request.app.state.config
    spec = FilterSpec.from_params(request.query_params, max_limit=config.max_page_size)
    result = build_and_execute(conn, spec, legacy_page_window=config.legacy_page_window)
    response.headers["X-Page-Window"] = result.page_window
    return ResourceListResponse(**result.to_dict())


@router.get(
    "/{resource_id}",
    response_model=ResourceDetailOut,
    responses=_NOT_FOUND,
    summary="Get one resource",
)
def get_resource(
    resource_id: int = Path(..., ge=1, description="Resource ID"),
    conn: sqlite3.Connection = Depends(get_db),
) -> ResourceDetailOut:
    try:
        return ResourceDetailOut(**fetch_resource(conn, resource_id))
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post(
    "",
    response_model=StatusResponse,
    responses={500: {"model": StatusResponse, "description": "Validation failed"}},
    summary="Create resources",
)
def create_resources(
    request: Request,
    body: ResourceCreateRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> JSONResponse:
    """Validate the whole batch, then insert every record in one transaction.

    The response body is ``{status, code, message}`` and the HTTP status is
    ``code``.  Nothing is written unless every record passes.
    """
    result = validate_batch(body.data, error_code=_validation_status(request))
    if not result.ok:
        logger.info("create rejected: %s", result.message)
        return JSONResponse(status_code=result.code, content=result.to_dict())
    insert_resources(conn, body.data)
    return JSONResponse(status_code=result.code, content=result.to_dict())


def _update(request: Request, resource_id: int, fields: dict[str, Any],
            conn: sqlite3.Connection) -> ResourceDetailOut | JSONResponse:
    try:
        fetch_resource(conn, resource_id)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    result = validate_update(fields, error_code=_validation_status(request))
    if not result.ok:
        logger.info("update of resource %d rejected: %s", resource_id, result.message)
        return JSONResponse(status_code=result.code, content=result.to_dict())
    try:
        updated = update_resource(conn, resource_id, fields)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    return ResourceDetailOut(**updated)


@router.put(
    "/{resource_id}",
    response_model=ResourceDetailOut,
    responses=_NOT_FOUND,
    summary="Update a resource",
)
def put_resource(
    request: Request,
    resource_id: int = Path(..., ge=1, description="Resource ID"),
    fields: dict[str, Any] = Body(..., examples=[{"price": "150", "dr": 42}]),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Update only the supplied fields.

    Resource fields change the resource row; provider fields change every
    provider row of the resource.  Supplied required fields must be valid.
    """
    return _update(request, resource_id, fields, conn)


@router.patch(
    "/{resource_id}",
    response_model=ResourceDetailOut,
    responses=_NOT_FOUND,
    summary="Update a resource",
)
def patch_resource(
    request: Request,
    resource_id: int = Path(..., ge=1, description="Resource ID"),
    fields: dict[str, Any] = Body(..., examples=[{"notes": "renegotiated"}]),
    conn: sqlite3.Connection = Depends(get_db),
):
    return _update(request, resource_id, fields, conn)


@router.delete(
    "/{resource_id}",
    response_model=DeleteResponse,
    responses=_NOT_FOUND,
    summary="Delete a resource",
)
def remove_resource(
    resource_id: int = Path(..., ge=1, description="Resource ID"),
    force: bool = Query(False, description="Remove the rows instead of marking them deleted"),
    conn: sqlite3.Connection = Depends(get_db),
) -> DeleteResponse:
    try:
        delete_resource(conn, resource_id, force=force)
    except ResourceNotFoundError as exc:
        raise _not_found(exc) from exc
    return DeleteResponse(deleted=True, force=force, resource_id=resource_id)
