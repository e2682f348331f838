"""
Route definitions for the catalogue API.

Endpoints under /api/catalog:
- GET  /entries                      : releases within a date range
- GET  /entries/grouped              : same, grouped per release date
- GET  /series                       : catalogue of series with covers
- GET  /series/refs                  : ids and names of every series
- GET  /series/{serie_id}            : one series with its releases
- GET  /series/{serie_id}/entries    : releases of one series
- GET  /series/{serie_id}/licensing  : licensing record of one series
- GET  /licensed                     : licensing announcements
- GET  /types, /types/{type_id}
- GET  /publishers, /publishers/{publisher_id}
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .backend import BackendError, is_not_found
from .schemas import (
    DateGroup,
    Entry,
    Licensed,
    Publisher,
    SerieDetail,
    SerieRef,
    SerieSummary,
    Type,
)
from .store import CatalogStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def get_store(request: Request) -> CatalogStore:
    """Return the store built by the application lifespan."""
    return request.app.state.store


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    """Report a failed backend query as a gateway error."""
    logger.error("Backend query failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={
            "detail": getattr(exc, "message", None) or str(exc),
            "code": getattr(exc, "code", None),
        },
    )


def _raise_lookup_error(exc: BackendError, what: str) -> NoReturn:
    if is_not_found(exc):
        raise HTTPException(status_code=404, detail=f"{what} not found") from exc
    raise exc


@router.get("/entries", response_model=List[Entry])
async def list_entries(
    start: Optional[date] = Query(default=None, description="First day (defaults to month start)"),
    end: Optional[date] = Query(default=None, description="Last day (defaults to month end)"),
    publisher: Optional[List[str]] = Query(default=None, description="Publisher ids"),
    ascending: bool = Query(default=True, description="Date order"),
    store: CatalogStore = Depends(get_store),
) -> List[Entry]:
    return await store.list_entries(start, end, publisher, ascending)


@router.get("/entries/grouped", response_model=List[DateGroup])
async def list_entries_grouped(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    publisher: Optional[List[str]] = Query(default=None),
    ascending: bool = Query(default=True),
    store: CatalogStore = Depends(get_store),
) -> List[DateGroup]:
    return await store.list_entries_by_date(start, end, publisher, ascending)


@router.get("/series", response_model=List[SerieSummary])
async def list_series(
    publisher: Optional[List[str]] = Query(default=None, description="Publisher ids"),
    type: Optional[List[str]] = Query(default=None, description="Type ids"),
    status: Optional[List[str]] = Query(default=None, description="Series status"),
    store: CatalogStore = Depends(get_store),
) -> List[SerieSummary]:
    return await store.list_series(publishers=publisher, types=type, status=status)


@router.get("/series/refs", response_model=List[SerieRef])
async def list_serie_refs(store: CatalogStore = Depends(get_store)) -> List[SerieRef]:
    return await store.list_serie_refs()


@router.get("/series/{serie_id}", response_model=SerieDetail)
async def get_serie(serie_id: int, store: CatalogStore = Depends(get_store)) -> SerieDetail:
    try:
        return await store.get_serie(serie_id)
    except BackendError as exc:
        _raise_lookup_error(exc, "Serie")


@router.get("/series/{serie_id}/entries", response_model=List[Entry])
async def get_serie_entries(
    serie_id: int,
    limit: Optional[int] = Query(default=None, ge=1, description="Maximum rows"),
    store: CatalogStore = Depends(get_store),
) -> List[Entry]:
    return await store.get_entries_by_serie(serie_id, limit)


@router.get("/series/{serie_id}/licensing", response_model=Optional[Licensed])
async def get_licensing_info(
    serie_id: int, store: CatalogStore = Depends(get_store)
) -> Optional[Licensed]:
    return await store.get_licensing_info(serie_id)


@router.get("/licensed", response_model=List[Licensed])
async def list_licensed(store: CatalogStore = Depends(get_store)) -> List[Licensed]:
    return await store.list_licensed()


@router.get("/types", response_model=List[Type])
async def list_types(store: CatalogStore = Depends(get_store)) -> List[Type]:
    return await store.list_types()


@router.get("/types/{type_id}", response_model=Type)
async def get_type(type_id: str, store: CatalogStore = Depends(get_store)) -> Type:
    try:
        return await store.get_type(type_id)
    except BackendError as exc:
        _raise_lookup_error(exc, "Type")


@router.get("/publishers", response_model=List[Publisher])
async def list_publishers(store: CatalogStore = Depends(get_store)) -> List[Publisher]:
    return await store.list_publishers()


@router.get("/publishers/{publisher_id}", response_model=Publisher)
async def get_publisher(
    publisher_id: str, store: CatalogStore = Depends(get_store)
) -> Publisher:
    try:
        return await store.get_publisher(publisher_id)
    except BackendError as exc:
        _raise_lookup_error(exc, "Publisher")
