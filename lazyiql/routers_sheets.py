# lazyiql/routers_sheets.py
from __future__ import annotations

from typing import Callable, TypeVar

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from lazyiql.config import ConfigError
from lazyiql.insight import InsightError
from lazyiql.sheets import SheetFunctions, default_functions

router = APIRouter(tags=["sheets"])

T = TypeVar("T")


def get_functions() -> SheetFunctions:
    try:
        return default_functions()
    except ConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))


def _upstream(call: Callable[[], T]) -> T:
    # transport failures, non-JSON bodies, JSON error bodies, malformed payloads
    try:
        return call()
    except (httpx.HTTPError, InsightError, ValueError, KeyError, TypeError) as e:
        raise HTTPException(status_code=502, detail=f"Insight request failed: {e}")


@router.get("/lazyiql", response_class=PlainTextResponse)
def lazyiql(
    iql: str = Query(..., description="IQL search (e.g. objectType = Server)"),
    attribute: str = Query(..., description="Attribute name to read, e.g. Owner"),
    object_type: str = Query(..., description="Object type the attribute belongs to"),
    schema_id: str = Query(..., description="Object schema ID"),
    fns: SheetFunctions = Depends(get_functions),
):
    value = _upstream(lambda: fns.lazyiql(iql, attribute, object_type, schema_id))
    return value or ""


@router.get("/lazyiql_list", response_class=PlainTextResponse)
def lazyiql_list(
    iql: str = Query(...),
    attribute: str = Query(...),
    object_type: str = Query(...),
    schema_id: str = Query(...),
    fns: SheetFunctions = Depends(get_functions),
):
    return _upstream(lambda: fns.lazyiql_list(iql, attribute, object_type, schema_id))


@router.post("/cache/flush")
def flush_cache(fns: SheetFunctions = Depends(get_functions)):
    fns.flush()
    return {"flushed": True}
