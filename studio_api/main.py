from __future__ import annotations

import logging
import math
import os
from typing import Any, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from studio_api.fallbacks import FALLBACK_GRIDS
from studio_api.schemas import FilterSpecModel
from studio_core.config import load_settings
from studio_core.data import SOURCES, SnapshotStore, load_dashboard_data, prepare_context
from studio_core.fetch import Grid, SheetFetchError
from studio_core.filters import FilterSpec, normalize_filters
from studio_core.metrics_cancellations import compute_late_cancellations
from studio_core.metrics_clients import compute_new_clients
from studio_core.metrics_discounts import compute_discounts
from studio_core.metrics_sessions import compute_class_comparison
from studio_core.sheets import tables_to_frame


logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

app = FastAPI(title="Studio Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

settings = load_settings()
store = SnapshotStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DISCOUNT_OPTION_COLUMNS = {
    "payment_methods": "payment_method",
    "categories": "cleaned_category",
    "products": "cleaned_product",
    "sold_by": "sold_by",
    "locations": "location",
}


def _filters_from_model(model: FilterSpecModel) -> FilterSpec:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


async def _load_grid(source: str) -> Grid:
    try:
        return await store.ensure(source)
    except SheetFetchError:
        if not settings.use_fallback_data:
            raise
        logger.warning("Fetching %s failed; serving fallback data", source)
        return FALLBACK_GRIDS.get(source, ())


async def _load_data(source: str) -> Dict[str, Any]:
    grid = await _load_grid(source)
    return load_dashboard_data({source: grid})


@app.get("/meta/sources")
def meta_sources():
    return _json({"sources": list(SOURCES), "configured": sorted(settings.sources)})


@app.get("/meta/discount-options")
async def meta_discount_options():
    try:
        data_ctx = await _load_data("discounts")
        df: pd.DataFrame = data_ctx.get("discounts", pd.DataFrame())
        options = {
            name: sorted(x for x in df[col].dropna().astype(str).unique().tolist() if x) if col in df.columns else []
            for name, col in DISCOUNT_OPTION_COLUMNS.items()
        }
        return _json(options)
    except SheetFetchError as exc:
        logger.warning("meta_discount_options fetch failed: %s", exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("meta_discount_options failed")
        return _error(500, exc)


@app.post("/refresh/{source}")
async def refresh(source: str):
    if source not in SOURCES:
        return JSONResponse(status_code=404, content={"error": f"Unknown source '{source}'", "type": "UnknownSource"})
    try:
        grid = await store.refresh(source)
        return _json({"source": source, "rows": len(grid)})
    except SheetFetchError as exc:
        logger.warning("refresh %s failed: %s", source, exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("refresh failed")
        return _error(500, exc)


@app.post("/discounts")
async def discounts(filters: FilterSpecModel, include_records: bool = Query(default=True)):
    try:
        data_ctx = await _load_data("discounts")
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_discounts(f, ctx, include_records=include_records))
    except SheetFetchError as exc:
        logger.warning("discounts fetch failed: %s", exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("discounts failed")
        return _error(500, exc)


@app.post("/sessions/class-comparison")
async def class_comparison(filters: FilterSpecModel):
    try:
        data_ctx = await _load_data("sessions")
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_class_comparison(f, ctx))
    except SheetFetchError as exc:
        logger.warning("class_comparison fetch failed: %s", exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("class_comparison failed")
        return _error(500, exc)


@app.post("/late-cancellations")
async def late_cancellations():
    try:
        data_ctx = await _load_data("late_cancellations")
        return _json(compute_late_cancellations(data_ctx.get("late_cancellations", [])))
    except SheetFetchError as exc:
        logger.warning("late_cancellations fetch failed: %s", exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("late_cancellations failed")
        return _error(500, exc)


@app.post("/new-clients")
async def new_clients(filters: FilterSpecModel):
    try:
        data_ctx = await _load_data("new_clients")
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_new_clients(f, ctx))
    except SheetFetchError as exc:
        logger.warning("new_clients fetch failed: %s", exc)
        return _error(502, exc)
    except Exception as exc:
        logger.exception("new_clients failed")
        return _error(500, exc)


@app.post("/export/{page}")
async def export_page(page: str, filters: FilterSpecModel):
    source = page.replace("-", "_")
    if source not in SOURCES:
        export_df = pd.DataFrame()
    else:
        try:
            data_ctx = await _load_data(source)
        except SheetFetchError as exc:
            return _error(502, exc)
        ctx = prepare_context(_filters_from_model(filters), data_ctx)
        if source == "late_cancellations":
            export_df = tables_to_frame(ctx["late_cancellation_tables"])
        else:
            export_df = ctx.get(f"filtered_{source}", pd.DataFrame())

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"{page}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
