from __future__ import annotations

import logging
import math
import os
import time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Literal, Optional

from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterModel, OptionsResponse
from sales_core.config import Settings, configure_logging, load_settings
from sales_core.data import load_dashboard_data, prepare_context
from sales_core.errors import FeedUnavailableError, InvalidFilterError
from sales_core.export import to_delimited_text
from sales_core.filters import FilterSpec, build_filter
from sales_core.metrics_heatmap import compute_heatmap
from sales_core.metrics_overview import compute_overview
from sales_core.metrics_performance import compute_performance

configure_logging(os.getenv("SALES_LOG_LEVEL", "INFO"))

app = FastAPI(title="Sales Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Seconds a loaded dataset is reused across requests.
DATA_TTL_SECONDS = 300


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(settings: Settings, ttl_bucket: int) -> Dict[str, Any]:
    return load_dashboard_data(settings)


def _dataset(settings: Settings) -> Dict[str, Any]:
    return _load_dashboard_data_cached(settings, int(time.monotonic() // DATA_TTL_SECONDS))


def _filters_from_model(model: FilterModel) -> FilterSpec:
    return build_filter(model.model_dump())


def _clamp_top_n(top_n: Optional[int], default: int) -> int:
    if top_n is None:
        return default
    return max(1, min(200, int(top_n)))


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for Decimal and non-finite floats."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(content=jsonable_encoder(data, custom_encoder={float: _safe_float, Decimal: _safe_float}))


def _error(name: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, InvalidFilterError):
        status = 422
    elif isinstance(exc, FeedUnavailableError):
        logger.error("%s failed: %s", name, exc)
        status = 503
    else:
        logger.exception("%s failed", name)
        status = 500
    return JSONResponse(status_code=status, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options", response_model=OptionsResponse)
def meta_options():
    try:
        data_ctx = _dataset(load_settings())
        return _json({**data_ctx["options"], "source": data_ctx["source"], "rejected_count": len(data_ctx["rejected"])})
    except Exception as exc:
        return _error("meta_options", exc)


@app.post("/overview")
def overview(
    filters: FilterModel,
    top_n: Optional[int] = Query(default=None),
    group_key: Literal["product", "city", "sales_rep"] = Query(default="product"),
):
    try:
        settings = load_settings()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, _dataset(settings))
        return _json(compute_overview(f, ctx, top_n=_clamp_top_n(top_n, settings.top_n), group_key=group_key))
    except Exception as exc:
        return _error("overview", exc)


@app.post("/performance")
def performance(
    filters: FilterModel,
    metric: Literal["sales", "quantity"] = Query(default="sales"),
    view: Literal["product", "city", "sales_rep"] = Query(default="product"),
    top_n: Optional[int] = Query(default=None),
):
    try:
        settings = load_settings()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, _dataset(settings))
        return _json(compute_performance(f, ctx, metric=metric, view=view, top_n=_clamp_top_n(top_n, settings.top_n)))
    except Exception as exc:
        return _error("performance", exc)


@app.post("/heatmap")
def heatmap(filters: FilterModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, _dataset(load_settings()))
        return _json(compute_heatmap(f, ctx))
    except Exception as exc:
        return _error("heatmap", exc)


@app.post("/export")
def export(filters: FilterModel, quoting: bool = Query(default=True)):
    try:
        settings = load_settings()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, _dataset(settings))
        text = to_delimited_text(ctx["filtered"], delimiter=settings.export_delimiter, quoting=quoting)
    except Exception as exc:
        return _error("export", exc)
    return Response(
        content=text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )
