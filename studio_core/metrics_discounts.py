from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from studio_core.breakdowns import group_breakdown, safe_ratio, safe_sum
from studio_core.coerce import month_key
from studio_core.filters import FilterSpec


logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_MONTH = "Unknown Month"
UNKNOWN_CATEGORY = "Unknown Category"
UNKNOWN_LOCATION = "Unknown Location"

_GROUP_SUMS = {"total_discount": "discount_amount", "revenue": "payment_value"}


def empty_summary() -> Dict[str, Any]:
    return {
        "total_transactions": 0,
        "total_revenue": 0.0,
        "total_discount_amount": 0.0,
        "total_revenue_lost": 0.0,
        "avg_discount_percentage": 0.0,
        "total_potential_revenue": 0.0,
        "total_actual_revenue": 0.0,
        "discount_effectiveness": 0.0,
        "product_breakdown": [],
        "monthly_breakdown": [],
        "category_breakdown": [],
        "location_breakdown": [],
    }


def summarize(df: pd.DataFrame) -> Dict[str, Any]:
    """Discount KPIs plus product/month/category/location breakdowns."""
    if df.empty:
        return empty_summary()

    total_transactions = int(len(df))
    total_discount = safe_sum(df, "discount_amount")
    potential = safe_sum(df, "mrp_pre_tax")
    actual = safe_sum(df, "payment_value")

    with_month = df.assign(month=df["payment_date"].fillna("").astype(str).map(lambda d: month_key(d) or ""))

    return {
        "total_transactions": total_transactions,
        "total_revenue": actual,
        "total_discount_amount": total_discount,
        "total_revenue_lost": total_discount,
        "avg_discount_percentage": safe_ratio(safe_sum(df, "discount_percentage"), total_transactions),
        "total_potential_revenue": potential,
        "total_actual_revenue": actual,
        "discount_effectiveness": safe_ratio(actual, potential, 100.0),
        "product_breakdown": group_breakdown(
            df,
            "cleaned_product",
            label="product",
            fallback=UNKNOWN_PRODUCT,
            sums=_GROUP_SUMS,
            averages={"avg_discount_percentage": "discount_percentage"},
        ),
        "monthly_breakdown": group_breakdown(
            with_month, "month", label="month", fallback=UNKNOWN_MONTH, sums=_GROUP_SUMS
        ),
        "category_breakdown": group_breakdown(
            df,
            "cleaned_category",
            label="category",
            fallback=UNKNOWN_CATEGORY,
            sums=_GROUP_SUMS,
            averages={"avg_discount_percentage": "discount_percentage"},
        ),
        "location_breakdown": group_breakdown(
            df,
            "location",
            label="location",
            fallback=UNKNOWN_LOCATION,
            sums=_GROUP_SUMS,
            averages={"avg_discount_percentage": "discount_percentage"},
        ),
    }


def compute_hero_metrics(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {
            "total_transactions": 0,
            "total_revenue": 0.0,
            "total_discounts": 0.0,
            "avg_discount_percent": 0.0,
            "discounted_transactions": 0,
            "avg_transaction_value": 0.0,
        }
    total_transactions = int(len(df))
    total_revenue = safe_sum(df, "payment_value")
    discounted = int((pd.to_numeric(df["discount_amount"], errors="coerce").fillna(0) > 0).sum())
    return {
        "total_transactions": total_transactions,
        "total_revenue": total_revenue,
        "total_discounts": safe_sum(df, "discount_amount"),
        # averaged over discounted transactions only
        "avg_discount_percent": safe_ratio(safe_sum(df, "discount_percentage"), discounted),
        "discounted_transactions": discounted,
        "avg_transaction_value": safe_ratio(total_revenue, total_transactions),
    }


def compute_discounts(filters: FilterSpec, ctx: Dict[str, Any], *, include_records: bool = True) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_discounts", pd.DataFrame())
    metrics = summarize(df)
    logger.debug("Discount metrics over %d transactions", metrics["total_transactions"])
    return {
        "filters": asdict(filters),
        "hero": compute_hero_metrics(df),
        "metrics": metrics,
        "records": df.to_dict(orient="records") if include_records and not df.empty else [],
    }
