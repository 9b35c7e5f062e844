"""Aggregation pipeline builders."""

from catalog.pipelines.product_pipelines import (
    OWNER_FIELD,
    PRODUCT_PROJECTION,
    build_category_stats_pipeline,
    build_detail_pipeline,
    build_list_filter,
    build_list_pipeline,
    build_stats_pipeline,
)

__all__ = [
    "OWNER_FIELD",
    "PRODUCT_PROJECTION",
    "build_category_stats_pipeline",
    "build_detail_pipeline",
    "build_list_filter",
    "build_list_pipeline",
    "build_stats_pipeline",
]
