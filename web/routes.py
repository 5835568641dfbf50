"""
JSON API for comparable normalisation, market statistics and photo selection.

All endpoints are stateless except /photos/recommend, which runs the
shared PhotoInsightCoordinator (latest request wins).
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from market import (
    CanonicalStatus,
    ComparablePipeline,
    StatisticMetric,
    build_candidates,
    default_photos,
    select_slots,
    select_top_photos,
)


router = APIRouter(prefix="/api", tags=["comparables"])


# =============================================================================
# Request Models
# =============================================================================

class NormalizeRequest(BaseModel):
    """Raw provider records to normalise."""
    records: List[Any] = []
    transaction: Optional[Dict[str, Any]] = None


class StatisticsRequest(BaseModel):
    """Raw records plus the metrics to compute beyond the headline summary."""
    records: List[Any] = []
    metrics: List[str] = []
    statuses: Optional[List[str]] = None  # e.g. ["Closed"]


class PhotoSelectRequest(BaseModel):
    """One property's photos and (optional) image insights, in matching order."""
    photos: List[Any] = []
    insights: Optional[List[Dict[str, Any]]] = None
    slot_count: int = Field(3, ge=1, le=3)


class TopPhotosRequest(BaseModel):
    photos: List[Any] = []
    insights: Optional[List[Dict[str, Any]]] = None
    count: int = Field(3, ge=1, le=50)


class RecommendRequest(BaseModel):
    """Property records carrying listing ids and photo lists."""
    properties: List[Dict[str, Any]]


def _cdn_base(request: Request) -> str:
    return request.app.state.config.photo_cdn_base


def _parse_metrics(names: List[str]) -> List[StatisticMetric]:
    metrics = []
    for name in names:
        metric = StatisticMetric.from_string(name)
        if metric is None:
            raise HTTPException(status_code=400, detail=f"Unknown metric: {name}")
        metrics.append(metric)
    return metrics


def _parse_statuses(names: Optional[List[str]]) -> Optional[List[CanonicalStatus]]:
    if names is None:
        return None
    statuses = []
    for name in names:
        status = CanonicalStatus.from_string(name)
        if status is None:
            raise HTTPException(status_code=400, detail=f"Unknown status: {name}")
        statuses.append(status)
    return statuses


# =============================================================================
# Comparables
# =============================================================================

@router.post("/comparables/normalize")
def normalize_endpoint(body: NormalizeRequest, request: Request):
    """Drop rentals and reduce each record to a canonical comparable."""
    pipeline = ComparablePipeline(cdn_base=_cdn_base(request))
    return pipeline.process(body.records, transaction=body.transaction).to_dict()


@router.post("/comparables/statistics")
def statistics_endpoint(body: StatisticsRequest, request: Request):
    """
    Normalise records and compute market statistics.

    Returns:
        comparables, counts, the headline summary and any requested metrics.
        400 for an unknown metric or status name.
    """
    metrics = _parse_metrics(body.metrics)
    statuses = _parse_statuses(body.statuses)
    pipeline = ComparablePipeline(cdn_base=_cdn_base(request))
    return pipeline.build_report(body.records, metrics=metrics, statuses=statuses).to_dict()


# =============================================================================
# Photos
# =============================================================================

@router.post("/photos/select")
def select_photos_endpoint(body: PhotoSelectRequest, request: Request):
    """Assign one property's photos to the main, kitchen and room slots."""
    candidates = build_candidates(body.photos, body.insights, _cdn_base(request))
    insights_available = any(c.has_insights for c in candidates)
    result = select_slots(candidates, slot_count=body.slot_count, insights_available=insights_available)
    return result.to_dict()


@router.post("/photos/top")
def top_photos_endpoint(body: TopPhotosRequest, request: Request):
    """Best-scoring photos, or the first photos when nothing is classified."""
    cdn_base = _cdn_base(request)
    candidates = build_candidates(body.photos, body.insights, cdn_base)
    insights_available = any(c.has_insights for c in candidates)

    if insights_available:
        photos = select_top_photos(candidates, body.count)
    else:
        photos = default_photos(body.photos, body.count, cdn_base)

    return {
        "photos": [p.to_dict() for p in photos],
        "insights_available": insights_available,
    }


@router.post("/photos/recommend")
def recommend_photos_endpoint(body: RecommendRequest, request: Request):
    """
    Recommend photos for several properties, fetching insights as needed.

    Returns 409 when a newer request superseded this one.
    """
    coordinator = request.app.state.photo_coordinator
    results = coordinator.run(body.properties)
    if results is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer request")
    return {listing_id: photos.to_dict() for listing_id, photos in results.items()}
