"""District analytics over all stored results."""
from fastapi import APIRouter, Depends, Query

from resultwall.api.routes.gallery import record_to_dict
from resultwall.api.state import AppState, get_state
from resultwall.config import MIN_SCORE, PERFECT_SCORE
from resultwall.core.analytics import build_report, district_of, list_districts

router = APIRouter()


@router.get("")
def get_analytics(
    district: str = "",
    min_score: int = Query(MIN_SCORE, ge=MIN_SCORE, le=PERFECT_SCORE),
    max_score: int = Query(PERFECT_SCORE, ge=MIN_SCORE, le=PERFECT_SCORE),
    state: AppState = Depends(get_state),
):
    """Filtered totals, perfect-score count and per-district summaries."""
    report = build_report(state.get_records(), district, min_score, max_score)
    return {
        "total": report.total,
        "perfect_count": report.perfect_count,
        "districts": [
            {
                "district": s.district,
                "count": s.count,
                "perfect_count": s.perfect_count,
                "perfect_percentage": round(s.perfect_percentage, 2),
            }
            for s in report.districts
        ],
        "results": [
            {**record_to_dict(r), "district": district_of(r)} for r in report.records
        ],
    }


@router.get("/districts")
def get_districts(state: AppState = Depends(get_state)):
    return list_districts(state.get_records())
