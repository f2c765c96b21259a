"""District analytics over a snapshot of result records. Pure functions, no shared state."""
from dataclasses import dataclass
from typing import Dict, Iterable, List

from resultwall.config import MIN_SCORE, PERFECT_SCORE
from resultwall.models.record import Record

UNKNOWN_DISTRICT = "Unknown"


@dataclass(frozen=True)
class DistrictSummary:
    district: str
    count: int
    perfect_count: int
    perfect_percentage: float


@dataclass(frozen=True)
class AnalyticsReport:
    total: int
    perfect_count: int
    districts: List[DistrictSummary]
    records: List[Record]


def district_of(record: Record) -> str:
    """District is the last comma-separated part of the school name."""
    if not record.school:
        return UNKNOWN_DISTRICT
    return record.school.split(",")[-1].strip() or UNKNOWN_DISTRICT


def _clamp(value: int) -> int:
    return max(MIN_SCORE, min(PERFECT_SCORE, value))


def filter_records(
    records: Iterable[Record],
    district: str = "",
    min_score: int = MIN_SCORE,
    max_score: int = PERFECT_SCORE,
) -> List[Record]:
    """Case-insensitive district match plus inclusive score range.

    A bound at its extreme is no filter at all, so unscored records only
    drop out once a narrower range is asked for.
    """
    needle = district.strip().lower()
    lo, hi = _clamp(min_score), _clamp(max_score)
    out = []
    for r in records:
        if needle and needle not in district_of(r).lower():
            continue
        if lo > MIN_SCORE and (r.score is None or r.score < lo):
            continue
        if hi < PERFECT_SCORE and (r.score is None or r.score > hi):
            continue
        out.append(r)
    return out


def summarize_districts(records: Iterable[Record]) -> List[DistrictSummary]:
    """Per-district counts, best perfect-score percentage first."""
    counts: Dict[str, List[int]] = {}
    for r in records:
        entry = counts.setdefault(district_of(r), [0, 0])
        entry[0] += 1
        if r.score == PERFECT_SCORE:
            entry[1] += 1
    summaries = [
        DistrictSummary(
            district=name,
            count=count,
            perfect_count=perfect,
            perfect_percentage=(perfect / count) * 100 if count else 0.0,
        )
        for name, (count, perfect) in counts.items()
    ]
    summaries.sort(key=lambda s: s.perfect_percentage, reverse=True)
    return summaries


def build_report(
    records: Iterable[Record],
    district: str = "",
    min_score: int = MIN_SCORE,
    max_score: int = PERFECT_SCORE,
) -> AnalyticsReport:
    filtered = filter_records(records, district, min_score, max_score)
    # Highest score first, unscored last
    filtered.sort(key=lambda r: r.score if r.score is not None else -1, reverse=True)
    return AnalyticsReport(
        total=len(filtered),
        perfect_count=sum(1 for r in filtered if r.score == PERFECT_SCORE),
        districts=summarize_districts(filtered),
        records=filtered,
    )


def list_districts(records: Iterable[Record], exclude_unknown: bool = True) -> List[str]:
    """Sorted district names for the filter picker."""
    names = {district_of(r) for r in records}
    if exclude_unknown:
        names.discard(UNKNOWN_DISTRICT)
    return sorted(names)
