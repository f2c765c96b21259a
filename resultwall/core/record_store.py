"""Persist and load result rows (JSON). Rows keep the results table's column names."""
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from resultwall.config import RESULTS_PATH, ensure_data_dir
from resultwall.models.record import MalformedEvent, Record, record_from_dict


@dataclass
class ResultRow:
    """Stored result: one submitted student result, active once approved."""
    id: str
    name: Optional[str]
    school: Optional[str]
    aplus: Optional[int]
    reg_no: Optional[str]
    phone_number: Optional[str]
    image_url: Optional[str]
    active: bool
    created_at: str
    updated_at: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _path() -> Path:
    ensure_data_dir()
    return RESULTS_PATH


def load_results(path: Optional[Path] = None) -> List[ResultRow]:
    """Load all result rows from disk. Missing or unreadable file means no rows."""
    p = path or _path()
    if not p.exists():
        return []
    try:
        data = json.loads(p.read_text())
    except (json.JSONDecodeError, OSError):
        return []
    out = []
    for item in data.get("results", []):
        try:
            out.append(
                ResultRow(
                    id=str(item["id"]),
                    name=item.get("name"),
                    school=item.get("school"),
                    aplus=item.get("aplus"),
                    reg_no=item.get("reg_no"),
                    phone_number=item.get("phone_number"),
                    image_url=item.get("image_url"),
                    active=bool(item.get("active", False)),
                    created_at=item["created_at"],
                    updated_at=item.get("updated_at") or item["created_at"],
                )
            )
        except (KeyError, TypeError):
            continue
    return out


def read_results_strict(path: Optional[Path] = None) -> List[ResultRow]:
    """Like load_results, but an unreadable file raises instead of reading as empty.

    The change feed needs this: an empty read would look like every record
    was deactivated.
    """
    p = path or _path()
    if not p.exists():
        return []
    data = json.loads(p.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{p} does not hold a results object")
    return load_results(p)


def save_results(rows: List[ResultRow], path: Optional[Path] = None) -> None:
    """Save all result rows to disk."""
    p = path or _path()
    data = {"results": [asdict(r) for r in rows]}
    p.write_text(json.dumps(data, indent=2))


def get_result_by_id(rows: List[ResultRow], result_id: str) -> Optional[ResultRow]:
    """Return row by id or None."""
    for r in rows:
        if r.id == result_id:
            return r
    return None


def list_recent_active(rows: List[ResultRow], limit: int) -> List[ResultRow]:
    """Active rows, most recently updated first."""
    active = [r for r in rows if r.active]
    active.sort(key=lambda r: r.updated_at, reverse=True)
    return active[:limit]


def list_pending(rows: List[ResultRow]) -> List[ResultRow]:
    """Rows awaiting approval, newest submission first."""
    pending = [r for r in rows if not r.active]
    pending.sort(key=lambda r: r.created_at, reverse=True)
    return pending


def set_active(
    rows: List[ResultRow],
    result_id: str,
    active: bool,
    path: Optional[Path] = None,
) -> Optional[ResultRow]:
    """Approve or withdraw a row; save. Returns the updated row or None."""
    for r in rows:
        if r.id == result_id:
            r.active = active
            r.updated_at = _now()
            save_results(rows, path)
            return r
    return None


def to_record(row: ResultRow) -> Optional[Record]:
    """Display value for a row, or None if the row cannot be shown (bad score)."""
    try:
        return record_from_dict(asdict(row))
    except MalformedEvent:
        return None
