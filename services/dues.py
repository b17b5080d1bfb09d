"""Fee due report: filter options and filtering over the all-students due listing."""
from typing import List, Optional


def _distinct(values) -> List[str]:
    seen = []
    for v in values:
        if isinstance(v, str) and v and v not in seen:
            seen.append(v)
    return seen


def due_filter_options(rows: List[dict]) -> dict:
    return {
        "classes": _distinct(r.get("class") for r in rows),
        "routes": _distinct(r.get("route") for r in rows),
        "vehicles": _distinct(r.get("vehicle") for r in rows),
        "slabs": _distinct(s.get("slab") for r in rows for s in r.get("slabs") or []),
    }


def filter_due_details(rows: List[dict], class_name: Optional[str] = None, route: Optional[str] = None,
                       vehicle: Optional[str] = None, slab: Optional[str] = None,
                       admission_no: Optional[str] = None) -> List[dict]:
    """
    Narrow each row's slabs to ``slab`` (when given), then keep the rows that
    match every given filter and still have a slab left.
    """
    result = []
    for row in rows:
        slabs = [s for s in row.get("slabs") or [] if not slab or s.get("slab") == slab]
        if class_name and row.get("class") != class_name:
            continue
        if route and row.get("route") != route:
            continue
        if vehicle and row.get("vehicle") != vehicle:
            continue
        if admission_no and admission_no not in (row.get("admissionNo") or ""):
            continue
        if not slabs:
            continue
        result.append({**row, "slabs": slabs})
    return result


def outstanding_total(rows: List[dict]) -> float:
    return sum(
        s.get("finalPayable") or 0
        for r in rows
        for s in r.get("slabs") or []
        if s.get("status") == "Due"
    )
