from typing import Dict, Any, List

_SEVERITY_ALIASES = {
    "critical": ("CRITICAL", "HIGH"),
    "moderate": ("MODERATE", "MEDIUM"),
    "recommended": ("RECOMMENDED", "LOW"),
}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def recommendation_items(data: Dict[str, Any]) -> List[Any]:
    """Flat list of recommendations, whichever shape the API returned"""
    flat = _as_list(data.get("recommendations") or data.get("data"))
    if flat:
        return flat

    items: List[Any] = []
    for bucket in _SEVERITY_ALIASES:
        items.extend(_as_list(data.get(bucket.upper()) or data.get(bucket)))
    return items


def count_recommendations(data: Dict[str, Any]) -> Dict[str, int]:
    """Count recommendations by severity.

    Grouped ``CRITICAL``/``MODERATE``/``RECOMMENDED`` lists win; a flat list is
    classified by each item's ``priority`` or ``severity`` only when every
    group is empty.
    """
    counts = {
        bucket: len(_as_list(data.get(bucket.upper()) or data.get(bucket)))
        for bucket in _SEVERITY_ALIASES
    }
    if any(counts.values()):
        return counts

    for item in _as_list(data.get("recommendations") or data.get("data")):
        if not isinstance(item, dict):
            continue
        severity = str(item.get("priority") or item.get("severity") or "").upper()
        for bucket, aliases in _SEVERITY_ALIASES.items():
            if severity in aliases:
                counts[bucket] += 1
                break
    return counts
