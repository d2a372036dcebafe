from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional


def merge_first_writer_wins(
    target: Dict[str, Any],
    data: Mapping[str, Any],
    allowed: Optional[Iterable[str]] = None,
) -> List[str]:
    """Fill fields of ``target`` that are still empty; never overwrite.

    Returns the keys this call populated. ``None`` values in ``data`` are
    treated as "no data" and skipped.
    """

    allowed_set = set(allowed) if allowed is not None else None
    filled: List[str] = []
    for key, value in data.items():
        if value is None:
            continue
        if allowed_set is not None and key not in allowed_set:
            continue
        if target.get(key) is not None:
            continue
        target[key] = value
        filled.append(key)
    return filled
