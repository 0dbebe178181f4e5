"""
Watermark map and table allow-set helpers

The live watermark map is a plain ``Dict[str, int]`` keyed by table name with
the peer prefix stripped, or ``None`` once nothing is left in it. All helpers
return new objects; callers' collections are never mutated.
"""

from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from ..exceptions import ValidationError
from .peer import PeerIdentity

Watermarks = Dict[str, int]


def _to_watermark(table: str, value) -> int:
    commit_id = getattr(value, "commit_id", value)
    if isinstance(commit_id, bool) or not isinstance(commit_id, int):
        raise ValidationError(f"Watermark for table '{table}' must be an integer, got: {value!r}")
    if commit_id < 0:
        raise ValidationError(f"Watermark for table '{table}' must not be negative, got: {commit_id}")
    return commit_id


def normalize_watermarks(raw: Optional[Mapping[str, int]], peer: PeerIdentity) -> Optional[Watermarks]:
    """
    Copy a watermark map with the peer prefix stripped from every key

    Args:
        raw: Table name or id to last acknowledged commit id (ints or CommitPosition)
        peer: Peer whose table id prefix is stripped

    Returns:
        New map, or None when ``raw`` is missing or empty

    Raises:
        ValidationError: If a watermark is not a non-negative integer
    """
    if not raw:
        return None

    watermarks: Watermarks = {}
    for key, value in raw.items():
        table = peer.strip_prefix(key)
        commit_id = _to_watermark(table, value)
        # "Orders" and "<guid>/Orders" name the same table; the lower one is safe
        if table in watermarks:
            commit_id = min(commit_id, watermarks[table])
        watermarks[table] = commit_id
    return watermarks


def normalize_table_filter(raw: Optional[Iterable[str]], peer: PeerIdentity) -> Optional[FrozenSet[str]]:
    """
    Copy a table allow-set with the peer prefix stripped from every member

    Names that are empty after stripping are dropped. ``None`` stays ``None``
    (replicate everything).
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    return frozenset(
        table for table in (peer.strip_prefix(name) for name in raw if name) if table
    )


def consume_watermark(watermarks: Optional[Watermarks], table: str) -> Optional[Watermarks]:
    """Map without ``table``; None when nothing is left"""
    if not watermarks or table not in watermarks:
        return watermarks or None
    remaining = {name: commit_id for name, commit_id in watermarks.items() if name != table}
    return remaining or None
