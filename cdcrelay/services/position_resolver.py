"""
Start position resolution for the CDC relay
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

import structlog

from ..constants import DATABASE_WATERMARK_KEY
from ..models.watermarks import Watermarks

logger = structlog.get_logger()


@dataclass(frozen=True)
class StartPosition:
    """Where to open the log, plus the per-table watermarks still in effect"""
    commit_id: int
    watermarks: Optional[Watermarks] = None


def resolve_start_position(watermarks: Optional[Watermarks],
                           table_filter: Optional[FrozenSet[str]]) -> StartPosition:
    """
    Pick the commit id the log should be read from

    The database wide watermark (empty key) is the coarse fallback. The lowest
    per-table watermark is only trusted when an allow-set exists and every
    table in it has a watermark, and even then only if the database watermark
    is not already further ahead.

    Args:
        watermarks: Normalized watermark map or None
        table_filter: Normalized allow-set or None for all tables

    Returns:
        StartPosition with the remaining per-table watermarks (database entry removed)
    """
    database_commit_id = 0
    min_table_commit_id = None
    remaining = None

    if watermarks:
        database_commit_id = watermarks.get(DATABASE_WATERMARK_KEY, 0)
        remaining = {
            table: commit_id for table, commit_id in watermarks.items()
            if table != DATABASE_WATERMARK_KEY
        } or None
        if remaining:
            min_table_commit_id = min(remaining.values())

    if table_filter is None or remaining is None:
        return _resolved(database_commit_id, remaining, "database watermark")

    missing = sorted(table for table in table_filter if table not in remaining)
    if missing:
        logger.debug("Table filter names tables without watermark", tables=missing)
        return _resolved(database_commit_id, remaining, "unknown table in filter")

    if min_table_commit_id < database_commit_id:
        return _resolved(database_commit_id, remaining, "database watermark ahead of tables")

    return _resolved(min_table_commit_id, remaining, "lowest table watermark")


def _resolved(commit_id: int, remaining: Optional[Watermarks], reason: str) -> StartPosition:
    logger.info("Resolved log start position",
                commit_id=commit_id,
                reason=reason,
                table_watermarks=len(remaining or ()))
    return StartPosition(commit_id=commit_id, watermarks=remaining)
