"""
Record filtering for the CDC relay
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple

import structlog

from ..constants import INTERNAL_TABLE_PREFIX
from ..models.peer import PeerIdentity
from ..models.transaction import LogReadResult, OperationType, Transaction
from ..models.watermarks import Watermarks, consume_watermark
from .loop_detector import LoopDetector
from .operation_filter import OperationFilter, NullOperationFilter


class SuppressReason(Enum):
    """Why a whole transaction was not forwarded"""
    LOOP = "loop"
    EMPTY = "empty"


class DropReason(Enum):
    """Why a single record was removed from a transaction"""
    INTERNAL = "internal"
    NOT_IN_FILTER = "not_in_filter"
    ALREADY_SEEN = "already_seen"
    OPERATION_FILTER = "operation_filter"


@dataclass
class FilterOutcome:
    """Filtered transaction, or the reason it was suppressed"""
    result: Optional[LogReadResult]
    reason: Optional[SuppressReason] = None
    dropped: List[Tuple[OperationType, DropReason]] = field(default_factory=list)

    @property
    def suppressed(self) -> bool:
        return self.result is None


class RecordFilter:
    """Removes records the peer must not receive.

    Per record: internal bookkeeping tables are dropped, then tables outside
    the allow-set, then records at or below the table's watermark, and finally
    whatever the operation filter vetoes. A table's watermark is consumed the
    first time one of its records is kept, after which the table is no longer
    position checked.
    """

    def __init__(self, peer: PeerIdentity,
                 table_filter: Optional[FrozenSet[str]] = None,
                 watermarks: Optional[Watermarks] = None,
                 operation_filter: Optional[OperationFilter] = None,
                 loop_detector: Optional[LoopDetector] = None):
        self.logger = structlog.get_logger()
        self.peer = peer
        self.table_filter = table_filter
        self.watermarks = dict(watermarks) if watermarks else None
        self.operation_filter = operation_filter or NullOperationFilter()
        self.loop_detector = loop_detector or LoopDetector(peer)

    def filter(self, result: LogReadResult) -> FilterOutcome:
        """
        Filter one transaction read from the log

        The input is left untouched; kept records are copied into a new
        transaction.

        Returns:
            FilterOutcome with the filtered result, or None and the suppress reason
        """
        transaction = result.transaction
        commit_id = result.commit_id

        if self.loop_detector.transaction_loops(transaction):
            return FilterOutcome(result=None, reason=SuppressReason.LOOP)

        dropped: List[Tuple[OperationType, DropReason]] = []
        watermarks = self.watermarks
        creates, watermarks = self._filter_records(transaction.creates, commit_id, watermarks, dropped)
        updates, watermarks = self._filter_records(transaction.updates, commit_id, watermarks, dropped)
        deletes, watermarks = self._filter_records(transaction.deletes, commit_id, watermarks, dropped)
        self.watermarks = watermarks

        filtered = Transaction(creates=creates, updates=updates, deletes=deletes)
        if filtered.is_empty():
            return FilterOutcome(result=None, reason=SuppressReason.EMPTY, dropped=dropped)
        return FilterOutcome(result=LogReadResult(transaction=filtered, position=result.position),
                             dropped=dropped)

    def _filter_records(self, records: Sequence, commit_id: int, watermarks: Optional[Watermarks],
                        dropped: List[Tuple[OperationType, DropReason]]) -> Tuple[list, Optional[Watermarks]]:
        kept = []
        for record in records:
            reason, watermarks = self._drop_reason(record, commit_id, watermarks)
            if reason is None:
                kept.append(record)
            else:
                dropped.append((record.operation, reason))
        return kept, watermarks

    def _drop_reason(self, record, commit_id: int,
                     watermarks: Optional[Watermarks]) -> Tuple[Optional[DropReason], Optional[Watermarks]]:
        table = record.table
        if table.startswith(INTERNAL_TABLE_PREFIX):
            return DropReason.INTERNAL, watermarks
        if self.table_filter is not None and table not in self.table_filter:
            return DropReason.NOT_IN_FILTER, watermarks

        if watermarks is not None and table in watermarks:
            if commit_id <= watermarks[table]:
                # peer has already seen this table up to here
                return DropReason.ALREADY_SEEN, watermarks
            watermarks = consume_watermark(watermarks, table)
            self.logger.debug("Table caught up with peer watermark",
                              table=table,
                              commit_id=commit_id,
                              remaining_watermarks=len(watermarks or ()))

        if self.operation_filter.filter_record(self.peer.guid, record):
            return DropReason.OPERATION_FILTER, watermarks
        return None, watermarks
