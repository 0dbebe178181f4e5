"""
Filtered transaction log reader for the CDC relay
"""

from enum import Enum
from typing import AsyncIterator, Iterable, Mapping, Optional

import structlog

from ..models.peer import PeerIdentity
from ..models.transaction import LogReadResult, make_position
from ..models.watermarks import normalize_watermarks, normalize_table_filter
from ..utils.cancellation import CancellationToken, ensure_token
from .log_source import LogManager, LogReader
from .metrics_service import MetricsService
from .operation_filter import OperationFilter
from .position_resolver import resolve_start_position
from .record_filter import FilterOutcome, RecordFilter


class ReaderState(Enum):
    """Lifecycle of a FilteredLogReader"""
    CONSTRUCTING = "constructing"
    RESOLVING = "resolving"
    STREAMING = "streaming"
    CANCELLED = "cancelled"
    TERMINATED = "terminated"


class FilteredLogReader:
    """Reads the transaction log for one peer and hands out what it may receive.

    The log is opened after the position the peer is known to have seen,
    derived from ``table_positions`` (table name or peer scoped table id to
    commit id, the empty key being the database wide position). Every
    transaction is then stripped of internal tables, tables outside
    ``table_filter``, tables the peer already has and operations vetoed by
    ``operation_filter``. Transactions that echo the peer's own changes, or
    that end up empty, are skipped.

    One reader serves one session and is not safe for concurrent use.
    """

    def __init__(self, log_manager: LogManager, peer: PeerIdentity,
                 table_positions: Optional[Mapping[str, int]] = None,
                 table_filter: Optional[Iterable[str]] = None,
                 operation_filter: Optional[OperationFilter] = None,
                 log_name: str = "",
                 log_directory: str = ".",
                 metrics_service: Optional[MetricsService] = None):
        self.logger = structlog.get_logger()
        self.state = ReaderState.CONSTRUCTING
        self.peer = peer
        self.metrics_service = metrics_service
        self.error: Optional[BaseException] = None

        watermarks = normalize_watermarks(table_positions, peer)
        self.table_filter = normalize_table_filter(table_filter, peer)

        self.state = ReaderState.RESOLVING
        start = resolve_start_position(watermarks, self.table_filter)
        self.start_position = make_position(start.commit_id)
        self.record_filter = RecordFilter(
            peer=peer,
            table_filter=self.table_filter,
            watermarks=start.watermarks,
            operation_filter=operation_filter
        )

        self._reader: LogReader = log_manager.open_log(log_name, log_directory, self.start_position)
        if self.metrics_service:
            self.metrics_service.record_start_position(self.start_position.commit_id)

        self.state = ReaderState.STREAMING
        self.logger.info("Filtered log reader opened",
                         peer=peer.guid,
                         log_name=log_name,
                         start_commit_id=self.start_position.commit_id,
                         table_filter=sorted(self.table_filter) if self.table_filter is not None else None)

    @property
    def watermarks(self):
        """Per-table watermarks not yet caught up with"""
        return self.record_filter.watermarks

    async def pull_next(self, token: Optional[CancellationToken] = None) -> Optional[LogReadResult]:
        """
        Next transaction the peer should receive

        Args:
            token: Cancellation token, checked before every read and passed to the log source

        Returns:
            Filtered result, or None once the log is exhausted or the token is cancelled

        Raises:
            Whatever the log source raises; the reader is terminated afterwards
        """
        if self.state is not ReaderState.STREAMING:
            return None
        token = ensure_token(token)

        while not token.is_cancellation_requested:
            try:
                result = await self._reader.read(token)
                if result is None or token.is_cancellation_requested:
                    break
                outcome = self.record_filter.filter(result)
            except Exception as e:
                self.state = ReaderState.TERMINATED
                self.error = e
                self.logger.error("Filtered log read failed", peer=self.peer.guid, error=str(e))
                raise

            self._record_metrics(result, outcome)
            if outcome.suppressed:
                self.logger.debug("Transaction suppressed",
                                  commit_id=result.commit_id,
                                  reason=outcome.reason.value,
                                  tables=result.transaction.tables())
                continue
            self.logger.debug("Transaction forwarded",
                              commit_id=result.commit_id,
                              records=outcome.result.transaction.record_count())
            return outcome.result

        if token.is_cancellation_requested:
            self.state = ReaderState.CANCELLED
            self.logger.info("Filtered log read cancelled", peer=self.peer.guid)
        else:
            self.state = ReaderState.TERMINATED
            self.logger.info("End of transaction log reached", peer=self.peer.guid)
        return None

    async def stream(self, token: Optional[CancellationToken] = None) -> AsyncIterator[LogReadResult]:
        """Yield filtered transactions until the log ends or the token is cancelled"""
        token = ensure_token(token)
        while True:
            result = await self.pull_next(token)
            if result is None:
                return
            yield result

    def _record_metrics(self, result: LogReadResult, outcome: FilterOutcome) -> None:
        if not self.metrics_service:
            return
        self.metrics_service.record_read(result.commit_id)
        for operation, reason in outcome.dropped:
            self.metrics_service.record_dropped(operation.value, reason.value)
        if outcome.suppressed:
            self.metrics_service.record_suppressed(outcome.reason.value)
        else:
            self.metrics_service.record_forwarded()

    def close(self) -> None:
        """Close the underlying log reader"""
        self._reader.close()
        if self.state is ReaderState.STREAMING:
            self.state = ReaderState.TERMINATED

    async def __aenter__(self) -> 'FilteredLogReader':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
