"""
Metrics service for Prometheus monitoring of the relay pull loop
"""

from typing import Optional
from prometheus_client import Counter, Gauge, CollectorRegistry, generate_latest
import structlog


class MetricsService:
    """Service for managing Prometheus metrics"""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = structlog.get_logger()
        self.registry = registry or CollectorRegistry()
        self._init_metrics()
        self.logger.debug("Metrics service initialized")

    def _init_metrics(self) -> None:
        """Initialize all Prometheus metrics"""

        # === READ METRICS ===
        self.transactions_read_total = Counter(
            'cdcrelay_transactions_read_total',
            'Total number of transactions read from the log',
            registry=self.registry
        )

        self.transactions_forwarded_total = Counter(
            'cdcrelay_transactions_forwarded_total',
            'Total number of filtered transactions handed to the caller',
            registry=self.registry
        )

        self.transactions_suppressed_total = Counter(
            'cdcrelay_transactions_suppressed_total',
            'Total number of transactions suppressed in their entirety',
            ['reason'],
            registry=self.registry
        )

        self.records_dropped_total = Counter(
            'cdcrelay_records_dropped_total',
            'Total number of records removed from transactions',
            ['operation', 'reason'],
            registry=self.registry
        )

        # === POSITION METRICS ===
        self.start_commit_id = Gauge(
            'cdcrelay_start_commit_id',
            'Commit id the log was opened at',
            registry=self.registry
        )

        self.last_commit_id = Gauge(
            'cdcrelay_last_commit_id',
            'Commit id of the last transaction read',
            registry=self.registry
        )

    def record_start_position(self, commit_id: int) -> None:
        self.start_commit_id.set(commit_id)

    def record_read(self, commit_id: int) -> None:
        self.transactions_read_total.inc()
        self.last_commit_id.set(commit_id)

    def record_forwarded(self) -> None:
        self.transactions_forwarded_total.inc()

    def record_suppressed(self, reason: str) -> None:
        self.transactions_suppressed_total.labels(reason=reason).inc()

    def record_dropped(self, operation: str, reason: str, count: int = 1) -> None:
        self.records_dropped_total.labels(operation=operation, reason=reason).inc(count)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format"""
        return generate_latest(self.registry).decode('utf-8')
