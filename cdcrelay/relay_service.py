"""
Relay service wiring configuration, log source and filtered reader together
"""

from typing import Optional, TextIO

import structlog

from .models.config import RelayConfig
from .models.peer import PeerIdentity
from .models.transaction import CommitPosition
from .services import ConfigService, FilteredLogReader, JsonLinesLogManager, MetricsService, RuleOperationFilter
from .services.log_source import LogManager
from .utils.cancellation import CancellationToken
from .utils.serialization import dumps


class RelayService:
    """Streams the filtered transaction log of one peer session"""

    def __init__(self, config: RelayConfig, log_manager: Optional[LogManager] = None,
                 metrics_service: Optional[MetricsService] = None):
        self.logger = structlog.get_logger()
        self.config = config
        self.token = CancellationToken()
        self.peer = PeerIdentity(config.peer.guid)
        self.metrics_service = metrics_service or MetricsService()
        self.operation_filter = RuleOperationFilter.from_config(config.operation_filters)
        self.log_manager = log_manager or JsonLinesLogManager(
            follow=config.log.follow,
            poll_interval=config.log.poll_interval
        )

        self.reader = FilteredLogReader(
            log_manager=self.log_manager,
            peer=self.peer,
            table_positions=config.session.table_positions,
            table_filter=config.session.table_filter,
            operation_filter=self.operation_filter,
            log_name=config.log.name,
            log_directory=config.log.directory,
            metrics_service=self.metrics_service
        )
        self.logger.info("Relay service initialized", peer=self.peer.guid, log_name=config.log.name)

    @classmethod
    def from_file(cls, config_path: str, **kwargs) -> 'RelayService':
        """Create the service from a YAML or JSON configuration file"""
        return cls(ConfigService().load_config(config_path), **kwargs)

    @property
    def start_position(self) -> CommitPosition:
        return self.reader.start_position

    def request_shutdown(self) -> None:
        """Stop streaming after the current read"""
        self.logger.info("Shutdown requested")
        self.token.cancel()

    async def run(self, output: TextIO) -> int:
        """
        Write filtered transactions to ``output`` as JSON lines

        Returns:
            int: Number of transactions written
        """
        forwarded = 0
        try:
            async for result in self.reader.stream(self.token):
                output.write(dumps(result) + "\n")
                output.flush()
                forwarded += 1
        finally:
            self.reader.close()
            self.logger.info("Relay finished",
                             forwarded=forwarded,
                             state=self.reader.state.value,
                             pending_watermarks=sorted(self.reader.watermarks or ()))
        return forwarded
