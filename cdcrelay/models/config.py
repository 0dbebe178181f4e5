"""
Configuration models for the CDC relay
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List

from ..exceptions import ConfigurationError
from .transaction import OperationType


@dataclass
class PeerConfig:
    """Destination peer configuration"""
    guid: str

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not self.guid:
            raise ConfigurationError("Peer guid is required")


@dataclass
class LogConfig:
    """Transaction log location and read behaviour"""
    name: str
    directory: str = "."
    follow: bool = False
    poll_interval: float = 0.5

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not self.name:
            raise ConfigurationError("Log name is required")
        if self.poll_interval <= 0:
            raise ConfigurationError("Poll interval must be positive")


@dataclass
class SessionConfig:
    """Positions and table filter negotiated with the peer"""
    table_positions: Optional[Dict[str, int]] = None
    table_filter: Optional[List[str]] = None

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.table_positions is not None and not isinstance(self.table_positions, dict):
            raise ConfigurationError("Table positions must be a dictionary")
        if isinstance(self.table_filter, str):
            raise ConfigurationError("Table filter must be a list of table names")
        if self.table_filter is not None and not isinstance(self.table_filter, (list, tuple, set)):
            raise ConfigurationError("Table filter must be a list of table names")


@dataclass
class OperationRuleConfig:
    """Per table operation filter configuration"""
    operations: Optional[List[str]] = None
    where: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.operations is not None:
            known = {operation.value for operation in OperationType}
            unknown = [op for op in self.operations if op not in known]
            if unknown:
                raise ConfigurationError(f"Unknown operations: {', '.join(map(str, unknown))}")
        if self.where is not None and not isinstance(self.where, dict):
            raise ConfigurationError("Where condition must be a dictionary")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "json"

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.format not in ("json", "console"):
            raise ConfigurationError(f"Unsupported log format: {self.format}")


@dataclass
class RelayConfig:
    """Main relay configuration"""
    peer: PeerConfig
    log: LogConfig
    session: SessionConfig = field(default_factory=SessionConfig)
    operation_filters: Dict[str, OperationRuleConfig] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'RelayConfig':
        """Create RelayConfig from dictionary"""
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a dictionary")
        try:
            peer_data = config_dict['peer']
            log_data = config_dict['log']
            if not isinstance(peer_data, dict):
                raise ConfigurationError("Peer must be a dictionary")
            if not isinstance(log_data, dict):
                raise ConfigurationError("Log must be a dictionary")

            operation_filters = {}
            filters_data = config_dict.get('operation_filters') or {}
            if not isinstance(filters_data, dict):
                raise ConfigurationError("Operation filters must be a dictionary")
            for table_name, rule_config in filters_data.items():
                operation_filters[table_name] = OperationRuleConfig(**(rule_config or {}))

            return cls(
                peer=PeerConfig(**peer_data),
                log=LogConfig(**log_data),
                session=SessionConfig(**(config_dict.get('session') or {})),
                operation_filters=operation_filters,
                logging=LoggingConfig(**(config_dict.get('logging') or {}))
            )
        except KeyError as e:
            raise ConfigurationError(f"Missing required configuration key: {e}")
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration format: {e}")
