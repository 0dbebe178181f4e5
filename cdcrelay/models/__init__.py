"""
Data models for the CDC relay
"""

from .config import (
    PeerConfig,
    LogConfig,
    SessionConfig,
    OperationRuleConfig,
    LoggingConfig,
    RelayConfig
)
from .peer import PeerIdentity
from .transaction import (
    OperationType,
    CommitPosition,
    ColumnUpdate,
    CreateRecord,
    UpdateRecord,
    DeleteRecord,
    Transaction,
    LogReadResult
)
from .watermarks import (
    normalize_watermarks,
    normalize_table_filter,
    consume_watermark
)

__all__ = [
    'PeerConfig',
    'LogConfig',
    'SessionConfig',
    'OperationRuleConfig',
    'LoggingConfig',
    'RelayConfig',
    'PeerIdentity',
    'OperationType',
    'CommitPosition',
    'ColumnUpdate',
    'CreateRecord',
    'UpdateRecord',
    'DeleteRecord',
    'Transaction',
    'LogReadResult',
    'normalize_watermarks',
    'normalize_table_filter',
    'consume_watermark'
]
