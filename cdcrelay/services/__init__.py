"""
Services for the CDC relay
"""

from .config_service import ConfigService
from .filter_service import FilterService
from .filtered_reader import FilteredLogReader, ReaderState
from .log_source import (
    LogManager,
    LogReader,
    MemoryLogManager,
    MemoryLogReader,
    JsonLinesLogManager,
    JsonLinesLogReader
)
from .loop_detector import LoopDetector
from .metrics_service import MetricsService
from .operation_filter import (
    OperationFilter,
    NullOperationFilter,
    CompositeOperationFilter,
    OperationRule,
    RuleOperationFilter
)
from .position_resolver import StartPosition, resolve_start_position
from .record_filter import RecordFilter, FilterOutcome, SuppressReason, DropReason

__all__ = [
    'ConfigService',
    'FilterService',
    'FilteredLogReader',
    'ReaderState',
    'LogManager',
    'LogReader',
    'MemoryLogManager',
    'MemoryLogReader',
    'JsonLinesLogManager',
    'JsonLinesLogReader',
    'LoopDetector',
    'MetricsService',
    'OperationFilter',
    'NullOperationFilter',
    'CompositeOperationFilter',
    'OperationRule',
    'RuleOperationFilter',
    'StartPosition',
    'resolve_start_position',
    'RecordFilter',
    'FilterOutcome',
    'SuppressReason',
    'DropReason'
]
