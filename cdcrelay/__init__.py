"""
cdcrelay - filtering and resumption layer for CDC replication

Reads a committed transaction log and produces the filtered, loop-safe,
resumable sub-stream a peer replica should receive.
"""

__version__ = "1.0.0"

from .exceptions import RelayException
from .models import PeerIdentity, CommitPosition, Transaction, LogReadResult
from .services import FilteredLogReader, OperationFilter
from .utils.cancellation import CancellationToken

__all__ = [
    "RelayException",
    "PeerIdentity",
    "CommitPosition",
    "Transaction",
    "LogReadResult",
    "FilteredLogReader",
    "OperationFilter",
    "CancellationToken",
    "__version__",
]
