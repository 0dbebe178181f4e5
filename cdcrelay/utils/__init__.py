"""
Utilities for the CDC relay
"""

from .cancellation import CancellationToken
from .logger import setup_logging, get_logger
from .serialization import transaction_to_dict, transaction_from_dict

__all__ = [
    'CancellationToken',
    'setup_logging',
    'get_logger',
    'transaction_to_dict',
    'transaction_from_dict'
]
