"""
Custom exceptions for the CDC relay
"""


class RelayException(Exception):
    """Base exception for relay operations"""
    pass


class ConfigurationError(RelayException):
    """Configuration related errors"""
    pass


class ValidationError(RelayException):
    """Log entry and position validation errors"""
    pass


class FilterError(RelayException):
    """Operation filter errors"""
    pass


class LogSourceError(RelayException):
    """Transaction log read errors"""
    pass
