"""
Core infrastructure module for Diagnostics Explorer.

This module provides the foundational components including configuration management,
the remote data source, logging setup, and custom exceptions.
"""

from .config import DataSourceConfig, ExplorerConfig, LoggingConfig, Config
from .data_source import CancellationToken, RemoteDataSource, get_data_source, reset_data_source
from .exceptions import (
    ExplorerError,
    ConfigurationError,
    TransportError,
    ValidationError,
    FetchCancelledError
)
from .logging_config import configure_logging, setup_logging

__all__ = [
    # Configuration
    'DataSourceConfig',
    'ExplorerConfig',
    'LoggingConfig',
    'Config',

    # Data source
    'CancellationToken',
    'RemoteDataSource',
    'get_data_source',
    'reset_data_source',

    # Exceptions
    'ExplorerError',
    'ConfigurationError',
    'TransportError',
    'ValidationError',
    'FetchCancelledError',

    # Logging
    'configure_logging',
    'setup_logging',
]

# Version info
__version__ = "1.0.0"
