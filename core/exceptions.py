"""
Custom exceptions for Diagnostics Explorer.

This module defines application-specific exceptions that provide
clear error messages and context for the failures the explorer
engine surfaces to the presentation layer.
"""

from typing import Optional, Any


class ExplorerError(Exception):
    """Base exception for all Diagnostics Explorer errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(ExplorerError):
    """Raised when there are issues with configuration loading or validation."""

    def __init__(self, message: str, config_file: Optional[str] = None, field: Optional[str] = None):
        context = {}
        if config_file:
            context['config_file'] = config_file
        if field:
            context['field'] = field
        super().__init__(message, context)


class TransportError(ExplorerError):
    """
    Raised when a remote fetch fails.

    Covers network errors, non-success HTTP statuses and payloads that
    cannot be read as a record collection. A successful empty collection
    is never reported through this exception.
    """

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        status_code: Optional[int] = None,
        url: Optional[str] = None
    ):
        context = {}
        if resource:
            context['resource'] = resource
        if status_code is not None:
            context['status_code'] = status_code
        if url:
            context['url'] = url
        super().__init__(message, context)
        self.resource = resource
        self.status_code = status_code
        self.url = url


class ValidationError(ExplorerError):
    """Raised when an engine input is invalid."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        context = {}
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = str(value)
        super().__init__(message, context)


class FetchCancelledError(ExplorerError):
    """Raised by the data source when the caller cancelled the fetch."""

    def __init__(self, message: str, resource: Optional[str] = None):
        context = {}
        if resource:
            context['resource'] = resource
        super().__init__(message, context)
        self.resource = resource
