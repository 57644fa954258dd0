"""
Configuration management for Diagnostics Explorer.

This module provides a split configuration system that separates concerns
into focused configuration classes: the remote data source, the explorer
engine constants and logging.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List

import toml

from .exceptions import ConfigurationError


BASE_URL_ENV_VAR = 'DIAGNOSTICS_API_BASE_URL'


@dataclass
class DataSourceConfig:
    """Configuration for the remote data source."""

    base_url: str = 'https://edos-analytics-api.shibi-kannan.workers.dev'
    timeout_seconds: float = 10.0

    def validate(self) -> List[str]:
        """Validate the data source configuration and return any errors."""
        errors = []

        if not self.base_url:
            errors.append("base_url cannot be empty")
        elif not self.base_url.startswith(('http://', 'https://')):
            errors.append("base_url must start with http:// or https://")

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        return errors


@dataclass
class ExplorerConfig:
    """Configuration for filtering, aggregation, comparison and pagination."""

    page_size: int = 15
    histogram_bucket_width: int = 500
    group_stats_limit: int = 15
    top_values_limit: int = 10
    comparison_limit: int = 10
    typeahead_limit: int = 8
    debounce_seconds: float = 0.3
    default_city_id: str = 'GRL0001'

    def validate(self) -> List[str]:
        """Validate the explorer configuration and return any errors."""
        errors = []

        for name in ('page_size', 'histogram_bucket_width', 'group_stats_limit',
                     'top_values_limit', 'comparison_limit', 'typeahead_limit'):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be positive")

        if self.debounce_seconds < 0:
            errors.append("debounce_seconds cannot be negative")

        return errors


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = 'INFO'
    log_file: str = ''

    def validate(self) -> List[str]:
        """Validate the logging configuration and return any errors."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.level.upper() not in valid_levels:
            return [f"level must be one of {valid_levels}"]
        return []


@dataclass
class Config:
    """Main configuration class that combines all configuration sections."""

    config_file_path: str = "config.toml"

    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    explorer: ExplorerConfig = field(default_factory=ExplorerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Load configuration when an instance is created."""
        self.load_config()

    def save_config(self) -> None:
        """Save current configuration to TOML file."""
        config_data = {
            'data_source': {
                'base_url': self.data_source.base_url,
                'timeout_seconds': self.data_source.timeout_seconds,
            },
            'explorer': {
                'page_size': self.explorer.page_size,
                'histogram_bucket_width': self.explorer.histogram_bucket_width,
                'group_stats_limit': self.explorer.group_stats_limit,
                'top_values_limit': self.explorer.top_values_limit,
                'comparison_limit': self.explorer.comparison_limit,
                'typeahead_limit': self.explorer.typeahead_limit,
                'debounce_seconds': self.explorer.debounce_seconds,
                'default_city_id': self.explorer.default_city_id,
            },
            'logging': {
                'level': self.logging.level,
                'log_file': self.logging.log_file,
            }
        }

        try:
            with open(self.config_file_path, 'w') as f:
                toml.dump(config_data, f)
            logging.info(f"Configuration saved to {self.config_file_path}")
        except OSError as e:
            error_msg = f"Error saving configuration: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

    def load_config(self) -> None:
        """Load configuration from TOML file, then apply environment overrides."""
        try:
            with open(self.config_file_path) as f:
                config_data = toml.load(f)

            if 'data_source' in config_data:
                source_config = config_data['data_source']
                self.data_source.base_url = source_config.get('base_url', self.data_source.base_url)
                self.data_source.timeout_seconds = float(
                    source_config.get('timeout_seconds', self.data_source.timeout_seconds)
                )

            if 'explorer' in config_data:
                explorer_config = config_data['explorer']
                for name in ('page_size', 'histogram_bucket_width', 'group_stats_limit',
                             'top_values_limit', 'comparison_limit', 'typeahead_limit'):
                    setattr(self.explorer, name, int(explorer_config.get(name, getattr(self.explorer, name))))
                self.explorer.debounce_seconds = float(
                    explorer_config.get('debounce_seconds', self.explorer.debounce_seconds)
                )
                self.explorer.default_city_id = explorer_config.get(
                    'default_city_id', self.explorer.default_city_id
                )

            if 'logging' in config_data:
                logging_config = config_data['logging']
                self.logging.level = logging_config.get('level', self.logging.level)
                self.logging.log_file = logging_config.get('log_file', self.logging.log_file)

            logging.info(f"Configuration loaded from {self.config_file_path}")

        except FileNotFoundError:
            logging.info(f"{self.config_file_path} not found. Using default values.")
        except toml.TomlDecodeError as e:
            error_msg = f"Error decoding {self.config_file_path}: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)
        except (TypeError, ValueError) as e:
            error_msg = f"Error loading configuration: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

        env_base_url = os.getenv(BASE_URL_ENV_VAR)
        if env_base_url:
            self.data_source.base_url = env_base_url
            logging.info(f"Base URL overridden from {BASE_URL_ENV_VAR}")

    def validate(self) -> List[str]:
        """Validate all configuration sections and return any errors."""
        errors = []
        errors.extend(self.data_source.validate())
        errors.extend(self.explorer.validate())
        errors.extend(self.logging.validate())
        return errors
