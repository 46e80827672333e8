"""
Configuration module for ProTracker.
"""
from .logging_config import LoggingConfig, configure_logging, reset_logging
from .settings import ProTrackerConfig, get_config, load_config, reload_config

__all__ = [
    'LoggingConfig',
    'ProTrackerConfig',
    'configure_logging',
    'get_config',
    'load_config',
    'reload_config',
    'reset_logging',
]
