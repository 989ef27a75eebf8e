"""
Consolidated utilities module.
This module re-exports commonly used utilities from specialized modules.
"""

# Logging utilities
from .logging_utils import setup_logging, get_logger

# Configuration management
from .config import config, ServiceConfig

# HTTP client utilities
from .http_client import AsyncHTTPClient

# File utilities
from .file_utils import atomic_write_text, ensure_directory, sanitize_filename

__all__ = [
    "setup_logging",
    "get_logger",
    "config",
    "ServiceConfig",
    "AsyncHTTPClient",
    "atomic_write_text",
    "ensure_directory",
    "sanitize_filename",
]
