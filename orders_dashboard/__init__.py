# orders_dashboard/__init__.py
"""
Orders Analytics Dashboard

This package contains:
- config: Configuration management (local .env + Streamlit Cloud secrets)
- analytics: Dashboard synchronization engine (filters, caches, route sync,
  refresh coordination, view models)

Usage:
    from orders_dashboard import get_config, configure_logging
    from orders_dashboard.analytics import DashboardStore, InMemoryQueryParams
"""

import logging

from .config import (
    AnalyticsConfig,
    Config,
    get_config,
    reset_config,
)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int = logging.INFO):
    """Root logging setup for scripts and the Streamlit entry point."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


__all__ = [
    'AnalyticsConfig',
    'Config',
    'get_config',
    'reset_config',
    'configure_logging',
]

__version__ = '1.4.0'
