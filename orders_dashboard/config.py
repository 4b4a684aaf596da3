# orders_dashboard/config.py
"""
Centralized Configuration Management

Version: 2.1.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Lazy singleton (created on first get_config() call)
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer setting {value!r}, using {default}")
        return default


@dataclass
class AnalyticsConfig:
    """Analytics dashboard configuration container"""
    api_base_url: str = "http://localhost:3000"
    request_timeout: int = 30
    cache_ttl_ms: int = 90_000
    debounce_ms: int = 300
    locale: str = "pl"
    auth_token: Optional[str] = None

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['auth_token'] = '***' if self.auth_token else None
        return data


class Config:
    """
    Centralized configuration management

    Usage:
        from orders_dashboard.config import get_config

        analytics = get_config().analytics
        ttl_ms = analytics.cache_ttl_ms
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        secrets = st.secrets.get("ANALYTICS", {})
        self._analytics = self._build_analytics(secrets.get)
        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        env_keys = {
            "API_URL": "ANALYTICS_API_URL",
            "REQUEST_TIMEOUT": "ANALYTICS_REQUEST_TIMEOUT",
            "CACHE_TTL_MS": "ANALYTICS_CACHE_TTL_MS",
            "DEBOUNCE_MS": "ANALYTICS_DEBOUNCE_MS",
            "LOCALE": "DASHBOARD_LOCALE",
            "API_TOKEN": "ANALYTICS_API_TOKEN",
        }
        self._analytics = self._build_analytics(
            lambda key, default=None: os.getenv(env_keys[key], default)
        )
        logger.info("💻 Running in LOCAL environment")

    @staticmethod
    def _build_analytics(get) -> AnalyticsConfig:
        defaults = AnalyticsConfig()
        locale = str(get("LOCALE", defaults.locale) or defaults.locale).lower()
        return AnalyticsConfig(
            api_base_url=str(get("API_URL", defaults.api_base_url)).rstrip("/"),
            request_timeout=_as_int(get("REQUEST_TIMEOUT", defaults.request_timeout), defaults.request_timeout),
            cache_ttl_ms=_as_int(get("CACHE_TTL_MS", defaults.cache_ttl_ms), defaults.cache_ttl_ms),
            debounce_ms=_as_int(get("DEBOUNCE_MS", defaults.debounce_ms), defaults.debounce_ms),
            locale=locale,
            auth_token=get("API_TOKEN") or None,
        )

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(f"✅ Analytics API: {self._analytics.api_base_url}")
        logger.info(
            f"✅ Cache TTL: {self._analytics.cache_ttl_ms}ms, "
            f"debounce: {self._analytics.debounce_ms}ms, locale: {self._analytics.locale}"
        )

    # ==================== PUBLIC GETTERS ====================

    @property
    def analytics(self) -> AnalyticsConfig:
        return self._analytics

    def get_analytics_config(self) -> Dict[str, Any]:
        """Get analytics configuration as dictionary (token masked)"""
        return self._analytics.to_dict()


# ==================== SINGLETON ACCESS ====================

def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    return Config()


def reset_config():
    """Drop the cached singleton so the next get_config() reloads it."""
    Config._instance = None


__all__ = [
    'AnalyticsConfig',
    'Config',
    'get_config',
    'reset_config',
    'is_running_on_streamlit_cloud',
]
