# =============================================================================
# fintrack_core/config.py
# Store configuration loaded once at startup
# =============================================================================
"""
StoreConfig - the explicit configuration object handed to ``build_backend``.

Values come from Streamlit secrets when present:

    # .streamlit/secrets.toml
    [fintrack]
    script_url = "https://script.google.com/macros/s/<deployment>/exec"
    app_origin = "https://dashboard.example.com"

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

and otherwise from environment variables (``FINTRACK_SCRIPT_URL``,
``SUPABASE_URL``, ``SUPABASE_KEY``, ``FINTRACK_CACHE_PATH``, ...).
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fintrack_core.errors import ConfigurationError
from fintrack_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_PATH = Path(__file__).parent.parent / "local_data" / "fintrack_cache.db"

# Values shipped in templates that must not be mistaken for real settings
PLACEHOLDER_MARKERS = ("MASUKKAN", "your-project", "your-anon-key", "<deployment>", "CHANGE_ME")

MODE_SCRIPT = "script"
MODE_SUPABASE = "supabase"
MODE_DEMO = "demo"


def is_placeholder(value: Optional[str]) -> bool:
    """True for empty values and template placeholders."""
    if value is None:
        return True
    text = str(value).strip()
    if not text:
        return True
    return any(marker in text for marker in PLACEHOLDER_MARKERS)


@dataclass
class StoreConfig:
    """Which stores exist and how to reach them."""
    script_url: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    cache_path: Path = field(default_factory=lambda: DEFAULT_CACHE_PATH)
    request_timeout: float = 15.0
    heartbeat_interval: float = 60.0
    app_origin: str = "http://localhost:8501"
    demo_email: str = "admin@teman.com"
    demo_password: str = "password"
    default_year: int = field(default_factory=lambda: datetime.now().year)

    def __post_init__(self):
        self.cache_path = Path(self.cache_path)
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive", config_key="request_timeout")
        if self.heartbeat_interval <= 0:
            raise ConfigurationError("heartbeat_interval must be positive", config_key="heartbeat_interval")

    @property
    def script_configured(self) -> bool:
        return not is_placeholder(self.script_url)

    @property
    def supabase_configured(self) -> bool:
        return not is_placeholder(self.supabase_url) and not is_placeholder(self.supabase_key)

    @property
    def mode(self) -> str:
        """Primary source of truth: script endpoint, then Supabase, else demo."""
        if self.script_configured:
            return MODE_SCRIPT
        if self.supabase_configured:
            return MODE_SUPABASE
        return MODE_DEMO


def _read_secrets() -> Dict[str, Dict[str, Any]]:
    """Read the [fintrack] and [supabase] tables of Streamlit secrets, if any."""
    sections: Dict[str, Dict[str, Any]] = {}
    try:
        import streamlit as st

        for name in ("fintrack", "supabase"):
            if name in st.secrets:
                sections[name] = dict(st.secrets[name])
    except Exception as e:
        # No secrets.toml outside a Streamlit deployment
        logger.debug(f"Streamlit secrets unavailable: {e}")
    return sections


def load_config(**overrides: Any) -> StoreConfig:
    """
    Build a StoreConfig from Streamlit secrets, then environment variables.

    Keyword overrides win over both sources.
    """
    secrets = _read_secrets()
    app = secrets.get("fintrack", {})
    supabase = secrets.get("supabase", {})

    values: Dict[str, Any] = {
        "script_url": app.get("script_url") or os.getenv("FINTRACK_SCRIPT_URL"),
        "supabase_url": supabase.get("url") or os.getenv("SUPABASE_URL"),
        "supabase_key": supabase.get("key") or os.getenv("SUPABASE_KEY"),
    }

    optional = {
        "cache_path": ("cache_path", "FINTRACK_CACHE_PATH", Path),
        "request_timeout": ("request_timeout", "FINTRACK_REQUEST_TIMEOUT", float),
        "heartbeat_interval": ("heartbeat_interval", "FINTRACK_HEARTBEAT_INTERVAL", float),
        "app_origin": ("app_origin", "FINTRACK_APP_ORIGIN", str),
        "demo_email": ("demo_email", "FINTRACK_DEMO_EMAIL", str),
        "demo_password": ("demo_password", "FINTRACK_DEMO_PASSWORD", str),
        "default_year": ("default_year", "FINTRACK_DEFAULT_YEAR", int),
    }
    for attr, (secret_key, env_key, cast) in optional.items():
        raw = app.get(secret_key, os.getenv(env_key))
        if raw is None or raw == "":
            continue
        try:
            values[attr] = cast(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Invalid value for {attr}: {raw!r}",
                config_key=attr,
                expected_type=cast.__name__,
            )

    values.update(overrides)
    config = StoreConfig(**values)

    if config.mode == MODE_DEMO:
        logger.warning("No remote store configured - running in demo mode (local cache only)")
    else:
        logger.info(f"Store mode: {config.mode} (supabase mirror: {config.supabase_configured})")
    return config
