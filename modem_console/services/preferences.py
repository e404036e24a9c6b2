"""
Preferences Service - Persistence for console configuration
Stores the AT transport endpoint and polling settings
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PREFERENCES_ENV_VAR = "MODEM_CONSOLE_PREFERENCES"


@dataclass
class TransportConfig:
    """AT command transport configuration."""

    endpoint: str = "http://192.168.225.1/cgi-bin/get_atcommand"
    timeout: float = 15.0


@dataclass
class PollingConfig:
    """Dashboard polling configuration."""

    refresh_rate: int = 10


class PreferencesService:
    """
    JSON-backed preferences.
    Single source of truth for transport and polling configuration.
    """

    PREFERENCES_FILE = "preferences.json"
    MIN_REFRESH_RATE = 3

    def __init__(self, config_path: str = None):
        self._lock = threading.RLock()
        self._preferences: Dict[str, Any] = self._default_preferences()
        self._config_path = config_path or os.environ.get(PREFERENCES_ENV_VAR) or self._get_config_path()
        self._load()

    def _get_config_path(self) -> str:
        """Get path to preferences file."""
        base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        return os.path.join(base_dir, "..", self.PREFERENCES_FILE)

    def _default_preferences(self) -> Dict[str, Any]:
        """Return default preferences structure."""
        transport = TransportConfig()
        return {
            "transport": {"endpoint": transport.endpoint, "timeout": transport.timeout},
            "polling": {"refresh_rate": PollingConfig().refresh_rate},
        }

    def _load(self):
        """Load preferences from file, merged over defaults."""
        try:
            if os.path.exists(self._config_path):
                with open(self._config_path, "r") as f:
                    loaded = json.load(f)

                defaults = self._default_preferences()
                self._deep_merge(defaults, loaded)
                self._preferences = defaults
                logger.info(f"Loaded preferences from {self._config_path}")
            else:
                logger.info(f"No preferences file at {self._config_path}, using defaults")
                self._preferences = self._default_preferences()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load preferences: {e}")
            self._preferences = self._default_preferences()

    def _deep_merge(self, base: dict, override: dict):
        """Deep merge override into base (modifies base in place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> bool:
        """Save preferences to file."""
        try:
            with self._lock:
                with open(self._config_path, "w") as f:
                    json.dump(self._preferences, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
            return True
        except OSError as e:
            logger.error(f"Failed to save preferences: {e}")
            return False

    # ==================== Transport Configuration ====================

    def get_transport_config(self) -> TransportConfig:
        """Get AT transport configuration."""
        with self._lock:
            cfg = self._preferences.get("transport", {})
            defaults = TransportConfig()
            return TransportConfig(
                endpoint=cfg.get("endpoint", defaults.endpoint),
                timeout=float(cfg.get("timeout", defaults.timeout)),
            )

    def set_transport_config(self, endpoint: str = None, timeout: float = None) -> bool:
        """Update AT transport configuration."""
        with self._lock:
            transport = self._preferences.setdefault("transport", {})
            if endpoint is not None:
                transport["endpoint"] = endpoint.strip()
            if timeout is not None:
                if timeout <= 0:
                    raise ValueError("timeout must be positive")
                transport["timeout"] = float(timeout)
            return self._save()

    # ==================== Polling Configuration ====================

    def get_polling_config(self) -> PollingConfig:
        """Get polling configuration."""
        with self._lock:
            cfg = self._preferences.get("polling", {})
            return PollingConfig(refresh_rate=int(cfg.get("refresh_rate", PollingConfig().refresh_rate)))

    def set_refresh_rate(self, seconds: int) -> bool:
        """Set the dashboard refresh rate (seconds)."""
        if seconds < self.MIN_REFRESH_RATE:
            raise ValueError(f"refresh rate must be at least {self.MIN_REFRESH_RATE} seconds")
        with self._lock:
            self._preferences.setdefault("polling", {})["refresh_rate"] = int(seconds)
            return self._save()

    def get_all_preferences(self) -> Dict[str, Any]:
        """Get all preferences (for debugging/export)."""
        with self._lock:
            return json.loads(json.dumps(self._preferences))


# Singleton instance
_preferences_service: Optional[PreferencesService] = None


def get_preferences() -> PreferencesService:
    """Get the singleton preferences service instance."""
    global _preferences_service
    if _preferences_service is None:
        _preferences_service = PreferencesService()
    return _preferences_service
