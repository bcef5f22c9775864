# sleep_config.py
"""
Sleep Config

Single responsibility:
- Load sleep tracking parameters from resources/config_sleep_tracking.yaml
- Provide small, safe accessors with defaults for every key

Notes:
- This module does NOT do any sleep math.
- No module-level logger: logging_config reads the console level from here
  while loggers are still being created.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "resources" / "config_sleep_tracking.yaml"

DEFAULT_RECENT_DAYS = 5


class SleepConfig:
    def __init__(self, config_path: Optional[Path] = None):
        self._config_cache: Optional[Dict[str, Any]] = None
        self._loaded_at_utc: Optional[datetime] = None

        if config_path is None:
            env_path = os.environ.get("SLEEPLOG_CONFIG_PATH")
            self._config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        else:
            self._config_path = Path(config_path)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Loads YAML into a dict. Cached for 5 minutes by default.
        A missing file yields an empty dict so every accessor falls back to its default.
        """
        now_utc = datetime.now(timezone.utc)

        if not force_reload and self._config_cache is not None and self._loaded_at_utc:
            age_min = (now_utc - self._loaded_at_utc).total_seconds() / 60.0
            if age_min < 5:
                return self._config_cache

        if not self._config_path.exists():
            self._config_cache = {}
            self._loaded_at_utc = now_utc
            return self._config_cache

        try:
            from sleeplog.utils.config_loader import load_config
            cfg = load_config(str(self._config_path), force_reload=True)
        except Exception as e:
            raise RuntimeError(f"Failed to load sleep config: {e}") from e

        self._config_cache = cfg
        self._loaded_at_utc = now_utc
        return cfg

    def get(self, *keys: str, default: Any = None) -> Any:
        cfg = self.load()
        cur: Any = cfg
        for k in keys:
            if not isinstance(cur, dict) or k not in cur:
                return default
            cur = cur[k]
        return cur

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def reference_timezone_name(self) -> str:
        return str(self.get("reference_timezone", default="Europe/Moscow"))

    def reference_timezone(self) -> ZoneInfo:
        from sleeplog.utils.time_utils import resolve_timezone
        return resolve_timezone(self.reference_timezone_name())

    @property
    def recent_days(self) -> int:
        v = self.get("history", "recent_days", default=DEFAULT_RECENT_DAYS)
        try:
            return max(1, int(v))
        except Exception:
            return DEFAULT_RECENT_DAYS

    def console_log_level(self) -> str:
        return str(self.get("logging", "console_level", default="WARNING"))


# Singleton accessor (optional)
_sleep_config: Optional[SleepConfig] = None


def get_sleep_config() -> SleepConfig:
    global _sleep_config
    if _sleep_config is None:
        _sleep_config = SleepConfig()
    return _sleep_config
