from __future__ import annotations

import fcntl
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from linkguard.util.logger import get_logger

logger = get_logger("app_configuration")


DEFAULT_WARNING_COOLDOWN_MS = 5000
DEFAULT_WARNING_LIFETIME_MS = 5000
DEFAULT_COOLDOWN_SWEEP_INTERVAL_SECONDS = 3600.0
DEFAULT_SWEEP_DELETE_DELAY_SECONDS = 1.0
DEFAULT_PORT = 3000


@dataclass(frozen=True, slots=True)
class ModerationConfig:
    """Process-wide moderation settings, built once at startup and never mutated.

    Attributes:
        restricted_channel_ids: Channels where links from non-administrators are removed.
        privileged_user_ids: Bot admins allowed to run a sweep. Not a moderation exemption.
        warning_cooldown_ms: Window after a warning during which repeat offenses in the
            same channel by the same author are deleted silently.
        warning_lifetime_ms: Delay before a posted warning deletes itself.
        cooldown_sweep_interval_seconds: How often expired cooldown entries are evicted.
        sweep_delete_delay_seconds: Pause between deletions during a sweep.
    """

    restricted_channel_ids: frozenset[int] = frozenset()
    privileged_user_ids: frozenset[int] = frozenset()
    warning_cooldown_ms: int = DEFAULT_WARNING_COOLDOWN_MS
    warning_lifetime_ms: int = DEFAULT_WARNING_LIFETIME_MS
    cooldown_sweep_interval_seconds: float = DEFAULT_COOLDOWN_SWEEP_INTERVAL_SECONDS
    sweep_delete_delay_seconds: float = DEFAULT_SWEEP_DELETE_DELAY_SECONDS


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    Caches the contents of ``./config/app_config.yml`` and exposes the
    ``moderation`` section with defaults applied. A missing or malformed file
    yields an empty mapping so the bot still starts with default tunables.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and return the loaded mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    @property
    def moderation_settings(self) -> Dict[str, Any]:
        section = self._data.get("moderation", {})
        return section if isinstance(section, dict) else {}

    @property
    def warning_cooldown_ms(self) -> int:
        return int(_number(self.moderation_settings.get("warning_cooldown_ms"), DEFAULT_WARNING_COOLDOWN_MS))

    @property
    def warning_lifetime_ms(self) -> int:
        return int(_number(self.moderation_settings.get("warning_lifetime_ms"), DEFAULT_WARNING_LIFETIME_MS))

    @property
    def cooldown_sweep_interval_seconds(self) -> float:
        return _number(
            self.moderation_settings.get("cooldown_sweep_interval_seconds"),
            DEFAULT_COOLDOWN_SWEEP_INTERVAL_SECONDS,
        )

    @property
    def sweep_delete_delay_seconds(self) -> float:
        return _number(
            self.moderation_settings.get("sweep_delete_delay_seconds"),
            DEFAULT_SWEEP_DELETE_DELAY_SECONDS,
        )


def _number(value: Any, default: float) -> float:
    if value is None:
        return float(default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("[APP CONFIGURATION] Ignoring non-numeric setting %r; using %s", value, default)
        return float(default)
    if number < 0:
        logger.warning("[APP CONFIGURATION] Ignoring negative setting %r; using %s", value, default)
        return float(default)
    return number


def parse_id_list(raw: str | None, *, label: str) -> frozenset[int]:
    """Parse a comma separated list of Discord snowflakes.

    Blank entries are dropped; entries that are not integers are logged and skipped.
    """
    if not raw:
        return frozenset()

    ids: set[int] = set()
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            ids.add(int(chunk))
        except ValueError:
            logger.warning("[APP CONFIGURATION] Skipping invalid id %r in %s", chunk, label)
    return frozenset(ids)


def parse_port(raw: str | None) -> int:
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        logger.warning("[APP CONFIGURATION] Invalid PORT %r; using %d", raw, DEFAULT_PORT)
        return DEFAULT_PORT


def load_moderation_config(app_config: AppConfig, environ: Mapping[str, str] | None = None) -> ModerationConfig:
    """Build the immutable moderation config from the environment and YAML tunables.

    Parameters
    ----------
    app_config:
        Loaded YAML configuration supplying timing tunables.
    environ:
        Environment mapping; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ
    config = ModerationConfig(
        restricted_channel_ids=parse_id_list(env.get("DISALLOWED_CHANNEL_IDS"), label="DISALLOWED_CHANNEL_IDS"),
        privileged_user_ids=parse_id_list(env.get("BOT_ADMIN_IDS"), label="BOT_ADMIN_IDS"),
        warning_cooldown_ms=app_config.warning_cooldown_ms,
        warning_lifetime_ms=app_config.warning_lifetime_ms,
        cooldown_sweep_interval_seconds=app_config.cooldown_sweep_interval_seconds,
        sweep_delete_delay_seconds=app_config.sweep_delete_delay_seconds,
    )
    logger.debug(
        "[APP CONFIGURATION] %d restricted channel(s), %d bot admin(s), cooldown=%dms, lifetime=%dms",
        len(config.restricted_channel_ids),
        len(config.privileged_user_ids),
        config.warning_cooldown_ms,
        config.warning_lifetime_ms,
    )
    return config
