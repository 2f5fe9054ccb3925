"""
Cooldown ledger for link warnings.

Tracks when each (channel, author) pair was last warned so a burst of links
from one user produces one warning instead of one per message. All reads and
writes come from the asyncio event loop, so the map is not locked.

Eviction is per key: :meth:`CooldownLedger.sweep` only drops entries whose
cooldown has already elapsed, so running it never lets a still-active cooldown
lapse early.
"""

from __future__ import annotations

from typing import Dict, Tuple

from linkguard.util.logger import get_logger

logger = get_logger("cooldown_ledger")

CooldownKey = Tuple[int, int]


class CooldownLedger:
    """Last warning timestamp (milliseconds) keyed by ``(channel_id, author_id)``."""

    def __init__(self, cooldown_ms: int) -> None:
        self.cooldown_ms = cooldown_ms
        self._last_warning: Dict[CooldownKey, int] = {}

    def __len__(self) -> int:
        return len(self._last_warning)

    def __contains__(self, key: object) -> bool:
        return key in self._last_warning

    def last_warning(self, channel_id: int, author_id: int) -> int | None:
        return self._last_warning.get((channel_id, author_id))

    def should_suppress_warning(self, channel_id: int, author_id: int, now_ms: int) -> bool:
        """Return True if this pair was warned less than ``cooldown_ms`` before ``now_ms``."""
        last = self._last_warning.get((channel_id, author_id))
        if last is None:
            return False
        return now_ms - last < self.cooldown_ms

    def record_warning(self, channel_id: int, author_id: int, now_ms: int) -> None:
        """Store ``now_ms`` as the pair's last warning. Stored values never move backwards."""
        key = (channel_id, author_id)
        previous = self._last_warning.get(key)
        if previous is not None and previous > now_ms:
            return
        self._last_warning[key] = now_ms

    def sweep(self, now_ms: int) -> int:
        """Evict entries whose cooldown has elapsed and return how many were removed."""
        expired = [key for key, last in self._last_warning.items() if now_ms - last >= self.cooldown_ms]
        for key in expired:
            del self._last_warning[key]
        if expired:
            logger.debug("Evicted %d expired cooldown entries (%d remain)", len(expired), len(self._last_warning))
        return len(expired)

    def clear(self) -> None:
        self._last_warning.clear()
