"""
Pytest configuration and fixtures for LinkGuard tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from linkguard.configuration.app_configuration import ModerationConfig  # noqa: E402
from linkguard.moderation.datatypes import ActorRole, MessageEvent  # noqa: E402

RESTRICTED_CHANNEL = 100
OPEN_CHANNEL = 200
BOT_ADMIN = 900


@pytest.fixture
def config() -> ModerationConfig:
    return ModerationConfig(
        restricted_channel_ids=frozenset({RESTRICTED_CHANNEL, RESTRICTED_CHANNEL + 1}),
        privileged_user_ids=frozenset({BOT_ADMIN}),
        warning_cooldown_ms=5000,
        warning_lifetime_ms=5000,
        sweep_delete_delay_seconds=0.5,
    )


def make_event(
    *,
    message_id: int = 1,
    channel_id: int = RESTRICTED_CHANNEL,
    author_id: int = 10,
    body: str = "see http://x.com",
    is_bot: bool = False,
    admin: bool = False,
) -> MessageEvent:
    return MessageEvent(
        id=message_id,
        channel_id=channel_id,
        author_id=author_id,
        is_bot_author=is_bot,
        body=body,
        actor_role=ActorRole(is_administrator=admin),
    )


class FakeGateway:
    """In-memory ModerationGateway recording every call.

    ``delete_errors`` maps message ids to the exception their deletion raises.
    """

    def __init__(self, history=None, *, delete_errors=None, send_error=None, fetch_error=None):
        self.history = list(history or [])
        self.delete_errors = dict(delete_errors or {})
        self.send_error = send_error
        self.fetch_error = fetch_error
        self.deleted: list[tuple[int, int]] = []
        self.sent: list[tuple[int, str]] = []
        self.fetches: list[tuple[int, int]] = []
        self.fetched_before: list[int | None] = []
        self._next_id = 10_000

    async def delete_message(self, channel_id, message_id):
        error = self.delete_errors.get(message_id)
        if error is not None:
            raise error
        self.deleted.append((channel_id, message_id))

    async def send_message(self, channel_id, text):
        from linkguard.gateway.interface import MessageHandle

        if self.send_error is not None:
            raise self.send_error
        self.sent.append((channel_id, text))
        self._next_id += 1
        return MessageHandle(channel_id=channel_id, message_id=self._next_id)

    async def fetch_recent_messages(self, channel_id, limit, *, before_message_id=None):
        self.fetches.append((channel_id, limit))
        self.fetched_before.append(before_message_id)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.history[:limit]

    @property
    def platform_calls(self) -> int:
        return len(self.deleted) + len(self.sent) + len(self.fetches)
