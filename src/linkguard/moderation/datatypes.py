"""
Data structures shared by the link moderation core.

Key Features:
- `ActorRole`: Capabilities held by a message author in the channel.
- `MessageEvent`: Platform-neutral snapshot of one observed or historical message.
- `ModerationDecision`: Outcome of the policy engine for a single event.
- `SweepResult`: Outcome of a retroactive sweep over channel history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

ChannelID = int
UserID = int
MessageID = int


@dataclass(frozen=True, slots=True)
class ActorRole:
    """Capabilities of the author in the channel the message was posted to."""

    is_administrator: bool = False


@dataclass(frozen=True, slots=True)
class MessageEvent:
    """A created, edited, or fetched message as seen by the moderation core.

    Attributes:
        id (MessageID): Discord snowflake of the message.
        channel_id (ChannelID): Channel the message lives in.
        author_id (UserID): Author of the message.
        is_bot_author (bool): Bot-authored events are never moderated.
        body (str): Text content at the time of observation.
        actor_role (ActorRole): Author capabilities in the channel.
    """

    id: MessageID
    channel_id: ChannelID
    author_id: UserID
    is_bot_author: bool
    body: str
    actor_role: ActorRole = field(default_factory=ActorRole)


class DecisionReason(Enum):
    NOT_RESTRICTED_CHANNEL = "not_restricted_channel"
    NO_LINK_FOUND = "no_link_found"
    BOT_AUTHOR = "bot_author"
    PRIVILEGED_ACTOR = "privileged_actor"
    DELETED = "deleted"
    DELETED_NO_WARN_COOLDOWN = "deleted_no_warn_cooldown"
    DELETED_WITH_WARNING = "deleted_with_warning"


@dataclass(frozen=True, slots=True)
class ModerationDecision:
    """What the caller should do with a message event.

    ``should_warn`` is only meaningful when ``should_delete`` is set.
    """

    should_delete: bool
    should_warn: bool
    reason: DecisionReason

    @classmethod
    def ignore(cls, reason: DecisionReason) -> ModerationDecision:
        return cls(should_delete=False, should_warn=False, reason=reason)


class SweepStatus(Enum):
    COMPLETED = "completed"
    UNAUTHORIZED = "unauthorized"
    INVALID_ARGUMENT = "invalid_argument"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SweepResult:
    """Outcome of a sweep; ``scanned`` is the batch size requested, not cumulative."""

    status: SweepStatus
    deleted_count: int = 0
    scanned: int = 0

    def summary(self) -> str:
        """Render the reply shown to whoever requested the sweep."""
        if self.status is SweepStatus.UNAUTHORIZED:
            return "⛔ You do not have permission to use this command."
        if self.status is SweepStatus.INVALID_ARGUMENT:
            return "⚠️ Usage: `.check <N>` where N is a number between 1 and 100."
        if self.status is SweepStatus.FAILED:
            return "⚠️ Could not read the channel history. Try again later."
        if self.deleted_count == 0:
            return f"✅ Checked the last {self.scanned} messages. No links found."
        noun = "message" if self.deleted_count == 1 else "messages"
        return f"🧹 Checked the last {self.scanned} messages and deleted {self.deleted_count} {noun} with links."
