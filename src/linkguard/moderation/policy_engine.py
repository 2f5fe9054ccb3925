"""
Moderation policy engine.

Turns one message event into a :class:`ModerationDecision`. The checks run in
a fixed order and the first one that matches decides the outcome:

1. bot author                      -> ignore (BOT_AUTHOR)
2. channel not restricted          -> ignore (NOT_RESTRICTED_CHANNEL)
3. no link in the body             -> ignore (NO_LINK_FOUND)
4. author is an administrator      -> ignore (PRIVILEGED_ACTOR)
5. otherwise the message is deleted; the warning is sent unless the
   (channel, author) pair is still on cooldown, in which case it is held back.

Deletion never depends on the cooldown. Only the user-facing warning does.
Edits go through the same function: an edit that adds a link is treated like
a new message with that link, and an edit that removes one ends at step 3.

The engine performs no I/O. Its only side effect is recording the warning in
the ledger when it decides to warn.
"""

from linkguard.configuration.app_configuration import ModerationConfig
from linkguard.moderation.cooldown_ledger import CooldownLedger
from linkguard.moderation.datatypes import DecisionReason, MessageEvent, ModerationDecision
from linkguard.moderation.link_detector import contains_link
from linkguard.moderation.roles import is_moderation_exempt


def decide(
    event: MessageEvent,
    config: ModerationConfig,
    ledger: CooldownLedger,
    now_ms: int,
) -> ModerationDecision:
    """Decide what to do with a created or edited message.

    Parameters
    ----------
    event:
        The message as observed.
    config:
        Restricted channels and cooldown settings.
    ledger:
        Cooldown state; updated only when the decision is to warn.
    now_ms:
        Current time in milliseconds from the caller's clock.

    Returns
    -------
    ModerationDecision
        Whether to delete, whether to warn, and why.
    """
    if event.is_bot_author:
        return ModerationDecision.ignore(DecisionReason.BOT_AUTHOR)

    if event.channel_id not in config.restricted_channel_ids:
        return ModerationDecision.ignore(DecisionReason.NOT_RESTRICTED_CHANNEL)

    if not contains_link(event.body):
        return ModerationDecision.ignore(DecisionReason.NO_LINK_FOUND)

    if is_moderation_exempt(event.actor_role):
        return ModerationDecision.ignore(DecisionReason.PRIVILEGED_ACTOR)

    if ledger.should_suppress_warning(event.channel_id, event.author_id, now_ms):
        return ModerationDecision(
            should_delete=True,
            should_warn=False,
            reason=DecisionReason.DELETED_NO_WARN_COOLDOWN,
        )

    ledger.record_warning(event.channel_id, event.author_id, now_ms)
    return ModerationDecision(
        should_delete=True,
        should_warn=True,
        reason=DecisionReason.DELETED_WITH_WARNING,
    )
