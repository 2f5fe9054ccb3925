"""Platform failures surfaced by a moderation gateway."""


class PlatformError(Exception):
    """Base class for failures talking to the messaging platform."""


class AlreadyGone(PlatformError):
    """The target message no longer exists. Callers treat this as success."""


class PlatformTransient(PlatformError):
    """Rate limit, permission hiccup, or network failure. The action was not performed."""
