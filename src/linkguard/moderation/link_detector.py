"""Link detection for message bodies."""

import re

# Scheme-prefixed URLs and bare www. hosts, e.g. "HTTPS://A.COM" or "www.example.org".
LINK_PATTERN = re.compile(r"(?:https?://\S+|\bwww\.\S+)", re.IGNORECASE)


def contains_link(body: str | None) -> bool:
    """Return True if ``body`` contains at least one URL-like token.

    Only ``re.search`` is used, so no scan position survives between calls.
    """
    if not body:
        return False
    return LINK_PATTERN.search(body) is not None
