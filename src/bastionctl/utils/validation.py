"""Input validation helpers."""

import re
from typing import Final

from bastionctl.constants import INSTANCE_ID_PATTERN, INSTANCE_ID_PREFIX

_INSTANCE_ID_RE: Final = re.compile(INSTANCE_ID_PATTERN)


def looks_like_instance_id(value: str) -> bool:
    """Return True if ``value`` starts with the ``i-`` instance-ID prefix."""
    return value.startswith(INSTANCE_ID_PREFIX)


def is_valid_instance_id(value: str) -> bool:
    """Return True if ``value`` is ``i-`` followed by a lowercase hex suffix.

    Example:
        >>> is_valid_instance_id("i-0abc123def4567890")
        True
        >>> is_valid_instance_id("not-an-id")
        False
    """
    return bool(_INSTANCE_ID_RE.match(value))
