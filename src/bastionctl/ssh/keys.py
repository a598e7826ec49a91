"""SSH private key sanity checks.

This is a gate against obvious mistakes (wrong path, world-readable key, a
public key passed where a private key is expected), not a cryptographic
validation of the key material.
"""

import logging
import stat
from pathlib import Path
from typing import Final

from bastionctl.exceptions import (
    InsecureSSHKeyPermissionsError,
    InvalidSSHKeyFormatError,
    SSHKeyMissingError,
    SSHKeyUnreadableError,
)

logger: Final = logging.getLogger(__name__)

GROUP_OTHER_PERMISSION_BITS: Final[int] = 0o077
PRIVATE_KEY_MARKER: Final[str] = "PRIVATE KEY"


def validate_ssh_key(key_path: str | Path) -> None:
    """Validate that ``key_path`` is a usable, private SSH key file.

    Checks run in order and the first violation is raised:

    1. the file exists;
    2. no group/other permission bits are set (``mode & 0o077 == 0``);
    3. the file is readable;
    4. the content contains ``"PRIVATE KEY"``.

    Args:
        key_path: Path of the private key.

    Raises:
        SSHKeyMissingError: The file does not exist.
        InsecureSSHKeyPermissionsError: Group or other permission bits are set.
        SSHKeyUnreadableError: The file cannot be stat'ed or read.
        InvalidSSHKeyFormatError: The content is not a private key.
    """
    path = Path(key_path)

    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError as e:
        raise SSHKeyMissingError(f"SSH key file does not exist at {path}") from e
    except OSError as e:
        raise SSHKeyUnreadableError(f"failed to access SSH key file: {e}") from e

    if mode & GROUP_OTHER_PERMISSION_BITS:
        raise InsecureSSHKeyPermissionsError(
            f"insecure SSH key permissions {mode:04o} (should be 600 or 400)"
        )

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise SSHKeyUnreadableError(f"failed to read SSH key file: {e}") from e

    if PRIVATE_KEY_MARKER not in content:
        raise InvalidSSHKeyFormatError("file does not appear to be a valid SSH private key")

    logger.debug(f"SSH key {path} passed validation")


def public_key_path(key_path: str | Path) -> Path:
    """Return the conventional public-key path (``<key>.pub``) for a private key."""
    return Path(f"{key_path}.pub")


def expand_key_path(key_path: str, home_dir: Path) -> Path:
    """Expand a leading ``~/`` against ``home_dir``.

    Paths that do not start with ``~/`` are returned unchanged.
    """
    if key_path.startswith("~/"):
        return home_dir / key_path[2:]
    return Path(key_path)
