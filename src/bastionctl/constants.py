"""Constants used throughout bastionctl.

This module contains application constants that do not depend on runtime
configuration or environment variables. For environment-based configuration,
see the config module.
"""

from typing import Final

# =============================================================================
# Connection Defaults
# =============================================================================

DEFAULT_SSH_USER: Final[str] = "ec2-user"
"""Default operating-system user offered when prompting for the SSH user."""

DEFAULT_SSH_KEY_PATH: Final[str] = "~/.ssh/id_ed25519"
"""Default private key path offered when prompting for the SSH key."""

DEFAULT_SOCKS_PORT: Final[int] = 9999
"""Default local port for the SOCKS proxy."""

DEFAULT_FORWARD_PORT: Final[int] = 3500
"""Default local port for port forwarding."""

MIN_PORT: Final[int] = 1
MAX_PORT: Final[int] = 65535

# =============================================================================
# Instance Discovery
# =============================================================================

INSTANCE_ID_PREFIX: Final[str] = "i-"
"""Prefix shared by every EC2 instance ID."""

INSTANCE_ID_PATTERN: Final[str] = r"^i-[0-9a-f]+$"
"""Shape of an EC2 instance ID entered by hand."""

BASTION_TAG_MARKER: Final[str] = "bastion"
"""Substring that marks an instance as a bastion when found in any tag value.

The match is case-insensitive and deliberately loose: a tag value such as
``bastion-backup-policy`` also qualifies.
"""

NAME_TAG_KEY: Final[str] = "Name"

RUNNING_STATE_FILTER: Final[list[dict[str, object]]] = [
    {"Name": "instance-state-name", "Values": ["running"]}
]

# =============================================================================
# SSH
# =============================================================================

SSH_BINARY: Final[str] = "ssh"
AWS_CLI_BINARY: Final[str] = "aws"

INSTANCE_CONNECT_SSH_OPTIONS: Final[tuple[str, ...]] = (
    "BatchMode=yes",
    "ConnectTimeout=10",
    "ServerAliveInterval=15",
    "StrictHostKeyChecking=no",
    "UserKnownHostsFile=/dev/null",
)
"""SSH options for short-lived EC2 Instance Connect targets."""

KEY_MODE_SSH_OPTIONS: Final[tuple[str, ...]] = (
    "BatchMode=no",
    "ConnectTimeout=30",
    "StrictHostKeyChecking=ask",
    "ServerAliveInterval=60",
)
"""SSH options for traditional key-based access."""

BENIGN_SSH_EXIT_CODES: Final[frozenset[int]] = frozenset({0, 1, 2, 130, 143})
"""Exit codes that end a session without being reported as a failure.

1 and 2 are passed through from the remote shell; 130 and 143 are SIGINT and
SIGTERM delivered to the local client.
"""

INSTANCE_CONNECT_KEY_TTL_SECONDS: Final[int] = 60
"""Lifetime of a public key pushed with EC2 Instance Connect."""

# =============================================================================
# SSM Session Manager
# =============================================================================

SSM_DOCUMENT_PORT_FORWARDING: Final[str] = "AWS-StartPortForwardingSession"
SSM_DOCUMENT_REMOTE_PORT_FORWARDING: Final[str] = "AWS-StartPortForwardingSessionToRemoteHost"

SSM_SOCKS_REMOTE_PORT: Final[int] = 1080
"""Remote port forwarded to for SSM-tunnelled SOCKS sessions."""

SESSION_MANAGER_PLUGIN: Final[str] = "session-manager-plugin"
SESSION_MANAGER_PLUGIN_INSTALL_URL: Final[str] = (
    "https://docs.aws.amazon.com/systems-manager/latest/userguide/"
    "session-manager-working-with-install-plugin.html"
)
