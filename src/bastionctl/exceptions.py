"""Exceptions raised by the connection broker.

AWS API failures have their own hierarchy in :mod:`bastionctl.aws.exceptions`;
the classes here cover local preconditions, external process failures and
operator cancellation.
"""


class BastionCtlError(Exception):
    """Base exception for bastionctl broker errors."""


class OperationInterrupted(BastionCtlError):
    """Raised when the operator cancels a prompt (Ctrl+C or EOF).

    Cancellation is benign: the CLI ends the session with exit code 0.
    """

    def __init__(self, message: str = "operation interrupted") -> None:
        super().__init__(message)


class PromptError(BastionCtlError):
    """Raised when a prompt receives input it cannot accept."""


class InvalidPortError(PromptError):
    """Raised for non-numeric or out-of-range port numbers."""


class ResolutionError(BastionCtlError):
    """Raised when connection details cannot be resolved."""


# =============================================================================
# SSH key validation
# =============================================================================


class SSHKeyError(BastionCtlError):
    """Base class for private-key sanity check failures."""


class SSHKeyMissingError(SSHKeyError):
    """The key file does not exist."""


class InsecureSSHKeyPermissionsError(SSHKeyError):
    """The key file is readable or writable by group or others."""


class SSHKeyUnreadableError(SSHKeyError):
    """The key file exists but cannot be read."""


class InvalidSSHKeyFormatError(SSHKeyError):
    """The key file does not look like a private key."""


# =============================================================================
# External processes
# =============================================================================


class SessionError(BastionCtlError):
    """Base class for failures of an external session process."""


class SSHConnectionError(SessionError):
    """Generic SSH failure carrying the command line and captured stderr.

    Attributes:
        command: Full argument vector that was executed.
        stderr: Captured standard error of the ssh process.
        returncode: Exit status of the ssh process.
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr
        self.returncode = returncode


class SSHAuthenticationError(SSHConnectionError):
    """The server rejected the key or credentials."""


class SSHNetworkError(SSHConnectionError):
    """The host could not be reached."""


class SSHHostResolutionError(SSHConnectionError):
    """The host name could not be resolved."""


class SSHHostKeyError(SSHConnectionError):
    """The host key did not match the known_hosts entry."""


class PluginNotFoundError(SessionError):
    """The session-manager-plugin binary could not be located."""


class ProcessLaunchError(SessionError):
    """An external executable could not be started or exited with an error."""
