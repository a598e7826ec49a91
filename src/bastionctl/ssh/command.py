"""SSH argument-vector construction and failure interpretation."""

import logging
from typing import Final

from bastionctl.constants import (
    BENIGN_SSH_EXIT_CODES,
    INSTANCE_CONNECT_SSH_OPTIONS,
    INSTANCE_ID_PREFIX,
    KEY_MODE_SSH_OPTIONS,
    SSH_BINARY,
)
from bastionctl.exceptions import (
    SSHAuthenticationError,
    SSHConnectionError,
    SSHHostKeyError,
    SSHHostResolutionError,
    SSHNetworkError,
)
from bastionctl.utils.process import ProcessResult, ProcessRunner

logger: Final = logging.getLogger(__name__)

LOOPBACK_HOST: Final[str] = "127.0.0.1"


class SSHCommandBuilder:
    """Fluent builder for ``ssh`` argument vectors.

    The base options depend on the access mode. Instance Connect targets are
    short-lived, so host keys are neither checked nor remembered and timeouts
    are short; traditional key access keeps interactive host-key prompting and
    a long keep-alive. Mode flags (``-D``, ``-L``, ``-N``, ``-T``) are appended
    in call order and always precede the final ``user@host`` token.

    Example:
        >>> SSHCommandBuilder("10.0.0.5", "ec2-user", "/k", False).with_socks(9999).build()
        ['ssh', '-i', '/k', ..., '-N', '-T', '-D', '9999', 'ec2-user@10.0.0.5']
    """

    def __init__(
        self,
        host: str,
        user: str,
        key_path: str,
        use_instance_connect: bool,
        region: str | None = None,
        profile: str | None = None,
    ) -> None:
        self.host = host
        self.user = user
        self.key_path = key_path
        self.use_instance_connect = use_instance_connect
        self._args: list[str] = ["-i", key_path]

        options = INSTANCE_CONNECT_SSH_OPTIONS if use_instance_connect else KEY_MODE_SSH_OPTIONS
        for option in options:
            self._args.extend(["-o", option])

        if use_instance_connect and host.startswith(INSTANCE_ID_PREFIX):
            proxy = f"aws ec2-instance-connect open-tunnel --instance-id {host}"
            if region:
                proxy += f" --region {region}"
            if profile:
                proxy += f" --profile {profile}"
            self._args.extend(["-o", f"ProxyCommand={proxy}"])

    def with_socks(self, local_port: int) -> "SSHCommandBuilder":
        """Open a dynamic (SOCKS) forward on ``local_port`` without a remote shell."""
        self._args.extend(["-N", "-T", "-D", str(local_port)])
        return self

    def with_forwarding(
        self, local_port: int, remote_host: str, remote_port: int
    ) -> "SSHCommandBuilder":
        """Forward ``local_port`` to ``remote_host:remote_port`` without a remote shell."""
        self._args.extend(["-N", "-T", "-L", f"{local_port}:{remote_host}:{remote_port}"])
        return self

    def with_background(self) -> "SSHCommandBuilder":
        """Fork ssh into the background after authentication."""
        self._args.extend(["-N", "-f"])
        return self

    def build(self) -> list[str]:
        """Return the complete argument vector, starting with ``ssh``."""
        target = self.host
        if self.host.startswith(INSTANCE_ID_PREFIX) and self._has_proxy_command():
            target = LOOPBACK_HOST
        return [SSH_BINARY, *self._args, f"{self.user}@{target}"]

    def _has_proxy_command(self) -> bool:
        return any(
            arg == "-o" and i + 1 < len(self._args) and "ProxyCommand" in self._args[i + 1]
            for i, arg in enumerate(self._args)
        )


def _extract_target(args: list[str]) -> tuple[str, str, str]:
    """Return ``(key_path, user, host)`` parsed from an ssh argument vector."""
    key_path = user = host = ""
    for i, arg in enumerate(args):
        if arg == "-i" and i + 1 < len(args):
            key_path = args[i + 1]
        if "@" in arg and not arg.startswith("-"):
            parts = arg.split("@")
            if len(parts) == 2:
                user, host = parts
    return key_path, user, host


def interpret_ssh_error(result: ProcessResult, args: list[str]) -> SSHConnectionError | None:
    """Translate a finished ssh process into an actionable error.

    Args:
        result: Outcome of the ssh process, including captured stderr.
        args: The argument vector that was executed.

    Returns:
        None for benign exit codes, otherwise the most specific error that
        matches the captured stderr.
    """
    if result.returncode in BENIGN_SSH_EXIT_CODES:
        return None

    stderr = result.stderr
    key_path, user, host = _extract_target(args)
    context = {"command": args, "stderr": stderr, "returncode": result.returncode}

    if "Permission denied" in stderr:
        if "publickey" in stderr:
            return SSHAuthenticationError(
                f"SSH authentication failed: invalid SSH key at {key_path} "
                "or key not authorized on server",
                **context,
            )
        return SSHAuthenticationError(
            f"SSH authentication failed: invalid credentials for user {user}", **context
        )
    if "Connection timed out" in stderr or "No route to host" in stderr:
        return SSHNetworkError(
            f"network connection failed: cannot reach host {host} "
            "(check IP/network connectivity)",
            **context,
        )
    if "Could not resolve hostname" in stderr:
        return SSHHostResolutionError(f"invalid hostname: {host} cannot be resolved", **context)
    if "Host key verification failed" in stderr:
        return SSHHostKeyError(
            f"host key verification failed for {host} "
            "(try removing the host from known_hosts file)",
            **context,
        )
    return SSHConnectionError(
        f"SSH connection failed: exit status {result.returncode}\n"
        f"Command: {' '.join(args)}\n"
        f"Error output: {stderr}",
        **context,
    )


def execute_ssh_command(runner: ProcessRunner, args: list[str]) -> None:
    """Run an ssh argument vector and raise on failure.

    Standard input and output stay attached to the terminal; standard error is
    captured so failures can be diagnosed.

    Raises:
        SSHConnectionError: Or a more specific subclass when the ssh process fails.
    """
    if not args:
        raise SSHConnectionError("no command provided")

    logger.debug(f"Executing: {' '.join(args)}")
    result = runner.run_capturing_stderr(args)
    error = interpret_ssh_error(result, args)
    if error is not None:
        logger.error(f"ssh exited with status {result.returncode}")
        raise error
