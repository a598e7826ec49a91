"""Bastion session services.

Each service resolves connection details once, then launches the matching
external process and blocks until it exits:

================  ==========================  ==============================
Session           SSH                         SSM
================  ==========================  ==============================
Shell             ``ssh`` or ``aws ec2-...``  session-manager-plugin (shell)
SOCKS proxy       ``ssh -N -T -D``            port forward to 1080
Port forward      ``ssh -N -T -L``            port forward to remote host
================  ==========================  ==============================
"""

import logging
from typing import Final

from rich.console import Console

from bastionctl.aws.exceptions import AWSError
from bastionctl.broker.models import ConnectionDetails, SSHTarget, SSMTarget
from bastionctl.broker.resolver import ConnectionResolver
from bastionctl.broker.ssm_starter import SSMSessionStarter
from bastionctl.constants import (
    AWS_CLI_BINARY,
    BENIGN_SSH_EXIT_CODES,
    INSTANCE_CONNECT_KEY_TTL_SECONDS,
)
from bastionctl.exceptions import (
    BastionCtlError,
    OperationInterrupted,
    ProcessLaunchError,
    ResolutionError,
)
from bastionctl.ssh.command import SSHCommandBuilder, execute_ssh_command
from bastionctl.utils.process import ProcessRunner

logger: Final = logging.getLogger(__name__)


class BastionServices:
    """Entry points for shell, SOCKS and port-forwarding sessions.

    The AWS profile, when given, is passed to every child ``aws`` invocation so
    Instance Connect tunnels run under the same account as discovery.

    Example:
        >>> services = BastionServices(resolver, SSMSessionStarter(settings, factory))
        >>> services.start_socks_proxy(9999)
    """

    def __init__(
        self,
        resolver: ConnectionResolver,
        ssm_starter: SSMSessionStarter,
        runner: ProcessRunner | None = None,
        console: Console | None = None,
        profile: str | None = None,
    ) -> None:
        self.resolver = resolver
        self.profile = profile
        self.ssm_starter = ssm_starter
        self.runner = runner or ProcessRunner()
        self.console = console or Console()

    def ssh_into_bastion(self) -> None:
        """Open an interactive shell on the bastion.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            BastionCtlError: If resolution or the session process fails.
        """
        details = self._connection_details()

        if isinstance(details, SSMTarget):
            self.console.print(f"Initiating SSM session with instance {details.instance_id}...")
            self.ssm_starter.start_shell(details)
            return

        if details.use_instance_connect:
            self._instance_connect_shell(details)
            return

        args = SSHCommandBuilder(details.host, details.user, details.key_path, False).build()
        self.console.print("Using traditional SSH authentication")
        self.console.print(f"Connecting to {details.user}@{details.host}...")
        execute_ssh_command(self.runner, args)

    def start_socks_proxy(self, local_port: int) -> None:
        """Run a SOCKS proxy on ``local_port`` through the bastion.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            BastionCtlError: If resolution or the session process fails.
        """
        details = self._connection_details()

        if isinstance(details, SSMTarget):
            self.console.print(
                f"Setting up SSM SOCKS proxy on localhost:{local_port} "
                f"via instance {details.instance_id}..."
            )
            self.console.print("SOCKS proxy active. Press Ctrl+C to stop.")
            self.ssm_starter.start_socks_proxy(details, local_port)
            return

        args = self._ssh_builder(details).with_socks(local_port).build()
        self.console.print(
            f"Setting up SOCKS proxy on localhost:{local_port} via {_via(details)}..."
        )
        self.console.print(f"Configure your apps to use: socks5://127.0.0.1:{local_port}")
        self._print_key_ttl_note(details)
        self.console.print("SOCKS proxy active. Press Ctrl+C to stop.")
        execute_ssh_command(self.runner, args)

    def start_port_forwarding(self, local_port: int, remote_host: str, remote_port: int) -> None:
        """Forward ``localhost:local_port`` to ``remote_host:remote_port``.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            BastionCtlError: If resolution or the session process fails.
        """
        details = self._connection_details()

        if isinstance(details, SSMTarget):
            self.console.print(
                f"Setting up SSM port forwarding from localhost:{local_port} to "
                f"{remote_host}:{remote_port} via instance {details.instance_id}..."
            )
            self.console.print("Port forwarding active. Press Ctrl+C to stop.")
            self.ssm_starter.start_port_forwarding(details, local_port, remote_host, remote_port)
            return

        args = (
            self._ssh_builder(details)
            .with_forwarding(local_port, remote_host, remote_port)
            .build()
        )
        self.console.print(
            f"Setting up port forwarding from localhost:{local_port} to "
            f"{remote_host}:{remote_port} via {_via(details)}..."
        )
        self._print_key_ttl_note(details)
        self.console.print("Port forwarding active. Press Ctrl+C to stop.")
        execute_ssh_command(self.runner, args)

    def _ssh_builder(self, details: SSHTarget) -> SSHCommandBuilder:
        return SSHCommandBuilder(
            details.host,
            details.user,
            details.key_path,
            details.use_instance_connect,
            region=details.region,
            profile=self.profile,
        )

    def _connection_details(self) -> ConnectionDetails:
        try:
            return self.resolver.get_connection_details()
        except OperationInterrupted:
            raise
        except (BastionCtlError, AWSError) as e:
            raise ResolutionError(f"failed to get connection details: {e}") from e

    def _instance_connect_shell(self, details: SSHTarget) -> None:
        self.console.print("Using EC2 Instance Connect Endpoint (EIC-E) for authentication")
        self.console.print(
            f"Connecting to {details.user}@{details.instance_id} using EC2 Instance Connect..."
        )

        args = [
            AWS_CLI_BINARY,
            "ec2-instance-connect",
            "ssh",
            "--instance-id",
            details.instance_id or details.host,
            "--os-user",
            details.user,
            "--private-key-file",
            details.key_path,
            "--connection-type",
            "eice",
        ]
        if details.region:
            args.extend(["--region", details.region])
        if self.profile:
            args.extend(["--profile", self.profile])

        returncode = self.runner.run_interactive(args)
        if returncode not in BENIGN_SSH_EXIT_CODES:
            raise ProcessLaunchError(
                f"EC2 Instance Connect session failed: exit status {returncode}"
            )

    def _print_key_ttl_note(self, details: SSHTarget) -> None:
        if details.use_instance_connect:
            self.console.print(
                "Using EC2 Instance Connect: the pushed key is valid for "
                f"~{INSTANCE_CONNECT_KEY_TTL_SECONDS} seconds"
            )


def _via(details: SSHTarget) -> str:
    if details.use_instance_connect:
        return f"EC2 Instance Connect for instance {details.host}"
    return details.host
