"""Session Manager launcher.

Starts an SSM session through the API and hands its stream credentials to the
local ``session-manager-plugin``, which runs attached to the terminal until
the operator ends it. The server-side session is terminated afterwards on
every exit path.
"""

import json
import logging
import sys
from collections.abc import Callable
from typing import Final

from rich.console import Console

from bastionctl.aws.ssm_sessions import SSMSession, SSMSessionManager
from bastionctl.broker.models import SSMTarget
from bastionctl.config import Settings
from bastionctl.constants import (
    SESSION_MANAGER_PLUGIN,
    SESSION_MANAGER_PLUGIN_INSTALL_URL,
    SSM_DOCUMENT_PORT_FORWARDING,
    SSM_DOCUMENT_REMOTE_PORT_FORWARDING,
    SSM_SOCKS_REMOTE_PORT,
)
from bastionctl.exceptions import PluginNotFoundError, ProcessLaunchError
from bastionctl.utils.process import ProcessRunner

logger: Final = logging.getLogger(__name__)

SSMManagerFactory = Callable[[str | None], SSMSessionManager]

PLUGIN_BENIGN_EXIT_CODES: Final[frozenset[int]] = frozenset({0, 130, 143})


class SSMSessionStarter:
    """Runs shell, SOCKS and port-forwarding sessions over SSM.

    Args:
        settings: Application settings (explicit plugin path).
        ssm_factory: Builds an SSMSessionManager for a region.
        runner: Process runner used to launch the plugin.
        console: Console for operator-facing messages.
    """

    def __init__(
        self,
        settings: Settings,
        ssm_factory: SSMManagerFactory,
        runner: ProcessRunner | None = None,
        console: Console | None = None,
    ) -> None:
        self.settings = settings
        self.ssm_factory = ssm_factory
        self.runner = runner or ProcessRunner()
        self.console = console or Console()

    def start_shell(self, target: SSMTarget) -> None:
        """Open an interactive shell on the target instance."""
        self._run(target, document_name=None, parameters=None)

    def start_socks_proxy(self, target: SSMTarget, local_port: int) -> None:
        """Forward ``local_port`` to the SOCKS port on the target instance."""
        parameters = {
            "portNumber": [str(SSM_SOCKS_REMOTE_PORT)],
            "localPortNumber": [str(local_port)],
        }
        self._run(target, SSM_DOCUMENT_PORT_FORWARDING, parameters)

    def start_port_forwarding(
        self, target: SSMTarget, local_port: int, remote_host: str, remote_port: int
    ) -> None:
        """Forward ``local_port`` to ``remote_host:remote_port`` through the target."""
        parameters = {
            "portNumber": [str(remote_port)],
            "localPortNumber": [str(local_port)],
            "host": [remote_host],
        }
        self._run(target, SSM_DOCUMENT_REMOTE_PORT_FORWARDING, parameters)

    def find_plugin(self) -> str:
        """Locate the session-manager-plugin executable.

        Returns:
            Absolute path of the plugin.

        Raises:
            PluginNotFoundError: If neither the configured path nor PATH has it.
        """
        configured = self.settings.session_manager_plugin_path
        if configured:
            found = self.runner.which(configured)
            if found:
                return found
            logger.warning(f"Configured session-manager-plugin not found at {configured}")

        name = SESSION_MANAGER_PLUGIN
        if sys.platform == "win32":
            name += ".exe"
        found = self.runner.which(name)
        if not found:
            raise PluginNotFoundError(
                "session-manager-plugin not found. "
                f"Install it from {SESSION_MANAGER_PLUGIN_INSTALL_URL}"
            )
        return found

    def _run(
        self,
        target: SSMTarget,
        document_name: str | None,
        parameters: dict[str, list[str]] | None,
    ) -> None:
        plugin = self.find_plugin()
        manager = self.ssm_factory(target.region)

        with manager.session_scope(
            target.instance_id, document_name=document_name, parameters=parameters
        ) as session:
            self.console.print(f"Started SSM session {session.session_id}")
            region = target.region or manager.region or ""
            args = self._plugin_args(plugin, session, region, self.settings.aws_profile or "")
            returncode = self.runner.run_interactive(args)

        if returncode not in PLUGIN_BENIGN_EXIT_CODES:
            raise ProcessLaunchError(f"session-manager-plugin failed: exit status {returncode}")

    @staticmethod
    def _plugin_args(plugin: str, session: SSMSession, region: str, profile: str) -> list[str]:
        return [
            plugin,
            json.dumps(session.plugin_payload()),
            region,
            "StartSession",
            profile,
            json.dumps({"Target": session.target}),
        ]
