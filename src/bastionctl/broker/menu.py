"""Interactive bastion menu."""

import logging
from collections.abc import Callable
from typing import Final

from bastionctl.aws.exceptions import AWSError
from bastionctl.broker.prompter import ConnectionPrompter, MenuAction
from bastionctl.broker.services import BastionServices
from bastionctl.config import Settings
from bastionctl.exceptions import BastionCtlError, OperationInterrupted

logger: Final = logging.getLogger(__name__)


class MenuActionError(BastionCtlError):
    """Raised when a menu action fails; wraps the underlying error."""


class BastionMenu:
    """Loop offering the shell, SOCKS and port-forwarding actions.

    An interactive shell ends the loop when it exits. SOCKS and port-forwarding
    sessions return to the menu once the operator stops them.
    """

    def __init__(
        self, prompter: ConnectionPrompter, services: BastionServices, settings: Settings
    ) -> None:
        self.prompter = prompter
        self.services = services
        self.settings = settings

    def run(self) -> None:
        """Run the menu until the operator exits.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            MenuActionError: If an action fails.
        """
        while True:
            action = self.prompter.select_action()
            logger.debug(f"Selected menu action: {action.name}")

            if action is MenuAction.EXIT:
                return

            if action is MenuAction.SSH:
                self._guard("SSH into bastion failed", self.handle_ssh)
                return

            if action is MenuAction.SOCKS:
                self._guard("SOCKS proxy setup failed", self.handle_socks)
            else:
                self._guard("port forwarding setup failed", self.handle_port_forward)

    def handle_ssh(self) -> None:
        self.services.ssh_into_bastion()

    def handle_socks(self) -> None:
        port = self.prompter.prompt_for_socks_proxy_port(self.settings.default_socks_port)
        self.services.start_socks_proxy(port)

    def handle_port_forward(self) -> None:
        local_port = self.prompter.prompt_for_local_port(
            "port forwarding", self.settings.default_forward_port
        )
        remote_host = self.prompter.prompt_for_remote_host()
        remote_port = self.prompter.prompt_for_remote_port("target")
        self.services.start_port_forwarding(local_port, remote_host, remote_port)

    @staticmethod
    def _guard(context: str, handler: Callable[[], None]) -> None:
        try:
            handler()
        except OperationInterrupted:
            raise
        except (BastionCtlError, AWSError) as e:
            raise MenuActionError(f"{context}: {e}") from e
