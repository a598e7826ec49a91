"""Interactive prompt surface.

The broker never talks to the terminal directly. It asks a
:class:`ConnectionPrompter` for every operator choice; the prompter in turn
renders through a low-level :class:`Prompter` backend (``rich`` by default),
so tests can drive the whole flow with scripted answers.

Every method raises :class:`OperationInterrupted` when the operator cancels
(Ctrl+C or end of input).
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Final, Protocol

from rich.console import Console
from rich.prompt import Prompt

from bastionctl.aws.ec2 import EC2Instance
from bastionctl.broker.models import ConnectionMethod
from bastionctl.exceptions import OperationInterrupted, PromptError
from bastionctl.utils.ports import find_available_port, parse_port, validate_port

logger: Final = logging.getLogger(__name__)

PUBLIC_IP_CHOICE: Final[str] = "Public IP (direct SSH)"
INSTANCE_ID_CHOICE: Final[str] = "Instance ID (EC2 Instance Connect)"


class MenuAction(str, Enum):
    """Top-level actions offered by the interactive menu."""

    SSH = "1) SSH/SSM into bastion"
    SOCKS = "2) Start SOCKS proxy"
    PORT_FORWARD = "3) Port forwarding"
    EXIT = "4) Exit"


class Prompter(Protocol):
    """Low-level terminal input backend."""

    def prompt_for_input(self, label: str, default: str = "") -> str:
        """Ask for free text; an empty answer yields ``default``."""
        ...

    def prompt_for_selection(self, label: str, items: Sequence[str]) -> str:
        """Ask the operator to pick one of ``items`` and return it."""
        ...


class RichPrompter:
    """Prompter backend rendering with ``rich``."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def prompt_for_input(self, label: str, default: str = "") -> str:
        try:
            if default:
                answer = Prompt.ask(label, default=default, console=self.console)
            else:
                answer = Prompt.ask(label, default="", show_default=False, console=self.console)
        except (KeyboardInterrupt, EOFError) as e:
            self.console.print("\nReceived termination signal. Exiting.")
            raise OperationInterrupted() from e
        return (answer or default).strip()

    def prompt_for_selection(self, label: str, items: Sequence[str]) -> str:
        if not items:
            raise PromptError("nothing to select")

        self.console.print(f"[bold]{label}[/bold]")
        for index, item in enumerate(items, start=1):
            self.console.print(f"  [cyan]{index}[/cyan]. {item}")

        choices = [str(i) for i in range(1, len(items) + 1)]
        try:
            answer = Prompt.ask(
                "Select", choices=choices, default="1", show_choices=False, console=self.console
            )
        except (KeyboardInterrupt, EOFError) as e:
            self.console.print("\nReceived termination signal. Exiting.")
            raise OperationInterrupted() from e
        return items[int(answer) - 1]


class ConnectionPrompter:
    """Operator prompts used by the connection broker.

    Example:
        >>> prompter = ConnectionPrompter()
        >>> prompter.prompt_for_ssh_user("ec2-user")
        'ec2-user'
    """

    def __init__(self, prompter: Prompter | None = None, console: Console | None = None) -> None:
        self.console = console or Console()
        self.prompter = prompter or RichPrompter(self.console)

    def select_action(self) -> MenuAction:
        """Ask which top-level action to perform."""
        selected = self.prompter.prompt_for_selection(
            "What would you like to do?", [action.value for action in MenuAction]
        )
        return MenuAction(selected)

    def choose_connection_method(self) -> ConnectionMethod:
        """Ask whether to connect over SSH or SSM."""
        selected = self.prompter.prompt_for_selection(
            "Select connection method:", [method.value for method in ConnectionMethod]
        )
        try:
            return ConnectionMethod(selected)
        except ValueError as e:
            raise PromptError(f"unexpected selection: {selected}") from e

    def prompt_for_socks_proxy_port(self, default_port: int) -> int:
        """Ask for the local SOCKS proxy port.

        Raises:
            InvalidPortError: If the answer is not a port in 1..65535.
        """
        answer = self.prompter.prompt_for_input(
            f"Enter SOCKS proxy port (default: {default_port})", str(default_port)
        )
        return parse_port(answer)

    def prompt_for_local_port(self, purpose: str, default_port: int) -> int:
        """Ask for a local port, moving to the next free port on collision.

        Raises:
            InvalidPortError: If the default or the answer is not a valid port.
        """
        validate_port(default_port)
        answer = self.prompter.prompt_for_input(
            f"Enter local port for {purpose} [default: {default_port}]:", str(default_port)
        )
        port = parse_port(answer)

        final_port = find_available_port(port)
        if final_port != port:
            self.console.print(
                f"Port {port} is already in use. Choosing port {final_port} instead."
            )
        return final_port

    def prompt_for_bastion_host(self) -> str:
        """Ask for a bastion host (IP, DNS name or instance ID).

        Raises:
            PromptError: If the answer is empty.
        """
        host = self.prompter.prompt_for_input("Enter bastion host IP or DNS name:")
        if not host:
            raise PromptError("bastion host cannot be empty")
        return host

    def prompt_for_ssh_user(self, default_user: str) -> str:
        return self.prompter.prompt_for_input(
            f"Enter SSH user (default: {default_user})", default_user
        )

    def prompt_for_ssh_key_path(self, default_path: str) -> str:
        return self.prompter.prompt_for_input(
            f"Enter SSH key path (default: {default_path})", default_path
        )

    def prompt_for_remote_host(self) -> str:
        """Ask for the host traffic is forwarded to.

        Raises:
            PromptError: If the answer is empty.
        """
        host = self.prompter.prompt_for_input("Enter remote host IP or DNS name:")
        if not host:
            raise PromptError("remote host cannot be empty")
        return host

    def prompt_for_remote_port(self, service: str) -> int:
        """Ask for the remote port traffic is forwarded to.

        Raises:
            InvalidPortError: If the answer is not a port in 1..65535.
        """
        return parse_port(self.prompter.prompt_for_input(f"Enter remote {service} port"))

    def prompt_for_instance_id(self) -> str:
        """Ask for an EC2 instance ID.

        Raises:
            PromptError: If the answer is empty.
        """
        instance_id = self.prompter.prompt_for_input("Enter EC2 instance ID:")
        if not instance_id:
            raise PromptError("instance ID cannot be empty")
        return instance_id

    def prompt_for_region(self, default_region: str) -> str:
        """Ask for the AWS region to search.

        Raises:
            PromptError: If no region is given and there is no default.
        """
        label = "Enter AWS region:"
        if default_region:
            label = f"Enter AWS region (Default: {default_region}):"
        region = self.prompter.prompt_for_input(label, default_region)
        if not region:
            raise PromptError("region cannot be empty")
        return region

    def prompt_for_confirmation(self, prompt: str) -> bool:
        """Ask a yes/no question; re-asks until the answer is recognised."""
        while True:
            answer = self.prompter.prompt_for_input(f"{prompt} (y/N)", "n")
            normalized = answer.strip().lower()
            if normalized in ("y", "yes"):
                return True
            if normalized in ("n", "no", ""):
                return False
            self.console.print(f"Invalid input {answer!r} - please enter 'y' or 'n'")

    def prompt_for_bastion_instance(self, instances: Sequence[EC2Instance], for_ssm: bool) -> str:
        """Let the operator pick a discovered bastion.

        For SSM the instance ID is returned. For SSH the operator first picks
        how to reach the bastion: by public IP (only instances that have one are
        listed, the IP is returned) or through EC2 Instance Connect (all
        instances are listed, the instance ID is returned).

        Raises:
            PromptError: If there is nothing to choose from.
        """
        if not instances:
            raise PromptError("no instances available")

        if for_ssm:
            items = [_describe(inst, "No Public IP") for inst in instances]
            selected = self.prompter.prompt_for_selection("Select bastion instance for SSM:", items)
            return _match(selected, instances).instance_id

        mode = self.prompter.prompt_for_selection(
            "Select connection method:", [PUBLIC_IP_CHOICE, INSTANCE_ID_CHOICE]
        )

        if mode == PUBLIC_IP_CHOICE:
            candidates = [inst for inst in instances if inst.public_ip]
            if not candidates:
                raise PromptError("no bastion instances with public IP available")
            items = [_describe(inst, "") for inst in candidates]
            selected = self.prompter.prompt_for_selection("Select bastion instance:", items)
            return _match(selected, candidates).public_ip or ""

        items = [_describe(inst, "No Public IP (EC2 Connect only)") for inst in instances]
        selected = self.prompter.prompt_for_selection("Select bastion instance:", items)
        return _match(selected, instances).instance_id


def _describe(instance: EC2Instance, missing_ip_label: str) -> str:
    ip = instance.public_ip or missing_ip_label
    return f"{instance.display_name} ({instance.instance_id}) - {ip}"


def _match(selected: str, instances: Sequence[EC2Instance]) -> EC2Instance:
    for instance in instances:
        if f"{instance.display_name} ({instance.instance_id})" in selected:
            return instance
    raise PromptError("invalid selection")
