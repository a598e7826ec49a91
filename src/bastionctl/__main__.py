"""bastionctl command-line entry point."""

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Final

from pydantic import ValidationError
from rich.console import Console

from bastionctl.aws.exceptions import AWSError
from bastionctl.aws.probe import probe_aws
from bastionctl.aws.ssm_sessions import SSMSessionManager
from bastionctl.broker.menu import BastionMenu
from bastionctl.broker.prompter import ConnectionPrompter
from bastionctl.broker.resolver import ConnectionResolver
from bastionctl.broker.services import BastionServices
from bastionctl.broker.ssm_starter import SSMSessionStarter
from bastionctl.config import Settings, get_settings
from bastionctl.exceptions import BastionCtlError, OperationInterrupted
from bastionctl.logging_config import configure_logging
from bastionctl.utils.ports import validate_port
from bastionctl.utils.process import ProcessRunner
from bastionctl.version import __version__

logger: Final = logging.getLogger(__name__)


class Application:
    """Wires settings, the AWS probe, prompts and services together."""

    def __init__(self, settings: Settings, console: Console | None = None) -> None:
        self.settings = settings
        self.console = console or Console()
        self.aws = probe_aws(settings)
        logger.debug(f"AWS probe result: {self.aws!r}")

        runner = ProcessRunner()
        self.prompter = ConnectionPrompter(console=self.console)
        resolver = ConnectionResolver(self.prompter, settings, self.aws, console=self.console)
        ssm_starter = SSMSessionStarter(
            settings,
            lambda region: SSMSessionManager(
                region=region or self.aws.region, session=self.aws.session
            ),
            runner=runner,
            console=self.console,
        )
        self.services = BastionServices(
            resolver,
            ssm_starter,
            runner=runner,
            console=self.console,
            profile=settings.aws_profile,
        )

    def run_menu(self) -> None:
        BastionMenu(self.prompter, self.services, self.settings).run()

    def run_ssh(self) -> None:
        self.services.ssh_into_bastion()

    def run_socks(self, port: int | None) -> None:
        if port is None:
            port = self.prompter.prompt_for_socks_proxy_port(self.settings.default_socks_port)
        else:
            validate_port(port)
        self.services.start_socks_proxy(port)

    def run_forward(
        self, local_port: int | None, remote_host: str | None, remote_port: int | None
    ) -> None:
        if local_port is None:
            local_port = self.prompter.prompt_for_local_port(
                "port forwarding", self.settings.default_forward_port
            )
        else:
            validate_port(local_port)
        if not remote_host:
            remote_host = self.prompter.prompt_for_remote_host()
        if remote_port is None:
            remote_port = self.prompter.prompt_for_remote_port("target")
        else:
            validate_port(remote_port)
        self.services.start_port_forwarding(local_port, remote_host, remote_port)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``bastionctl`` command."""
    parser = argparse.ArgumentParser(
        prog="bastionctl",
        description="Connect to AWS bastion hosts over SSH, EC2 Instance Connect or SSM",
    )
    parser.add_argument("--profile", help="AWS profile to use (overrides AWS_PROFILE)")
    parser.add_argument("--region", help="AWS region to search (overrides AWS_REGION)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Diagnostic log level (default: WARNING)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("menu", help="Interactive menu (default)")
    subparsers.add_parser("ssh", help="Open an interactive shell on a bastion")

    socks = subparsers.add_parser("socks", help="Start a SOCKS proxy through a bastion")
    socks.add_argument("--port", type=int, help="Local SOCKS proxy port")

    forward = subparsers.add_parser("forward", help="Forward a local port through a bastion")
    forward.add_argument("--local-port", type=int, help="Local port to listen on")
    forward.add_argument("--remote-host", help="Host to forward to")
    forward.add_argument("--remote-port", type=int, help="Port on the remote host")

    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Return settings with command-line overrides applied."""
    overrides = {
        key: value
        for key, value in (
            ("aws_profile", args.profile),
            ("aws_region", args.region),
            ("log_level", args.log_level),
        )
        if value
    }
    if not overrides:
        return get_settings()
    return Settings(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the application.

    Returns:
        Exit code (0 for success or cancellation, 1 for failure).
    """
    args = build_parser().parse_args(argv)
    err_console = Console(stderr=True)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        err_console.print(f"Error: invalid configuration: {e}", style="red", markup=False)
        return 1

    configure_logging(settings.log_level)

    try:
        app = Application(settings)
        if args.command == "ssh":
            app.run_ssh()
        elif args.command == "socks":
            app.run_socks(args.port)
        elif args.command == "forward":
            app.run_forward(args.local_port, args.remote_host, args.remote_port)
        else:
            app.run_menu()
    except (OperationInterrupted, KeyboardInterrupt):
        logger.info("Operation cancelled by operator")
        return 0
    except (BastionCtlError, AWSError) as e:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"Error: {e}", style="red", markup=False)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
