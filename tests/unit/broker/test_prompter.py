"""Tests for the broker's operator prompts."""

import socket
from collections.abc import Callable
from unittest.mock import patch

import pytest
from rich.console import Console

from bastionctl.aws.ec2 import EC2Instance
from bastionctl.broker.models import ConnectionMethod
from bastionctl.broker.prompter import (
    INSTANCE_ID_CHOICE,
    PUBLIC_IP_CHOICE,
    ConnectionPrompter,
    MenuAction,
    RichPrompter,
)
from bastionctl.exceptions import InvalidPortError, OperationInterrupted, PromptError

PrompterFactory = Callable[..., ConnectionPrompter]


class TestMenuAndMethod:
    """Tests for the top-level selections."""

    def test_select_action(self, make_prompter: PrompterFactory) -> None:
        """Test that the four menu entries are offered in order."""
        prompter = make_prompter("2) Start SOCKS proxy")

        assert prompter.select_action() is MenuAction.SOCKS
        assert prompter.prompter.selections[0] == [
            "1) SSH/SSM into bastion",
            "2) Start SOCKS proxy",
            "3) Port forwarding",
            "4) Exit",
        ]

    def test_choose_connection_method(self, make_prompter: PrompterFactory) -> None:
        """Test the SSH/SSM choice."""
        assert make_prompter("SSM").choose_connection_method() is ConnectionMethod.SSM
        assert make_prompter("SSH").choose_connection_method() is ConnectionMethod.SSH

    def test_cancellation_propagates(self, make_prompter: PrompterFactory) -> None:
        """Test that an interrupted prompt raises OperationInterrupted."""
        with pytest.raises(OperationInterrupted):
            make_prompter(OperationInterrupted()).select_action()


class TestPortPrompts:
    """Tests for port prompts."""

    def test_socks_port_default(self, make_prompter: PrompterFactory) -> None:
        """Test that an empty answer yields the default."""
        assert make_prompter("").prompt_for_socks_proxy_port(9999) == 9999

    def test_socks_port_invalid(self, make_prompter: PrompterFactory) -> None:
        """Test that out-of-range input is rejected."""
        with pytest.raises(InvalidPortError):
            make_prompter("70000").prompt_for_socks_proxy_port(9999)

    def test_local_port_moves_past_bound_port(
        self, make_prompter: PrompterFactory, output: Callable[[], str]
    ) -> None:
        """Test that a port in use is replaced with a free one."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("", 0))
            sock.listen(1)
            busy = sock.getsockname()[1]

            port = make_prompter("").prompt_for_local_port("port forwarding", busy)

        assert port != busy
        assert f"Port {busy} is already in use. Choosing port {port} instead." in output()

    def test_local_port_default_8080_in_use(self, make_prompter: PrompterFactory) -> None:
        """Test the auto-increment from a busy default of 8080."""
        with patch(
            "bastionctl.utils.ports.is_port_available", side_effect=lambda port: port != 8080
        ):
            port = make_prompter("").prompt_for_local_port("port forwarding", 8080)

        assert port == 8081

    def test_local_port_invalid_default(self, make_prompter: PrompterFactory) -> None:
        """Test that an invalid default is rejected before prompting."""
        with pytest.raises(InvalidPortError):
            make_prompter().prompt_for_local_port("port forwarding", 0)

    def test_remote_port(self, make_prompter: PrompterFactory) -> None:
        """Test the remote port prompt."""
        assert make_prompter("5432").prompt_for_remote_port("target") == 5432


class TestTextPrompts:
    """Tests for free-text prompts."""

    def test_empty_bastion_host_rejected(self, make_prompter: PrompterFactory) -> None:
        """Test that a host is required."""
        with pytest.raises(PromptError, match="bastion host cannot be empty"):
            make_prompter("").prompt_for_bastion_host()

    def test_ssh_user_default(self, make_prompter: PrompterFactory) -> None:
        """Test the SSH user default."""
        assert make_prompter("").prompt_for_ssh_user("ec2-user") == "ec2-user"

    def test_region_default(self, make_prompter: PrompterFactory) -> None:
        """Test that the discovered default region is offered."""
        prompter = make_prompter("")

        assert prompter.prompt_for_region("eu-west-1") == "eu-west-1"
        assert "Default: eu-west-1" in prompter.prompter.labels[0]

    def test_region_required_without_default(self, make_prompter: PrompterFactory) -> None:
        """Test that an empty region without default fails."""
        with pytest.raises(PromptError, match="region cannot be empty"):
            make_prompter("").prompt_for_region("")


class TestConfirmation:
    """Tests for prompt_for_confirmation."""

    @pytest.mark.parametrize(
        ("answer", "expected"),
        [("y", True), ("YES", True), ("n", False), ("no", False), ("", False)],
    )
    def test_answers(self, make_prompter: PrompterFactory, answer: str, expected: bool) -> None:
        """Test the accepted answers."""
        assert make_prompter(answer).prompt_for_confirmation("Continue?") is expected

    def test_invalid_answer_reasks(
        self, make_prompter: PrompterFactory, output: Callable[[], str]
    ) -> None:
        """Test that an unrecognised answer prompts again."""
        prompter = make_prompter("maybe", "y")

        assert prompter.prompt_for_confirmation("Continue?") is True
        assert "Invalid input 'maybe'" in output()
        assert len(prompter.prompter.labels) == 2


class TestBastionInstanceSelection:
    """Tests for prompt_for_bastion_instance."""

    def test_ssm_returns_instance_id(
        self, make_prompter: PrompterFactory, bastion_instances: list[EC2Instance]
    ) -> None:
        """Test that the SSM list returns IDs and marks missing IPs."""
        prompter = make_prompter("bastion-b")

        assert prompter.prompt_for_bastion_instance(bastion_instances, for_ssm=True) == (
            "i-0ddd3333eeee4444f"
        )
        assert prompter.prompter.selections[0][1].endswith("No Public IP")

    def test_ssh_public_ip_lists_only_instances_with_ip(
        self, make_prompter: PrompterFactory, bastion_instances: list[EC2Instance]
    ) -> None:
        """Test the public IP path."""
        prompter = make_prompter(PUBLIC_IP_CHOICE, "bastion-a")

        assert prompter.prompt_for_bastion_instance(bastion_instances, for_ssm=False) == "54.1.2.3"
        assert len(prompter.prompter.selections[1]) == 1

    def test_ssh_public_ip_without_candidates(
        self, make_prompter: PrompterFactory, bastion_instances: list[EC2Instance]
    ) -> None:
        """Test the error when no bastion has a public IP."""
        prompter = make_prompter(PUBLIC_IP_CHOICE)

        with pytest.raises(PromptError, match="no bastion instances with public IP"):
            prompter.prompt_for_bastion_instance(bastion_instances[1:], for_ssm=False)

    def test_ssh_instance_connect_returns_instance_id(
        self, make_prompter: PrompterFactory, bastion_instances: list[EC2Instance]
    ) -> None:
        """Test the Instance Connect path lists every instance."""
        prompter = make_prompter(INSTANCE_ID_CHOICE, "bastion-b")

        assert prompter.prompt_for_bastion_instance(bastion_instances, for_ssm=False) == (
            "i-0ddd3333eeee4444f"
        )
        assert len(prompter.prompter.selections[1]) == 2

    def test_empty_list(self, make_prompter: PrompterFactory) -> None:
        """Test that an empty list is an error."""
        with pytest.raises(PromptError, match="no instances available"):
            make_prompter().prompt_for_bastion_instance([], for_ssm=True)


class TestRichPrompter:
    """Tests for the rich-backed prompter."""

    def test_keyboard_interrupt_becomes_operation_interrupted(self, console: Console) -> None:
        """Test that Ctrl+C at a prompt is reported as cancellation."""
        with patch("bastionctl.broker.prompter.Prompt.ask", side_effect=KeyboardInterrupt):
            with pytest.raises(OperationInterrupted):
                RichPrompter(console).prompt_for_input("Host:")

    def test_eof_becomes_operation_interrupted(self, console: Console) -> None:
        """Test that end of input is reported as cancellation."""
        with patch("bastionctl.broker.prompter.Prompt.ask", side_effect=EOFError):
            with pytest.raises(OperationInterrupted):
                RichPrompter(console).prompt_for_selection("Pick", ["a", "b"])

    def test_selection_maps_number_to_item(self, console: Console) -> None:
        """Test that the typed number selects the item."""
        with patch("bastionctl.broker.prompter.Prompt.ask", return_value="2"):
            assert RichPrompter(console).prompt_for_selection("Pick", ["a", "b"]) == "b"

    def test_input_falls_back_to_default(self, console: Console) -> None:
        """Test that an empty answer yields the default."""
        with patch("bastionctl.broker.prompter.Prompt.ask", return_value=""):
            assert RichPrompter(console).prompt_for_input("User:", "ec2-user") == "ec2-user"
