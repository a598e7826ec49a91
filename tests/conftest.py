"""Pytest configuration and shared fixtures."""

import io
from collections.abc import Callable, Iterator, Sequence
from unittest.mock import Mock

import pytest
from rich.console import Console

from bastionctl.aws.ec2 import EC2Instance
from bastionctl.aws.probe import AWSContext
from bastionctl.broker.prompter import ConnectionPrompter
from bastionctl.config import Settings, get_settings

AWS_ENV_VARS = (
    "AWS_PROFILE",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_SESSION_MANAGER_PLUGIN_PATH",
    "BASTIONCTL_DEFAULT_SSH_USER",
    "BASTIONCTL_DEFAULT_SSH_KEY_PATH",
    "BASTIONCTL_DEFAULT_SOCKS_PORT",
    "BASTIONCTL_DEFAULT_FORWARD_PORT",
    "BASTIONCTL_LOG_LEVEL",
    "BASTIONCTL_SESSION_MANAGER_PLUGIN_PATH",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate every test from the caller's AWS and bastionctl environment."""
    for name in AWS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ScriptedPrompter:
    """Prompter backend that replays scripted answers.

    Answers are consumed in order. An exception instance in the script is
    raised instead of returned. For selections, an answer is matched exactly
    against the offered items first and then as a substring.

    Attributes:
        labels: Every label that was shown, in order.
        selections: The item lists offered for every selection prompt.
    """

    def __init__(self, answers: Sequence[object] = ()) -> None:
        self.answers = list(answers)
        self.labels: list[str] = []
        self.selections: list[list[str]] = []

    def _next(self, label: str) -> object:
        self.labels.append(label)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {label}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def prompt_for_input(self, label: str, default: str = "") -> str:
        answer = str(self._next(label))
        return answer or default

    def prompt_for_selection(self, label: str, items: Sequence[str]) -> str:
        self.selections.append(list(items))
        answer = str(self._next(label))
        if answer in items:
            return answer
        for item in items:
            if answer in item:
                return item
        raise AssertionError(f"{answer!r} not offered in {list(items)}")


@pytest.fixture
def sample_instance_id() -> str:
    """Provide a sample EC2 instance ID for testing.

    Returns:
        A valid-format EC2 instance ID.
    """
    return "i-1234567890abcdef0"


@pytest.fixture
def sample_region() -> str:
    """Provide a sample AWS region for testing.

    Returns:
        AWS region name.
    """
    return "us-east-1"


@pytest.fixture
def console() -> Console:
    """Provide a rich console that records output in memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def settings() -> Settings:
    """Provide settings with no AWS overrides."""
    return Settings(aws_profile=None, aws_region=None, session_manager_plugin_path=None)


@pytest.fixture
def aws_configured(sample_region: str) -> AWSContext:
    """Provide a probe result for a configured AWS environment."""
    return AWSContext(Mock(name="session"), sample_region, True)


@pytest.fixture
def aws_unconfigured() -> AWSContext:
    """Provide a probe result for a machine without AWS configuration."""
    return AWSContext(None, None, False)


@pytest.fixture
def bastion_instances() -> list[EC2Instance]:
    """Provide two discovered bastions, one without a public IP."""
    return [
        EC2Instance(
            instance_id="i-0aaa1111bbbb2222c",
            name="bastion-a",
            public_ip="54.1.2.3",
            private_ip="10.0.0.5",
            availability_zone="us-east-1a",
            tags={"Name": "bastion-a"},
        ),
        EC2Instance(
            instance_id="i-0ddd3333eeee4444f",
            name="bastion-b",
            private_ip="10.0.1.7",
            availability_zone="us-east-1b",
            tags={"Name": "bastion-b"},
        ),
    ]


@pytest.fixture
def make_prompter(console: Console) -> Callable[..., ConnectionPrompter]:
    """Provide a factory for ConnectionPrompters driven by scripted answers.

    The scripted backend is reachable as ``prompter.prompter`` for assertions
    on the labels and selection lists that were shown.
    """

    def factory(*answers: object) -> ConnectionPrompter:
        return ConnectionPrompter(prompter=ScriptedPrompter(answers), console=console)

    return factory


@pytest.fixture
def output(console: Console) -> Callable[[], str]:
    """Provide a reader for everything printed to the in-memory console."""
    return lambda: console.file.getvalue()  # type: ignore[attr-defined]
