"""Connection resolution and session launching.

Example:
    >>> from bastionctl.broker import ConnectionResolver, BastionServices
    >>>
    >>> resolver = ConnectionResolver(prompter, settings, probe_aws(settings))
    >>> BastionServices(resolver, ssm_starter).ssh_into_bastion()
"""

from bastionctl.broker.menu import BastionMenu, MenuActionError
from bastionctl.broker.models import ConnectionDetails, ConnectionMethod, SSHTarget, SSMTarget
from bastionctl.broker.prompter import (
    ConnectionPrompter,
    MenuAction,
    Prompter,
    RichPrompter,
)
from bastionctl.broker.resolver import ConnectionResolver
from bastionctl.broker.services import BastionServices
from bastionctl.broker.ssm_starter import SSMSessionStarter

__all__ = [
    "BastionMenu",
    "BastionServices",
    "ConnectionDetails",
    "ConnectionMethod",
    "ConnectionPrompter",
    "ConnectionResolver",
    "MenuAction",
    "MenuActionError",
    "Prompter",
    "RichPrompter",
    "SSHTarget",
    "SSMSessionStarter",
    "SSMTarget",
]
