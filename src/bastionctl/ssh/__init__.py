"""SSH key checks and command construction."""

from bastionctl.ssh.command import SSHCommandBuilder, execute_ssh_command, interpret_ssh_error
from bastionctl.ssh.keys import expand_key_path, public_key_path, validate_ssh_key

__all__ = [
    "SSHCommandBuilder",
    "execute_ssh_command",
    "expand_key_path",
    "interpret_ssh_error",
    "public_key_path",
    "validate_ssh_key",
]
