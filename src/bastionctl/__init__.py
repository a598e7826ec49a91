"""bastionctl - connection broker for AWS bastion hosts.

This package discovers bastion instances on EC2, picks an access method
(direct SSH, EC2 Instance Connect or SSM Session Manager) and launches the
matching local tooling for interactive shells, SOCKS proxies and port
forwarding.
"""

from bastionctl.version import __version__

__author__ = "bastionctl Contributors"
__license__ = "MIT"

__all__ = ["__author__", "__license__", "__version__"]
