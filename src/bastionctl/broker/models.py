"""Connection details produced by the resolver.

``ConnectionDetails`` is a tagged union: an SSH target names a host (or, for
EC2 Instance Connect, an instance ID), an SSM target names an instance ID and
the region whose SSM endpoint serves it. Both are frozen once resolved and
live only for the duration of one session request.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConnectionMethod(str, Enum):
    """Access method chosen by the operator."""

    SSH = "SSH"
    SSM = "AWS Systems Manager (SSM)"


class SSHTarget(BaseModel):
    """Resolved SSH target.

    Attributes:
        host: Hostname, IP address, or instance ID (Instance Connect only).
        user: Remote operating-system user.
        key_path: Absolute path of the validated private key.
        instance_id: Instance ID when the key was pushed with Instance Connect.
        use_instance_connect: True only after a successful public-key push.
        region: Region of the instance when discovered through AWS.
    """

    model_config = ConfigDict(frozen=True)

    method: Literal[ConnectionMethod.SSH] = ConnectionMethod.SSH
    host: str = Field(..., min_length=1)
    user: str = Field(..., min_length=1)
    key_path: str = Field(..., min_length=1)
    instance_id: str | None = None
    use_instance_connect: bool = False
    region: str | None = None

    @model_validator(mode="after")
    def instance_connect_requires_instance(self) -> "SSHTarget":
        """Ensure an Instance Connect target carries its instance ID as host.

        Raises:
            ValueError: If ``use_instance_connect`` is set without a matching ID.
        """
        if self.use_instance_connect and (
            not self.instance_id or self.host != self.instance_id
        ):
            raise ValueError("Instance Connect targets must use the instance ID as host")
        return self


class SSMTarget(BaseModel):
    """Resolved SSM Session Manager target.

    Attributes:
        instance_id: Target instance ID.
        region: Region whose SSM endpoint manages the instance.
    """

    model_config = ConfigDict(frozen=True)

    method: Literal[ConnectionMethod.SSM] = ConnectionMethod.SSM
    instance_id: str = Field(..., min_length=1)
    region: str | None = None


ConnectionDetails = Annotated[SSHTarget | SSMTarget, Field(discriminator="method")]
