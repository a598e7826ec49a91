"""EC2 Instance Connect key push."""

import logging
from typing import Final

import boto3

from bastionctl.aws.client import AWSClientWrapper, create_aws_client
from bastionctl.aws.exceptions import InstanceConnectError

logger: Final = logging.getLogger(__name__)


class InstanceConnectManager:
    """Pushes short-lived SSH public keys with EC2 Instance Connect.

    A pushed key is accepted by the instance for about sixty seconds, long
    enough for the SSH client to authenticate.
    """

    def __init__(
        self,
        region: str | None = None,
        session: boto3.Session | None = None,
        client: AWSClientWrapper | None = None,
    ) -> None:
        self.region = region
        self.client = client or create_aws_client(
            "ec2-instance-connect", region=region, session=session
        )

    def send_ssh_public_key(
        self, instance_id: str, os_user: str, public_key: str, availability_zone: str
    ) -> None:
        """Push a public key for ``os_user`` to an instance.

        Args:
            instance_id: Target instance ID.
            os_user: Operating-system user the key is authorized for.
            public_key: OpenSSH-formatted public key.
            availability_zone: Availability zone of the instance.

        Raises:
            AWSError: If the push is rejected (already reclassified).
        """
        logger.info(f"Pushing SSH public key for {os_user} to {instance_id} ({availability_zone})")
        response = self.client.call(
            "send_ssh_public_key",
            InstanceId=instance_id,
            InstanceOSUser=os_user,
            SSHPublicKey=public_key,
            AvailabilityZone=availability_zone,
        )
        if response and response.get("Success") is False:
            raise InstanceConnectError(
                f"Instance Connect rejected the key for {os_user} on {instance_id}",
                service="ec2-instance-connect",
                operation="send_ssh_public_key",
                details={"request_id": response.get("RequestId")},
            )
