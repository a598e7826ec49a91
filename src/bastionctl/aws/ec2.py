"""EC2 instance directory.

This module lists running EC2 instances, classifies bastion hosts and provides
the narrow per-instance lookups needed for EC2 Instance Connect. All calls go
through :class:`AWSClientWrapper`, so API failures arrive already reclassified.
Every listing is a fresh query; nothing is cached between calls.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

import boto3
from pydantic import BaseModel, Field, field_validator

from bastionctl.aws.client import AWSClientWrapper, create_aws_client
from bastionctl.aws.exceptions import EC2Error
from bastionctl.constants import BASTION_TAG_MARKER, NAME_TAG_KEY, RUNNING_STATE_FILTER

logger: Final = logging.getLogger(__name__)

VALID_STATES: Final[frozenset[str]] = frozenset(
    {"pending", "running", "shutting-down", "terminated", "stopping", "stopped"}
)


class EC2Instance(BaseModel):
    """Directory entry for an EC2 instance.

    Attributes:
        instance_id: EC2 instance ID (e.g., 'i-1234567890abcdef0').
        name: Value of the ``Name`` tag, empty when untagged.
        public_ip: Public IPv4 address (optional).
        private_ip: Private IPv4 address (optional).
        state: Current instance state.
        instance_type: EC2 instance type (e.g., 't3.micro').
        availability_zone: Availability zone the instance runs in (optional).
        tags: Dictionary of instance tags.
    """

    instance_id: str = Field(..., min_length=1)
    name: str = ""
    public_ip: str | None = None
    private_ip: str | None = None
    state: str = "running"
    instance_type: str = ""
    availability_zone: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        """Validate instance state against known EC2 states.

        Raises:
            ValueError: If the state is not a known EC2 state.
        """
        if v not in VALID_STATES:
            raise ValueError(f"Invalid instance state: {v}. Must be one of {sorted(VALID_STATES)}")
        return v

    @property
    def display_name(self) -> str:
        """Name shown in selection lists; falls back to the instance ID."""
        return self.name or self.instance_id

    @property
    def is_bastion(self) -> bool:
        """Whether the instance is tagged as a bastion."""
        return is_bastion_tagged(self.tags.values())


def is_bastion_tagged(tag_values: Iterable[str]) -> bool:
    """Return True if any tag value contains "bastion", ignoring case."""
    return any(BASTION_TAG_MARKER in value.lower() for value in tag_values)


def sort_instances(instances: Iterable[EC2Instance]) -> list[EC2Instance]:
    """Sort instances ascending by ``(name, instance_id)``.

    Untagged instances have an empty name and therefore sort first, ordered by
    instance ID among themselves.
    """
    return sorted(instances, key=lambda inst: (inst.name, inst.instance_id))


class EC2Manager:
    """Read-only EC2 queries used for bastion discovery.

    Example:
        >>> manager = EC2Manager(region="us-east-1")
        >>> bastions = manager.list_bastion_instances()
        >>> [b.instance_id for b in bastions]
        ['i-0abc...', 'i-0def...']
    """

    def __init__(
        self,
        region: str | None = None,
        session: boto3.Session | None = None,
        client: AWSClientWrapper | None = None,
    ) -> None:
        """Initialize EC2 manager.

        Args:
            region: AWS region name. If None, uses default from environment/config.
                Defaults to None.
            session: Optional boto3 session carrying the active profile.
            client: Optional pre-configured AWSClientWrapper. If None, creates a new one.
                Defaults to None.
        """
        self.region = region
        self.client = client or create_aws_client("ec2", region=region, session=session)
        logger.debug(f"Initialized EC2Manager for region {region or 'default'}")

    def describe_instances(
        self,
        instance_ids: Sequence[str] | None = None,
        filters: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """Describe EC2 instances, following pagination.

        Args:
            instance_ids: Specific instance IDs to describe. Defaults to None.
            filters: AWS API filters in the format [{"Name": "...", "Values": [...]}].
                Defaults to None.

        Returns:
            Raw instance dictionaries flattened across all reservations and pages.

        Raises:
            AWSError: If the AWS API call fails (already reclassified).
        """
        kwargs: dict[str, Any] = {}
        if instance_ids:
            kwargs["InstanceIds"] = list(instance_ids)
        if filters:
            kwargs["Filters"] = filters

        instances: list[dict[str, Any]] = []
        next_token: str | None = None

        while True:
            if next_token:
                kwargs["NextToken"] = next_token

            response = self.client.call("describe_instances", **kwargs)

            for reservation in response.get("Reservations", []):
                instances.extend(reservation.get("Instances", []))

            next_token = response.get("NextToken")
            if not next_token:
                break

        logger.debug(f"Described {len(instances)} instance(s)")
        return instances

    def list_bastion_instances(self) -> list[EC2Instance]:
        """List running instances tagged as bastions.

        Instances without an ID are dropped. The result is sorted by
        ``(name, instance_id)``.

        Returns:
            Sorted list of bastion instances (possibly empty).

        Raises:
            AWSError: If the AWS API call fails (already reclassified).
        """
        raw_instances = self.describe_instances(filters=RUNNING_STATE_FILTER)

        bastions: list[EC2Instance] = []
        for instance_data in raw_instances:
            if not instance_data.get("InstanceId"):
                continue
            instance = self._parse_instance(instance_data)
            if instance.is_bastion:
                bastions.append(instance)

        logger.info(f"Found {len(bastions)} bastion instance(s) out of {len(raw_instances)}")
        return sort_instances(bastions)

    def get_instance_details(self, instance_id: str) -> EC2Instance:
        """Describe a single instance.

        Raises:
            EC2Error: If the instance is absent from the response.
            AWSError: If the AWS API call fails.
        """
        instances = self.describe_instances(instance_ids=[instance_id])
        if not instances or not instances[0].get("InstanceId"):
            raise EC2Error(
                f"instance {instance_id} not found",
                service="ec2",
                operation="describe_instances",
            )
        return self._parse_instance(instances[0])

    def get_instance_availability_zone(self, instance_id: str) -> str:
        """Return the availability zone an instance runs in.

        Raises:
            EC2Error: If the instance or its placement is absent.
            AWSError: If the AWS API call fails.
        """
        instance = self.get_instance_details(instance_id)
        if not instance.availability_zone:
            raise EC2Error(
                f"availability zone not found for instance {instance_id}",
                service="ec2",
                operation="describe_instances",
            )
        return instance.availability_zone

    def get_instance_public_ip(self, instance_id: str) -> str:
        """Return the public IPv4 address of an instance.

        Raises:
            EC2Error: If the instance is absent or has no public IP.
            AWSError: If the AWS API call fails.
        """
        instance = self.get_instance_details(instance_id)
        if not instance.public_ip:
            raise EC2Error(
                f"instance {instance_id} has no public IP address",
                service="ec2",
                operation="describe_instances",
            )
        return instance.public_ip

    def _parse_instance(self, instance_data: Mapping[str, Any]) -> EC2Instance:
        """Parse AWS API instance data into an EC2Instance model.

        Tags with a missing key or value are skipped.

        Raises:
            EC2Error: If instance data doesn't match the model.
        """
        tags: dict[str, str] = {}
        for tag in instance_data.get("Tags") or []:
            key = tag.get("Key")
            value = tag.get("Value")
            if key is None or value is None:
                continue
            tags[key] = value

        try:
            return EC2Instance(
                instance_id=instance_data["InstanceId"],
                name=tags.get(NAME_TAG_KEY, ""),
                public_ip=instance_data.get("PublicIpAddress"),
                private_ip=instance_data.get("PrivateIpAddress"),
                state=instance_data.get("State", {}).get("Name", "running"),
                instance_type=instance_data.get("InstanceType", ""),
                availability_zone=(instance_data.get("Placement") or {}).get("AvailabilityZone"),
                tags=tags,
            )
        except ValueError as e:
            logger.error(f"Failed to parse instance data: {e}")
            raise EC2Error(
                f"Invalid instance data: {e}",
                service="ec2",
                operation="parse_instance",
            ) from e
