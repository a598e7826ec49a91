"""AWS integration modules for bastionctl.

This package provides:
- A boto3 client wrapper that reclassifies API errors
- The AWS capability probe (credentials + region)
- Bastion instance discovery on EC2
- EC2 Instance Connect public-key push
- SSM Session Manager session lifecycle

Example:
    >>> from bastionctl.aws import EC2Manager, probe_aws
    >>>
    >>> context = probe_aws(settings)
    >>> if context.is_configured:
    ...     bastions = EC2Manager(region=context.region).list_bastion_instances()
"""

from bastionctl.aws.client import AWSClientWrapper, create_aws_client
from bastionctl.aws.ec2 import EC2Instance, EC2Manager
from bastionctl.aws.exceptions import (
    AuthFailureError,
    AWSError,
    ConfigurationError,
    EC2Error,
    InstanceConnectError,
    RegionNotEnabledError,
    RequestExpiredError,
    RetriesExhaustedError,
    SSMError,
)
from bastionctl.aws.instance_connect import InstanceConnectManager
from bastionctl.aws.probe import AWSContext, probe_aws
from bastionctl.aws.ssm_sessions import SSMSession, SSMSessionManager

__all__ = [
    "AWSClientWrapper",
    "AWSContext",
    "AWSError",
    "AuthFailureError",
    "ConfigurationError",
    "EC2Error",
    "EC2Instance",
    "EC2Manager",
    "InstanceConnectError",
    "InstanceConnectManager",
    "RegionNotEnabledError",
    "RequestExpiredError",
    "RetriesExhaustedError",
    "SSMError",
    "SSMSession",
    "SSMSessionManager",
    "create_aws_client",
    "probe_aws",
]
