"""Custom exceptions for AWS operations.

This module defines the exception hierarchy used by the AWS layer. Errors
returned by boto3 are reclassified into categories an operator can act on
(authentication, clock skew, region opt-in, retry exhaustion) while the
original error is always kept as ``__cause__``.
"""

from typing import Any


class AWSError(Exception):
    """Base exception for all AWS-related errors.

    Attributes:
        message: Human-readable error message.
        service: AWS service name (e.g., 'ec2', 'ssm').
        operation: AWS operation name (e.g., 'describe_instances').
        error_code: AWS error code if available (e.g., 'AuthFailure').
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        operation: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AWS error with context.

        Args:
            message: Human-readable error message.
            service: AWS service name (e.g., 'ec2', 'ssm'). Defaults to None.
            operation: AWS operation name. Defaults to None.
            error_code: AWS error code if available. Defaults to None.
            details: Additional error context. Defaults to None.
        """
        super().__init__(message)
        self.message = message
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error string with context."""
        parts = [self.message]
        if self.service:
            parts.append(f"Service: {self.service}")
        if self.operation:
            parts.append(f"Operation: {self.operation}")
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        return " | ".join(parts)


class EC2Error(AWSError):
    """Exception raised for EC2 service errors."""


class SSMError(AWSError):
    """Exception raised for Systems Manager service errors.

    Raised when starting or terminating Session Manager sessions fails.
    """


class InstanceConnectError(AWSError):
    """Exception raised for EC2 Instance Connect errors.

    Raised when pushing a temporary SSH public key to an instance fails.
    """


class AuthFailureError(AWSError):
    """Exception raised when AWS rejects the caller's credentials.

    Covers both invalid credentials (``AuthFailure``) and missing IAM
    permissions (``UnauthorizedOperation``).
    """


class RequestExpiredError(AWSError):
    """Exception raised when AWS reports an expired request.

    This almost always means the local clock is skewed or the credentials
    have expired.
    """


class RegionNotEnabledError(AWSError):
    """Exception raised when the target region requires an account opt-in."""


class RetriesExhaustedError(AWSError):
    """Exception raised when botocore gave up after its retry budget."""


class ConfigurationError(AWSError):
    """Exception raised when the local AWS configuration cannot be loaded."""
