"""AWS client wrapper with consistent error handling.

This module provides a thin wrapper around boto3 clients so that every AWS
call made by bastionctl goes through a single place where boto3/botocore
errors are logged and reclassified into the operator-facing taxonomy defined
in :mod:`bastionctl.aws.exceptions`.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Final

import boto3
from botocore.client import BaseClient
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
)

from bastionctl.aws.exceptions import (
    AuthFailureError,
    AWSError,
    EC2Error,
    InstanceConnectError,
    RegionNotEnabledError,
    RequestExpiredError,
    RetriesExhaustedError,
    SSMError,
)

logger: Final = logging.getLogger(__name__)

AUTH_FAILURE_CODES: Final[tuple[str, ...]] = ("AuthFailure", "UnauthorizedOperation")
REQUEST_EXPIRED_CODE: Final[str] = "RequestExpired"
OPT_IN_REQUIRED_CODE: Final[str] = "OptInRequired"
MAX_RETRIES_MARKER: Final[str] = "reached max retries"


class AWSClientWrapper:
    """Wrapper for boto3 clients with error classification.

    All calls are synchronous: bastionctl performs one AWS call at a time and
    blocks on it, so the wrapper simply invokes the boto3 operation inline and
    converts any failure into an :class:`AWSError` subclass.

    Example:
        >>> wrapper = AWSClientWrapper("ec2", region="us-east-1")
        >>> result = wrapper.call("describe_instances", InstanceIds=["i-123"])
    """

    def __init__(
        self,
        service_name: str,
        region: str | None = None,
        session: boto3.Session | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize AWS client wrapper.

        Args:
            service_name: AWS service name (e.g., 'ec2', 'ssm').
            region: AWS region name. If None, uses default from environment/config.
                Defaults to None.
            session: Optional boto3 session (carries the selected profile). If None,
                the default session is used. Defaults to None.
            **kwargs: Additional arguments passed to the boto3 client factory.
        """
        self.service_name = service_name
        self.region = region
        factory = session.client if session is not None else boto3.client
        self._client: BaseClient = factory(service_name, region_name=region, **kwargs)
        logger.debug(f"Initialized AWS {service_name} client for region {region or 'default'}")

    def call(self, operation: str, **kwargs: Any) -> Any:
        """Execute an AWS operation with error handling.

        Args:
            operation: boto3 operation name (e.g., 'describe_instances').
            **kwargs: Operation-specific parameters.

        Returns:
            The response from the AWS operation.

        Raises:
            AuthFailureError: For invalid credentials or missing permissions.
            RequestExpiredError: When AWS rejects the request as expired.
            RegionNotEnabledError: When the region requires an opt-in.
            RetriesExhaustedError: When botocore exhausted its retries.
            AWSError: Service-specific subclass for any other failure.
        """
        operation_name = f"{self.service_name}:{operation}"
        logger.debug(f"Calling {operation_name} with params: {list(kwargs.keys())}")

        try:
            result = getattr(self._client, operation)(**kwargs)
            logger.debug(f"Successfully completed {operation_name}")
            return result

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = e.response.get("Error", {}).get("Message", str(e))

            logger.warning(f"{operation_name} failed with {error_code}: {error_message}")

            raise self._convert_client_error(e, operation, error_code) from e

        except NoCredentialsError as e:
            logger.error(f"{operation_name} failed: no credentials available")
            raise AuthFailureError(
                f"AWS authentication failed. Please verify your credentials and IAM permissions: {e}",
                service=self.service_name,
                operation=operation,
            ) from e

        except (EndpointConnectionError, ConnectTimeoutError) as e:
            logger.error(f"{operation_name} failed after retries: {e}")
            raise RetriesExhaustedError(
                "AWS request failed after multiple retries. This could be due to network "
                f"issues, credential problems, or AWS service disruption: {e}",
                service=self.service_name,
                operation=operation,
            ) from e

        except BotoCoreError as e:
            logger.error(f"{operation_name} failed with BotoCoreError: {e}")
            error_class = self._get_service_error_class()
            raise error_class(
                f"AWS operation failed: {e}",
                service=self.service_name,
                operation=operation,
            ) from e

    def _convert_client_error(
        self, error: ClientError, operation: str, error_code: str
    ) -> AWSError:
        """Convert a boto3 ClientError to the matching custom exception.

        Args:
            error: The original ClientError from boto3.
            operation: The AWS operation name.
            error_code: AWS error code from the response.

        Returns:
            Custom exception instance matching the error type.
        """
        details = {
            "error_code": error_code,
            "http_status": error.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
            "request_id": error.response.get("ResponseMetadata", {}).get("RequestId"),
        }
        context: dict[str, Any] = {
            "service": self.service_name,
            "operation": operation,
            "error_code": error_code,
            "details": details,
        }

        if error_code == REQUEST_EXPIRED_CODE:
            now = datetime.now(UTC).isoformat(timespec="seconds")
            return RequestExpiredError(
                "AWS request expired (likely due to clock skew or expired credentials). "
                f"Current system time: {now}. Please verify your system clock or refresh "
                f"AWS credentials: {error}",
                **context,
            )

        if error_code in AUTH_FAILURE_CODES:
            return AuthFailureError(
                "AWS authentication failed. Please verify your credentials and IAM "
                f"permissions: {error}",
                **context,
            )

        if error_code == OPT_IN_REQUIRED_CODE:
            return RegionNotEnabledError(
                "AWS region is not enabled. Please opt-in for this region in your AWS "
                f"account: {error}",
                **context,
            )

        if MAX_RETRIES_MARKER in str(error):
            return RetriesExhaustedError(
                "AWS request failed after multiple retries. This could be due to network "
                f"issues, credential problems, or AWS service disruption: {error}",
                **context,
            )

        error_class = self._get_service_error_class()
        return error_class(f"AWS operation failed: {error}", **context)

    def _get_service_error_class(
        self,
    ) -> type[EC2Error] | type[SSMError] | type[InstanceConnectError]:
        """Get the appropriate service-specific error class."""
        if self.service_name == "ssm":
            return SSMError
        if self.service_name == "ec2-instance-connect":
            return InstanceConnectError
        return EC2Error


def create_aws_client(
    service_name: str,
    region: str | None = None,
    session: boto3.Session | None = None,
    **kwargs: Any,
) -> AWSClientWrapper:
    """Factory function to create AWS client wrapper.

    Args:
        service_name: AWS service name (e.g., 'ec2', 'ssm').
        region: AWS region name. Defaults to None (uses default region).
        session: Optional boto3 session. Defaults to None.
        **kwargs: Additional arguments for the boto3 client factory.

    Returns:
        Configured AWSClientWrapper instance.

    Example:
        >>> ec2_client = create_aws_client("ec2", region="us-east-1")
        >>> result = ec2_client.call("describe_instances")
    """
    return AWSClientWrapper(service_name, region, session=session, **kwargs)
