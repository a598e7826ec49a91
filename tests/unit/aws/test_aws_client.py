"""Tests for the AWS client wrapper and its error classification."""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
)

from bastionctl.aws.client import AWSClientWrapper, create_aws_client
from bastionctl.aws.exceptions import (
    AuthFailureError,
    EC2Error,
    InstanceConnectError,
    RegionNotEnabledError,
    RequestExpiredError,
    RetriesExhaustedError,
    SSMError,
)


def client_error(
    code: str, message: str = "boom", operation: str = "DescribeInstances"
) -> ClientError:
    """Build a botocore ClientError with the given code."""
    return ClientError(
        error_response={
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": 400, "RequestId": "req-123"},
        },
        operation_name=operation,
    )


class TestAWSClientWrapper:
    """Test suite for AWSClientWrapper class."""

    @pytest.fixture
    def mock_boto_client(self) -> Mock:
        """Fixture providing a mocked boto3 client."""
        return Mock()

    @pytest.fixture
    def wrapper(self, mock_boto_client: Mock) -> AWSClientWrapper:
        """Fixture providing an AWSClientWrapper with mocked boto3 client."""
        with patch("boto3.client", return_value=mock_boto_client):
            return AWSClientWrapper("ec2", region="us-east-1")

    def test_initialization(self, mock_boto_client: Mock) -> None:
        """Test AWSClientWrapper initialization."""
        with patch("boto3.client", return_value=mock_boto_client) as mock_create:
            wrapper = AWSClientWrapper("ec2", region="us-west-2")

            assert wrapper.service_name == "ec2"
            assert wrapper.region == "us-west-2"
            mock_create.assert_called_once_with("ec2", region_name="us-west-2")

    def test_initialization_with_session(self) -> None:
        """Test that a boto3 session, when given, builds the client."""
        session = Mock()
        AWSClientWrapper("ssm", region="eu-west-1", session=session)
        session.client.assert_called_once_with("ssm", region_name="eu-west-1")

    def test_successful_call(self, wrapper: AWSClientWrapper, mock_boto_client: Mock) -> None:
        """Test successful AWS API call."""
        expected_response = {"Reservations": [{"Instances": [{"InstanceId": "i-123"}]}]}
        mock_boto_client.describe_instances = Mock(return_value=expected_response)

        result = wrapper.call("describe_instances", InstanceIds=["i-123"])

        assert result == expected_response
        mock_boto_client.describe_instances.assert_called_once_with(InstanceIds=["i-123"])

    @pytest.mark.parametrize("code", ["AuthFailure", "UnauthorizedOperation"])
    def test_auth_failure_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock, code: str
    ) -> None:
        """Test that credential and permission failures become AuthFailureError."""
        mock_boto_client.describe_instances = Mock(side_effect=client_error(code))

        with pytest.raises(AuthFailureError) as exc_info:
            wrapper.call("describe_instances")

        assert exc_info.value.error_code == code
        assert "verify your credentials" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ClientError)

    def test_request_expired_includes_current_time(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that RequestExpired mentions the current system time."""
        mock_boto_client.describe_instances = Mock(side_effect=client_error("RequestExpired"))

        with pytest.raises(RequestExpiredError, match="Current system time: "):
            wrapper.call("describe_instances")

    def test_opt_in_required_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that OptInRequired becomes RegionNotEnabledError."""
        mock_boto_client.describe_instances = Mock(side_effect=client_error("OptInRequired"))

        with pytest.raises(RegionNotEnabledError, match="region is not enabled"):
            wrapper.call("describe_instances")

    def test_max_retries_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that an exhausted retry budget becomes RetriesExhaustedError."""
        error = client_error("ServiceUnavailable", message="reached max retries: 4")
        mock_boto_client.describe_instances = Mock(side_effect=error)

        with pytest.raises(RetriesExhaustedError, match="multiple retries"):
            wrapper.call("describe_instances")

    def test_unknown_client_error_becomes_service_error(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test the generic fallback for unclassified error codes."""
        mock_boto_client.describe_instances = Mock(
            side_effect=client_error("InvalidInstanceID.Malformed")
        )

        with pytest.raises(EC2Error) as exc_info:
            wrapper.call("describe_instances")

        error = exc_info.value
        assert error.message.startswith("AWS operation failed:")
        assert error.service == "ec2"
        assert error.operation == "describe_instances"
        assert error.details["request_id"] == "req-123"

    def test_no_credentials_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that missing credentials become AuthFailureError."""
        mock_boto_client.describe_instances = Mock(side_effect=NoCredentialsError())

        with pytest.raises(AuthFailureError):
            wrapper.call("describe_instances")

    def test_endpoint_connection_error_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that unreachable endpoints become RetriesExhaustedError."""
        mock_boto_client.describe_instances = Mock(
            side_effect=EndpointConnectionError(endpoint_url="https://ec2.example")
        )

        with pytest.raises(RetriesExhaustedError):
            wrapper.call("describe_instances")

    def test_botocore_error_conversion(
        self, wrapper: AWSClientWrapper, mock_boto_client: Mock
    ) -> None:
        """Test that other BotoCoreErrors become the service error."""
        mock_boto_client.describe_instances = Mock(side_effect=BotoCoreError())

        with pytest.raises(EC2Error, match="AWS operation failed"):
            wrapper.call("describe_instances")

    @pytest.mark.parametrize(
        ("service", "error_class"),
        [("ssm", SSMError), ("ec2-instance-connect", InstanceConnectError), ("ec2", EC2Error)],
    )
    def test_service_specific_error_class(self, service: str, error_class: type) -> None:
        """Test that the fallback error class follows the service."""
        mock_client = Mock()
        mock_client.some_operation = Mock(side_effect=client_error("SomethingElse"))
        with patch("boto3.client", return_value=mock_client):
            wrapper = AWSClientWrapper(service, region="us-east-1")

        with pytest.raises(error_class):
            wrapper.call("some_operation")


class TestCreateAWSClient:
    """Test suite for create_aws_client factory function."""

    def test_create_client_with_region(self) -> None:
        """Test creating client with specific region."""
        with patch("boto3.client") as mock_create:
            client = create_aws_client("ec2", region="ap-south-1")

        assert isinstance(client, AWSClientWrapper)
        assert client.region == "ap-south-1"
        mock_create.assert_called_once_with("ec2", region_name="ap-south-1")
