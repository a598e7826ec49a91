"""Tests for SSM session lifecycle management."""

from unittest.mock import Mock

import pytest

from bastionctl.aws.exceptions import (
    AuthFailureError,
    AWSError,
    RegionNotEnabledError,
    RequestExpiredError,
    RetriesExhaustedError,
    SSMError,
)
from bastionctl.aws.ssm_sessions import SSMSession, SSMSessionManager

START_RESPONSE = {
    "SessionId": "alice-0123456789abcdef0",
    "StreamUrl": "wss://ssmmessages.us-east-1.amazonaws.com/v1/data-channel/alice",
    "TokenValue": "token-abc",
}


class TestSSMSession:
    """Tests for the SSMSession model."""

    def test_plugin_payload(self) -> None:
        """Test the JSON payload handed to session-manager-plugin."""
        session = SSMSession(
            session_id="s-1", target="i-1", stream_url="wss://x", token_value="t"
        )

        assert session.plugin_payload() == {
            "Target": "i-1",
            "SessionId": "s-1",
            "StreamUrl": "wss://x",
            "TokenValue": "t",
        }


class TestSSMSessionManager:
    """Test suite for SSMSessionManager class."""

    @pytest.fixture
    def mock_client(self) -> Mock:
        """Fixture providing a mocked AWSClientWrapper."""
        client = Mock()
        client.call.return_value = START_RESPONSE
        return client

    @pytest.fixture
    def manager(self, mock_client: Mock) -> SSMSessionManager:
        """Fixture providing an SSMSessionManager with mocked client."""
        return SSMSessionManager(region="us-east-1", client=mock_client)

    def test_start_shell_session_omits_document(
        self, manager: SSMSessionManager, mock_client: Mock
    ) -> None:
        """Test that a plain shell uses the default document."""
        session = manager.start_session("i-1")

        mock_client.call.assert_called_once_with("start_session", Target="i-1")
        assert session.session_id == START_RESPONSE["SessionId"]
        assert session.token_value == "token-abc"
        assert session.document_name is None

    def test_start_port_forwarding_session(
        self, manager: SSMSessionManager, mock_client: Mock
    ) -> None:
        """Test that document and parameters are passed through."""
        parameters = {"portNumber": ["1080"], "localPortNumber": ["9999"]}

        manager.start_session(
            "i-1", document_name="AWS-StartPortForwardingSession", parameters=parameters
        )

        mock_client.call.assert_called_once_with(
            "start_session",
            Target="i-1",
            DocumentName="AWS-StartPortForwardingSession",
            Parameters=parameters,
        )

    def test_start_session_empty_target(self, manager: SSMSessionManager) -> None:
        """Test that an empty target is rejected before any API call."""
        with pytest.raises(SSMError, match="target cannot be empty"):
            manager.start_session("")

    def test_start_session_failure_is_wrapped(
        self, manager: SSMSessionManager, mock_client: Mock
    ) -> None:
        """Test that API failures name the target."""
        mock_client.call.side_effect = SSMError(
            "TargetNotConnected", error_code="TargetNotConnected"
        )

        with pytest.raises(SSMError, match="Failed to start session for target i-1"):
            manager.start_session("i-1")

    @pytest.mark.parametrize(
        "error",
        [
            AuthFailureError("denied", error_code="AuthFailure"),
            RequestExpiredError("expired", error_code="RequestExpired"),
            RegionNotEnabledError("opt in", error_code="OptInRequired"),
            RetriesExhaustedError("gave up"),
        ],
    )
    def test_start_session_keeps_error_category(
        self, manager: SSMSessionManager, mock_client: Mock, error: AWSError
    ) -> None:
        """Test that credential, expiry, opt-in and retry failures keep their class."""
        mock_client.call.side_effect = error

        with pytest.raises(type(error)) as exc_info:
            manager.start_session("i-1")

        assert exc_info.value is error

    def test_session_scope_swallows_auth_failure_on_terminate(
        self, manager: SSMSessionManager, mock_client: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that any AWS failure while terminating is only logged."""
        mock_client.call.side_effect = [START_RESPONSE, AuthFailureError("expired creds")]

        with manager.session_scope("i-1"):
            pass

        assert "Failed to terminate SSM session" in caplog.text

    def test_session_scope_terminates_on_success(
        self, manager: SSMSessionManager, mock_client: Mock
    ) -> None:
        """Test that the session is terminated after the block."""
        with manager.session_scope("i-1") as session:
            assert session.status == "Active"

        mock_client.call.assert_called_with("terminate_session", SessionId=session.session_id)
        assert session.status == "Terminated"

    def test_session_scope_terminates_on_error(
        self, manager: SSMSessionManager, mock_client: Mock
    ) -> None:
        """Test that the session is terminated when the block raises."""
        with pytest.raises(RuntimeError, match="plugin crashed"):
            with manager.session_scope("i-1"):
                raise RuntimeError("plugin crashed")

        assert mock_client.call.call_args_list[-1].args == ("terminate_session",)

    def test_session_scope_swallows_termination_failure(
        self, manager: SSMSessionManager, mock_client: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a failed termination is logged, not raised."""
        mock_client.call.side_effect = [START_RESPONSE, SSMError("gone")]

        with manager.session_scope("i-1") as session:
            pass

        assert session.status == "Active"
        assert "Failed to terminate SSM session" in caplog.text
