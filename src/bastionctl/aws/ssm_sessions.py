"""SSM session lifecycle management.

This module starts and terminates AWS Systems Manager Session Manager sessions.
The local ``session-manager-plugin`` speaks the actual streaming protocol; this
module only obtains the session credentials (stream URL and token) and makes
sure the server-side session is terminated once the plugin exits.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Final

import boto3
from pydantic import BaseModel, Field

from bastionctl.aws.client import AWSClientWrapper, create_aws_client
from bastionctl.aws.exceptions import AWSError, SSMError

logger: Final = logging.getLogger(__name__)


class SSMSession(BaseModel):
    """Model representing a started SSM session.

    Attributes:
        session_id: SSM session ID (e.g., 'alice-0123456789abcdef0').
        target: Target instance ID.
        stream_url: WebSocket URL the plugin connects to.
        token_value: Token the plugin authenticates the stream with.
        document_name: SSM document used for the session (None for the default shell).
        status: Session status as tracked locally.
    """

    session_id: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    stream_url: str = ""
    token_value: str = ""
    document_name: str | None = None
    status: str = "Active"

    def plugin_payload(self) -> dict[str, str]:
        """Return the session parameters handed to session-manager-plugin."""
        return {
            "Target": self.target,
            "SessionId": self.session_id,
            "StreamUrl": self.stream_url,
            "TokenValue": self.token_value,
        }


class SSMSessionManager:
    """Manager for SSM session start/terminate operations.

    Example:
        >>> manager = SSMSessionManager(region="us-east-1")
        >>> with manager.session_scope("i-123") as session:
        ...     run_plugin(session)
    """

    def __init__(
        self,
        region: str | None = None,
        session: boto3.Session | None = None,
        client: AWSClientWrapper | None = None,
    ) -> None:
        """Initialize SSM session manager.

        Args:
            region: AWS region name. If None, uses default from environment/config.
                Defaults to None.
            session: Optional boto3 session carrying the active profile.
            client: Optional pre-configured AWSClientWrapper for SSM. If None, creates
                a new one. Defaults to None.
        """
        self.region = region
        self.client = client or create_aws_client("ssm", region=region, session=session)
        logger.debug(f"Initialized SSMSessionManager for region {region or 'default'}")

    def start_session(
        self,
        target: str,
        document_name: str | None = None,
        parameters: dict[str, list[str]] | None = None,
        reason: str | None = None,
    ) -> SSMSession:
        """Start a new SSM session.

        Args:
            target: Target instance ID.
            document_name: SSM document name; None starts the default shell session.
                Defaults to None.
            parameters: Document-specific parameters, e.g.
                ``{"portNumber": ["1080"], "localPortNumber": ["9999"]}``.
                Defaults to None.
            reason: Reason for starting the session (for audit). Defaults to None.

        Returns:
            SSMSession carrying the stream URL and token for the plugin.

        Raises:
            SSMError: If target is empty or the SSM API call fails.
            AWSError: Credential, expiry, region opt-in and retry failures are
                raised unchanged.
        """
        if not target:
            raise SSMError("target cannot be empty", service="ssm", operation="start_session")

        logger.info(f"Starting SSM session for target {target} with document {document_name}")

        kwargs: dict[str, Any] = {"Target": target}
        if document_name:
            kwargs["DocumentName"] = document_name
        if parameters:
            kwargs["Parameters"] = parameters
        if reason:
            kwargs["Reason"] = reason

        try:
            response = self.client.call("start_session", **kwargs)
        except SSMError as e:
            logger.error(f"Failed to start session: {e}")
            raise SSMError(
                f"Failed to start session for target {target}: {e.message}",
                service="ssm",
                operation="start_session",
                error_code=e.error_code,
            ) from e

        session = SSMSession(
            session_id=response["SessionId"],
            target=target,
            stream_url=response.get("StreamUrl", ""),
            token_value=response.get("TokenValue", ""),
            document_name=document_name,
        )
        logger.info(f"Successfully started session {session.session_id}")
        return session

    def terminate_session(self, session_id: str) -> None:
        """Terminate an SSM session.

        Raises:
            SSMError: If session_id is empty or the AWS API call fails.
        """
        if not session_id:
            raise SSMError(
                "session_id cannot be empty", service="ssm", operation="terminate_session"
            )

        logger.info(f"Terminating SSM session {session_id}")
        try:
            self.client.call("terminate_session", SessionId=session_id)
        except SSMError as e:
            raise SSMError(
                f"Failed to terminate session {session_id}: {e.message}",
                service="ssm",
                operation="terminate_session",
                error_code=e.error_code,
            ) from e
        logger.info(f"Successfully terminated session {session_id}")

    @contextmanager
    def session_scope(
        self,
        target: str,
        document_name: str | None = None,
        parameters: dict[str, list[str]] | None = None,
    ) -> Iterator[SSMSession]:
        """Start a session and guarantee its termination.

        The session is terminated on every exit path of the ``with`` block. A
        failed termination is logged and swallowed: once the local plugin has
        exited the session is treated as dead regardless.

        Yields:
            The started SSMSession.

        Raises:
            SSMError: If the session cannot be started.
        """
        session = self.start_session(target, document_name=document_name, parameters=parameters)
        try:
            yield session
        finally:
            try:
                self.terminate_session(session.session_id)
                session.status = "Terminated"
            except AWSError as e:
                logger.warning(f"Failed to terminate SSM session {session.session_id}: {e}")
