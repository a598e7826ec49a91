"""AWS capability probe.

Determines whether usable AWS credentials and a region are available. The
result is a routing signal: when AWS is not configured every discovery step
falls back to manual operator input instead of failing.
"""

import logging
from collections.abc import Callable
from typing import Final

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bastionctl.aws.exceptions import ConfigurationError
from bastionctl.config import Settings

logger: Final = logging.getLogger(__name__)

SessionFactory = Callable[..., boto3.Session]


class AWSContext:
    """Outcome of probing the local AWS configuration.

    Attributes:
        session: boto3 session built from the configured profile, or None when
            the profile could not be loaded.
        region: Region resolved by the session (settings override first).
        is_configured: True iff a region is present and credentials resolved.
    """

    def __init__(
        self,
        session: boto3.Session | None,
        region: str | None,
        is_configured: bool,
        profile: str | None = None,
        session_factory: SessionFactory = boto3.Session,
    ) -> None:
        self.session = session
        self.region = region
        self.is_configured = is_configured
        self.profile = profile
        self._session_factory = session_factory

    def default_region(self) -> str:
        """Return the region to offer as the default during discovery.

        Returns:
            The probed region, or the region found by re-reading the shared AWS
            config for the active profile.

        Raises:
            ConfigurationError: If the AWS config cannot be loaded or names no region.
        """
        if self.region:
            return self.region

        try:
            region = self._session_factory(profile_name=self.profile).region_name
        except BotoCoreError as e:
            raise ConfigurationError(f"failed to load AWS configuration: {e}") from e

        if not region:
            raise ConfigurationError("no region configured in AWS config")
        return region

    def __repr__(self) -> str:
        return (
            f"AWSContext(region={self.region!r}, profile={self.profile!r}, "
            f"is_configured={self.is_configured})"
        )


def probe_aws(settings: Settings, session_factory: SessionFactory = boto3.Session) -> AWSContext:
    """Probe for a region and retrievable credentials.

    Credential retrieval is performed synchronously so that expired SSO tokens
    or broken assume-role chains are detected here rather than mid-discovery.
    Nothing is written and no AWS API is called beyond what credential
    resolution itself requires.

    Args:
        settings: Application settings carrying the profile and region overrides.
        session_factory: Factory used to build boto3 sessions. Defaults to
            ``boto3.Session``.

    Returns:
        AWSContext describing whether AWS-backed discovery is available.
    """
    profile = settings.aws_profile
    try:
        session = session_factory(profile_name=profile, region_name=settings.aws_region)
    except BotoCoreError as e:
        logger.info(f"AWS profile could not be loaded ({e}); continuing without AWS")
        return AWSContext(None, None, False, profile=profile, session_factory=session_factory)

    region = session.region_name
    if not region:
        logger.info("No AWS region configured; continuing without AWS")
        return AWSContext(session, None, False, profile=profile, session_factory=session_factory)

    try:
        credentials = session.get_credentials()
        if credentials is None:
            logger.info("No AWS credentials found; continuing without AWS")
            return AWSContext(
                session, region, False, profile=profile, session_factory=session_factory
            )
        credentials.get_frozen_credentials()
    except (BotoCoreError, ClientError) as e:
        logger.info(f"AWS credential retrieval failed ({e}); continuing without AWS")
        return AWSContext(session, region, False, profile=profile, session_factory=session_factory)

    logger.debug(f"AWS configured for region {region} (profile={profile or 'default'})")
    return AWSContext(session, region, True, profile=profile, session_factory=session_factory)
