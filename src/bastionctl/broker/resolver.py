"""Connection detail resolution.

The resolver turns operator choices into a concrete :class:`SSHTarget` or
:class:`SSMTarget`. It decides on two axes:

* the **method** (SSH or SSM), chosen once per request;
* within SSH, the **access mode**: plain key access, or EC2 Instance Connect
  when the target is an instance ID, AWS is configured and the operator's
  public key could be pushed.

AWS is optional for SSH. When it is missing, refused, failing or finds
nothing, discovery degrades to manual entry. Only a broken private key, a
malformed manual SSM instance ID, or a failed Instance Connect fallback end
the resolution.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Final

from rich.console import Console

from bastionctl.aws.ec2 import EC2Instance, EC2Manager
from bastionctl.aws.exceptions import AWSError, ConfigurationError
from bastionctl.aws.instance_connect import InstanceConnectManager
from bastionctl.aws.probe import AWSContext
from bastionctl.broker.models import ConnectionDetails, ConnectionMethod, SSHTarget, SSMTarget
from bastionctl.broker.prompter import ConnectionPrompter
from bastionctl.config import Settings
from bastionctl.exceptions import PromptError, ResolutionError, SSHKeyError
from bastionctl.ssh.keys import expand_key_path, public_key_path, validate_ssh_key
from bastionctl.utils.validation import is_valid_instance_id, looks_like_instance_id

logger: Final = logging.getLogger(__name__)

EC2Factory = Callable[[str | None], EC2Manager]
InstanceConnectFactory = Callable[[str | None], InstanceConnectManager]


class ConnectionResolver:
    """Resolves connection details for one session request.

    Example:
        >>> resolver = ConnectionResolver(ConnectionPrompter(), settings, probe_aws(settings))
        >>> details = resolver.get_connection_details()
        >>> details.method
        <ConnectionMethod.SSH: 'SSH'>
    """

    def __init__(
        self,
        prompter: ConnectionPrompter,
        settings: Settings,
        aws: AWSContext,
        ec2_factory: EC2Factory | None = None,
        instance_connect_factory: InstanceConnectFactory | None = None,
        home_dir: Callable[[], Path] = Path.home,
        console: Console | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            prompter: Source of every operator choice.
            settings: Application settings (defaults and region override).
            aws: Result of the AWS capability probe.
            ec2_factory: Builds a region-scoped EC2Manager. Defaults to one bound
                to the probed boto3 session.
            instance_connect_factory: Builds a region-scoped InstanceConnectManager.
            home_dir: Returns the directory ``~/`` expands to. Defaults to ``Path.home``.
            console: Console for operator-facing messages.
        """
        self.prompter = prompter
        self.settings = settings
        self.aws = aws
        self.home_dir = home_dir
        self.console = console or Console()
        self._ec2_factory = ec2_factory or (
            lambda region: EC2Manager(region=region, session=aws.session)
        )
        self._instance_connect_factory = instance_connect_factory or (
            lambda region: InstanceConnectManager(region=region, session=aws.session)
        )
        self._ec2_managers: dict[str | None, EC2Manager] = {}

    @property
    def aws_configured(self) -> bool:
        return self.aws.is_configured

    def get_connection_details(self) -> ConnectionDetails:
        """Ask for the access method and resolve a target for it.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            ResolutionError: If no usable target can be resolved.
        """
        method = self.prompter.choose_connection_method()
        if method is ConnectionMethod.SSM:
            return self.get_ssm_details()
        return self.get_ssh_details()

    # =========================================================================
    # SSH
    # =========================================================================

    def get_ssh_details(self) -> SSHTarget:
        """Resolve host, user, key and access mode for an SSH session.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            ResolutionError: If the Instance Connect fallback fails or the
                private key is unusable.
        """
        host, region, _ = self._acquire_target(for_ssm=False)

        user = self.prompter.prompt_for_ssh_user(self.settings.default_ssh_user)
        key_input = self.prompter.prompt_for_ssh_key_path(self.settings.default_ssh_key_path)
        key_path = self._expand_key_path(key_input)

        use_instance_connect = False
        instance_id: str | None = None

        if looks_like_instance_id(host) and self.aws_configured:
            pub_key = public_key_path(key_path)
            if pub_key.is_file():
                try:
                    self._push_public_key(host, user, pub_key, region)
                    use_instance_connect = True
                    instance_id = host
                except (AWSError, ResolutionError, OSError) as e:
                    logger.warning(
                        f"EC2 Instance Connect failed ({e}), falling back to public IP"
                    )
                    self.console.print(
                        f"[yellow]Warning: EC2 Instance Connect failed ({e}), "
                        "falling back to public IP[/yellow]"
                    )
                    host = self._fallback_public_ip(host, region)
            else:
                logger.info(f"No public key at {pub_key}; connecting to {host} as-is")

        try:
            validate_ssh_key(key_path)
        except SSHKeyError as e:
            raise ResolutionError(f"invalid SSH key: {e}") from e

        return SSHTarget(
            host=host,
            user=user,
            key_path=str(key_path),
            instance_id=instance_id,
            use_instance_connect=use_instance_connect,
            region=region or self.aws.region,
        )

    def _expand_key_path(self, key_input: str) -> Path:
        if not key_input.startswith("~/"):
            return Path(key_input)
        try:
            home = self.home_dir()
        except (RuntimeError, KeyError, OSError) as e:
            raise ResolutionError(f"failed to get home directory: {e}") from e
        return expand_key_path(key_input, home)

    def _push_public_key(
        self, instance_id: str, user: str, pub_key: Path, region: str | None
    ) -> None:
        public_key = pub_key.read_text(encoding="utf-8").strip()
        availability_zone = self.get_instance_availability_zone(instance_id, region)
        self._instance_connect_factory(region or self.aws.region).send_ssh_public_key(
            instance_id=instance_id,
            os_user=user,
            public_key=public_key,
            availability_zone=availability_zone,
        )
        logger.info(f"Pushed public key {pub_key} to {instance_id} for {user}")

    def _fallback_public_ip(self, instance_id: str, region: str | None) -> str:
        try:
            return self._ec2(region).get_instance_public_ip(instance_id)
        except (AWSError, ResolutionError) as e:
            raise ResolutionError(f"failed to get public IP for fallback: {e}") from e

    # =========================================================================
    # SSM
    # =========================================================================

    def get_ssm_details(self) -> SSMTarget:
        """Resolve the instance an SSM session should target.

        Raises:
            OperationInterrupted: If the operator cancels a prompt.
            ResolutionError: If AWS is not configured or a manually entered
                instance ID is malformed.
        """
        if not self.aws_configured:
            raise ResolutionError("AWS configuration required for SSM access")

        instance_id, region, discovered = self._acquire_target(for_ssm=True)
        if not discovered and not is_valid_instance_id(instance_id):
            raise ResolutionError(
                f"invalid instance ID format: {instance_id!r} "
                "(should be 'i-' followed by hexadecimal characters)"
            )
        return SSMTarget(instance_id=instance_id, region=region or self.aws.region)

    # =========================================================================
    # Target acquisition
    # =========================================================================

    def _acquire_target(self, for_ssm: bool) -> tuple[str, str | None, bool]:
        """Find the host or instance to connect to.

        Returns:
            ``(target, region, discovered)`` where ``discovered`` is True when the
            target was picked from an AWS listing rather than typed by hand.
        """
        if not self.aws_configured:
            self.console.print("AWS configuration not found. Please enter bastion details below:")
            return self._manual_target(for_ssm), None, False

        if not self.prompter.prompt_for_confirmation("Look for bastion hosts in AWS?"):
            return self._manual_target(for_ssm), None, False

        try:
            region = self._resolve_region()
            instances = self._ec2(region).list_bastion_instances()
        except (AWSError, PromptError, ResolutionError) as e:
            logger.warning(f"AWS lookup failed: {e}")
            self.console.print(f"[yellow]AWS lookup failed: {e}[/yellow]")
            return self._manual_target(for_ssm), None, False

        if not instances:
            self.console.print("No bastion hosts found in AWS")
            return self._manual_target(for_ssm), None, False

        try:
            target = self.prompter.prompt_for_bastion_instance(instances, for_ssm)
        except PromptError as e:
            self.console.print(f"[yellow]{e}[/yellow]")
            return self._manual_target(for_ssm), None, False

        return target, region, True

    def _manual_target(self, for_ssm: bool) -> str:
        if for_ssm:
            self.console.print("Please enter the instance ID manually (e.g., i-1234567890abcdef0)")
            return self.prompter.prompt_for_instance_id()
        self.console.print("Please enter bastion host details below:")
        return self.prompter.prompt_for_bastion_host()

    def _resolve_region(self) -> str:
        if self.settings.aws_region:
            return self.settings.aws_region

        try:
            default_region = self.aws.default_region()
        except ConfigurationError as e:
            logger.warning(f"Failed to load default region: {e}")
            default_region = ""

        return self.prompter.prompt_for_region(default_region)

    # =========================================================================
    # Instance lookups
    # =========================================================================

    def _ec2(self, region: str | None) -> EC2Manager:
        if not self.aws_configured:
            raise ResolutionError("EC2 client not initialized")
        key = region or self.aws.region
        if key not in self._ec2_managers:
            self._ec2_managers[key] = self._ec2_factory(key)
        return self._ec2_managers[key]

    def get_instance_details(self, instance_id: str, region: str | None = None) -> EC2Instance:
        """Describe an instance.

        Raises:
            ResolutionError: If AWS is not configured (no EC2 client).
            AWSError: If the lookup fails or the instance is absent.
        """
        return self._ec2(region).get_instance_details(instance_id)

    def get_instance_availability_zone(self, instance_id: str, region: str | None = None) -> str:
        """Return the availability zone of an instance.

        Raises:
            ResolutionError: If AWS is not configured (no EC2 client).
            AWSError: If the lookup fails or the placement is absent.
        """
        return self._ec2(region).get_instance_availability_zone(instance_id)
