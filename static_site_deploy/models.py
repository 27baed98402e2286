"""Plain data types passed between the deployment steps."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from . import config


class Settlement(Enum):
    """How a single polled status should be treated."""

    SUCCESS = "success"
    FAILURE = "failure"
    TRANSIENT = "transient"


class StackProbe(Enum):
    """What we found when looking for the stack before deploying."""

    NOT_FOUND = "not_found"
    EXISTING_AND_USABLE = "existing_and_usable"
    # Never returned: StackLifecycleManager.probe raises UnusableStateError instead.
    EXISTING_BUT_UNUSABLE = "existing_but_unusable"


class DeployPhase(Enum):
    """Where a deployment run has got to. Runs move through these in order."""

    INIT = "init"
    ACCESS_VERIFIED = "access_verified"
    ZONE_RESOLVED = "zone_resolved"
    STACK_READY = "stack_ready"
    OUTPUTS_RESOLVED = "outputs_resolved"
    CONTENT_UPLOADED = "content_uploaded"
    CACHE_INVALIDATED = "cache_invalidated"
    DONE = "done"
    FAILED = "failed"


def normalize_domain(label: str) -> str:
    """Lowercases a domain or host label and strips surrounding dots, e.g. `Example.COM.` -> `example.com`."""
    return label.strip().strip(".").lower()


def stack_name_for(fqdn: str) -> str:
    """
    Derives the CloudFormation stack name for a domain.

    One stack per domain: `www.example.com` always maps to
    `StaticSite--www-example-com`.
    """
    return f"{config.STACK_NAME_PREFIX}{fqdn.replace('.', '-')}"


@dataclass(frozen=True)
class DeploymentTarget:
    """
    What is being deployed, and where.

    Attributes:
        domain_zone (str): The Route 53 hosted zone name, e.g. `example.com`.
        directory (Path): The local directory whose contents become the site.
        domain_name (str): Optional host label. Empty means deploy to the zone apex.
    """

    domain_zone: str
    directory: Path
    domain_name: str = ""

    def __post_init__(self) -> None:
        # DNS names are case-insensitive and may carry a trailing root dot;
        # keep one spelling so a domain always maps to the same stack.
        object.__setattr__(self, "domain_zone", normalize_domain(self.domain_zone))
        object.__setattr__(self, "domain_name", normalize_domain(self.domain_name))

    @property
    def fqdn(self) -> str:
        if not self.domain_name:
            return self.domain_zone
        return f"{self.domain_name}.{self.domain_zone}"

    @property
    def stack_name(self) -> str:
        return stack_name_for(self.fqdn)

    @property
    def url(self) -> str:
        return f"https://{self.fqdn}"


@dataclass(frozen=True)
class UploadTask:
    """One local file and the S3 object it should become."""

    source: Path
    bucket: str
    key: str
