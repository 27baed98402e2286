"""Deploy a static website to AWS: CloudFormation stack, S3 upload and CloudFront invalidation."""

from .errors import (
    DeployError,
    DeployTimeoutError,
    LocalFileError,
    MissingDataError,
    RemoteCallError,
    StackOutputNotFoundError,
    UnusableStateError,
    ZoneNotFoundError,
)
from .models import DeploymentTarget, DeployPhase, UploadTask
from .orchestrator import DeploymentOrchestrator

__version__ = "0.1.0"

__all__ = [
    "DeployError",
    "DeployTimeoutError",
    "DeploymentOrchestrator",
    "DeploymentTarget",
    "DeployPhase",
    "LocalFileError",
    "MissingDataError",
    "RemoteCallError",
    "StackOutputNotFoundError",
    "UnusableStateError",
    "UploadTask",
    "ZoneNotFoundError",
]
