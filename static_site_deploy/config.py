"""
Configuration for the static site deployer.

Holds the constants shared by every step of a deployment, the logging setup,
and the helpers that build the AWS clients and load the CloudFormation template.
"""

import logging
from dataclasses import dataclass
from importlib import resources
from typing import Any, List, Optional

import boto3
from botocore.config import Config

# --- Constants ---

# CloudFront only accepts ACM certificates from us-east-1, so the whole stack lives there.
REGION: str = "us-east-1"

POLLING_INTERVAL_SECONDS: int = 10  # How often to check stack and invalidation status
STACK_TIMEOUT_SECONDS: int = 60 * 15  # Max time to wait for the stack to settle
INVALIDATION_TIMEOUT_SECONDS: int = 60 * 15  # Max time to wait for an invalidation

# botocore socket timeouts, so a hung call can't outlive its phase by much
CONNECT_TIMEOUT_SECONDS: int = 10
READ_TIMEOUT_SECONDS: int = 60

STACK_NAME_PREFIX: str = "StaticSite--"
TEMPLATE_FILE: str = "static_site.yaml"

# Template parameters
ZONE_ID_PARAMETER: str = "HostedZoneId"
DOMAIN_NAME_PARAMETER: str = "DomainName"

# Template outputs
BUCKET_OUTPUT: str = "StaticWebsiteBucket"
DISTRIBUTION_OUTPUT: str = "Distribution"

INVALIDATION_PATH: str = "/*"

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"
# Web assets that should be re-validated often, so updates show up quickly
SHORT_CACHE_CONTENT_TYPES: List[str] = ["text/html", "text/css", "application/javascript", "text/javascript"]
SHORT_CACHE_CONTROL: str = "max-age=3600"

LOG_FORMAT: str = "%(asctime)s - %(levelname)s - %(message)s"


# --- Helpers ---

def configure_logging(verbose: bool = False) -> None:
    """Configure root logging once for the command line run."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    if not verbose:
        # botocore is very chatty at DEBUG; keep it quiet unless asked
        logging.getLogger("botocore").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)


@dataclass
class AwsClients:
    """The AWS service clients a deployment talks to."""

    sts: Any
    route53: Any
    cloudformation: Any
    s3: Any
    cloudfront: Any


def build_clients(region: str = REGION, profile: Optional[str] = None) -> AwsClients:
    """
    Creates every AWS client the deployment needs from a single session.

    Credentials are resolved the usual boto3 way (environment, shared config,
    instance role). Nothing is called here, so broken credentials only show up
    when the deployment verifies access.

    Args:
        region (str): The AWS region to deploy into.
        profile (Optional[str]): A named profile from the shared AWS config, if any.

    Returns:
        AwsClients: The clients, all sharing one session and client config.
    """
    session = boto3.session.Session(profile_name=profile, region_name=region)
    client_config = Config(
        region_name=region,
        connect_timeout=CONNECT_TIMEOUT_SECONDS,
        read_timeout=READ_TIMEOUT_SECONDS,
    )
    return AwsClients(
        sts=session.client("sts", config=client_config),
        route53=session.client("route53", config=client_config),
        cloudformation=session.client("cloudformation", config=client_config),
        s3=session.client("s3", config=client_config),
        cloudfront=session.client("cloudfront", config=client_config),
    )


def load_template() -> str:
    """Returns the bundled CloudFormation template body."""
    return resources.files("static_site_deploy").joinpath("templates").joinpath(TEMPLATE_FILE).read_text(encoding="utf-8")
