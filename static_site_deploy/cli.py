"""
Command line entry point.

Example:
    static-site-deploy --domain-name www --domain-zone example.com --deploy ./public
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from botocore.exceptions import BotoCoreError

from . import config
from .errors import DeployError
from .models import DeploymentTarget
from .orchestrator import DeploymentOrchestrator

logger = logging.getLogger(__name__)


def existing_directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"'{value}' is not a directory")
    return path


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive number, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="static-site-deploy",
        description="Deploy a static website to S3 and CloudFront behind a Route 53 domain.",
    )
    parser.add_argument(
        "--domain-name",
        default="",
        help="Domain host. If this isn't specified, we will deploy to the apex.",
    )
    parser.add_argument(
        "--domain-zone",
        required=True,
        help="Domain zone - the zone name into which we should deploy the domain.",
    )
    parser.add_argument("--deploy", required=True, type=existing_directory, help="The directory to deploy.")
    parser.add_argument("--profile", default=None, help="Named AWS profile to use.")
    parser.add_argument(
        "--upload-workers",
        type=positive_int,
        default=1,
        help="How many files to upload at once (default: 1).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def log_failure(error: BaseException) -> None:
    """Logs an error followed by each of its causes."""
    logger.error(f"Failed: {error}")
    cause = error.__cause__
    while cause is not None:
        logger.error(f"Caused by: {cause}")
        cause = cause.__cause__


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging(args.verbose)

    target = DeploymentTarget(
        domain_zone=args.domain_zone,
        directory=args.deploy,
        domain_name=args.domain_name,
    )
    logger.info(f"Deploying '{target.directory}' to {target.fqdn}")

    try:
        clients = config.build_clients(config.REGION, profile=args.profile)
        orchestrator = DeploymentOrchestrator(
            clients,
            target,
            config.load_template(),
            upload_workers=args.upload_workers,
        )
        url = orchestrator.run()
    except (DeployError, BotoCoreError) as e:
        log_failure(e)
        return 1
    except KeyboardInterrupt:
        logger.info("Deployment interrupted by user. Remote resources are left as they are.")
        return 130

    logger.info(f"All done! Your site is live at {url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
