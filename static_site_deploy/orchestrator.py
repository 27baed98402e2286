"""
==============================================================
 Static Site Deployment: Stack, Upload & Invalidation Workflow
==============================================================

What this module does:
----------------------
A deployment runs these steps in order, and stops at the first one that fails:
1. Check that the AWS credentials work (`get_caller_identity`).
2. Look up the Route 53 hosted zone for the domain.
3. Create or update the CloudFormation stack (bucket, certificate, CloudFront
   distribution, DNS records) and wait for it to settle, for up to 15 minutes.
4. Read the bucket name and distribution ID from the stack's outputs.
5. Upload every file in the deploy directory to the bucket.
6. Invalidate the CloudFront cache and wait for that to finish, for up to 15 minutes.
7. Report the site's URL.

Nothing is remembered between runs. If a run fails half way, the next run
starts again from step 1 and the stack check in step 3 picks up whatever state
the previous run left behind.
"""

import logging
import time
from typing import Any, Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .config import AwsClients
from .errors import LocalFileError, RemoteCallError
from .invalidation import InvalidationManager
from .models import DeploymentTarget, DeployPhase
from .poller import Deadline
from .stacks import StackLifecycleManager, require_output
from .uploads import UploadExecutor, plan_uploads
from .zones import find_zone_id

logger = logging.getLogger(__name__)


def verify_access(sts_client: Any) -> None:
    """Fails fast if the AWS credentials are missing or broken."""
    logger.info("Checking AWS access")
    try:
        identity = sts_client.get_caller_identity()
    except (ClientError, BotoCoreError) as e:
        raise RemoteCallError("GetCallerIdentity", str(e)) from e
    logger.info(f"AWS access looks good (account {identity.get('Account')}), continuing")


class DeploymentOrchestrator:
    """
    Runs one deployment of a static site from start to finish.

    Args:
        clients (AwsClients): The AWS clients to use.
        target (DeploymentTarget): The domain and local directory to deploy.
        template_body (str): The CloudFormation template for the site's stack.
        stack_timeout (float): Seconds to wait for the stack to settle.
        invalidation_timeout (float): Seconds to wait for the invalidation to complete.
        interval (float): Seconds between status polls.
        upload_workers (int): How many files to upload at once.
        clock / sleep: Time sources, swapped out in tests.
    """

    def __init__(
        self,
        clients: AwsClients,
        target: DeploymentTarget,
        template_body: str,
        stack_timeout: float = config.STACK_TIMEOUT_SECONDS,
        invalidation_timeout: float = config.INVALIDATION_TIMEOUT_SECONDS,
        interval: float = config.POLLING_INTERVAL_SECONDS,
        upload_workers: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.clients = clients
        self.target = target
        self.template_body = template_body
        self.stack_timeout = stack_timeout
        self.invalidation_timeout = invalidation_timeout
        self.clock = clock
        self.sleep = sleep

        self.stacks = StackLifecycleManager(clients.cloudformation, interval=interval)
        self.invalidations = InvalidationManager(clients.cloudfront, interval=interval)
        self.uploader = UploadExecutor(clients.s3, workers=upload_workers)

        self.phase: DeployPhase = DeployPhase.INIT
        self.zone_id: Optional[str] = None
        self.bucket_name: Optional[str] = None
        self.distribution_id: Optional[str] = None

    def _advance(self, phase: DeployPhase) -> None:
        logger.debug(f"Deployment phase: {self.phase.value} -> {phase.value}")
        self.phase = phase

    def run(self) -> str:
        """
        Runs every step of the deployment.

        Returns:
            str: The site's URL, e.g. `https://www.example.com`.

        Raises:
            DeployError: The first failure from any step. `phase` is left as FAILED.
        """
        try:
            return self._run()
        except BaseException:
            logger.debug(f"Deployment failed after reaching phase {self.phase.value}")
            self.phase = DeployPhase.FAILED
            raise

    def _run(self) -> str:
        target = self.target
        stack_name: str = target.stack_name

        verify_access(self.clients.sts)
        self._advance(DeployPhase.ACCESS_VERIFIED)

        self.zone_id = find_zone_id(self.clients.route53, target.domain_zone)
        self._advance(DeployPhase.ZONE_RESOLVED)

        logger.info(f"Using CloudFormation stack: {stack_name}")
        self.stacks.create_or_update(
            stack_name,
            self.template_body,
            {config.ZONE_ID_PARAMETER: self.zone_id, config.DOMAIN_NAME_PARAMETER: target.fqdn},
        )
        logger.info("Waiting for stack deployment to complete")
        stack_deadline = Deadline(self.stack_timeout, "stack deployment", clock=self.clock, sleep=self.sleep)
        self.stacks.await_settled(stack_name, sleep=stack_deadline.sleep)
        logger.info("Stack deploy complete")
        self._advance(DeployPhase.STACK_READY)

        outputs = self.stacks.read_outputs(stack_name)
        self.bucket_name = require_output(stack_name, outputs, config.BUCKET_OUTPUT)
        self.distribution_id = require_output(stack_name, outputs, config.DISTRIBUTION_OUTPUT)
        logger.info(f"Website bucket: {self.bucket_name}, distribution: {self.distribution_id}")
        self._advance(DeployPhase.OUTPUTS_RESOLVED)

        try:
            tasks = plan_uploads(target.directory, self.bucket_name)
        except OSError as e:
            raise LocalFileError(str(target.directory), str(e)) from e
        self.uploader.execute(tasks)
        self._advance(DeployPhase.CONTENT_UPLOADED)

        logger.info(f"Invalidating distribution {self.distribution_id}")
        invalidation_id: str = self.invalidations.create(self.distribution_id)
        invalidation_deadline = Deadline(
            self.invalidation_timeout, "cache invalidation", clock=self.clock, sleep=self.sleep
        )
        self.invalidations.await_settled(self.distribution_id, invalidation_id, sleep=invalidation_deadline.sleep)
        logger.info("Distribution invalidated. Ready to go!")
        self._advance(DeployPhase.CACHE_INVALIDATED)

        logger.info(f"Link: {target.url}")
        self._advance(DeployPhase.DONE)
        return target.url
