"""CloudFront cache invalidation."""

import logging
import time
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .errors import RemoteCallError
from .models import Settlement
from .poller import wait_until_settled

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "Completed"


def classify_invalidation_status(status: str) -> Settlement:
    # CloudFront has no failed state for invalidations; anything but Completed is in progress.
    if status == COMPLETED_STATUS:
        return Settlement.SUCCESS
    return Settlement.TRANSIENT


class InvalidationManager:
    """
    Clears a distribution's edge caches so new content is served right away.

    Args:
        cf_client (boto3.client): An initialized CloudFront client.
        interval (float): Seconds between status polls.
        clock: Returns the current wall-clock time in seconds, used for the
            caller reference.
    """

    def __init__(
        self,
        cf_client: Any,
        interval: float = config.POLLING_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cf_client = cf_client
        self.interval = interval
        self.clock = clock

    def create(self, distribution_id: str) -> str:
        """
        Invalidates every object in the distribution. Doesn't wait for it to finish.

        The current time in milliseconds is the caller reference, so a second
        deployment is never mistaken for a duplicate of the first.

        Returns:
            str: The invalidation ID.
        """
        caller_reference: str = str(int(self.clock() * 1000))
        try:
            response = self.cf_client.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": 1, "Items": [config.INVALIDATION_PATH]},
                    "CallerReference": caller_reference,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteCallError("CreateInvalidation", str(e)) from e

        invalidation_id: str = response["Invalidation"]["Id"]
        logger.info(f"Invalidation {invalidation_id} created for distribution {distribution_id}")
        return invalidation_id

    def invalidation_status(self, distribution_id: str, invalidation_id: str) -> str:
        try:
            response = self.cf_client.get_invalidation(DistributionId=distribution_id, Id=invalidation_id)
        except (ClientError, BotoCoreError) as e:
            raise RemoteCallError("GetInvalidation", str(e)) from e
        return response["Invalidation"]["Status"]

    def await_settled(
        self, distribution_id: str, invalidation_id: str, sleep: Callable[[float], None] = time.sleep
    ) -> str:
        """Waits until the invalidation reports Completed. Bound it with a `Deadline`."""
        logger.info("Waiting for invalidation to complete")
        return wait_until_settled(
            lambda: self.invalidation_status(distribution_id, invalidation_id),
            classify_invalidation_status,
            resource=f"Invalidation '{invalidation_id}'",
            interval=self.interval,
            sleep=sleep,
        )
