"""
Polling helpers for AWS resources that only report progress when asked.

CloudFormation stacks and CloudFront invalidations don't tell us when they are
done; we have to keep asking. `wait_until_settled` does the asking, and
`Deadline` puts an upper bound on how long a caller is willing to keep asking.
"""

import logging
import time
from typing import Callable, TypeVar

from . import config
from .errors import DeployTimeoutError, UnusableStateError
from .models import Settlement

logger = logging.getLogger(__name__)

StatusT = TypeVar("StatusT")


def wait_until_settled(
    fetch_status: Callable[[], StatusT],
    classify: Callable[[StatusT], Settlement],
    *,
    resource: str,
    interval: float = config.POLLING_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> StatusT:
    """
    Polls a remote resource until it reaches a terminal status.

    Simple Explanation:
    This asks "are you done yet?" over and over. Each answer is sorted into
    one of three buckets:
    - SUCCESS: we're done, return the status.
    - FAILURE: the resource is broken, raise `UnusableStateError` straight away.
    - TRANSIENT: still working, wait `interval` seconds and ask again.

    There is no limit on the number of attempts. Callers bound the wait by
    passing a `sleep` that gives up, such as `Deadline.sleep`.

    Args:
        fetch_status: Makes the API call and returns the raw status. Errors it
            raises are passed straight through, they are never retried.
        classify: Maps a raw status to a `Settlement`.
        resource (str): Human readable name used in log messages and errors.
        interval (float): Seconds to wait between polls.
        sleep: The function used to wait between polls.

    Returns:
        The raw status that was classified as SUCCESS.
    """
    while True:
        status = fetch_status()
        settlement = classify(status)
        logger.info(f"{resource} status: {status}")

        if settlement is Settlement.SUCCESS:
            return status
        if settlement is Settlement.FAILURE:
            raise UnusableStateError(resource, str(status))

        sleep(interval)


class Deadline:
    """
    A time budget for one phase of the deployment.

    `sleep` waits like `time.sleep`, but never past the end of the budget, and
    raises `DeployTimeoutError` once the budget is used up. Handing it to
    `wait_until_settled` cancels the wait at its next pause.
    """

    def __init__(
        self,
        seconds: float,
        phase: str,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.seconds = seconds
        self.phase = phase
        self._clock = clock
        self._sleep = sleep
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def check(self) -> None:
        if self.remaining() <= 0:
            logger.error(f"Gave up waiting for {self.phase} after {int(self.seconds)}s")
            raise DeployTimeoutError(self.phase, self.seconds)

    def sleep(self, seconds: float) -> None:
        self.check()
        self._sleep(min(seconds, self.remaining()))
        self.check()
