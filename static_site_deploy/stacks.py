"""
CloudFormation stack lifecycle for the static site.

The stack holds everything the site needs (bucket, certificate, distribution,
DNS records). A deployment either creates it or updates it in place, then waits
for CloudFormation to finish before anything is uploaded.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .errors import RemoteCallError, StackOutputNotFoundError, UnusableStateError
from .models import Settlement, StackProbe
from .poller import wait_until_settled

logger = logging.getLogger(__name__)

# --- Stack statuses ---

# A stack in one of these states can safely be updated.
USABLE_STATUSES = frozenset({"CREATE_COMPLETE", "UPDATE_COMPLETE", "UPDATE_ROLLBACK_COMPLETE"})

SUCCESS_STATUSES = frozenset({"CREATE_COMPLETE", "UPDATE_COMPLETE"})
FAILURE_STATUSES = frozenset({"CREATE_FAILED", "UPDATE_FAILED"})
FAILURE_PREFIXES = ("UPDATE_ROLLBACK_", "DELETE_", "ROLLBACK_")

STACK_MISSING_TEXT = "does not exist"
NO_UPDATES_TEXT = "No updates are to be performed."


def classify_stack_status(status: str) -> Settlement:
    """
    Sorts a stack status into success, failure or still-in-progress.

    Every failure, rollback and delete status needs the same thing (an operator
    looking at the stack), so they all count as FAILURE.
    """
    if status in SUCCESS_STATUSES:
        return Settlement.SUCCESS
    if status in FAILURE_STATUSES or status.startswith(FAILURE_PREFIXES):
        return Settlement.FAILURE
    return Settlement.TRANSIENT


def require_output(stack_name: str, outputs: Mapping[str, str], output_name: str) -> str:
    """Picks one value out of a stack's outputs, raising `StackOutputNotFoundError` if it's missing."""
    if output_name not in outputs:
        raise StackOutputNotFoundError(stack_name, output_name)
    return outputs[output_name]


def to_parameters(parameters: Mapping[str, str]) -> List[Dict[str, str]]:
    return [{"ParameterKey": key, "ParameterValue": value} for key, value in parameters.items()]


class StackLifecycleManager:
    """
    Creates or updates the site's stack and waits for it to settle.

    Args:
        cfn_client (boto3.client): An initialized CloudFormation client.
        interval (float): Seconds between status polls.
    """

    def __init__(self, cfn_client: Any, interval: float = config.POLLING_INTERVAL_SECONDS) -> None:
        self.cfn_client = cfn_client
        self.interval = interval

    def _describe(self, stack_name: str) -> Dict[str, Any]:
        response = self.cfn_client.describe_stacks(StackName=stack_name)
        stacks = response.get("Stacks", [])
        if not stacks:
            raise RemoteCallError("DescribeStacks", f"no stack returned for '{stack_name}'")
        return stacks[0]

    def stack_status(self, stack_name: str) -> str:
        try:
            return self._describe(stack_name)["StackStatus"]
        except (ClientError, BotoCoreError) as e:
            raise RemoteCallError("DescribeStacks", str(e)) from e

    def probe(self, stack_name: str) -> StackProbe:
        """
        Checks whether the stack exists and is in a state we can update.

        Returns:
            StackProbe: NOT_FOUND or EXISTING_AND_USABLE.

        Raises:
            UnusableStateError: The stack exists but is failed, mid-change or being deleted.
            RemoteCallError: DescribeStacks failed for any reason other than a missing stack.
        """
        try:
            status: str = self._describe(stack_name)["StackStatus"]
        except ClientError as e:
            # CloudFormation reports a missing stack as a generic ValidationError,
            # the message text is the only way to tell it apart.
            if STACK_MISSING_TEXT in str(e):
                return StackProbe.NOT_FOUND
            raise RemoteCallError("DescribeStacks", str(e)) from e
        except BotoCoreError as e:
            raise RemoteCallError("DescribeStacks", str(e)) from e

        if status in USABLE_STATUSES:
            return StackProbe.EXISTING_AND_USABLE

        logger.error(f"Stack '{stack_name}' has status {status} and can't be deployed to")
        raise UnusableStateError(f"Stack '{stack_name}'", status)

    def create_stack(self, stack_name: str, template_body: str, parameters: Mapping[str, str]) -> str:
        """Issues CreateStack and returns the new stack ID without waiting."""
        try:
            response = self.cfn_client.create_stack(
                StackName=stack_name,
                TemplateBody=template_body,
                Parameters=to_parameters(parameters),
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteCallError("CreateStack", str(e)) from e
        return response["StackId"]

    def update_stack(self, stack_name: str, template_body: str, parameters: Mapping[str, str]) -> str:
        """
        Issues UpdateStack without waiting.

        An unchanged stack is not an error: re-running a deployment against the
        same infrastructure must succeed.

        Returns:
            str: The stack ID, or an empty string if there was nothing to update.
        """
        try:
            response = self.cfn_client.update_stack(
                StackName=stack_name,
                TemplateBody=template_body,
                Parameters=to_parameters(parameters),
            )
        except ClientError as e:
            if NO_UPDATES_TEXT in str(e):
                logger.info(f"Stack '{stack_name}' is already up to date")
                return ""
            raise RemoteCallError("UpdateStack", str(e)) from e
        except BotoCoreError as e:
            raise RemoteCallError("UpdateStack", str(e)) from e
        return response.get("StackId", "")

    def create_or_update(self, stack_name: str, template_body: str, parameters: Mapping[str, str]) -> str:
        """
        Creates the stack if it's missing, otherwise updates it.

        Returns once CloudFormation has accepted the request; use `await_settled`
        to wait for the change to finish.
        """
        if self.probe(stack_name) is StackProbe.NOT_FOUND:
            logger.info(f"Stack '{stack_name}' doesn't exist; creating")
            stack_id = self.create_stack(stack_name, template_body, parameters)
            logger.info(f"Stack created: {stack_id}")
            return stack_id

        logger.info(f"Stack '{stack_name}' exists; updating")
        return self.update_stack(stack_name, template_body, parameters)

    def await_settled(self, stack_name: str, sleep: Callable[[float], None] = time.sleep) -> str:
        """
        Waits for the stack to finish creating or updating.

        This waits forever on its own. Pass a bounded `sleep` (see `Deadline`)
        to give up after a while.

        Returns:
            str: The final, successful stack status.
        """
        return wait_until_settled(
            lambda: self.stack_status(stack_name),
            classify_stack_status,
            resource=f"Stack '{stack_name}'",
            interval=self.interval,
            sleep=sleep,
        )

    def read_outputs(self, stack_name: str) -> Dict[str, str]:
        """Returns all of the stack's outputs as a name -> value mapping."""
        try:
            stack = self._describe(stack_name)
        except (ClientError, BotoCoreError) as e:
            raise RemoteCallError("DescribeStacks", str(e)) from e
        return {output["OutputKey"]: output["OutputValue"] for output in stack.get("Outputs", [])}

    def read_output(self, stack_name: str, output_name: str) -> str:
        """
        Retrieves one output value from a settled stack.

        Raises:
            StackOutputNotFoundError: The stack has no output with that name.
        """
        return require_output(stack_name, self.read_outputs(stack_name), output_name)
