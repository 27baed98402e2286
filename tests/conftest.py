"""Fake AWS clients and helpers shared by the test suite."""

from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError

from static_site_deploy.config import AwsClients


def client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def stack_missing_error(stack_name: str = "StaticSite--example-com") -> ClientError:
    return client_error("ValidationError", f"Stack with id {stack_name} does not exist", "DescribeStacks")


class FakeClock:
    """A monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSts:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls = 0

    def get_caller_identity(self) -> Dict[str, str]:
        self.calls += 1
        if self.error:
            raise self.error
        return {"Account": "123456789012", "Arn": "arn:aws:iam::123456789012:user/deployer", "UserId": "AIDA"}


class FakeRoute53:
    def __init__(self, zones: Optional[List[Dict[str, str]]] = None) -> None:
        self.zones = zones if zones is not None else [{"Id": "/hostedzone/Z123", "Name": "example.com."}]
        self.requests: List[Dict[str, Any]] = []

    def list_hosted_zones_by_name(self, **kwargs: Any) -> Dict[str, Any]:
        self.requests.append(kwargs)
        return {"HostedZones": self.zones}


class FakeCloudFormation:
    """
    Replays scripted DescribeStacks results.

    Each entry of `describe` is either a status string or an exception to raise.
    Once the script runs out, the last entry repeats.
    """

    def __init__(
        self,
        describe: List[Any],
        outputs: Optional[Dict[str, str]] = None,
        update_error: Optional[Exception] = None,
    ) -> None:
        self.describe = list(describe)
        self.outputs = outputs or {}
        self.update_error = update_error
        self.describe_calls = 0
        self.created: List[Dict[str, Any]] = []
        self.updated: List[Dict[str, Any]] = []

    def describe_stacks(self, StackName: str) -> Dict[str, Any]:
        index = min(self.describe_calls, len(self.describe) - 1)
        self.describe_calls += 1
        result = self.describe[index]
        if isinstance(result, Exception):
            raise result
        return {
            "Stacks": [
                {
                    "StackName": StackName,
                    "StackStatus": result,
                    "Outputs": [{"OutputKey": k, "OutputValue": v} for k, v in self.outputs.items()],
                }
            ]
        }

    def create_stack(self, **kwargs: Any) -> Dict[str, str]:
        self.created.append(kwargs)
        return {"StackId": f"arn:aws:cloudformation:us-east-1:123456789012:stack/{kwargs['StackName']}/abc"}

    def update_stack(self, **kwargs: Any) -> Dict[str, str]:
        self.updated.append(kwargs)
        if self.update_error:
            raise self.update_error
        return {"StackId": f"arn:aws:cloudformation:us-east-1:123456789012:stack/{kwargs['StackName']}/abc"}


class FakeS3:
    def __init__(self, fail_keys: Optional[List[str]] = None) -> None:
        self.fail_keys = fail_keys or []
        self.puts: List[Dict[str, Any]] = []

    def put_object(self, **kwargs: Any) -> Dict[str, str]:
        if kwargs["Key"] in self.fail_keys:
            raise client_error("AccessDenied", "Access Denied", "PutObject")
        kwargs["Body"] = kwargs["Body"].read()
        self.puts.append(kwargs)
        return {"ETag": '"abc"'}


class FakeCloudFront:
    def __init__(self, statuses: Optional[List[str]] = None) -> None:
        self.statuses = statuses or ["Completed"]
        self.invalidations: List[Dict[str, Any]] = []
        self.get_calls = 0

    def create_invalidation(self, **kwargs: Any) -> Dict[str, Any]:
        self.invalidations.append(kwargs)
        return {"Invalidation": {"Id": "I2J0I21PCUYOIK", "Status": "InProgress"}}

    def get_invalidation(self, **kwargs: Any) -> Dict[str, Any]:
        status = self.statuses[min(self.get_calls, len(self.statuses) - 1)]
        self.get_calls += 1
        return {"Invalidation": {"Id": kwargs["Id"], "Status": status}}


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def site_dir(tmp_path):
    """A small site: root/a.txt and root/sub/b.txt."""
    root = tmp_path / "site"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_text("bravo")
    return root


def make_clients(
    cloudformation: FakeCloudFormation,
    s3: Optional[FakeS3] = None,
    cloudfront: Optional[FakeCloudFront] = None,
    sts: Optional[FakeSts] = None,
    route53: Optional[FakeRoute53] = None,
) -> AwsClients:
    return AwsClients(
        sts=sts or FakeSts(),
        route53=route53 or FakeRoute53(),
        cloudformation=cloudformation,
        s3=s3 or FakeS3(),
        cloudfront=cloudfront or FakeCloudFront(),
    )
