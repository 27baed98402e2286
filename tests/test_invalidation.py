import pytest

from conftest import FakeClock, FakeCloudFront, client_error
from static_site_deploy.errors import RemoteCallError
from static_site_deploy.invalidation import InvalidationManager, classify_invalidation_status
from static_site_deploy.models import Settlement


def test_create_invalidates_everything_with_millisecond_reference():
    cloudfront = FakeCloudFront()
    manager = InvalidationManager(cloudfront, clock=lambda: 1700000000.5)

    assert manager.create("E2HNK8Z3X3JDVG") == "I2J0I21PCUYOIK"
    assert cloudfront.invalidations == [
        {
            "DistributionId": "E2HNK8Z3X3JDVG",
            "InvalidationBatch": {
                "Paths": {"Quantity": 1, "Items": ["/*"]},
                "CallerReference": "1700000000500",
            },
        }
    ]


def test_repeated_invalidations_use_distinct_references():
    cloudfront = FakeCloudFront()
    times = iter([1.0, 2.5])
    manager = InvalidationManager(cloudfront, clock=lambda: next(times))
    manager.create("D1")
    manager.create("D1")
    references = [call["InvalidationBatch"]["CallerReference"] for call in cloudfront.invalidations]
    assert references == ["1000", "2500"]


def test_create_errors_are_wrapped():
    class Failing(FakeCloudFront):
        def create_invalidation(self, **kwargs):
            raise client_error("NoSuchDistribution", "The specified distribution does not exist.", "CreateInvalidation")

    with pytest.raises(RemoteCallError) as excinfo:
        InvalidationManager(Failing()).create("D1")
    assert excinfo.value.operation == "CreateInvalidation"


@pytest.mark.parametrize(
    "status, expected",
    [("Completed", Settlement.SUCCESS), ("InProgress", Settlement.TRANSIENT), ("Mystery", Settlement.TRANSIENT)],
)
def test_classify_invalidation_status(status, expected):
    assert classify_invalidation_status(status) is expected


def test_await_settled_polls_until_completed():
    clock = FakeClock()
    cloudfront = FakeCloudFront(["InProgress", "InProgress", "Completed"])
    manager = InvalidationManager(cloudfront, interval=10)
    assert manager.await_settled("D1", "I1", sleep=clock.sleep) == "Completed"
    assert cloudfront.get_calls == 3
    assert clock.sleeps == [10, 10]
