import logging

import pytest

from conftest import FakeCloudFormation, FakeRoute53, make_clients
from static_site_deploy import cli, config
from static_site_deploy.errors import RemoteCallError


@pytest.fixture
def fake_clients(monkeypatch):
    """Replaces real AWS clients with fakes for a deployment that settles immediately."""
    holder = {}

    def build(region, profile=None):
        holder["region"] = region
        return holder["clients"]

    holder["clients"] = make_clients(
        FakeCloudFormation(["CREATE_COMPLETE"], outputs={"StaticWebsiteBucket": "b1", "Distribution": "d1"})
    )
    monkeypatch.setattr(config, "build_clients", build)
    return holder


def test_success_exits_zero(site_dir, fake_clients, caplog):
    caplog.set_level(logging.INFO)
    code = cli.main(["--domain-name", "www", "--domain-zone", "example.com", "--deploy", str(site_dir)])
    assert code == 0
    assert fake_clients["region"] == "us-east-1"
    assert "https://www.example.com" in caplog.text


def test_failure_exits_non_zero_and_logs_cause(site_dir, fake_clients, caplog):
    fake_clients["clients"].route53 = FakeRoute53([])
    code = cli.main(["--domain-zone", "example.com", "--deploy", str(site_dir)])
    assert code == 1
    assert "No Route 53 hosted zone found named 'example.com'" in caplog.text


def test_log_failure_walks_cause_chain(caplog):
    try:
        try:
            raise ConnectionError("connection reset")
        except ConnectionError as e:
            raise RemoteCallError("PutObject", "b1/index.html") from e
    except RemoteCallError as error:
        cli.log_failure(error)
    assert "Failed: PutObject failed: b1/index.html" in caplog.text
    assert "Caused by: connection reset" in caplog.text


def test_deploy_directory_must_exist(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--domain-zone", "example.com", "--deploy", str(tmp_path / "missing")])
    assert excinfo.value.code == 2


def test_domain_zone_is_required(site_dir):
    with pytest.raises(SystemExit):
        cli.main(["--deploy", str(site_dir)])


def test_bundled_template_declares_parameters_and_outputs():
    template = config.load_template()
    for name in ("HostedZoneId", "DomainName", "StaticWebsiteBucket", "Distribution"):
        assert f"{name}:" in template


def test_region_cannot_be_overridden(site_dir, fake_clients):
    # the certificate in the stack must live in us-east-1 for CloudFront to accept it
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--domain-zone", "example.com", "--deploy", str(site_dir), "--region", "eu-west-1"])
    assert excinfo.value.code == 2
    assert "region" not in fake_clients


def test_interrupt_exits_130(site_dir, monkeypatch, caplog):
    caplog.set_level(logging.INFO)

    def interrupted(region, profile=None):
        raise KeyboardInterrupt

    monkeypatch.setattr(config, "build_clients", interrupted)
    code = cli.main(["--domain-zone", "example.com", "--deploy", str(site_dir)])
    assert code == 130
    assert "interrupted" in caplog.text
