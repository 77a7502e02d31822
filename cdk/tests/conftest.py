"""Global pytest configuration and fixtures for CDK testing."""

import os
from unittest.mock import MagicMock, patch

import pytest
from aws_cdk import App, Environment

from service_topology.config import DeploymentConfig
from service_topology.service_stack import ServiceStack

TEST_ACCOUNT = "123456789012"
TEST_REGION = "us-east-1"


@pytest.fixture(scope="session", autouse=True)
def offline_aws_environment():
    """Fake credentials and a fixed account/region so no test reaches AWS."""
    for key, value in {
        "AWS_DEFAULT_REGION": TEST_REGION,
        "CDK_DEFAULT_REGION": TEST_REGION,
        "CDK_DEFAULT_ACCOUNT": TEST_ACCOUNT,
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SESSION_TOKEN": "testing",
    }.items():
        os.environ.setdefault(key, value)
    # the app falls back to this when no context selects an environment
    os.environ.pop("DEPLOY_ENVIRONMENT", None)


@pytest.fixture(scope="session")
def aws_environment():
    # lookups need a concrete account/region, they return dummy values in tests
    return Environment(account=TEST_ACCOUNT, region=TEST_REGION)


@pytest.fixture
def make_config():
    def _make(environment="staging", **overrides):
        fields = {
            "client_name": "acme",
            "environment": environment,
            "domain": "acme.io",
            "vpc_id": "vpc-123",
            "task_env": {"NODE_ENV": environment},
        }
        fields.update(overrides)
        return DeploymentConfig.create(**fields)

    return _make


@pytest.fixture
def make_stack(make_config, aws_environment):
    def _make(environment="staging", **overrides):
        config = make_config(environment, **overrides)
        app = App()
        return ServiceStack(app, f"{config.name_prefix}-stack", config=config, env=aws_environment)

    return _make


@pytest.fixture
def staging_stack(make_stack):
    return make_stack("staging")


@pytest.fixture
def mock_boto3_clients():
    """Mock boto3 clients."""
    with patch("boto3.client") as mock_client:
        mock_ec2 = MagicMock()
        mock_route53 = MagicMock()

        def client_factory(service_name, **kwargs):
            if service_name == "ec2":
                return mock_ec2
            elif service_name == "route53":
                return mock_route53
            return MagicMock()

        mock_client.side_effect = client_factory
        yield {"ec2": mock_ec2, "route53": mock_route53, "factory": mock_client}
