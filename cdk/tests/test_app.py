"""Tests for the CDK entry point: environment selection, context overrides and pre-flight."""

import pytest
from aws_cdk import App
from botocore.exceptions import ClientError

from app import _truthy, build_stack
from service_topology.errors import ConfigError, VpcNotFoundError

STAGING_VPC = "vpc-0a1b2c3d4e5f60789"


def offline_app(**context):
    return App(context={"skipPreflight": "true", **context})


@pytest.fixture
def aws_resources_exist(mock_boto3_clients):
    mock_boto3_clients["ec2"].describe_vpcs.return_value = {"Vpcs": [{"VpcId": STAGING_VPC}]}
    mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {
        "HostedZones": [{"Id": "/hostedzone/Z1", "Name": "acme.io.", "Config": {}}],
    }
    return mock_boto3_clients


class TestEnvironmentSelection:
    def test_context_selects_environment(self, aws_environment):
        stack = build_stack(offline_app(environment="production"), env=aws_environment)
        assert stack.node.id == "acme-production-server-stack"
        assert stack.api_domain_name == "api.acme.io"

    def test_context_wins_over_env_var(self, aws_environment, monkeypatch):
        monkeypatch.setenv("DEPLOY_ENVIRONMENT", "production")
        stack = build_stack(offline_app(environment="staging"), env=aws_environment)
        assert stack.config.environment == "staging"

    def test_env_var_used_without_context(self, aws_environment, monkeypatch):
        monkeypatch.setenv("DEPLOY_ENVIRONMENT", "production")
        stack = build_stack(offline_app(), env=aws_environment)
        assert stack.node.id == "acme-production-server-stack"

    def test_no_environment_selected(self, aws_environment):
        with pytest.raises(ConfigError) as exc_info:
            build_stack(offline_app(), env=aws_environment)
        assert exc_info.value.field == "environment"

    def test_unknown_environment_is_logged_and_raised(self, aws_environment, caplog):
        app = offline_app(environment="qa")
        with pytest.raises(ConfigError):
            build_stack(app, env=aws_environment)
        assert "Cannot compose deployment 'qa'" in caplog.text
        assert len(app.node.children) == 0


class TestContextOverrides:
    def test_overrides_replace_file_values(self, aws_environment):
        app = offline_app(
            environment="staging",
            clientName="globex",
            domain="Globex.com",
            vpcId="vpc-0abc",
        )
        stack = build_stack(app, env=aws_environment)

        assert stack.node.id == "globex-staging-server-stack"
        assert stack.config.domain == "globex.com"
        assert stack.config.vpc_id == "vpc-0abc"
        assert stack.config.task_env == {
            "NODE_ENV": "staging",
            "ASSET_BUCKET": "acme-staging-assets",
        }

    def test_invalid_override_propagates(self, aws_environment):
        with pytest.raises(ConfigError) as exc_info:
            build_stack(offline_app(environment="staging", clientName="globex-corp"), env=aws_environment)
        assert exc_info.value.field == "client_name"


class TestPreflight:
    def test_runs_by_default(self, aws_resources_exist, aws_environment):
        build_stack(App(context={"environment": "staging"}), env=aws_environment)

        aws_resources_exist["ec2"].describe_vpcs.assert_called_once_with(VpcIds=[STAGING_VPC])
        aws_resources_exist["route53"].list_hosted_zones_by_name.assert_called_once()
        aws_resources_exist["factory"].assert_any_call("ec2", region_name="us-east-1")

    def test_skipped_by_context(self, mock_boto3_clients, aws_environment):
        build_stack(offline_app(environment="staging"), env=aws_environment)
        mock_boto3_clients["factory"].assert_not_called()

    def test_missing_vpc_aborts_before_any_stack(self, mock_boto3_clients, aws_environment, caplog):
        mock_boto3_clients["ec2"].describe_vpcs.side_effect = ClientError(
            {"Error": {"Code": "InvalidVpcID.NotFound", "Message": "not found"}},
            "DescribeVpcs",
        )
        app = App(context={"environment": "staging", "skipPreflight": "no"})

        with pytest.raises(VpcNotFoundError):
            build_stack(app, env=aws_environment)
        assert len(app.node.children) == 0
        assert STAGING_VPC in caplog.text


@pytest.mark.parametrize(
    "value,expected",
    [("true", True), ("TRUE", True), ("1", True), (" yes ", True), ("false", False), ("", False), (None, False)],
)
def test_truthy(value, expected):
    assert _truthy(value) is expected
