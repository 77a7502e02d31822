"""Tests for pre-flight VPC and hosted zone checks (boto3 mocked)."""

import pytest
from botocore.exceptions import ClientError

from service_topology.errors import VpcNotFoundError, ZoneNotFoundError
from service_topology.lookups import check_hosted_zone, check_vpc, preflight


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "DescribeVpcs")


class TestCheckVpc:
    def test_existing_vpc(self, mock_boto3_clients):
        mock_boto3_clients["ec2"].describe_vpcs.return_value = {"Vpcs": [{"VpcId": "vpc-123"}]}

        assert check_vpc("vpc-123", region="eu-west-1") == "vpc-123"
        mock_boto3_clients["ec2"].describe_vpcs.assert_called_once_with(VpcIds=["vpc-123"])
        mock_boto3_clients["factory"].assert_called_once_with("ec2", region_name="eu-west-1")

    def test_missing_vpc(self, mock_boto3_clients):
        mock_boto3_clients["ec2"].describe_vpcs.side_effect = client_error("InvalidVpcID.NotFound")

        with pytest.raises(VpcNotFoundError) as exc_info:
            check_vpc("vpc-123")
        assert exc_info.value.vpc_id == "vpc-123"
        assert isinstance(exc_info.value, LookupError)
        assert "vpc-123" in str(exc_info.value)

    def test_empty_response(self, mock_boto3_clients):
        mock_boto3_clients["ec2"].describe_vpcs.return_value = {"Vpcs": []}

        with pytest.raises(VpcNotFoundError):
            check_vpc("vpc-123")

    def test_other_api_errors_propagate(self, mock_boto3_clients):
        mock_boto3_clients["ec2"].describe_vpcs.side_effect = client_error("UnauthorizedOperation")

        with pytest.raises(ClientError):
            check_vpc("vpc-123")


class TestCheckHostedZone:
    def test_exact_match(self, mock_boto3_clients):
        mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {
            "HostedZones": [
                {"Id": "/hostedzone/Z123", "Name": "acme.io.", "Config": {"PrivateZone": False}},
            ],
        }

        assert check_hosted_zone("acme.io") == "Z123"
        mock_boto3_clients["route53"].list_hosted_zones_by_name.assert_called_once_with(
            DNSName="acme.io.",
            MaxItems="10",
        )

    def test_private_zone_skipped(self, mock_boto3_clients):
        mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {
            "HostedZones": [
                {"Id": "/hostedzone/ZPRIV", "Name": "acme.io.", "Config": {"PrivateZone": True}},
                {"Id": "/hostedzone/ZPUB", "Name": "acme.io.", "Config": {"PrivateZone": False}},
            ],
        }

        assert check_hosted_zone("acme.io") == "ZPUB"

    def test_next_zone_by_name_is_not_a_match(self, mock_boto3_clients):
        mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {
            "HostedZones": [{"Id": "/hostedzone/Z9", "Name": "acme.org.", "Config": {}}],
        }

        with pytest.raises(ZoneNotFoundError) as exc_info:
            check_hosted_zone("acme.io")
        assert exc_info.value.domain == "acme.io"
        assert isinstance(exc_info.value, LookupError)

    def test_no_zones(self, mock_boto3_clients):
        mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {"HostedZones": []}

        with pytest.raises(ZoneNotFoundError):
            check_hosted_zone("acme.io")


class TestPreflight:
    def test_checks_vpc_then_zone(self, mock_boto3_clients, make_config):
        mock_boto3_clients["ec2"].describe_vpcs.return_value = {"Vpcs": [{"VpcId": "vpc-123"}]}
        mock_boto3_clients["route53"].list_hosted_zones_by_name.return_value = {
            "HostedZones": [{"Id": "/hostedzone/Z1", "Name": "acme.io.", "Config": {}}],
        }

        preflight(make_config("staging"))

        mock_boto3_clients["ec2"].describe_vpcs.assert_called_once()
        mock_boto3_clients["route53"].list_hosted_zones_by_name.assert_called_once()

    def test_missing_vpc_stops_before_zone_lookup(self, mock_boto3_clients, make_config):
        mock_boto3_clients["ec2"].describe_vpcs.side_effect = client_error("InvalidVpcID.NotFound")

        with pytest.raises(VpcNotFoundError):
            preflight(make_config("staging"))
        mock_boto3_clients["route53"].list_hosted_zones_by_name.assert_not_called()
