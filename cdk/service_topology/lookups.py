"""
External references the topology consumes but never creates.

The VPC and the hosted zone are resolved once, before any resource is
declared, and handed to the builders. `preflight` checks that both exist
through the AWS APIs so a typo fails with a named error instead of a
context-provider failure deep inside `cdk synth`.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_route53 as route53
from botocore.exceptions import ClientError
from constructs import Construct

from .config import DeploymentConfig
from .errors import VpcNotFoundError, ZoneNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalReferences:
    vpc: ec2.IVpc
    zone: route53.IHostedZone


def resolve_references(scope: Construct, config: DeploymentConfig) -> ExternalReferences:
    prefix = config.name_prefix
    vpc = ec2.Vpc.from_lookup(scope, f"{prefix}-vpc", vpc_id=config.vpc_id)
    zone = route53.HostedZone.from_lookup(scope, f"{prefix}-zone", domain_name=config.domain)
    return ExternalReferences(vpc=vpc, zone=zone)


# --------------------------------------------------------------------------- #
# Pre-flight checks (boto3)                                                    #
# --------------------------------------------------------------------------- #

def check_vpc(vpc_id: str, region: Optional[str] = None) -> str:
    ec2_client = boto3.client("ec2", region_name=region)
    try:
        response = ec2_client.describe_vpcs(VpcIds=[vpc_id])
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "")
        if code in ("InvalidVpcID.NotFound", "InvalidVpcID.Malformed"):
            raise VpcNotFoundError(vpc_id, code) from exc
        raise
    if not response.get("Vpcs"):
        raise VpcNotFoundError(vpc_id)
    logger.info("Found VPC %s", vpc_id)
    return vpc_id


def check_hosted_zone(domain: str) -> str:
    """Return the id of the public hosted zone named exactly `domain`."""
    route53_client = boto3.client("route53")
    wanted = domain.rstrip(".") + "."
    response = route53_client.list_hosted_zones_by_name(DNSName=wanted, MaxItems="10")
    for zone in response.get("HostedZones", []):
        if zone.get("Name") != wanted:
            # results are sorted by name, the first mismatch ends the run
            break
        if zone.get("Config", {}).get("PrivateZone"):
            logger.warning("Skipping private hosted zone %s for %s", zone.get("Id"), domain)
            continue
        zone_id = zone["Id"].rsplit("/", 1)[-1]
        logger.info("Found hosted zone %s for %s", zone_id, domain)
        return zone_id
    raise ZoneNotFoundError(domain)


def preflight(config: DeploymentConfig, region: Optional[str] = None) -> None:
    check_vpc(config.vpc_id, region=region)
    check_hosted_zone(config.domain)
