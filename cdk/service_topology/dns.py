from aws_cdk import (
    Duration,
    aws_certificatemanager as acm,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

from . import constants
from .config import DeploymentConfig
from .topology import TopologyGraph


class DnsConstruct(Construct):
    """Certificate for the domain (and its wildcard) plus the API alias record.

    Production answers on `api.<domain>`, every other environment on
    `<environment>-api.<domain>`, so staging stacks can share one zone.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        zone: route53.IHostedZone,
        load_balancer: elbv2.IApplicationLoadBalancer,
        graph: TopologyGraph,
        record_ttl_seconds: int = constants.RECORD_TTL_SECONDS,
    ) -> None:
        super().__init__(scope, construct_id)
        zone_node = f"zone:{config.domain}"

        self.certificate = acm.Certificate(
            self,
            config.resource_name("cert"),
            domain_name=config.domain,
            subject_alternative_names=[f"*.{config.domain}"],
            validation=acm.CertificateValidation.from_dns(zone),
        )
        graph.add(
            self.certificate.node.id,
            "AWS::CertificateManager::Certificate",
            depends_on=[zone_node],
            domain_name=config.domain,
        )

        self.record_name = config.api_record_name
        self.record = route53.ARecord(
            self,
            config.resource_name("domain"),
            zone=zone,
            record_name=self.record_name,
            target=route53.RecordTarget.from_alias(
                route53_targets.LoadBalancerTarget(load_balancer)
            ),
            ttl=Duration.seconds(record_ttl_seconds),
            comment=f"{config.environment} API domain",
        )
        graph.add(
            self.record.node.id,
            "AWS::Route53::RecordSet",
            depends_on=[zone_node, load_balancer.node.id],
            record_name=self.record_name,
            ttl=record_ttl_seconds,
        )
