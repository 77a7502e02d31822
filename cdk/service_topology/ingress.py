from typing import Optional

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
)
from constructs import Construct

from . import constants
from .config import DeploymentConfig
from .topology import TopologyGraph


class IngressConstruct(Construct):
    """Public entry point: ALB, its security group, target group and TLS listener.

    The listener is added separately with `add_tls_listener` because its
    certificate comes from the DNS binder, which needs the load balancer first.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        vpc: ec2.IVpc,
        graph: TopologyGraph,
        target_port: int = constants.TARGET_PORT,
        https_port: int = constants.HTTPS_PORT,
        health_check_path: str = constants.HEALTH_CHECK_PATH,
        health_check_protocol: elbv2.Protocol = constants.HEALTH_CHECK_PROTOCOL,
    ) -> None:
        super().__init__(scope, construct_id)
        prefix = config.name_prefix
        self.config = config
        self.graph = graph
        self.https_port = https_port

        # Security group: public ALB, HTTPS from anywhere
        self.security_group = ec2.SecurityGroup(
            self,
            config.resource_name("elbSG"),
            vpc=vpc,
            description=f"{prefix} load balancer - allow HTTPS from anywhere",
            allow_all_outbound=True,
        )
        self.security_group.add_ingress_rule(
            ec2.Peer.any_ipv4(),
            ec2.Port.tcp(https_port),
            "Allow https traffic",
        )
        graph.add(
            self.security_group.node.id,
            "AWS::EC2::SecurityGroup",
            depends_on=[config.vpc_id],
        )
        graph.allow_network("0.0.0.0/0", self.security_group.node.id, str(https_port))

        self.load_balancer = elbv2.ApplicationLoadBalancer(
            self,
            config.resource_name("elb"),
            vpc=vpc,
            internet_facing=True,
            security_group=self.security_group,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        )
        graph.add(
            self.load_balancer.node.id,
            "AWS::ElasticLoadBalancingV2::LoadBalancer",
            depends_on=[config.vpc_id, self.security_group.node.id],
            internet_facing=True,
        )

        # IP targets: awsvpc tasks register by ENI address, not instance id
        self.target_group = elbv2.ApplicationTargetGroup(
            self,
            config.resource_name("target"),
            vpc=vpc,
            port=target_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.IP,
        )
        self.target_group.configure_health_check(
            path=health_check_path,
            protocol=health_check_protocol,
        )
        graph.add(
            self.target_group.node.id,
            "AWS::ElasticLoadBalancingV2::TargetGroup",
            depends_on=[config.vpc_id],
            port=target_port,
            health_check_path=health_check_path,
            health_check_protocol=health_check_protocol.value,
        )

        self.listener: Optional[elbv2.ApplicationListener] = None
        self.listener_node: Optional[str] = None

    def add_tls_listener(self, certificate: acm.ICertificate, certificate_node: str) -> elbv2.ApplicationListener:
        listener = self.load_balancer.add_listener(
            "Listener",
            port=self.https_port,
            protocol=elbv2.ApplicationProtocol.HTTPS,
            certificates=[elbv2.ListenerCertificate.from_certificate_manager(certificate)],
            # the security group already carries the only public rule
            open=False,
        )
        listener.add_target_groups(
            self.config.resource_name("tg"),
            target_groups=[self.target_group],
        )
        self.listener_node = f"{self.load_balancer.node.id}-listener"
        self.graph.add(
            self.listener_node,
            "AWS::ElasticLoadBalancingV2::Listener",
            depends_on=[self.load_balancer.node.id, self.target_group.node.id, certificate_node],
            port=self.https_port,
        )
        self.listener = listener
        return listener
