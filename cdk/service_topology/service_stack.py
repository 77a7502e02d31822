import logging

from aws_cdk import Stack
from constructs import Construct

from .compute import ComputeConstruct
from .config import DeploymentConfig
from .dns import DnsConstruct
from .identity import IdentityConstruct
from .ingress import IngressConstruct
from .lookups import resolve_references
from .outputs import OutputManager
from .scaling import bind_autoscaling
from .topology import TopologyGraph

logger = logging.getLogger(__name__)


class ServiceStack(Stack):
    """
    A fully provisioned ECS deployment for one client environment: registry,
    cluster and Fargate service behind a TLS load balancer, DNS record, asset
    bucket, task role, autoscaling and the exports CI/CD reads.

    The VPC and hosted zone must already exist; they are looked up once from
    `config` before anything is declared.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.config = config
        self.topology = TopologyGraph()
        logger.info("Composing %s in stack %s", config.name_prefix, construct_id)

        # ------------------------------------------------------------------ #
        # External references, resolved once                                 #
        # ------------------------------------------------------------------ #

        refs = resolve_references(self, config)
        self.topology.add(config.vpc_id, "AWS::EC2::VPC", external=True)
        self.topology.add(f"zone:{config.domain}", "AWS::Route53::HostedZone", external=True)

        # ------------------------------------------------------------------ #
        # Ingress + DNS/TLS                                                    #
        # ------------------------------------------------------------------ #

        self.ingress = IngressConstruct(
            self,
            "Ingress",
            config=config,
            vpc=refs.vpc,
            graph=self.topology,
        )
        self.dns = DnsConstruct(
            self,
            "Dns",
            config=config,
            zone=refs.zone,
            load_balancer=self.ingress.load_balancer,
            graph=self.topology,
        )
        self.ingress.add_tls_listener(self.dns.certificate, self.dns.certificate.node.id)

        # ------------------------------------------------------------------ #
        # Identity, compute, autoscaling                                       #
        # ------------------------------------------------------------------ #

        self.identity = IdentityConstruct(
            self,
            "Identity",
            config=config,
            graph=self.topology,
        )
        self.compute = ComputeConstruct(
            self,
            "Compute",
            config=config,
            vpc=refs.vpc,
            task_role=self.identity.task_role,
            ingress_security_group=self.ingress.security_group,
            target_group=self.ingress.target_group,
            listener_node=self.ingress.listener_node,
            graph=self.topology,
        )
        self.scaling_target = bind_autoscaling(
            config=config,
            service=self.compute.service,
            graph=self.topology,
        )

        # ------------------------------------------------------------------ #
        # Outputs                                                              #
        # ------------------------------------------------------------------ #

        self.outputs = OutputManager(self, config, self.topology)
        self.outputs.add_export(
            "ServiceName",
            self.compute.service.service_name,
            "ECS service to redeploy after pushing an image",
            source=self.compute.service.node.id,
        )
        self.outputs.add_export(
            "ImageRepositoryUri",
            self.compute.repository.repository_uri,
            "ECR repository CI pushes images to",
            source=self.compute.repository.node.id,
        )
        self.outputs.add_export(
            "ImageName",
            self.compute.image.image_name,
            "Image reference (repository and tag) the task definition runs",
            source=self.compute.repository.node.id,
        )
        self.outputs.add_export(
            "ClusterName",
            self.compute.cluster.cluster_name,
            "ECS cluster running the service",
            source=self.compute.cluster.node.id,
        )
        self.outputs.add_output(
            "ApiUrl",
            f"https://{self.dns.record_name}",
            description=f"Public URL of the {config.environment} API",
        )

        self.resource_order = self.topology.topological_order()
        logger.info(
            "Declared %d resources, exports: %s",
            len(self.resource_order),
            ", ".join(self.outputs.export_names),
        )

    @property
    def api_domain_name(self) -> str:
        return self.dns.record_name
