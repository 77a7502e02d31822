from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
)
from constructs import Construct

from . import constants
from .config import DeploymentConfig
from .topology import TopologyGraph


class ComputeConstruct(Construct):
    """Registry, cluster, task definition and the Fargate service behind the ALB.

    Images are pushed by CI; the task always runs the `image_tag` tag of the
    repository created here. Tasks are reachable only from the load balancer's
    security group, never directly from the internet.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        vpc: ec2.IVpc,
        task_role: iam.IRole,
        ingress_security_group: ec2.ISecurityGroup,
        target_group: elbv2.IApplicationTargetGroup,
        listener_node: str,
        graph: TopologyGraph,
        task_cpu: str = constants.TASK_CPU,
        task_memory_mib: str = constants.TASK_MEMORY_MIB,
        container_memory_limit_mib: int = constants.CONTAINER_MEMORY_LIMIT_MIB,
        container_port: int = constants.CONTAINER_PORT,
        image_tag: str = constants.IMAGE_TAG,
        desired_count: int = constants.DESIRED_COUNT,
    ) -> None:
        super().__init__(scope, construct_id)
        prefix = config.name_prefix

        # ------------------------------------------------------------------ #
        # Registry + cluster                                                   #
        # ------------------------------------------------------------------ #

        self.repository = ecr.Repository(
            self,
            config.resource_name("repository"),
            repository_name=config.resource_name("repository"),
        )
        graph.add(self.repository.node.id, "AWS::ECR::Repository")

        self.cluster = ecs.Cluster(
            self,
            config.resource_name("cluster"),
            cluster_name=config.resource_name("cluster"),
            vpc=vpc,
        )
        graph.add(self.cluster.node.id, "AWS::ECS::Cluster", depends_on=[config.vpc_id])

        # ------------------------------------------------------------------ #
        # Task definition                                                      #
        # ------------------------------------------------------------------ #

        self.task_definition = ecs.TaskDefinition(
            self,
            config.resource_name("task"),
            family=config.resource_name("task"),
            compatibility=ecs.Compatibility.EC2_AND_FARGATE,
            cpu=task_cpu,
            memory_mib=task_memory_mib,
            network_mode=ecs.NetworkMode.AWS_VPC,
            task_role=task_role,
        )

        self.image = ecs.ContainerImage.from_ecr_repository(self.repository, tag=image_tag)
        self.container = self.task_definition.add_container(
            config.resource_name("container"),
            image=self.image,
            memory_limit_mib=container_memory_limit_mib,
            environment=config.task_env,
            logging=ecs.LogDrivers.aws_logs(stream_prefix=prefix),
        )
        self.container.add_port_mappings(ecs.PortMapping(container_port=container_port))
        graph.add(
            self.task_definition.node.id,
            "AWS::ECS::TaskDefinition",
            depends_on=[task_role.node.id, self.repository.node.id],
            cpu=task_cpu,
            memory_mib=task_memory_mib,
            container_port=container_port,
            image_tag=image_tag,
        )

        # ------------------------------------------------------------------ #
        # Service security group: load balancer only                          #
        # ------------------------------------------------------------------ #

        self.security_group = ec2.SecurityGroup(
            self,
            config.resource_name("ecsSG"),
            vpc=vpc,
            description=f"{prefix} tasks - allow from the load balancer only",
            allow_all_outbound=True,
        )
        self.security_group.connections.allow_from(
            ingress_security_group,
            ec2.Port.all_tcp(),
            "Application load balancer",
        )
        graph.add(
            self.security_group.node.id,
            "AWS::EC2::SecurityGroup",
            depends_on=[config.vpc_id, ingress_security_group.node.id],
        )
        graph.allow_network(ingress_security_group.node.id, self.security_group.node.id, "0-65535")

        # ------------------------------------------------------------------ #
        # Service                                                              #
        # ------------------------------------------------------------------ #

        # awsvpc tasks in public subnets need a public IP to pull the image
        self.service = ecs.FargateService(
            self,
            config.resource_name("service"),
            cluster=self.cluster,
            task_definition=self.task_definition,
            desired_count=desired_count,
            security_groups=[self.security_group],
            assign_public_ip=True,
        )
        self.service.attach_to_application_target_group(target_group)
        # attaching also opens the container port from the load balancer's group
        graph.allow_network(ingress_security_group.node.id, self.security_group.node.id, str(container_port))
        graph.add(
            self.service.node.id,
            "AWS::ECS::Service",
            depends_on=[
                self.cluster.node.id,
                self.task_definition.node.id,
                self.security_group.node.id,
                target_group.node.id,
                listener_node,
            ],
            desired_count=desired_count,
            assign_public_ip=True,
        )
