from aws_cdk import aws_iam as iam, aws_s3 as s3
from constructs import Construct

from . import constants
from .config import DeploymentConfig
from .topology import TopologyGraph


class IdentityConstruct(Construct):
    """Asset bucket and the role the API task runs as.

    The inline policy grants every S3 action on the asset bucket and every
    SES action on all resources. SES has no resource-level ARNs for sending,
    so "*" is the only scope available there.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        graph: TopologyGraph,
        storage_actions: tuple[str, ...] = constants.STORAGE_ACTIONS,
        email_actions: tuple[str, ...] = constants.EMAIL_ACTIONS,
    ) -> None:
        super().__init__(scope, construct_id)

        self.bucket = s3.Bucket(
            self,
            config.resource_name("s3-bucket"),
            bucket_name=config.bucket_name,
        )
        graph.add(self.bucket.node.id, "AWS::S3::Bucket", bucket_name=config.bucket_name)

        self.task_role = iam.Role(
            self,
            config.resource_name("task-role"),
            assumed_by=iam.ServicePrincipal(constants.TASK_SERVICE_PRINCIPAL),
            role_name=config.task_role_name,
            description="Role that the api task definitions use to run the api code",
        )
        graph.add(
            self.task_role.node.id,
            "AWS::IAM::Role",
            assumed_by=constants.TASK_SERVICE_PRINCIPAL,
        )

        self.policy = iam.Policy(
            self,
            config.resource_name("task-policy"),
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=list(storage_actions),
                    resources=[self.bucket.bucket_arn],
                ),
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=list(email_actions),
                    resources=["*"],
                ),
            ],
        )
        self.task_role.attach_inline_policy(self.policy)
        graph.add(
            self.policy.node.id,
            "AWS::IAM::Policy",
            depends_on=[self.task_role.node.id, self.bucket.node.id],
        )
        graph.allow_actions(self.task_role.node.id, self.bucket.node.id, storage_actions)
        graph.allow_actions(self.task_role.node.id, "*", email_actions)
