"""CloudFormation exports read by the deployment pipeline.

The pipeline pushes a new image to `<env>ImageRepositoryUri`, then forces a
new deployment of `<env>ServiceName` in `<env>ClusterName`. Nothing in this
app performs a rollout itself.
"""
from dataclasses import dataclass
from typing import Optional

from aws_cdk import CfnOutput
from constructs import Construct

from .config import DeploymentConfig
from .errors import TopologyError
from .topology import TopologyGraph


@dataclass(frozen=True)
class ExportedOutput:
    key: str
    export_name: str
    value: str
    description: str


class OutputManager:
    """Creates environment-namespaced exports on a stack.

    Attributes:
        scope: The stack the outputs belong to.
        config: Deployment whose environment prefixes every export name.
        exports: Outputs created so far, in creation order.
    """

    def __init__(self, scope: Construct, config: DeploymentConfig, graph: TopologyGraph) -> None:
        self.scope = scope
        self.config = config
        self.graph = graph
        self.exports: list[ExportedOutput] = []

    def add_export(self, key: str, value: str, description: str, source: str) -> ExportedOutput:
        """Export `value` as `<environment><key>`.

        Args:
            key: Export suffix, e.g. "ServiceName".
            value: Usually a token resolved by CloudFormation.
            description: Shown by `aws cloudformation describe-stacks`.
            source: Topology node the value is read from.
        """
        export_name = self.config.export_name(key)
        if any(e.export_name == export_name for e in self.exports):
            raise TopologyError(f"export {export_name!r} is declared twice")

        CfnOutput(
            self.scope,
            export_name,
            value=value,
            export_name=export_name,
            description=description,
        )
        self.graph.add(f"output:{export_name}", "AWS::CloudFormation::Export", depends_on=[source])
        exported = ExportedOutput(key=key, export_name=export_name, value=value, description=description)
        self.exports.append(exported)
        return exported

    def add_output(self, id_: str, value: str, description: Optional[str] = None) -> None:
        """Plain stack output, not importable by other stacks."""
        CfnOutput(self.scope, id_, value=value, description=description)

    @property
    def export_names(self) -> list[str]:
        return [e.export_name for e in self.exports]
