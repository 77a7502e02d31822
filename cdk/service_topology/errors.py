"""
Errors raised while composing the service topology.

Everything here aborts synthesis. Provisioning failures come from
CloudFormation during `cdk deploy` and are never wrapped by this package.
"""
from typing import Optional


class TopologyError(RuntimeError):
    """Base class for composition failures."""


class ConfigError(TopologyError, ValueError):
    """A required deployment parameter is missing or invalid."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class VpcNotFoundError(TopologyError, LookupError):
    def __init__(self, vpc_id: str, reason: Optional[str] = None) -> None:
        self.vpc_id = vpc_id
        message = f"VPC {vpc_id!r} does not exist"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ZoneNotFoundError(TopologyError, LookupError):
    def __init__(self, domain: str, reason: Optional[str] = None) -> None:
        self.domain = domain
        message = f"no hosted zone found for domain {domain!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class TopologyCycleError(TopologyError):
    """The declared resources depend on each other in a loop."""

    def __init__(self, nodes: list[str]) -> None:
        self.nodes = nodes
        super().__init__("dependency cycle between resources: " + ", ".join(nodes))
