"""
Desired-state graph recorded while the stack is composed.

CDK already derives CloudFormation dependencies from token references. This
graph records the same relationships explicitly, so the composer can check
that every consumer names a producer that exists and that nothing depends on
itself, and so tests can inspect the security wiring without parsing the
synthesized template.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .errors import TopologyCycleError, TopologyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceNode:
    name: str
    kind: str
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class DependencyEdge:
    """`consumer` needs `producer` to exist before its configuration is complete."""

    consumer: str
    producer: str


@dataclass(frozen=True)
class SecurityBinding:
    """A permission edge.

    Network bindings allow `source` (a security group) to reach `target` on
    `ports`/`protocol`. Policy bindings grant `actions` to `source` (a role)
    on `target` (a resource ARN or "*").
    """

    kind: str  # "network" or "policy"
    source: str
    target: str
    ports: Optional[str] = None
    protocol: Optional[str] = None
    actions: tuple[str, ...] = ()


class TopologyGraph:
    def __init__(self) -> None:
        self._nodes: dict[str, ResourceNode] = {}
        self._edges: list[DependencyEdge] = []
        self.bindings: list[SecurityBinding] = []

    @property
    def nodes(self) -> list[ResourceNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[DependencyEdge]:
        return list(self._edges)

    def node(self, name: str) -> ResourceNode:
        try:
            return self._nodes[name]
        except KeyError:
            raise TopologyError(f"resource {name!r} has not been declared") from None

    def add(
        self,
        name: str,
        kind: str,
        depends_on: Iterable[str] = (),
        **attributes: Any,
    ) -> ResourceNode:
        if name in self._nodes:
            raise TopologyError(f"resource {name!r} is declared twice")
        node = ResourceNode(name=name, kind=kind, attributes=attributes)
        self._nodes[name] = node
        for producer in depends_on:
            self.depend(name, producer)
        return node

    def depend(self, consumer: str, producer: str) -> None:
        if consumer == producer:
            raise TopologyCycleError([consumer])
        self._edges.append(DependencyEdge(consumer=consumer, producer=producer))

    def allow_network(self, source: str, target: str, ports: str, protocol: str = "tcp") -> None:
        self.bindings.append(
            SecurityBinding(kind="network", source=source, target=target, ports=ports, protocol=protocol)
        )

    def allow_actions(self, role: str, resource: str, actions: Iterable[str]) -> None:
        self.bindings.append(
            SecurityBinding(kind="policy", source=role, target=resource, actions=tuple(actions))
        )

    def network_bindings_to(self, target: str) -> list[SecurityBinding]:
        return [b for b in self.bindings if b.kind == "network" and b.target == target]

    def dependencies_of(self, name: str) -> list[str]:
        return [e.producer for e in self._edges if e.consumer == name]

    def topological_order(self) -> list[str]:
        """Producers before consumers, ties broken by declaration order.

        Raises TopologyError for an edge naming an undeclared resource and
        TopologyCycleError naming every resource a cycle blocks.
        """
        for edge in self._edges:
            for name in (edge.consumer, edge.producer):
                if name not in self._nodes:
                    raise TopologyError(
                        f"{edge.consumer!r} depends on {edge.producer!r}, "
                        f"but {name!r} has not been declared"
                    )

        position = {name: i for i, name in enumerate(self._nodes)}
        pending = {name: 0 for name in self._nodes}
        consumers: dict[str, list[str]] = {name: [] for name in self._nodes}
        for edge in set(self._edges):
            pending[edge.consumer] += 1
            consumers[edge.producer].append(edge.consumer)

        ready = deque(sorted((n for n, count in pending.items() if count == 0), key=position.get))
        order = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for consumer in sorted(consumers[name], key=position.get):
                pending[consumer] -= 1
                if pending[consumer] == 0:
                    ready.append(consumer)

        if len(order) != len(self._nodes):
            stuck = [name for name in self._nodes if pending[name] > 0]
            raise TopologyCycleError(stuck)

        logger.debug("Topological order: %s", " -> ".join(order))
        return order
