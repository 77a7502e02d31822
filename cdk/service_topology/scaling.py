from aws_cdk import aws_ecs as ecs

from . import constants
from .config import DeploymentConfig
from .topology import TopologyGraph


def bind_autoscaling(
    config: DeploymentConfig,
    service: ecs.BaseService,
    graph: TopologyGraph,
    min_capacity: int = constants.MIN_CAPACITY,
    max_capacity: int = constants.MAX_CAPACITY,
    cpu_target: int = constants.CPU_TARGET_PERCENT,
    memory_target: int = constants.MEMORY_TARGET_PERCENT,
) -> ecs.ScalableTaskCount:
    """Target-tracking autoscaling for the service.

    Only the thresholds are declared; Application Auto Scaling runs the loop.
    The two policies are evaluated independently of each other.
    """
    scaling_target = service.auto_scale_task_count(
        min_capacity=min_capacity,
        max_capacity=max_capacity,
    )
    target_node = f"{service.node.id}-scaling-target"
    graph.add(
        target_node,
        "AWS::ApplicationAutoScaling::ScalableTarget",
        depends_on=[service.node.id],
        min_capacity=min_capacity,
        max_capacity=max_capacity,
    )

    scaling_target.scale_on_memory_utilization(
        config.resource_name("ScaleUpMem"),
        target_utilization_percent=memory_target,
    )
    graph.add(
        config.resource_name("ScaleUpMem"),
        "AWS::ApplicationAutoScaling::ScalingPolicy",
        depends_on=[target_node],
        metric="ECSServiceAverageMemoryUtilization",
        target=memory_target,
    )

    scaling_target.scale_on_cpu_utilization(
        config.resource_name("ScaleUpCPU"),
        target_utilization_percent=cpu_target,
    )
    graph.add(
        config.resource_name("ScaleUpCPU"),
        "AWS::ApplicationAutoScaling::ScalingPolicy",
        depends_on=[target_node],
        metric="ECSServiceAverageCPUUtilization",
        target=cpu_target,
    )
    return scaling_target
