"""Named defaults for the fixed numbers in the service topology.

Each builder takes these as keyword argument defaults, so a caller can
override one without touching the others.
"""

from aws_cdk import aws_elasticloadbalancingv2 as elbv2

PRODUCTION_ENVIRONMENT: str = "production"

# Task sizing
TASK_CPU: str = "256"
TASK_MEMORY_MIB: str = "512"
CONTAINER_MEMORY_LIMIT_MIB: int = 512
CONTAINER_PORT: int = 80
IMAGE_TAG: str = "latest"
DESIRED_COUNT: int = 1

# Ingress
HTTPS_PORT: int = 443
TARGET_PORT: int = 80
HEALTH_CHECK_PATH: str = "/api/status"
HEALTH_CHECK_PROTOCOL: elbv2.Protocol = elbv2.Protocol.HTTP

# DNS
RECORD_TTL_SECONDS: int = 300

# Autoscaling
MIN_CAPACITY: int = 1
MAX_CAPACITY: int = 5
CPU_TARGET_PERCENT: int = 75
MEMORY_TARGET_PERCENT: int = 75

# IAM
TASK_SERVICE_PRINCIPAL: str = "ecs-tasks.amazonaws.com"
STORAGE_ACTIONS: tuple[str, ...] = ("S3:*",)
EMAIL_ACTIONS: tuple[str, ...] = ("SES:*",)

# AWS name length limits
ROLE_NAME_MAX_LENGTH: int = 64
BUCKET_NAME_MAX_LENGTH: int = 63
