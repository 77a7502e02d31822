#!/usr/bin/env python3
"""
CDK app: ECS service topology
Deploy with: cdk deploy -c environment=<name>
"""
import logging
import os
from pathlib import Path
from typing import Optional

import aws_cdk as cdk
from service_topology.config import DEFAULT_CONFIG_PATH, load_config
from service_topology.lookups import preflight
from service_topology.service_stack import ServiceStack

logger = logging.getLogger("app")


def _truthy(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes")


def _default_environment() -> cdk.Environment:
    return cdk.Environment(
        account=os.getenv("CDK_DEFAULT_ACCOUNT") or os.getenv("AWS_ACCOUNT_ID"),
        region=os.getenv("CDK_DEFAULT_REGION", "us-east-1"),
    )


def build_stack(
    app: cdk.App,
    env: Optional[cdk.Environment] = None,
    config_path: Path = DEFAULT_CONFIG_PATH,
) -> ServiceStack:
    """Resolve the deployment selected by context or environment and declare its stack."""
    env = env or _default_environment()

    # Configuration: cdk/config.xml, overridable via CDK context or environment
    environment = app.node.try_get_context("environment") or os.getenv("DEPLOY_ENVIRONMENT", "")

    try:
        config = load_config(
            environment,
            config_path=config_path,
            overrides={
                "client_name": app.node.try_get_context("clientName"),
                "domain": app.node.try_get_context("domain"),
                "vpc_id": app.node.try_get_context("vpcId"),
            },
        )
        if not _truthy(app.node.try_get_context("skipPreflight")):
            preflight(config, region=env.region)
    except Exception as exc:
        logger.error("Cannot compose deployment %r: %s", environment, exc)
        raise

    return ServiceStack(app, f"{config.name_prefix}-stack", config=config, env=env)


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = cdk.App()
    build_stack(app)
    app.synth()


if __name__ == "__main__":
    main()
