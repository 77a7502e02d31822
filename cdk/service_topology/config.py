"""
Deployment parameters and the naming rules derived from them.

A deployment is identified by (client_name, environment). Every resource
name starts with `<client>-<environment>-server`, so two deployments sharing
an AWS account never collide.
"""
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .constants import BUCKET_NAME_MAX_LENGTH, PRODUCTION_ENVIRONMENT, ROLE_NAME_MAX_LENGTH
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.xml"

# client names carry no "-" so the prefix splits back into exactly one pair
_CLIENT_RE = re.compile(r"^[a-z0-9]+$")
_LABEL = r"[a-z0-9](?:[a-z0-9-]*[a-z0-9])?"
_ENVIRONMENT_RE = re.compile(rf"^{_LABEL}$")
_DOMAIN_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})+$")
_VPC_ID_RE = re.compile(r"^vpc-[0-9a-f]+$")


@dataclass(frozen=True)
class DeploymentConfig:
    """Validated, immutable input for one environment's topology.

    Build instances with `DeploymentConfig.create`, which normalises and
    validates. Constructing the dataclass directly skips both.
    """

    client_name: str
    environment: str
    domain: str
    vpc_id: str
    task_env: Optional[dict[str, str]] = field(default=None, hash=False)

    @classmethod
    def create(
        cls,
        client_name: str,
        environment: str,
        domain: str,
        vpc_id: str,
        task_env: Optional[Mapping[str, str]] = None,
    ) -> "DeploymentConfig":
        client_name = _required("client_name", client_name)
        environment = _required("environment", environment)
        domain = _required("domain", domain).lower().rstrip(".")
        vpc_id = _required("vpc_id", vpc_id)

        if not _CLIENT_RE.match(client_name):
            raise ConfigError(
                "client_name",
                f"{client_name!r} must contain only lowercase letters and digits",
            )
        if not _ENVIRONMENT_RE.match(environment):
            raise ConfigError(
                "environment",
                f"{environment!r} must be a lowercase DNS label (letters, digits, '-')",
            )
        if not _DOMAIN_RE.match(domain):
            raise ConfigError("domain", f"{domain!r} is not a valid domain name")
        if not _VPC_ID_RE.match(vpc_id):
            raise ConfigError("vpc_id", f"{vpc_id!r} is not a VPC id (vpc-xxxxxxxx)")

        env_vars = None
        if task_env:
            env_vars = {}
            for key, value in task_env.items():
                if not isinstance(key, str) or not key:
                    raise ConfigError("task_env", f"variable name {key!r} must be a non-empty string")
                if not isinstance(value, str):
                    raise ConfigError("task_env", f"value of {key} must be a string")
                env_vars[key] = value

        config = cls(
            client_name=client_name,
            environment=environment,
            domain=domain,
            vpc_id=vpc_id,
            task_env=env_vars,
        )
        config._check_name_lengths()
        return config

    def _check_name_lengths(self) -> None:
        # blame the longer of the two parts, both end up in every name
        field_name = "environment" if len(self.environment) >= len(self.client_name) else "client_name"
        limits = (
            ("task role name", self.task_role_name, ROLE_NAME_MAX_LENGTH),
            ("bucket name", self.bucket_name, BUCKET_NAME_MAX_LENGTH),
        )
        for label, name, limit in limits:
            if len(name) > limit:
                raise ConfigError(
                    field_name,
                    f"{label} {name!r} is {len(name)} characters, the limit is {limit}; "
                    f"shorten client_name or environment",
                )

    @property
    def name_prefix(self) -> str:
        return f"{self.client_name}-{self.environment}-server"

    @property
    def bucket_name(self) -> str:
        return f"{self.client_name}-{self.environment}-assets"

    @property
    def task_role_name(self) -> str:
        return self.resource_name("task-role")

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION_ENVIRONMENT

    @property
    def api_record_name(self) -> str:
        """`api.<domain>` in production, `<environment>-api.<domain>` elsewhere."""
        if self.is_production:
            return f"api.{self.domain}"
        return f"{self.environment}-api.{self.domain}"

    def resource_name(self, suffix: str) -> str:
        return f"{self.name_prefix}-{suffix}"

    def export_name(self, key: str) -> str:
        return f"{self.environment}{key}"


def _required(field_name: str, value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise ConfigError(field_name, "is required and must not be empty")
    return str(value).strip()


# --------------------------------------------------------------------------- #
# config.xml                                                                   #
# --------------------------------------------------------------------------- #

def _load_deployment_block(config_path: Path, environment: str) -> dict:
    """
    Parse config.xml and return the raw fields of the <deployment> whose
    `environment` attribute matches.
    """
    try:
        tree = ET.parse(config_path)
    except FileNotFoundError:
        raise ConfigError("config", f"{config_path} does not exist") from None
    except ET.ParseError as exc:
        raise ConfigError("config", f"{config_path} is not valid XML: {exc}") from exc

    root = tree.getroot()
    for entry in root.findall("./deployment"):
        if entry.attrib.get("environment", "").strip() != environment:
            continue
        fields = {
            name: (entry.findtext(name) or "").strip()
            for name in ("client_name", "domain", "vpc_id")
        }
        task_env = {}
        for var in entry.findall("./task_env/var"):
            name = var.attrib.get("name", "").strip()
            if not name:
                raise ConfigError("task_env", f"<var> without a name in environment {environment!r}")
            task_env[name] = (var.text or "").strip()
        fields["task_env"] = task_env or None
        return fields

    available = sorted(
        e.attrib.get("environment", "") for e in root.findall("./deployment")
    )
    raise ConfigError(
        "environment",
        f"no <deployment environment={environment!r}> in {config_path} "
        f"(available: {', '.join(available) or 'none'})",
    )


def load_config(
    environment: str,
    config_path: Path = DEFAULT_CONFIG_PATH,
    overrides: Optional[Mapping[str, Optional[str]]] = None,
) -> DeploymentConfig:
    """Read one environment from config.xml, apply overrides and validate.

    `overrides` maps `client_name`, `domain` and `vpc_id` to values that win
    over the file (None means "not overridden").
    """
    environment = _required("environment", environment)
    fields = _load_deployment_block(config_path, environment)
    for key, value in (overrides or {}).items():
        if value is not None:
            fields[key] = value

    config = DeploymentConfig.create(environment=environment, **fields)
    logger.info(
        "Resolved deployment %s (domain=%s, vpc=%s, %d task env vars)",
        config.name_prefix,
        config.domain,
        config.vpc_id,
        len(config.task_env or {}),
    )
    return config
