# CUI // SP-CTI
"""Config Loader — builds a validated CloudConfig from the environment.

Settings come from a built-in template of ``${VAR:-default}`` references
that is expanded against the environment. An optional YAML file
(see args/cloud_config.yaml) can override any entry of the template under
its ``cloud:`` key; its string values are expanded the same way.

Environment:
    CLOUD_PROVIDER      aws | azure (default: aws)
    CLOUD_REGION        default: us-east-1
    AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY                 (aws, required)
    AWS_SAGEMAKER_ROLE_ARN                                   (aws, optional)
    AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET,
    AZURE_SUBSCRIPTION_ID, AZURE_STORAGE_CONNECTION_STRING   (azure, required)
    AZURE_RESOURCE_GROUP, AZURE_ML_WORKSPACE                 (azure, optional)
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from multicloud.errors import ConfigurationError, UnsupportedProviderError
from multicloud.schemas import (
    SUPPORTED_PROVIDERS,
    AWSCredentials,
    AzureCredentials,
    CloudConfig,
    Credentials,
)

logger = logging.getLogger("multicloud.config")

DEFAULT_PROVIDER = "aws"
DEFAULT_REGION = "us-east-1"

_ENV_PATTERN = re.compile(r'\$\{([^}]+)\}')

DEFAULT_SETTINGS: Dict = {
    "provider": "${CLOUD_PROVIDER:-aws}",
    "region": "${CLOUD_REGION:-us-east-1}",
    "aws": {
        "access_key_id": "${AWS_ACCESS_KEY_ID}",
        "secret_access_key": "${AWS_SECRET_ACCESS_KEY}",
        "sagemaker_role_arn": "${AWS_SAGEMAKER_ROLE_ARN:-}",
    },
    "azure": {
        "tenant_id": "${AZURE_TENANT_ID}",
        "client_id": "${AZURE_CLIENT_ID}",
        "client_secret": "${AZURE_CLIENT_SECRET}",
        "subscription_id": "${AZURE_SUBSCRIPTION_ID}",
        "storage_connection_string": "${AZURE_STORAGE_CONNECTION_STRING}",
        "resource_group": "${AZURE_RESOURCE_GROUP:-dsar-resource-group}",
        "ml_workspace": "${AZURE_ML_WORKSPACE:-ml-workspace}",
    },
}

REQUIRED_FIELDS = {
    "aws": ("access_key_id", "secret_access_key"),
    "azure": ("tenant_id", "client_id", "client_secret", "subscription_id",
              "storage_connection_string"),
}


def _expand_env(value, environ: Mapping[str, str]):
    """Expand ${VAR:-default} patterns in string values."""
    if not isinstance(value, str):
        return value

    def replacer(match):
        expr = match.group(1)
        if ":-" in expr:
            var, default = expr.split(":-", 1)
            return environ.get(var) or default
        return environ.get(expr, match.group(0))
    return _ENV_PATTERN.sub(replacer, value)


def _referenced_var(template) -> str:
    """Name of the first ${VAR} referenced by a template value, if any."""
    if not isinstance(template, str):
        return ""
    match = _ENV_PATTERN.search(template)
    return match.group(1).split(":-", 1)[0] if match else ""


class ConfigLoader:
    """Loads and caches one CloudConfig.

    Args:
        config_path: Optional YAML file whose ``cloud:`` section overrides
            the built-in settings template.
        environ: Mapping to read variables from (default: os.environ).
    """

    def __init__(self, config_path: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self._config_path = Path(config_path) if config_path else None
        self._environ = environ
        self._config: Optional[CloudConfig] = None

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def _load_settings(self) -> Dict:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        if self._config_path is None:
            return settings
        if not self._config_path.exists():
            logger.warning("Cloud config not found at %s, using environment only",
                           self._config_path)
            return settings
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Invalid cloud config {self._config_path}: {exc}",
                config_key="config_path",
            ) from exc

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Cloud config {self._config_path} must be a mapping",
                config_key="config_path",
            )
        cloud = data.get("cloud") or {}
        if not isinstance(cloud, dict):
            raise ConfigurationError(
                f"'cloud' section of {self._config_path} must be a mapping",
                config_key="cloud",
            )
        for key, value in cloud.items():
            if isinstance(value, dict) and isinstance(settings.get(key), dict):
                settings[key].update(value)
            else:
                settings[key] = value
        logger.debug("Cloud config loaded from %s", self._config_path)
        return settings

    def _section(self, settings: Dict, provider: str) -> Dict[str, str]:
        """Expand one credential section; fail on any missing required value."""
        templates = settings.get(provider) or {}
        if not isinstance(templates, dict):
            raise ConfigurationError(
                f"'{provider}' section of the cloud config must be a mapping",
                config_key=provider,
            )
        values: Dict[str, str] = {}
        for name, template in templates.items():
            value = _expand_env(template, self.environ)
            if isinstance(value, str) and _ENV_PATTERN.search(value):
                value = ""
            values[name] = value if value is None else str(value)

        for name in REQUIRED_FIELDS[provider]:
            if not values.get(name):
                var = _referenced_var(templates.get(name)) or f"{provider}.{name}"
                raise ConfigurationError(
                    f"Required environment variable {var} is not set",
                    config_key=var,
                )
        return values

    def load_config(self, provider: Optional[str] = None) -> CloudConfig:
        """Load configuration for ``provider`` (default: CLOUD_PROVIDER).

        Returns the cached config when one is loaded and no provider is given.
        """
        if self._config is not None and not provider:
            return self._config

        settings = self._load_settings()
        csp = str(provider or _expand_env(settings.get("provider"), self.environ)
                  or DEFAULT_PROVIDER).lower()
        region = str(_expand_env(settings.get("region"), self.environ) or DEFAULT_REGION)

        if csp not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(csp)

        values = self._section(settings, csp)
        if csp == "aws":
            credentials = Credentials(region=region, aws=AWSCredentials(
                access_key_id=values["access_key_id"],
                secret_access_key=values["secret_access_key"],
                sagemaker_role_arn=values.get("sagemaker_role_arn") or None,
            ))
        else:
            credentials = Credentials(region=region, azure=AzureCredentials(
                tenant_id=values["tenant_id"],
                client_id=values["client_id"],
                client_secret=values["client_secret"],
                subscription_id=values["subscription_id"],
                storage_connection_string=values["storage_connection_string"],
                resource_group=values.get("resource_group") or "dsar-resource-group",
                ml_workspace=values.get("ml_workspace") or "ml-workspace",
            ))

        self._config = CloudConfig(provider=csp, credentials=credentials).validate()
        logger.info("Cloud config loaded: provider=%s region=%s", csp, region)
        return self._config

    def clear(self) -> None:
        self._config = None


def generate_env_example() -> str:
    """Content for a .env.example listing every supported variable."""
    return """# Cloud Provider Configuration
# Specify the cloud provider to use (aws or azure)
CLOUD_PROVIDER=aws
CLOUD_REGION=us-east-1

# AWS Credentials
AWS_ACCESS_KEY_ID=your-access-key-id
AWS_SECRET_ACCESS_KEY=your-secret-access-key
# Optional: IAM role SageMaker assumes for registered models
AWS_SAGEMAKER_ROLE_ARN=

# Azure Credentials
AZURE_TENANT_ID=your-tenant-id
AZURE_CLIENT_ID=your-client-id
AZURE_CLIENT_SECRET=your-client-secret
AZURE_SUBSCRIPTION_ID=your-subscription-id
AZURE_STORAGE_CONNECTION_STRING=your-storage-connection-string
# Optional
AZURE_RESOURCE_GROUP=dsar-resource-group
AZURE_ML_WORKSPACE=ml-workspace
"""
