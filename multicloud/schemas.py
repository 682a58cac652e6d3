# CUI // SP-CTI
"""Domain value types shared by every provider.

CloudConfig, ComputeInstance, StorageOptions, MLModelOptions,
MLInferenceResult, HealthReport. Providers translate vendor responses into
these shapes; callers never see vendor SDK objects.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional

from multicloud.errors import ConfigurationError, UnsupportedProviderError

SUPPORTED_PROVIDERS = ("aws", "azure")

# Normalized compute status vocabulary
STATUS_RUNNING = "running"
STATUS_STOPPED = "stopped"
STATUS_TERMINATED = "terminated"
INSTANCE_STATUSES = (STATUS_RUNNING, STATUS_STOPPED, STATUS_TERMINATED)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"

_REDACTED = "****"


@dataclass(frozen=True)
class AWSCredentials:
    """Static AWS access key pair."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    sagemaker_role_arn: Optional[str] = None


@dataclass(frozen=True)
class AzureCredentials:
    """Azure service principal plus storage and ML workspace settings."""

    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)
    subscription_id: str = ""
    storage_connection_string: str = field(default="", repr=False)
    resource_group: str = "dsar-resource-group"
    ml_workspace: str = "ml-workspace"


@dataclass(frozen=True)
class Credentials:
    region: str
    aws: Optional[AWSCredentials] = None
    azure: Optional[AzureCredentials] = None


@dataclass(frozen=True)
class CloudConfig:
    """Provider selection plus the matching credential block.

    Exactly one of ``credentials.aws`` / ``credentials.azure`` is expected to
    be populated, matching ``provider``. See ``validate()``.
    """

    provider: str  # aws, azure
    credentials: Credentials

    @property
    def region(self) -> str:
        return self.credentials.region

    def validate(self) -> "CloudConfig":
        """Check the provider/credential invariant. Returns self."""
        if self.provider not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(self.provider)
        if self.provider == "aws":
            if self.credentials.aws is None:
                raise ConfigurationError("AWS credentials not provided", config_key="aws")
            if self.credentials.azure is not None:
                raise ConfigurationError(
                    "Azure credentials supplied for an AWS configuration",
                    config_key="azure",
                )
        else:
            if self.credentials.azure is None:
                raise ConfigurationError("Azure credentials not provided", config_key="azure")
            if self.credentials.aws is not None:
                raise ConfigurationError(
                    "AWS credentials supplied for an Azure configuration",
                    config_key="aws",
                )
        return self

    def to_dict(self, redact: bool = True) -> dict:
        creds: Dict[str, Any] = {"region": self.credentials.region}
        if self.credentials.aws is not None:
            aws = asdict(self.credentials.aws)
            if redact:
                aws["secret_access_key"] = _REDACTED
            creds["aws"] = {k: v for k, v in aws.items() if v is not None}
        if self.credentials.azure is not None:
            azure = asdict(self.credentials.azure)
            if redact:
                azure["client_secret"] = _REDACTED
                azure["storage_connection_string"] = _REDACTED
            creds["azure"] = azure
        return {"provider": self.provider, "credentials": creds}


@dataclass(frozen=True)
class ComputeInstance:
    """Snapshot of one compute instance. Re-fetch to observe new state."""

    id: str
    status: str  # running, stopped, terminated
    public_ip: Optional[str] = None
    private_ip: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class StorageOptions:
    """Addresses one object: container (bucket) plus path (key)."""

    container: str
    path: str
    content_type: Optional[str] = None


@dataclass
class ModelFile:
    path: str
    content: bytes


@dataclass
class MLModelOptions:
    model_id: str
    version: Optional[str] = None
    runtime: Optional[str] = None


@dataclass
class MLInferenceResult:
    """Deserialized predictions plus call metadata."""

    predictions: Any
    latency: int = 0             # wall-clock milliseconds
    model_version: str = "latest"

    @property
    def metadata(self) -> Dict[str, Any]:
        return {"latency": self.latency, "model_version": self.model_version}

    def to_dict(self) -> dict:
        return {"predictions": self.predictions, "metadata": self.metadata}


@dataclass
class HealthReport:
    """Per-service probe outcomes for one provider."""

    compute: bool = False
    storage: bool = False
    ml: bool = False

    @property
    def services(self) -> Dict[str, bool]:
        return {"compute": self.compute, "storage": self.storage, "ml": self.ml}

    @property
    def status(self) -> str:
        return HEALTHY if all(self.services.values()) else UNHEALTHY

    def to_dict(self) -> dict:
        return {"status": self.status, "services": self.services}
