# CUI // SP-CTI
"""Multicloud facade over AWS and Azure.

Provides one vendor-agnostic interface for:
  - Compute instances (EC2, Azure Virtual Machines)
  - Object storage (S3, Azure Blob Storage)
  - ML model deploy and inference (SageMaker, Azure ML)

Select a vendor with CloudConfig.provider; obtain it through a
CloudProviderFactory. Vendor failures surface as CloudProviderError.
"""

from multicloud.cloud_provider import CloudProvider
from multicloud.config_loader import ConfigLoader, generate_env_example
from multicloud.errors import (
    CloudFacadeError,
    CloudProviderError,
    ConfigurationError,
    UnsupportedProviderError,
    ValidationError,
    wrap_provider_operation,
)
from multicloud.provider_factory import CloudProviderFactory
from multicloud.schemas import (
    AWSCredentials,
    AzureCredentials,
    CloudConfig,
    ComputeInstance,
    Credentials,
    HealthReport,
    MLInferenceResult,
    MLModelOptions,
    ModelFile,
    StorageOptions,
)

__version__ = "0.1.0"

__all__ = [
    "AWSCredentials",
    "AzureCredentials",
    "CloudConfig",
    "CloudFacadeError",
    "CloudProvider",
    "CloudProviderError",
    "CloudProviderFactory",
    "ComputeInstance",
    "ConfigLoader",
    "ConfigurationError",
    "Credentials",
    "HealthReport",
    "MLInferenceResult",
    "MLModelOptions",
    "ModelFile",
    "StorageOptions",
    "UnsupportedProviderError",
    "ValidationError",
    "generate_env_example",
    "wrap_provider_operation",
]
