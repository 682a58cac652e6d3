# CUI // SP-CTI
"""Azure provider — Virtual Machines, Blob Storage, Azure ML.

Implements the CloudProvider interface with the Azure management and data
plane SDKs. A single ClientSecretCredential built from CloudConfig backs
the compute and ML clients; blob storage uses the account connection string.
"""

import base64
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from azure.ai.ml import MLClient
from azure.ai.ml.constants import AssetTypes
from azure.ai.ml.entities import ManagedOnlineEndpoint, Model
from azure.core.exceptions import ResourceNotFoundError
from azure.identity import ClientSecretCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.storage.blob import BlobServiceClient, ContentSettings

from multicloud.cloud_provider import build_health_report, upload_model_artifacts
from multicloud.errors import ConfigurationError, provider_operation
from multicloud.schemas import (
    STATUS_RUNNING,
    STATUS_STOPPED,
    STATUS_TERMINATED,
    CloudConfig,
    ComputeInstance,
    HealthReport,
    MLInferenceResult,
    MLModelOptions,
    ModelFile,
    StorageOptions,
)

logger = logging.getLogger("multicloud.azure")

# Curated Azure ML inference environments by runtime; unknown runtimes use pytorch
MODEL_ENVIRONMENTS = {
    "pytorch": "azureml:AzureML-pytorch-1.10-ubuntu18.04-py38-cpu-inference@latest",
    "tensorflow": "azureml:AzureML-tensorflow-2.5-ubuntu20.04-py38-cpu-inference@latest",
    "sklearn": "azureml:AzureML-sklearn-1.0-ubuntu20.04-py38-cpu@latest",
}
DEFAULT_RUNTIME = "pytorch"
DEFAULT_MODEL_VERSION = "1"

_POWER_STATES = {
    "running": STATUS_RUNNING,
    "stopped": STATUS_STOPPED,
}


def map_power_state(instance_view) -> str:
    """Normalize the PowerState/* code of a VM instance view.

    No instance view, no PowerState status, or an unrecognized state all
    map to terminated.
    """
    statuses = getattr(instance_view, "statuses", None) or []
    for status in statuses:
        code = getattr(status, "code", None) or ""
        if code.startswith("PowerState/"):
            return _POWER_STATES.get(code.split("/", 1)[1], STATUS_TERMINATED)
    return STATUS_TERMINATED


def resolve_runtime(runtime: Optional[str]) -> str:
    return runtime if runtime in MODEL_ENVIRONMENTS else DEFAULT_RUNTIME


def endpoint_name(model_id: str) -> str:
    return f"{model_id}-endpoint"


class AzureProvider:
    """Azure implementation of CloudProvider."""

    def __init__(self, config: CloudConfig):
        azure = config.credentials.azure
        if azure is None:
            raise ConfigurationError("Azure credentials not provided", config_key="azure")
        self._config = config
        self._resource_group = azure.resource_group

        try:
            credential = ClientSecretCredential(
                tenant_id=azure.tenant_id,
                client_id=azure.client_id,
                client_secret=azure.client_secret,
            )
            self._compute = ComputeManagementClient(credential, azure.subscription_id)
            self._blob_service = BlobServiceClient.from_connection_string(
                azure.storage_connection_string
            )
            self._ml = MLClient(
                credential,
                subscription_id=azure.subscription_id,
                resource_group_name=azure.resource_group,
                workspace_name=azure.ml_workspace,
            )
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(
                f"Invalid Azure configuration: {exc}", config_key="azure",
            ) from exc
        logger.info("Azure provider ready (region=%s, resource_group=%s)",
                    config.credentials.region, self._resource_group)

    @property
    def provider_name(self) -> str:
        return "azure"

    @staticmethod
    def _to_compute_instance(vm, instance_view=None) -> ComputeInstance:
        # IP addresses live on the NIC resources, which are not resolved here
        return ComputeInstance(
            id=getattr(vm, "name", None) or "",
            status=map_power_state(instance_view),
        )

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------
    @provider_operation("compute")
    def create_compute_instance(self, name: str, instance_type: str, image_id: str,
                                user_data: Optional[str] = None) -> ComputeInstance:
        parameters: Dict[str, Any] = {
            "location": self._config.credentials.region,
            "hardware_profile": {"vm_size": instance_type},
            "storage_profile": {"image_reference": {"id": image_id}},
        }
        if user_data:
            parameters["user_data"] = base64.b64encode(user_data.encode("utf-8")).decode("ascii")

        poller = self._compute.virtual_machines.begin_create_or_update(
            self._resource_group, name, parameters,
        )
        vm = poller.result()
        if vm is None:
            raise RuntimeError("Failed to create Azure VM")
        view = self._compute.virtual_machines.instance_view(self._resource_group, name)
        instance = self._to_compute_instance(vm, view)
        logger.info("Created Azure VM %s (%s)", instance.id, instance_type)
        return instance

    @provider_operation("compute")
    def get_compute_instance(self, instance_id: str) -> ComputeInstance:
        vm = self._compute.virtual_machines.get(self._resource_group, instance_id)
        if vm is None:
            raise LookupError(f"Instance {instance_id} not found")
        view = self._compute.virtual_machines.instance_view(self._resource_group, instance_id)
        return self._to_compute_instance(vm, view)

    @provider_operation("compute")
    def terminate_instance(self, instance_id: str) -> None:
        # Deletion continues in Azure; the poller is not awaited
        self._compute.virtual_machines.begin_delete(self._resource_group, instance_id)
        logger.info("Termination requested for Azure VM %s", instance_id)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    def _blob(self, options: StorageOptions):
        return self._blob_service.get_blob_client(container=options.container,
                                                  blob=options.path)

    @provider_operation("storage")
    def upload_file(self, options: StorageOptions, data: bytes) -> str:
        blob = self._blob(options)
        kwargs: Dict[str, Any] = {"overwrite": True}
        if options.content_type:
            kwargs["content_settings"] = ContentSettings(content_type=options.content_type)
        blob.upload_blob(data, **kwargs)
        logger.debug("Uploaded %s (%d bytes)", blob.url, len(data))
        return blob.url

    @provider_operation("storage")
    def download_file(self, options: StorageOptions) -> bytes:
        return self._blob(options).download_blob().readall()

    @provider_operation("storage")
    def delete_file(self, options: StorageOptions) -> None:
        try:
            self._blob(options).delete_blob()
        except ResourceNotFoundError:
            logger.debug("Blob %s/%s already absent", options.container, options.path)

    # ------------------------------------------------------------------
    # ML
    # ------------------------------------------------------------------
    @provider_operation("ml")
    def deploy_model(self, options: MLModelOptions,
                     model_files: List[ModelFile]) -> str:
        artifacts = upload_model_artifacts(self.upload_file, options.model_id, model_files)
        runtime = resolve_runtime(options.runtime)

        model = self._ml.models.create_or_update(Model(
            name=options.model_id,
            # First artifact is the primary model file
            path=artifacts[0],
            version=options.version or DEFAULT_MODEL_VERSION,
            type=AssetTypes.CUSTOM_MODEL,
            tags={"framework": runtime, "environment": MODEL_ENVIRONMENTS[runtime]},
        ))
        logger.info("Registered Azure ML model %s from %s", model.id, artifacts[0])

        endpoint = self._ml.online_endpoints.begin_create_or_update(ManagedOnlineEndpoint(
            name=endpoint_name(options.model_id),
            auth_mode="key",
            tags={"model": model.id or options.model_id},
        )).result()
        return getattr(endpoint, "id", None) or options.model_id

    @provider_operation("ml")
    def run_inference(self, options: MLModelOptions, input: Any) -> MLInferenceResult:
        start = time.time()
        name = endpoint_name(options.model_id)
        endpoint = self._ml.online_endpoints.get(name)
        keys = self._ml.online_endpoints.get_keys(name)

        resp = requests.post(
            endpoint.scoring_uri,
            json=input,
            headers={"Authorization": f"Bearer {keys.primary_key}"},
        )
        if not resp.ok:
            raise RuntimeError(f"Inference failed with status {resp.status_code}")
        predictions = resp.json()
        latency = int((time.time() - start) * 1000)
        return MLInferenceResult(
            predictions=predictions,
            latency=latency,
            model_version=options.version or "latest",
        )

    # ------------------------------------------------------------------
    # Config / health
    # ------------------------------------------------------------------
    def get_config(self) -> CloudConfig:
        return self._config

    def health_check(self) -> HealthReport:
        return build_health_report({
            "compute": lambda: next(
                iter(self._compute.virtual_machines.list(self._resource_group)), None),
            "storage": lambda: self._blob_service.get_service_properties(),
            "ml": lambda: next(iter(self._ml.models.list()), None),
        })
