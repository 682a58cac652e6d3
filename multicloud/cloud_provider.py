# CUI // SP-CTI
"""Cloud provider capability interface.

Every vendor implementation (AWSProvider, AzureProvider) satisfies
``CloudProvider`` structurally. Callers hold a ``CloudProvider`` reference
and never branch on the concrete type.

Also holds the health-probe helpers both providers share.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from multicloud.errors import ValidationError
from multicloud.schemas import (
    CloudConfig,
    ComputeInstance,
    HealthReport,
    MLInferenceResult,
    MLModelOptions,
    ModelFile,
    StorageOptions,
)

logger = logging.getLogger("multicloud.health")

# Container that receives uploaded model artifacts during deploy_model()
MODEL_ARTIFACT_CONTAINER = "model-artifacts"
MAX_UPLOAD_WORKERS = 8


@runtime_checkable
class CloudProvider(Protocol):
    """Operations every provider must support."""

    @property
    def provider_name(self) -> str:
        """Return the provider identifier ("aws" or "azure")."""

    # -- Compute ---------------------------------------------------------
    def create_compute_instance(self, name: str, instance_type: str, image_id: str,
                                user_data: Optional[str] = None) -> ComputeInstance:
        """Provision exactly one instance."""

    def get_compute_instance(self, instance_id: str) -> ComputeInstance:
        """Fetch the current state of an instance."""

    def terminate_instance(self, instance_id: str) -> None:
        """Request termination. Returns once the vendor accepts the request."""

    # -- Storage ---------------------------------------------------------
    def upload_file(self, options: StorageOptions, data: bytes) -> str:
        """Write an object. Returns a vendor-specific locator."""

    def download_file(self, options: StorageOptions) -> bytes:
        """Read an object fully into memory."""

    def delete_file(self, options: StorageOptions) -> None:
        """Delete an object. No existence check."""

    # -- ML --------------------------------------------------------------
    def deploy_model(self, options: MLModelOptions,
                     model_files: List[ModelFile]) -> str:
        """Upload artifacts and register the first one. Returns a model id."""

    def run_inference(self, options: MLModelOptions, input: Any) -> MLInferenceResult:
        """Invoke the deployed model with a JSON-serializable payload."""

    # -- Config / health -------------------------------------------------
    def get_config(self) -> CloudConfig:
        """Return the configuration the provider was built with."""

    def health_check(self) -> HealthReport:
        """Probe compute, storage and ML independently. Never raises."""


def upload_model_artifacts(upload: Callable[[StorageOptions, bytes], str],
                           model_id: str, model_files: List[ModelFile],
                           max_workers: int = MAX_UPLOAD_WORKERS) -> List[str]:
    """Upload every model file concurrently under ``{model_id}/{path}``.

    Blocks until all uploads have settled. Returns locators in input order,
    so element 0 is always the first file's locator. If any upload failed,
    the first failure (in input order) is re-raised after the others finish.
    """
    if not model_files:
        raise ValidationError("deploy_model requires at least one model file",
                              field="model_files")
    workers = max(1, min(max_workers, len(model_files)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                upload,
                StorageOptions(container=MODEL_ARTIFACT_CONTAINER,
                               path=f"{model_id}/{mf.path}"),
                mf.content,
            )
            for mf in model_files
        ]
        wait(futures)
    logger.debug("Uploaded %d artifact(s) for model %s", len(futures), model_id)
    return [f.result() for f in futures]


def probe(name: str, check: Callable[[], Any]) -> bool:
    """Run one health probe; collapse its outcome to a boolean."""
    try:
        check()
    except Exception as exc:
        logger.debug("Health probe %s failed: %s", name, exc)
        return False
    return True


def build_health_report(probes: Dict[str, Callable[[], Any]]) -> HealthReport:
    """Evaluate compute/storage/ml probes independently."""
    results = {service: probe(service, check) for service, check in probes.items()}
    report = HealthReport(
        compute=results.get("compute", False),
        storage=results.get("storage", False),
        ml=results.get("ml", False),
    )
    logger.info("Health: %s %s", report.status, report.services)
    return report
