# CUI // SP-CTI
"""AWS provider — EC2 compute, S3 storage, SageMaker ML.

Implements the CloudProvider interface on top of boto3. All clients come
from one boto3 Session built from the static credentials in CloudConfig
and are reused for every call.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError

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

logger = logging.getLogger("multicloud.aws")

# SageMaker inference images by runtime; unknown runtimes use pytorch
MODEL_IMAGES = {
    "pytorch": "763104351884.dkr.ecr.us-east-1.amazonaws.com/pytorch-inference:1.8.1-cpu-py36-ubuntu18.04",
    "tensorflow": "763104351884.dkr.ecr.us-east-1.amazonaws.com/tensorflow-inference:2.5.1-cpu-py37-ubuntu18.04",
    "sklearn": "683313688378.dkr.ecr.us-east-1.amazonaws.com/sagemaker-scikit-learn:0.23-1-cpu-py3",
}
DEFAULT_RUNTIME = "pytorch"

_EC2_STATUS = {
    "running": STATUS_RUNNING,
    "stopped": STATUS_STOPPED,
}


def map_ec2_status(state_name: Optional[str]) -> str:
    """Normalize an EC2 State.Name; anything unrecognized is terminated."""
    return _EC2_STATUS.get(state_name or "", STATUS_TERMINATED)


def get_model_image(runtime: Optional[str]) -> str:
    return MODEL_IMAGES.get(runtime or DEFAULT_RUNTIME, MODEL_IMAGES[DEFAULT_RUNTIME])


class AWSProvider:
    """AWS implementation of CloudProvider."""

    def __init__(self, config: CloudConfig):
        aws = config.credentials.aws
        if aws is None:
            raise ConfigurationError("AWS credentials not provided", config_key="aws")
        self._config = config
        self._role_arn = aws.sagemaker_role_arn

        try:
            session = boto3.session.Session(
                aws_access_key_id=aws.access_key_id,
                aws_secret_access_key=aws.secret_access_key,
                region_name=config.credentials.region,
            )
            self._ec2 = session.client("ec2")
            self._s3 = session.client("s3")
            self._sagemaker = session.client("sagemaker")
            self._sagemaker_runtime = session.client("sagemaker-runtime")
        except (BotoCoreError, ValueError, TypeError) as exc:
            raise ConfigurationError(
                f"Invalid AWS configuration: {exc}", config_key="aws",
            ) from exc
        logger.info("AWS provider ready (region=%s)", config.credentials.region)

    @property
    def provider_name(self) -> str:
        return "aws"

    @staticmethod
    def _to_compute_instance(instance: Dict[str, Any]) -> ComputeInstance:
        return ComputeInstance(
            id=instance.get("InstanceId", ""),
            status=map_ec2_status((instance.get("State") or {}).get("Name")),
            public_ip=instance.get("PublicIpAddress"),
            private_ip=instance.get("PrivateIpAddress"),
        )

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------
    @provider_operation("compute")
    def create_compute_instance(self, name: str, instance_type: str, image_id: str,
                                user_data: Optional[str] = None) -> ComputeInstance:
        params: Dict[str, Any] = {
            "ImageId": image_id,
            "InstanceType": instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "TagSpecifications": [{
                "ResourceType": "instance",
                "Tags": [{"Key": "Name", "Value": name}],
            }],
        }
        if user_data:
            # botocore base64-encodes UserData for RunInstances
            params["UserData"] = user_data
        resp = self._ec2.run_instances(**params)
        instances = resp.get("Instances") or []
        if not instances:
            raise RuntimeError("Failed to create EC2 instance")
        instance = self._to_compute_instance(instances[0])
        logger.info("Created EC2 instance %s (%s)", instance.id, instance_type)
        return instance

    @provider_operation("compute")
    def get_compute_instance(self, instance_id: str) -> ComputeInstance:
        resp = self._ec2.describe_instances(InstanceIds=[instance_id])
        for reservation in resp.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return self._to_compute_instance(instance)
        raise LookupError(f"Instance {instance_id} not found")

    @provider_operation("compute")
    def terminate_instance(self, instance_id: str) -> None:
        self._ec2.terminate_instances(InstanceIds=[instance_id])
        logger.info("Termination requested for EC2 instance %s", instance_id)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    @provider_operation("storage")
    def upload_file(self, options: StorageOptions, data: bytes) -> str:
        params: Dict[str, Any] = {
            "Bucket": options.container,
            "Key": options.path,
            "Body": data,
        }
        if options.content_type:
            params["ContentType"] = options.content_type
        self._s3.put_object(**params)
        logger.debug("Uploaded s3://%s/%s (%d bytes)",
                     options.container, options.path, len(data))
        return f"s3://{options.container}/{options.path}"

    @provider_operation("storage")
    def download_file(self, options: StorageOptions) -> bytes:
        resp = self._s3.get_object(Bucket=options.container, Key=options.path)
        body = resp.get("Body")
        if body is None:
            raise IOError("No data received")
        try:
            return body.read()
        finally:
            body.close()

    @provider_operation("storage")
    def delete_file(self, options: StorageOptions) -> None:
        self._s3.delete_object(Bucket=options.container, Key=options.path)

    # ------------------------------------------------------------------
    # ML
    # ------------------------------------------------------------------
    @provider_operation("ml")
    def deploy_model(self, options: MLModelOptions,
                     model_files: List[ModelFile]) -> str:
        artifacts = upload_model_artifacts(self.upload_file, options.model_id, model_files)
        params: Dict[str, Any] = {
            "ModelName": options.model_id,
            "PrimaryContainer": {
                "Image": get_model_image(options.runtime),
                # First artifact is the primary model file
                "ModelDataUrl": artifacts[0],
            },
        }
        if self._role_arn:
            params["ExecutionRoleArn"] = self._role_arn
        resp = self._sagemaker.create_model(**params)
        logger.info("Registered SageMaker model %s from %s", options.model_id, artifacts[0])
        return resp.get("ModelArn") or options.model_id

    @provider_operation("ml")
    def run_inference(self, options: MLModelOptions, input: Any) -> MLInferenceResult:
        start = time.time()
        resp = self._sagemaker_runtime.invoke_endpoint(
            EndpointName=options.model_id,
            Body=json.dumps(input).encode("utf-8"),
            ContentType="application/json",
        )
        latency = int((time.time() - start) * 1000)

        body = resp.get("Body")
        if body is None:
            raise ValueError("No prediction received")
        predictions = json.loads(body.read().decode("utf-8"))
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
            "compute": lambda: self._ec2.describe_instances(MaxResults=5),
            "storage": lambda: self._s3.list_buckets(),
            "ml": lambda: self._sagemaker.list_models(MaxResults=1),
        })
