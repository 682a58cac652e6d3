#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the multicloud test suite.

Centralizes sample configurations, environment mappings, and patched
vendor SDK constructors so no test ever reaches a real cloud endpoint.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from multicloud.schemas import (  # noqa: E402
    AWSCredentials,
    AzureCredentials,
    CloudConfig,
    Credentials,
)

CLOUD_ENV_VARS = (
    "CLOUD_PROVIDER", "CLOUD_REGION",
    "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SAGEMAKER_ROLE_ARN",
    "AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET",
    "AZURE_SUBSCRIPTION_ID", "AZURE_STORAGE_CONNECTION_STRING",
    "AZURE_RESOURCE_GROUP", "AZURE_ML_WORKSPACE",
)

AZURE_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=testacct;"
    "AccountKey=dGVzdGtleQ==;EndpointSuffix=core.windows.net"
)


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------
@pytest.fixture
def aws_config():
    return CloudConfig(
        provider="aws",
        credentials=Credentials(
            region="us-east-1",
            aws=AWSCredentials(access_key_id="test-key", secret_access_key="test-secret"),
        ),
    )


@pytest.fixture
def azure_config():
    return CloudConfig(
        provider="azure",
        credentials=Credentials(
            region="eastus",
            azure=AzureCredentials(
                tenant_id="tenant",
                client_id="client",
                client_secret="secret",
                subscription_id="sub-123",
                storage_connection_string=AZURE_CONNECTION_STRING,
                resource_group="rg-test",
                ml_workspace="ws-test",
            ),
        ),
    )


@pytest.fixture
def aws_env():
    return {
        "CLOUD_PROVIDER": "aws",
        "AWS_ACCESS_KEY_ID": "AKIATEST",
        "AWS_SECRET_ACCESS_KEY": "secret-test",
    }


@pytest.fixture
def azure_env():
    return {
        "CLOUD_PROVIDER": "azure",
        "CLOUD_REGION": "eastus",
        "AZURE_TENANT_ID": "tenant",
        "AZURE_CLIENT_ID": "client",
        "AZURE_CLIENT_SECRET": "secret",
        "AZURE_SUBSCRIPTION_ID": "sub-123",
        "AZURE_STORAGE_CONNECTION_STRING": AZURE_CONNECTION_STRING,
    }


@pytest.fixture
def clean_cloud_env(monkeypatch):
    """Remove every cloud variable from os.environ for the test.

    setenv before delenv so values written later (e.g. by load_dotenv) are
    still removed on teardown.
    """
    for var in CLOUD_ENV_VARS:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


# ---------------------------------------------------------------------------
# Vendor SDK doubles
# ---------------------------------------------------------------------------
@pytest.fixture
def aws_sdk():
    """Patch boto3 in the AWS provider; one MagicMock client per service."""
    clients = {
        name: MagicMock(name=name)
        for name in ("ec2", "s3", "sagemaker", "sagemaker-runtime")
    }
    with patch("multicloud.aws_provider.boto3") as boto3_mock:
        session = boto3_mock.session.Session.return_value
        session.client.side_effect = lambda service, **kwargs: clients[service]
        yield SimpleNamespace(
            boto3=boto3_mock,
            ec2=clients["ec2"],
            s3=clients["s3"],
            sagemaker=clients["sagemaker"],
            runtime=clients["sagemaker-runtime"],
        )


def _blob_client_factory(created):
    def factory(container, blob):
        client = MagicMock(name=f"blob:{container}/{blob}")
        client.url = f"https://testacct.blob.core.windows.net/{container}/{blob}"
        created.append(client)
        return client
    return factory


@pytest.fixture
def azure_sdk():
    """Patch every Azure SDK entry point used by the Azure provider."""
    with patch("multicloud.azure_provider.ClientSecretCredential") as cred_cls, \
            patch("multicloud.azure_provider.ComputeManagementClient") as compute_cls, \
            patch("multicloud.azure_provider.BlobServiceClient") as blob_cls, \
            patch("multicloud.azure_provider.MLClient") as ml_cls, \
            patch("multicloud.azure_provider.Model") as model_cls, \
            patch("multicloud.azure_provider.ManagedOnlineEndpoint") as endpoint_cls:
        blob_service = blob_cls.from_connection_string.return_value
        blobs = []
        blob_service.get_blob_client.side_effect = _blob_client_factory(blobs)
        yield SimpleNamespace(
            credential_cls=cred_cls,
            compute_cls=compute_cls,
            compute=compute_cls.return_value,
            blob_cls=blob_cls,
            blob_service=blob_service,
            blobs=blobs,
            ml_cls=ml_cls,
            ml=ml_cls.return_value,
            model_cls=model_cls,
            endpoint_cls=endpoint_cls,
        )
