# CUI // SP-CTI
"""Cloud Provider Factory — config-driven provider resolution.

Builds the provider implementation named by ``CloudConfig.provider`` and
caches it. The factory is an ordinary object owned by the caller: create
one per application (or per test) and pass it to whoever needs a provider.

Usage:
    factory = CloudProviderFactory()
    provider = factory.get_provider(ConfigLoader().load_config())
    provider.upload_file(StorageOptions("bucket", "a.txt"), b"hello")
"""

import logging
from typing import Optional

from multicloud.aws_provider import AWSProvider
from multicloud.azure_provider import AzureProvider
from multicloud.cloud_provider import CloudProvider
from multicloud.errors import UnsupportedProviderError
from multicloud.schemas import SUPPORTED_PROVIDERS, CloudConfig

logger = logging.getLogger("multicloud.factory")


class CloudProviderFactory:
    """Holds at most one provider instance.

    Once a provider is built, ``get_provider`` returns it regardless of the
    config passed on later calls, until ``clear_provider`` is called.
    """

    def __init__(self):
        self._provider: Optional[CloudProvider] = None

    @property
    def current_provider(self) -> Optional[CloudProvider]:
        return self._provider

    def get_provider(self, config: CloudConfig) -> CloudProvider:
        """Get provider (cached)."""
        if self._provider is not None:
            return self._provider

        csp = config.provider
        if csp not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(csp)
        config.validate()

        provider: CloudProvider
        if csp == "aws":
            provider = AWSProvider(config)
        else:
            provider = AzureProvider(config)

        self._provider = provider
        logger.info("Cloud provider: %s (region=%s)", csp, config.region)
        return provider

    def clear_provider(self) -> None:
        """Drop the cached provider so the next get_provider rebuilds."""
        if self._provider is not None:
            logger.debug("Clearing cached provider %s", self._provider.provider_name)
        self._provider = None
