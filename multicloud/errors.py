# CUI // SP-CTI
"""Structured exception hierarchy for the multicloud facade.

Every failure that crosses the provider boundary is a ``CloudProviderError``
tagged with the provider and service that produced it. Configuration
problems are ``ConfigurationError`` and are raised at load or construction
time, never from an operation call.

Usage:
    from multicloud.errors import wrap_provider_operation

    data = wrap_provider_operation(lambda: s3.get_object(...), "aws", "storage")
"""

import functools
import logging
from typing import Callable, Optional, TypeVar

logger = logging.getLogger("multicloud.errors")

T = TypeVar("T")

SERVICES = ("compute", "storage", "ml")


class CloudFacadeError(Exception):
    """Base exception for all facade errors.

    Attributes:
        service: Name of the service that caused the error (e.g. "storage").
    """

    def __init__(self, message: str, service: str = ""):
        super().__init__(message)
        self.message = message
        self.service = service


class CloudProviderError(CloudFacadeError):
    """A vendor call failed.

    Attributes:
        provider: "aws" or "azure".
        service: "compute", "storage" or "ml".
        original_error: The vendor exception that was normalized, if any.
    """

    def __init__(self, message: str, provider: str, service: str,
                 original_error: Optional[BaseException] = None):
        super().__init__(message, service=service)
        self.provider = provider
        self.original_error = original_error

    @classmethod
    def from_error(cls, error: BaseException, provider: str,
                   service: str) -> "CloudProviderError":
        """Tag a lower-level failure with provider and service."""
        return cls(
            f"{provider.upper()} {service} error: {error}",
            provider=provider,
            service=service,
            original_error=error,
        )

    def __repr__(self) -> str:
        return (f"CloudProviderError(provider={self.provider!r}, "
                f"service={self.service!r}, message={self.message!r})")


class ConfigurationError(CloudFacadeError):
    """Missing or invalid configuration. Never retried."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, service="config")
        self.config_key = config_key


class UnsupportedProviderError(ConfigurationError):
    """The requested provider is not one the facade implements."""

    def __init__(self, provider: str):
        super().__init__(f"Unsupported cloud provider: {provider}",
                         config_key="provider")
        self.provider = provider


class ValidationError(CloudFacadeError):
    """Malformed caller input."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message, service="validation")
        self.field = field


def wrap_provider_operation(operation: Callable[[], T], provider: str,
                            service: str) -> T:
    """Run ``operation``; normalize any failure into a CloudProviderError.

    Errors already tagged with provider/service are re-raised untouched, as
    are the other facade errors (configuration, validation).
    """
    try:
        return operation()
    except CloudFacadeError:
        raise
    except Exception as exc:
        wrapped = CloudProviderError.from_error(exc, provider, service)
        logger.warning("%s", wrapped.message)
        raise wrapped from exc


def provider_operation(service: str):
    """Method decorator: wrap the call with the instance's ``provider_name``."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            return wrap_provider_operation(
                lambda: method(self, *args, **kwargs),
                self.provider_name,
                service,
            )
        return wrapper
    return decorator
