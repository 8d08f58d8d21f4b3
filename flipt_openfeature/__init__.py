"""
Flipt provider for the OpenFeature Python SDK.

Usage::

    from openfeature import api

    from flipt_openfeature import FliptProvider

    api.set_provider(FliptProvider(address="http://localhost:8080"))
    client = api.get_client()
    client.get_boolean_value("my-namespace/my-flag", False)
"""

from flipt_openfeature.internal.provider import FliptProvider as FliptProvider
from flipt_openfeature.internal.service import ServiceType as ServiceType


__version__ = "0.1.0"

__all__ = ["FliptProvider", "ServiceType"]
