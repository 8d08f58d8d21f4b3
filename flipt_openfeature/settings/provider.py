"""
Flipt provider configuration settings.
"""

from typing import Optional

from envier import validators

from flipt_openfeature.settings._core import FliptConfig


SERVICE_TYPES = ["http", "https", "grpc"]


def _validate_positive_float(value: float) -> None:
    if value <= 0:
        raise ValueError("value must be positive")


class ProviderConfig(FliptConfig):
    """
    Configuration for the Flipt OpenFeature provider and its transport.
    """

    service_type = FliptConfig.var(
        str,
        "FLIPT_SERVICE_TYPE",
        default="http",
        parser=str.lower,
        validator=validators.choice(SERVICE_TYPES),
        help="Transport used to reach Flipt: http, https or grpc",
    )

    # Transport defaults apply when unset
    address = FliptConfig.var(Optional[str], "FLIPT_ADDRESS", default=None)

    socket_path = FliptConfig.var(Optional[str], "FLIPT_SOCKET_PATH", default=None)

    # gRPC only
    certificate_path = FliptConfig.var(Optional[str], "FLIPT_CERTIFICATE_PATH", default=None)

    # When set, flag keys are not split into namespace/key
    namespace = FliptConfig.var(Optional[str], "FLIPT_NAMESPACE", default=None)

    client_token = FliptConfig.var(Optional[str], "FLIPT_CLIENT_TOKEN", default=None)

    timeout = FliptConfig.var(
        float,
        "FLIPT_TIMEOUT",
        default=10.0,
        validator=_validate_positive_float,
        help="Timeout in seconds applied to each call to Flipt",
    )

    _secret_vars = frozenset(["FLIPT_CLIENT_TOKEN"])

    _provider_config_keys = [
        "service_type",
        "address",
        "socket_path",
        "certificate_path",
        "namespace",
        "client_token",
        "timeout",
    ]


# Global config instance
config = ProviderConfig()
