"""
Tests for the FLIPT_* provider configuration.
"""

import pytest

from flipt_openfeature import FliptProvider
from flipt_openfeature.internal.service.grpc import GRPCFlagService
from flipt_openfeature.internal.service.http import HTTPFlagService
from flipt_openfeature.settings._core import ValueSource
from flipt_openfeature.settings.provider import ProviderConfig
from tests.utils import override_env
from tests.utils import override_provider_config


class TestProviderConfigDefaults:
    def test_defaults(self):
        with override_env({}):
            config = ProviderConfig()

        assert config.service_type == "http"
        assert config.address is None
        assert config.socket_path is None
        assert config.certificate_path is None
        assert config.namespace is None
        assert config.client_token is None
        assert config.timeout == 10.0

    def test_default_value_source(self):
        with override_env({}):
            config = ProviderConfig()

        assert config.value_source("FLIPT_SERVICE_TYPE") == ValueSource.DEFAULT
        assert config.value_source("FLIPT_TIMEOUT") == ValueSource.DEFAULT

    def test_unknown_value_source(self):
        with override_env({}):
            config = ProviderConfig()

        assert config.value_source("FLIPT_NOT_A_SETTING") == ValueSource.UNKNOWN


class TestProviderConfigFromEnv:
    def test_values_from_env(self):
        env = {
            "FLIPT_SERVICE_TYPE": "grpc",
            "FLIPT_ADDRESS": "flipt:9000",
            "FLIPT_CERTIFICATE_PATH": "/etc/flipt/ca.pem",
            "FLIPT_NAMESPACE": "production",
            "FLIPT_CLIENT_TOKEN": "secret",
            "FLIPT_TIMEOUT": "2.5",
        }
        with override_env(env):
            config = ProviderConfig()

        assert config.service_type == "grpc"
        assert config.address == "flipt:9000"
        assert config.certificate_path == "/etc/flipt/ca.pem"
        assert config.namespace == "production"
        assert config.client_token == "secret"
        assert config.timeout == 2.5
        assert config.value_source("FLIPT_ADDRESS") == ValueSource.ENV_VAR

    def test_service_type_is_case_insensitive(self):
        with override_env({"FLIPT_SERVICE_TYPE": "HTTPS"}):
            config = ProviderConfig()

        assert config.service_type == "https"

    def test_code_source_is_overridden_by_env(self):
        with override_env({"FLIPT_NAMESPACE": "from-env"}):
            config = ProviderConfig(source={"FLIPT_NAMESPACE": "from-code", "FLIPT_SOCKET_PATH": "/tmp/flipt.sock"})

        assert config.namespace == "from-env"
        assert config.value_source("FLIPT_NAMESPACE") == ValueSource.ENV_VAR
        assert config.socket_path == "/tmp/flipt.sock"
        assert config.value_source("FLIPT_SOCKET_PATH") == ValueSource.CODE

    def test_describe_masks_client_token(self):
        with override_env({"FLIPT_CLIENT_TOKEN": "secret", "FLIPT_NAMESPACE": "production"}):
            config = ProviderConfig()

        described = config.describe()

        assert described["FLIPT_CLIENT_TOKEN"] == "<redacted>"
        assert described["FLIPT_NAMESPACE"] == "production"
        assert described["FLIPT_TIMEOUT"] == 10.0
        assert "secret" not in repr(described)

    def test_describe_without_client_token(self):
        with override_env({}):
            config = ProviderConfig()

        assert config.describe()["FLIPT_CLIENT_TOKEN"] is None

    @pytest.mark.parametrize(
        "env",
        [
            {"FLIPT_SERVICE_TYPE": "websocket"},
            {"FLIPT_TIMEOUT": "0"},
            {"FLIPT_TIMEOUT": "-1"},
            {"FLIPT_TIMEOUT": "soon"},
        ],
    )
    def test_invalid_values_are_rejected(self, env):
        with override_env(env):
            with pytest.raises(ValueError):
                ProviderConfig()


class TestProviderFromConfig:
    def test_grpc_provider_from_config(self):
        values = {
            "service_type": "grpc",
            "address": "flipt:9000",
            "client_token": "secret",
            "timeout": 3.0,
        }
        with override_provider_config(values):
            provider = FliptProvider()

        assert isinstance(provider.service, GRPCFlagService)
        assert provider.service.address == "flipt:9000"

    def test_socket_path_from_config(self):
        with override_provider_config({"service_type": "http", "socket_path": "/var/run/flipt.sock"}):
            provider = FliptProvider()

        assert isinstance(provider.service, HTTPFlagService)
        assert provider.service.address == "unix:///var/run/flipt.sock"

    def test_unknown_config_key(self):
        with pytest.raises(KeyError):
            with override_provider_config({"not_a_setting": True}):
                pass
