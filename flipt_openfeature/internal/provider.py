"""
Flipt OpenFeature provider.

Translates Flipt flag lookups and evaluations into OpenFeature resolution
details. Every evaluation follows the same steps:

1. split the flag key into namespace and key
2. check the context carries a targeting key
3. fetch the flag; a disabled flag resolves to the default value
4. evaluate the flag for the context; no match resolves to the default value
5. decode the matched value for the requested type

Failures never raise: they resolve to the default value with the error code
and message attached.
"""

from enum import Enum
import json
import re
import typing

from openfeature.evaluation_context import EvaluationContext
from openfeature.exception import ErrorCode
from openfeature.exception import OpenFeatureError
from openfeature.flag_evaluation import FlagResolutionDetails
from openfeature.flag_evaluation import Reason
from openfeature.hook import Hook
from openfeature.provider import AbstractProvider
from openfeature.provider import Metadata

from flipt_openfeature.internal.constants import PROVIDER_NAME
from flipt_openfeature.internal.errors import classify_error
from flipt_openfeature.internal.logger import get_logger
from flipt_openfeature.internal.service import EvaluationResponse
from flipt_openfeature.internal.service import FlagService
from flipt_openfeature.internal.service import ServiceType
from flipt_openfeature.internal.service import build_evaluation_request
from flipt_openfeature.internal.service import flatten_context
from flipt_openfeature.internal.service import new_service
from flipt_openfeature.internal.service import split_flag_key
from flipt_openfeature.settings.provider import config as provider_config


T = typing.TypeVar("T", covariant=True)
logger = get_logger(__name__)

# Values accepted by Go's strconv.ParseBool, which Flipt uses for boolean payloads
_TRUE_VALUES = frozenset(["1", "t", "T", "TRUE", "true", "True"])
_FALSE_VALUES = frozenset(["0", "f", "F", "FALSE", "false", "False"])

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Integer payloads are 64-bit signed, as parsed by Flipt
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class FlagType(Enum):
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    OBJECT = "OBJECT"


def _error_details(
    default_value: typing.Any, reason: Reason, error_code: ErrorCode, error_message: typing.Optional[str]
) -> FlagResolutionDetails:
    return FlagResolutionDetails(
        value=default_value,
        reason=reason,
        error_code=error_code,
        error_message=error_message,
    )


def _decode_boolean(resp: EvaluationResponse, default_value: bool) -> FlagResolutionDetails[bool]:
    # A match without payload means the flag is on
    if resp.value == "":
        return FlagResolutionDetails(value=True, reason=Reason.DEFAULT)

    if resp.value in _TRUE_VALUES:
        value = True
    elif resp.value in _FALSE_VALUES:
        value = False
    else:
        return _error_details(default_value, Reason.DEFAULT, ErrorCode.TYPE_MISMATCH, "value is not a boolean")

    return FlagResolutionDetails(value=value, reason=Reason.TARGETING_MATCH)


def _decode_string(resp: EvaluationResponse, default_value: str) -> FlagResolutionDetails[str]:
    return FlagResolutionDetails(value=resp.value, reason=Reason.TARGETING_MATCH)


def _decode_integer(resp: EvaluationResponse, default_value: int) -> FlagResolutionDetails[int]:
    if _INTEGER_RE.fullmatch(resp.value) is None:
        return _error_details(default_value, Reason.ERROR, ErrorCode.TYPE_MISMATCH, "value is not an integer")
    value = int(resp.value, 10)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return _error_details(
            default_value, Reason.ERROR, ErrorCode.TYPE_MISMATCH, "value is out of the 64-bit integer range"
        )
    return FlagResolutionDetails(value=value, reason=Reason.TARGETING_MATCH)


def _decode_float(resp: EvaluationResponse, default_value: float) -> FlagResolutionDetails[float]:
    try:
        if "_" in resp.value or resp.value != resp.value.strip():
            raise ValueError(resp.value)
        value = float(resp.value)
    except ValueError:
        return _error_details(default_value, Reason.ERROR, ErrorCode.TYPE_MISMATCH, "value is not a float")
    return FlagResolutionDetails(value=value, reason=Reason.TARGETING_MATCH)


def _decode_object(resp: EvaluationResponse, default_value: typing.Any) -> FlagResolutionDetails[typing.Any]:
    if resp.attachment == "":
        return FlagResolutionDetails(value=default_value, reason=Reason.DEFAULT, variant=resp.value)

    try:
        value = json.loads(resp.attachment)
    except ValueError:
        value = None

    if not isinstance(value, dict):
        return _error_details(
            default_value,
            Reason.ERROR,
            ErrorCode.TYPE_MISMATCH,
            "value is not an object: %r" % resp.attachment,
        )

    return FlagResolutionDetails(value=value, reason=Reason.TARGETING_MATCH, variant=resp.value)


_DECODERS: typing.Dict[FlagType, typing.Callable[[EvaluationResponse, typing.Any], FlagResolutionDetails]] = {
    FlagType.BOOLEAN: _decode_boolean,
    FlagType.STRING: _decode_string,
    FlagType.INTEGER: _decode_integer,
    FlagType.FLOAT: _decode_float,
    FlagType.OBJECT: _decode_object,
}


class FliptProvider(AbstractProvider):
    """
    Flipt OpenFeature Provider.

    Implements the OpenFeature provider interface on top of a Flipt server
    reached over HTTP(S) or gRPC. Options left unset are read from the
    ``FLIPT_*`` environment variables.
    """

    def __init__(
        self,
        service_type: typing.Union[ServiceType, str, None] = None,
        address: typing.Optional[str] = None,
        socket_path: typing.Optional[str] = None,
        certificate_path: typing.Optional[str] = None,
        namespace: typing.Optional[str] = None,
        client_token: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        service: typing.Optional[FlagService] = None,
    ):
        super().__init__()
        self._metadata = Metadata(name=PROVIDER_NAME)
        self._namespace = namespace if namespace is not None else provider_config.namespace

        if service is None:
            service = new_service(
                service_type if service_type is not None else provider_config.service_type,
                address=address if address is not None else provider_config.address,
                socket_path=socket_path if socket_path is not None else provider_config.socket_path,
                certificate_path=certificate_path if certificate_path is not None else provider_config.certificate_path,
                client_token=client_token if client_token is not None else provider_config.client_token,
                timeout=timeout if timeout is not None else provider_config.timeout,
            )
        self._service = service

    @property
    def service(self) -> FlagService:
        return self._service

    def get_metadata(self) -> Metadata:
        """Returns provider metadata."""
        return self._metadata

    def get_provider_hooks(self) -> typing.List[Hook]:
        return []

    def initialize(self, evaluation_context: EvaluationContext) -> None:
        """
        Called by the OpenFeature SDK when the provider is set.

        The connection to Flipt is established lazily on the first evaluation.
        """
        logger.debug("flipt: provider initialized, configuration: %s", provider_config.describe())

    def shutdown(self) -> None:
        """
        Close the connection to Flipt.

        Called by the OpenFeature SDK when the provider is being replaced or shutdown.
        """
        self._service.close()

    def resolve_boolean_details(
        self,
        flag_key: str,
        default_value: bool,
        evaluation_context: typing.Optional[EvaluationContext] = None,
    ) -> FlagResolutionDetails[bool]:
        return self._resolve_details(flag_key, default_value, evaluation_context, FlagType.BOOLEAN)

    def resolve_string_details(
        self,
        flag_key: str,
        default_value: str,
        evaluation_context: typing.Optional[EvaluationContext] = None,
    ) -> FlagResolutionDetails[str]:
        return self._resolve_details(flag_key, default_value, evaluation_context, FlagType.STRING)

    def resolve_integer_details(
        self,
        flag_key: str,
        default_value: int,
        evaluation_context: typing.Optional[EvaluationContext] = None,
    ) -> FlagResolutionDetails[int]:
        return self._resolve_details(flag_key, default_value, evaluation_context, FlagType.INTEGER)

    def resolve_float_details(
        self,
        flag_key: str,
        default_value: float,
        evaluation_context: typing.Optional[EvaluationContext] = None,
    ) -> FlagResolutionDetails[float]:
        return self._resolve_details(flag_key, default_value, evaluation_context, FlagType.FLOAT)

    def resolve_object_details(
        self,
        flag_key: str,
        default_value: typing.Union[dict, list],
        evaluation_context: typing.Optional[EvaluationContext] = None,
    ) -> FlagResolutionDetails[typing.Union[dict, list]]:
        return self._resolve_details(flag_key, default_value, evaluation_context, FlagType.OBJECT)

    def _split_flag_key(self, flag_key: str) -> typing.Tuple[str, str]:
        if self._namespace:
            return self._namespace, flag_key
        return split_flag_key(flag_key)

    def _resolve_details(
        self,
        flag_key: str,
        default_value: typing.Any,
        evaluation_context: typing.Optional[EvaluationContext] = None,
        flag_type: FlagType = FlagType.BOOLEAN,
    ) -> FlagResolutionDetails[T]:
        """
        Core resolution logic for all flag types.

        - Returns the default value with DEFAULT reason and the error when Flipt fails
        - Returns the default value with DISABLED reason when the flag is disabled
        - Returns the default value with DEFAULT reason when the evaluation does not match
        - Otherwise returns the value decoded for ``flag_type``
        """
        namespace, key = self._split_flag_key(flag_key)
        context = flatten_context(evaluation_context)

        try:
            # Rejects a missing context or targeting key before any call to Flipt
            build_evaluation_request(namespace, key, context)
            flag = self._service.get_flag(namespace, key)
        except Exception as e:
            return self._failure(flag_key, default_value, e)

        if not flag.enabled:
            return FlagResolutionDetails(value=default_value, reason=Reason.DISABLED)

        try:
            resp = self._service.evaluate(namespace, key, context)
        except Exception as e:
            return self._failure(flag_key, default_value, e)

        if not resp.match:
            return FlagResolutionDetails(value=default_value, reason=Reason.DEFAULT)

        details = _DECODERS[flag_type](resp, default_value)
        if details.error_code is not None:
            logger.debug("flipt: flag %s resolved to default: %s", flag_key, details.error_message)
        return details

    def _failure(self, flag_key: str, default_value: typing.Any, exc: Exception) -> FlagResolutionDetails:
        error: OpenFeatureError = classify_error(exc)
        logger.debug("flipt: failed to resolve flag %s: %s", flag_key, error.error_message, exc_info=True)
        return _error_details(default_value, Reason.DEFAULT, error.error_code, error.error_message)
