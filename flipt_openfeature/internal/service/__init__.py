"""
Flipt flag service contract shared by the HTTP and gRPC transports.

A service exposes the two Flipt calls the provider needs, ``get_flag`` and
``evaluate``, and owns a transport client that is built lazily, at most once,
on first use.
"""

import abc
from dataclasses import dataclass
import datetime
from enum import Enum
import json
import threading
import typing

from openfeature.evaluation_context import EvaluationContext
from openfeature.exception import InvalidContextError
from openfeature.exception import TargetingKeyMissingError

from flipt_openfeature.internal.constants import DEFAULT_NAMESPACE
from flipt_openfeature.internal.constants import NAMESPACE_SEPARATOR
from flipt_openfeature.internal.constants import REQUEST_ID_KEY
from flipt_openfeature.internal.constants import TARGETING_KEY
from flipt_openfeature.internal.logger import get_logger


log = get_logger(__name__)


class ServiceType(str, Enum):
    HTTP = "http"
    HTTPS = "https"
    GRPC = "grpc"


@dataclass
class Flag:
    key: str
    enabled: bool
    name: str = ""
    description: str = ""
    namespace_key: str = ""


@dataclass
class EvaluationResponse:
    match: bool
    value: str = ""
    attachment: str = ""
    flag_key: str = ""
    segment_key: str = ""
    request_id: str = ""
    entity_id: str = ""
    namespace_key: str = ""


@dataclass
class EvaluationRequest:
    namespace_key: str
    flag_key: str
    entity_id: str
    request_id: str
    context: typing.Dict[str, str]


def split_flag_key(flag_key: str) -> typing.Tuple[str, str]:
    """Split ``"<namespace>/<key>"`` at the first separator.

    >>> split_flag_key("flipt/boolean-match")
    ('flipt', 'boolean-match')
    >>> split_flag_key("boolean-match")
    ('default', 'boolean-match')
    """
    namespace, sep, key = flag_key.partition(NAMESPACE_SEPARATOR)
    if not sep:
        return DEFAULT_NAMESPACE, flag_key
    return namespace or DEFAULT_NAMESPACE, key


def flatten_context(
    evaluation_context: typing.Union[EvaluationContext, typing.Mapping[str, typing.Any], None],
) -> typing.Optional[typing.Dict[str, typing.Any]]:
    """Flatten an OpenFeature evaluation context into a single mapping.

    The targeting key, when set, is stored under ``"targetingKey"`` next to the
    attributes. ``None`` is kept as is so that services can reject it.
    """
    if evaluation_context is None:
        return None

    if isinstance(evaluation_context, typing.Mapping):
        return dict(evaluation_context)

    flattened = dict(evaluation_context.attributes or {})
    if evaluation_context.targeting_key:
        flattened[TARGETING_KEY] = evaluation_context.targeting_key
    return flattened


def _stringify(value: typing.Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, (typing.Mapping, list, tuple)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def build_evaluation_request(
    namespace: str, key: str, context: typing.Optional[typing.Mapping[str, typing.Any]]
) -> EvaluationRequest:
    """Validate an evaluation context and convert it to the Flipt request fields.

    Raises ``InvalidContextError`` when there is no context and
    ``TargetingKeyMissingError`` when the targeting key is absent or empty.
    The ``requestID`` entry is moved out of the context into its own field.
    """
    if context is None:
        raise InvalidContextError("evaluation context is missing")

    ec = {k: _stringify(v) for k, v in context.items()}

    entity_id = ec.get(TARGETING_KEY, "")
    if not entity_id:
        raise TargetingKeyMissingError("targetingKey is missing")

    request_id = ec.pop(REQUEST_ID_KEY, "")

    return EvaluationRequest(
        namespace_key=namespace,
        flag_key=key,
        entity_id=entity_id,
        request_id=request_id,
        context=ec,
    )


class FlagService(abc.ABC):
    """Base class of the Flipt transports.

    Subclasses implement ``_connect`` to build their client; ``_instance``
    returns it, building it on the first call only. A client passed to the
    constructor belongs to the caller: it is never built, closed or replaced.
    """

    def __init__(self, client: typing.Any = None) -> None:
        self._injected_client = client
        self._client = client
        self._lock = threading.Lock()

    @abc.abstractmethod
    def _connect(self) -> typing.Any:
        pass

    def _disconnect(self, client: typing.Any) -> None:
        pass

    def _instance(self) -> typing.Any:
        client = self._client
        if client is not None:
            return client

        with self._lock:
            if self._client is None:
                self._client = self._connect()
            return self._client

    def close(self) -> None:
        """Release the transport client; the next call builds a new one.

        A client given to the constructor is left open and kept.
        """
        if self._injected_client is not None:
            return
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            self._disconnect(client)

    @abc.abstractmethod
    def get_flag(self, namespace: str, key: str) -> Flag:
        """Return the flag ``key`` of ``namespace``."""

    @abc.abstractmethod
    def evaluate(
        self, namespace: str, key: str, context: typing.Optional[typing.Mapping[str, typing.Any]]
    ) -> EvaluationResponse:
        """Evaluate the flag ``key`` of ``namespace`` for ``context``."""


def new_service(
    service_type: typing.Union[ServiceType, str],
    address: typing.Optional[str] = None,
    socket_path: typing.Optional[str] = None,
    certificate_path: typing.Optional[str] = None,
    client_token: typing.Optional[str] = None,
    timeout: typing.Optional[float] = None,
) -> FlagService:
    """Build the flag service for ``service_type``."""
    # Import here to avoid circular dependency
    from flipt_openfeature.internal.service.grpc import GRPCFlagService
    from flipt_openfeature.internal.service.http import HTTPFlagService

    service_type = ServiceType(service_type)
    log.debug("flipt: creating %s service for address=%s socket_path=%s", service_type.value, address, socket_path)

    if service_type == ServiceType.GRPC:
        return GRPCFlagService(
            address=address,
            socket_path=socket_path,
            certificate_path=certificate_path,
            client_token=client_token,
            timeout=timeout,
        )

    return HTTPFlagService(
        address=address,
        socket_path=socket_path,
        https=service_type == ServiceType.HTTPS,
        client_token=client_token,
        timeout=timeout,
    )
